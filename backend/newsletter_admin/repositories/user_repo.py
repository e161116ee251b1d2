from motor.motor_asyncio import AsyncIOMotorClientSession

from newsletter_admin.db.mongodb import USERS_COLLECTION as COLLECTION, get_mongodb
from newsletter_admin.models.user import PromotionLog, UserRole


async def get_user(
    user_id: str, session: AsyncIOMotorClientSession | None = None
) -> dict | None:
    db = get_mongodb()
    return await db[COLLECTION].find_one({"id": user_id}, {"_id": 0}, session=session)


async def promote_to_admin(
    user_id: str,
    log: PromotionLog,
    session: AsyncIOMotorClientSession | None = None,
) -> bool:
    """Set the admin role and record how it was granted. False if no such user."""
    db = get_mongodb()
    result = await db[COLLECTION].update_one(
        {"id": user_id},
        {
            "$set": {
                "role": UserRole.ADMIN.value,
                "admin_promoted_at": log.promotion_timestamp,
                "admin_promotion_log": log.model_dump(mode="python"),
            }
        },
        session=session,
    )
    return result.matched_count > 0
