from datetime import datetime

from motor.motor_asyncio import AsyncIOMotorClientSession
from pymongo import ReturnDocument

from newsletter_admin.db.mongodb import INVITES_COLLECTION as COLLECTION, get_mongodb
from newsletter_admin.models.invite import InviteCode


def _active_filter(now: datetime) -> dict:
    return {
        "revoked_at": None,
        "$expr": {"$lt": ["$used_count", "$max_uses"]},
        "$or": [{"expires_at": None}, {"expires_at": {"$gt": now}}],
    }


async def create_invite(invite: InviteCode) -> InviteCode:
    db = get_mongodb()
    await db[COLLECTION].insert_one(invite.model_dump())
    return invite


async def get_invite(
    code: str, session: AsyncIOMotorClientSession | None = None
) -> dict | None:
    db = get_mongodb()
    return await db[COLLECTION].find_one({"code": code}, {"_id": 0}, session=session)


async def claim_use(
    code: str,
    user_id: str,
    now: datetime,
    session: AsyncIOMotorClientSession | None = None,
) -> dict | None:
    """Atomically take one use of an active invite.

    Returns the updated document, or None when the code is unknown or no
    longer redeemable by this user. The filter and the increment are one
    server-side operation, so used_count can never pass max_uses.
    """
    db = get_mongodb()
    query = {
        "code": code,
        **_active_filter(now),
        "assigned_to": {"$in": [None, user_id]},
    }
    return await db[COLLECTION].find_one_and_update(
        query,
        {"$inc": {"used_count": 1}},
        projection={"_id": 0},
        return_document=ReturnDocument.AFTER,
        session=session,
    )


async def list_invites(
    now: datetime,
    created_by: str | None = None,
    active_only: bool = False,
    limit: int | None = None,
) -> list[dict]:
    db = get_mongodb()
    query: dict = {}
    if created_by:
        query["created_by"] = created_by
    if active_only:
        query.update(_active_filter(now))
    cursor = db[COLLECTION].find(query, {"_id": 0}).sort("created_at", -1)
    if limit:
        cursor = cursor.limit(limit)
    return await cursor.to_list(length=None)


async def revoke_invite(code: str, now: datetime) -> dict | None:
    db = get_mongodb()
    return await db[COLLECTION].find_one_and_update(
        {"code": code, "revoked_at": None},
        {"$set": {"revoked_at": now}},
        projection={"_id": 0},
        return_document=ReturnDocument.AFTER,
    )
