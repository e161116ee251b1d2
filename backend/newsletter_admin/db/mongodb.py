from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from newsletter_admin.config import settings

INVITES_COLLECTION = "admin_invites"
USERS_COLLECTION = "users"

client: AsyncIOMotorClient = None
db: AsyncIOMotorDatabase = None


async def init_mongodb():
    global client, db
    client = AsyncIOMotorClient(settings.mongodb_uri, tz_aware=True)
    db = client[settings.mongodb_db]
    await db[INVITES_COLLECTION].create_index("code", unique=True)
    await db[USERS_COLLECTION].create_index("id", unique=True)


async def close_mongodb():
    global client
    if client:
        client.close()


def get_mongodb() -> AsyncIOMotorDatabase:
    return db


def get_mongo_client() -> AsyncIOMotorClient:
    return client
