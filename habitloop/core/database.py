from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from habitloop.core.config import settings


def get_database(uri: str = None, db_name: str = None) -> AsyncIOMotorDatabase:
    """Opens a client on ``MONGO_URI`` and returns the ``DB_NAME`` database."""
    client = AsyncIOMotorClient(uri or settings.MONGO_URI, tz_aware=True)
    return client[db_name or settings.DB_NAME]
