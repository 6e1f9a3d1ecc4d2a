"""
Database indexes for optimal query performance.

Indexes are created on application startup. You can also run this module
directly: python -m app.core.database_indexes
"""

from motor.motor_asyncio import AsyncIOMotorClient
from app.core.config import settings
import asyncio
import logging

logger = logging.getLogger(__name__)


async def ensure_indexes(db):
    """Create all necessary database indexes"""
    # Chats: listed per owner, newest first
    await db.chats.create_index([("user_id", 1), ("updated_at", -1)])
    logger.info("✓ Created indexes for 'chats' collection")

    # Messages: listed per chat in insertion order, parents looked up by id within a chat
    await db.messages.create_index([("chat_id", 1), ("created_at", 1)])
    await db.messages.create_index("parent_message_id")
    logger.info("✓ Created indexes for 'messages' collection")

    await db.users.create_index("email", unique=True)
    logger.info("✓ Created indexes for 'users' collection")


async def create_indexes():
    client = AsyncIOMotorClient(settings.MONGODB_URL)
    db = client[settings.DATABASE_NAME]

    logger.info("Creating database indexes...")
    await ensure_indexes(db)
    logger.info("All indexes created successfully!")

    client.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(create_indexes())
