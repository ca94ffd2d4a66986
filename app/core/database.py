from typing import List, Optional
from motor.motor_asyncio import AsyncIOMotorDatabase
import logging

logger = logging.getLogger(__name__)


def serialize_mongo(doc: Optional[dict]) -> Optional[dict]:
    """Convert MongoDB document to JSON-serializable dict"""
    if doc is None:
        return None
    doc = dict(doc)
    if "_id" in doc:
        doc["_id"] = str(doc["_id"])
    return doc


def serialize_many(docs: List[dict]) -> List[dict]:
    return [serialize_mongo(doc) for doc in docs]


# ==================== DATABASE INDEXES ====================

async def create_indexes(db: AsyncIOMotorDatabase):
    """Create MongoDB indexes for data integrity"""

    # Users: provider-assigned id is the external key, redelivered creates must collide
    await db.users.create_index("user_id", unique=True)

    # Courses
    await db.courses.create_index("course_id", unique=True)
    await db.courses.create_index("educator_id")
    await db.courses.create_index("is_published")

    # Purchases
    await db.purchases.create_index("purchase_id", unique=True)
    await db.purchases.create_index("razorpay_order_id", unique=True)
    await db.purchases.create_index([("course_id", 1), ("status", 1)])
    await db.purchases.create_index("user_id")

    logger.info("✅ Indexes created")
