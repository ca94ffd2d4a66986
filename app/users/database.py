from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import List, Optional

# ==================== USER CRUD ====================
# Users are written only by identity-directory notifications


async def insert_user(db: AsyncIOMotorDatabase, user_id: str, fields: dict) -> dict:
    """Raises DuplicateKeyError if the provider id already exists"""
    now = datetime.utcnow()
    user = {
        "user_id": user_id,
        **fields,
        "enrolled_courses": [],
        "created_at": now,
        "updated_at": now,
    }
    await db.users.insert_one(user)
    return user


async def update_user(db: AsyncIOMotorDatabase, user_id: str, fields: dict) -> bool:
    """Returns False when no user matches"""
    result = await db.users.update_one(
        {"user_id": user_id},
        {"$set": {**fields, "updated_at": datetime.utcnow()}}
    )
    return result.matched_count > 0


async def delete_user(db: AsyncIOMotorDatabase, user_id: str) -> bool:
    result = await db.users.delete_one({"user_id": user_id})
    return result.deleted_count > 0


async def get_user(db: AsyncIOMotorDatabase, user_id: str) -> Optional[dict]:
    return await db.users.find_one({"user_id": user_id})


async def get_users(db: AsyncIOMotorDatabase, user_ids: List[str]) -> List[dict]:
    """Public profile fields only"""
    cursor = db.users.find(
        {"user_id": {"$in": user_ids}},
        {"_id": 0, "user_id": 1, "name": 1, "image_url": 1}
    )
    return await cursor.to_list(length=None)


async def add_enrolled_course(db: AsyncIOMotorDatabase, user_id: str, course_id: str):
    """Checked insert: repeated calls leave a single entry"""
    await db.users.update_one(
        {"user_id": user_id},
        {"$addToSet": {"enrolled_courses": course_id}}
    )


async def remove_enrolled_course(db: AsyncIOMotorDatabase, user_id: str, course_id: str):
    await db.users.update_one(
        {"user_id": user_id},
        {"$pull": {"enrolled_courses": course_id}}
    )
