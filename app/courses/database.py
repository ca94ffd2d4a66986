from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import List, Optional
import uuid

# ==================== COURSE CRUD ====================

# Enrollment ids are never exposed on public listings
PUBLIC_PROJECTION = {"_id": 0, "enrolled_students": 0}


async def create_course(db: AsyncIOMotorDatabase, course_data: dict, educator_id: str, currency: str) -> dict:
    """Create new course owned by educator"""
    course_id = f"COURSE_{uuid.uuid4().hex[:12].upper()}"
    now = datetime.utcnow()

    course = {
        "course_id": course_id,
        "educator_id": educator_id,
        "title": course_data["title"],
        "description": course_data.get("description", ""),
        "thumbnail_url": course_data.get("thumbnail_url"),
        "price": course_data["price"],
        "discount": course_data.get("discount", 0),
        "currency": course_data.get("currency") or currency,
        "is_published": course_data.get("is_published", True),
        "enrolled_students": [],
        "created_at": now,
        "updated_at": now,
    }

    await db.courses.insert_one(course)
    course.pop("_id", None)
    return course


async def get_course(db: AsyncIOMotorDatabase, course_id: str) -> Optional[dict]:
    """Get course by ID"""
    return await db.courses.find_one({"course_id": course_id})


async def get_public_course(db: AsyncIOMotorDatabase, course_id: str) -> Optional[dict]:
    return await db.courses.find_one(
        {"course_id": course_id, "is_published": True},
        PUBLIC_PROJECTION
    )


async def list_published_courses(db: AsyncIOMotorDatabase, skip: int = 0, limit: int = 50) -> List[dict]:
    cursor = db.courses.find({"is_published": True}, PUBLIC_PROJECTION) \
        .sort("created_at", -1).skip(skip).limit(limit)
    return await cursor.to_list(length=limit)


async def list_educator_courses(db: AsyncIOMotorDatabase, educator_id: str) -> List[dict]:
    cursor = db.courses.find({"educator_id": educator_id}, {"_id": 0}).sort("created_at", -1)
    return await cursor.to_list(length=None)


async def get_courses(db: AsyncIOMotorDatabase, course_ids: List[str]) -> List[dict]:
    cursor = db.courses.find({"course_id": {"$in": course_ids}}, PUBLIC_PROJECTION)
    return await cursor.to_list(length=None)


async def update_course(db: AsyncIOMotorDatabase, course_id: str, educator_id: str, updates: dict) -> bool:
    """Only the owning educator can change a course"""
    updates["updated_at"] = datetime.utcnow()
    result = await db.courses.update_one(
        {"course_id": course_id, "educator_id": educator_id},
        {"$set": updates}
    )
    return result.matched_count > 0


# ==================== ENROLLMENT ====================

async def add_enrolled_student(db: AsyncIOMotorDatabase, course_id: str, user_id: str):
    """Checked insert: repeated calls leave a single entry"""
    await db.courses.update_one(
        {"course_id": course_id},
        {"$addToSet": {"enrolled_students": user_id}}
    )


async def remove_enrolled_student(db: AsyncIOMotorDatabase, course_id: str, user_id: str):
    await db.courses.update_one(
        {"course_id": course_id},
        {"$pull": {"enrolled_students": user_id}}
    )
