from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import List

from app.courses.database import list_educator_courses
from app.purchases.database import get_completed_purchases
from app.users.database import get_users

# ==================== EDUCATOR DASHBOARD ====================


async def get_dashboard_data(db: AsyncIOMotorDatabase, educator_id: str) -> dict:
    """Course count, earnings from completed purchases, and students per course"""
    courses = await list_educator_courses(db, educator_id)
    course_ids = [course["course_id"] for course in courses]

    purchases = await get_completed_purchases(db, course_ids)
    total_earnings = sum(purchase["amount"] for purchase in purchases)

    student_ids = {sid for course in courses for sid in course.get("enrolled_students", [])}
    students = {s["user_id"]: s for s in await get_users(db, list(student_ids))}

    enrolled_students_data = []
    for course in courses:
        for student_id in course.get("enrolled_students", []):
            if student_id in students:
                enrolled_students_data.append({
                    "course_title": course["title"],
                    "student": students[student_id],
                })

    return {
        "total_courses": len(courses),
        "total_earnings": total_earnings,
        "enrolled_students_data": enrolled_students_data,
    }


async def get_enrolled_students_data(db: AsyncIOMotorDatabase, educator_id: str) -> List[dict]:
    """One row per completed purchase across the educator's catalog, newest first"""
    courses = await list_educator_courses(db, educator_id)
    titles = {course["course_id"]: course["title"] for course in courses}

    purchases = await get_completed_purchases(db, list(titles))
    students = {
        s["user_id"]: s
        for s in await get_users(db, list({p["user_id"] for p in purchases}))
    }

    return [
        {
            "student": students[purchase["user_id"]],
            "course_title": titles[purchase["course_id"]],
            "purchase_date": purchase["created_at"],
        }
        for purchase in purchases
        if purchase["user_id"] in students
    ]
