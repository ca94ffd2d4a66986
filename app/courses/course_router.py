from fastapi import APIRouter, HTTPException, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from app.courses.database import get_public_course, list_published_courses
from app.core.dependencies import get_db

router = APIRouter(prefix="/api/course", tags=["Courses"])


@router.get("/all")
async def list_courses_endpoint(
    skip: int = 0,
    limit: int = 50,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """Published course catalog"""
    courses = await list_published_courses(db, skip=skip, limit=min(limit, 100))
    return {"success": True, "courses": courses}


@router.get("/{course_id}")
async def get_course_endpoint(course_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    course = await get_public_course(db, course_id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    return {"success": True, "course": course}
