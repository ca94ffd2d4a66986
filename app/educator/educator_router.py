import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.clients.directory import ClerkDirectory
from app.core.config import Settings
from app.core.dependencies import (
    get_current_user_id, get_db, get_directory, get_settings, require_educator
)
from app.courses.database import create_course, list_educator_courses, update_course
from app.courses.models import CourseCreate, CourseUpdate
from app.educator import educator_service as service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/educator", tags=["Educator"])


@router.patch("/update-role")
async def update_role_to_educator(
    user_id: str = Depends(get_current_user_id),
    directory: ClerkDirectory = Depends(get_directory)
):
    """Promote the caller to educator in the identity directory"""
    try:
        await directory.update_public_metadata(user_id, {"role": "educator"})
    except httpx.HTTPError as e:
        logger.error("❌ Role update failed for %s: %s", user_id, e)
        raise HTTPException(status_code=502, detail="Identity provider unavailable")

    return {"success": True, "message": "You can publish a course now"}


@router.post("/add-course", status_code=201)
async def add_course(
    data: CourseCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    settings: Settings = Depends(get_settings),
    educator_id: str = Depends(require_educator)
):
    course = await create_course(db, data.dict(), educator_id, settings.default_currency)
    logger.info("✅ Course %s added by %s", course["course_id"], educator_id)
    return {"success": True, "message": "Course Added", "course": course}


@router.patch("/course/{course_id}")
async def update_course_endpoint(
    course_id: str,
    data: CourseUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    educator_id: str = Depends(require_educator)
):
    updates = data.dict(exclude_none=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    if not await update_course(db, course_id, educator_id, updates):
        raise HTTPException(status_code=404, detail="Course not found")
    return {"success": True, "message": "Course Updated"}


@router.get("/courses")
async def get_educator_courses(
    db: AsyncIOMotorDatabase = Depends(get_db),
    educator_id: str = Depends(require_educator)
):
    courses = await list_educator_courses(db, educator_id)
    return {"success": True, "courses": courses}


@router.get("/dashboard")
async def educator_dashboard_data(
    db: AsyncIOMotorDatabase = Depends(get_db),
    educator_id: str = Depends(require_educator)
):
    dashboard_data = await service.get_dashboard_data(db, educator_id)
    return {"success": True, "dashboard_data": dashboard_data}


@router.get("/enrolled-students")
async def get_enrolled_students_data(
    db: AsyncIOMotorDatabase = Depends(get_db),
    educator_id: str = Depends(require_educator)
):
    enrolled_students = await service.get_enrolled_students_data(db, educator_id)
    return {"success": True, "enrolled_students": enrolled_students}
