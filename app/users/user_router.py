"""
Student-facing routes: profile, enrolled courses and checkout initiation.
Enrollment itself is granted only by the payment webhook.
"""

import logging
from fastapi import APIRouter, HTTPException, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.clients.payments import RazorpayGateway
from app.core.database import serialize_mongo
from app.core.dependencies import get_current_user_id, get_db, get_payments
from app.courses.database import get_course, get_courses
from app.courses.models import discounted_price
from app.purchases.database import create_purchase, generate_purchase_id
from app.purchases.models import CheckoutResponse, PurchaseCreate
from app.users.database import get_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["Users"])


@router.get("/data")
async def get_user_data(
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    user = await get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User Not Found")
    return {"success": True, "user": serialize_mongo(user)}


@router.get("/enrolled-courses")
async def get_enrolled_courses(
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    user = await get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User Not Found")

    courses = await get_courses(db, user.get("enrolled_courses", []))
    return {"success": True, "enrolled_courses": courses}


@router.post("/purchase", response_model=CheckoutResponse)
async def purchase_course(
    data: PurchaseCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    payments: RazorpayGateway = Depends(get_payments),
    user_id: str = Depends(get_current_user_id)
):
    """
    Start checkout for a course.
    Creates the Razorpay order first (carrying purchase_id in its notes),
    then records the pending purchase against that order.
    """
    user = await get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User Not Found")

    course = await get_course(db, data.course_id)
    if not course or not course.get("is_published"):
        raise HTTPException(status_code=404, detail="Course not found")

    if course["course_id"] in user.get("enrolled_courses", []):
        raise HTTPException(status_code=409, detail="Already enrolled in this course")

    amount = discounted_price(course)
    if amount <= 0:
        raise HTTPException(status_code=400, detail="Course has no payable amount")

    purchase_id = generate_purchase_id()
    currency = course["currency"]

    try:
        order = await payments.create_order(
            amount=amount,
            currency=currency,
            receipt=purchase_id,
            notes={
                "purchase_id": purchase_id,
                "user_id": user_id,
                "course_id": course["course_id"],
            },
        )
    except Exception as e:
        logger.error("❌ Order creation failed for %s: %s", purchase_id, e)
        raise HTTPException(status_code=502, detail="Payment provider unavailable")

    await create_purchase(
        db,
        purchase_id=purchase_id,
        user_id=user_id,
        course_id=course["course_id"],
        amount=amount,
        currency=currency,
        razorpay_order_id=order["id"],
    )
    logger.info("🧾 Purchase %s created for %s (order %s)", purchase_id, course["course_id"], order["id"])

    return CheckoutResponse(
        purchase_id=purchase_id,
        order_id=order["id"],
        amount=amount,
        currency=currency,
        key_id=payments.key_id or "",
    )
