from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import List, Optional
import secrets
from app.purchases.models import PurchaseStatus


def generate_purchase_id() -> str:
    return f"PUR_{secrets.token_hex(8).upper()}"


async def create_purchase(
    db: AsyncIOMotorDatabase,
    purchase_id: str,
    user_id: str,
    course_id: str,
    amount: int,
    currency: str,
    razorpay_order_id: str,
) -> dict:
    """Insert a pending purchase tied to an already-created Razorpay order"""
    now = datetime.utcnow()
    purchase = {
        "purchase_id": purchase_id,
        "user_id": user_id,
        "course_id": course_id,
        "amount": amount,
        "currency": currency,
        "status": PurchaseStatus.PENDING.value,
        "razorpay_order_id": razorpay_order_id,
        "razorpay_payment_id": None,
        "created_at": now,
        "updated_at": now,
    }
    await db.purchases.insert_one(purchase)
    return purchase


async def get_purchase(db: AsyncIOMotorDatabase, purchase_id: str) -> Optional[dict]:
    return await db.purchases.find_one({"purchase_id": purchase_id})


async def mark_completed(db: AsyncIOMotorDatabase, purchase_id: str, payment_id: Optional[str]) -> bool:
    """
    pending -> completed. Filtered on status so a terminal purchase is never touched.
    Returns True if this call made the transition.
    """
    now = datetime.utcnow()
    result = await db.purchases.update_one(
        {"purchase_id": purchase_id, "status": PurchaseStatus.PENDING.value},
        {"$set": {
            "status": PurchaseStatus.COMPLETED.value,
            "razorpay_payment_id": payment_id,
            "completed_at": now,
            "updated_at": now,
        }}
    )
    return result.modified_count > 0


async def mark_failed(
    db: AsyncIOMotorDatabase,
    purchase_id: str,
    payment_id: Optional[str],
    reason: Optional[str],
) -> bool:
    """pending -> failed. Completed purchases stay completed."""
    now = datetime.utcnow()
    result = await db.purchases.update_one(
        {"purchase_id": purchase_id, "status": PurchaseStatus.PENDING.value},
        {"$set": {
            "status": PurchaseStatus.FAILED.value,
            "razorpay_payment_id": payment_id,
            "failure_reason": reason,
            "failed_at": now,
            "updated_at": now,
        }}
    )
    return result.modified_count > 0


async def record_orphan_payment(db: AsyncIOMotorDatabase, purchase_id: str, payment_id: Optional[str]):
    """Keep captured payments that could not be applied, for operator follow-up"""
    if not payment_id:
        return
    await db.purchases.update_one(
        {"purchase_id": purchase_id},
        {"$addToSet": {"orphan_payment_ids": payment_id},
         "$set": {"updated_at": datetime.utcnow()}}
    )


async def has_other_completed_purchase(
    db: AsyncIOMotorDatabase,
    purchase_id: str,
    user_id: str,
    course_id: str,
) -> bool:
    found = await db.purchases.find_one({
        "purchase_id": {"$ne": purchase_id},
        "user_id": user_id,
        "course_id": course_id,
        "status": PurchaseStatus.COMPLETED.value,
    })
    return found is not None


async def get_completed_purchases(db: AsyncIOMotorDatabase, course_ids: List[str]) -> List[dict]:
    cursor = db.purchases.find({
        "course_id": {"$in": course_ids},
        "status": PurchaseStatus.COMPLETED.value,
    }).sort("created_at", -1)
    return await cursor.to_list(length=None)
