"""
Payment Ledger change handler

payment.captured grants course access, payment.failed closes the purchase.
Both are safe to re-run: enrollment uses $addToSet on each side and status
only ever moves out of pending. When a purchase ends failed, memberships a
capture added for it are pulled back.
"""

import json
import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from app.clients.payments import RazorpayGateway
from app.core.errors import AuthenticationFailure, DownstreamFailure, MalformedEvent, NotFound
from app.courses.database import add_enrolled_student, get_course, remove_enrolled_student
from app.purchases.database import (
    get_purchase,
    has_other_completed_purchase,
    mark_completed,
    mark_failed,
    record_orphan_payment,
)
from app.purchases.models import PurchaseStatus
from app.users.database import add_enrolled_course, get_user, remove_enrolled_course

logger = logging.getLogger(__name__)

PAYMENT_SUCCEEDED = "payment.captured"
PAYMENT_FAILED = "payment.failed"


def parse_payment_event(gateway: RazorpayGateway, body: bytes, signature: Optional[str]) -> dict:
    if not gateway.verify_webhook_signature(body, signature):
        raise AuthenticationFailure("Invalid webhook signature")

    try:
        event = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise MalformedEvent("Webhook body is not valid JSON")

    if not isinstance(event, dict):
        raise MalformedEvent("Webhook body is not a JSON object")
    return event


def _payment_entity(event: dict) -> dict:
    return ((event.get("payload") or {}).get("payment") or {}).get("entity") or {}


async def handle_payment_event(db: AsyncIOMotorDatabase, gateway: RazorpayGateway, event: dict) -> dict:
    event_type = event.get("event")

    if event_type == PAYMENT_SUCCEEDED:
        return await handle_payment_succeeded(db, gateway, _payment_entity(event))
    if event_type == PAYMENT_FAILED:
        return await handle_payment_failed(db, gateway, _payment_entity(event))

    logger.info("🔔 Unhandled payment event type: %s", event_type)
    return {"action": "ignored"}


async def handle_payment_succeeded(db: AsyncIOMotorDatabase, gateway: RazorpayGateway, payment: dict) -> dict:
    payment_id = payment.get("id")
    purchase_id = await gateway.resolve_purchase_id(payment.get("order_id"))

    try:
        purchase = await get_purchase(db, purchase_id)
        if not purchase:
            raise NotFound(f"Purchase {purchase_id} not found")

        user = await get_user(db, purchase["user_id"])
        course = await get_course(db, purchase["course_id"])
        if not user or not course:
            raise NotFound(f"User or course missing for purchase {purchase_id}")

        if purchase["status"] == PurchaseStatus.FAILED.value:
            await _undo_enrollment(db, purchase_id, user["user_id"], course["course_id"])
            await record_orphan_payment(db, purchase_id, payment_id)
            logger.warning("⚠️ Capture for failed purchase %s ignored (payment %s)", purchase_id, payment_id)
            return {"action": "ignored", "purchase_id": purchase_id}

        # Memberships first, status last: a completed purchase always has both sides enrolled
        await add_enrolled_course(db, user["user_id"], course["course_id"])
        await add_enrolled_student(db, course["course_id"], user["user_id"])
        transitioned = await mark_completed(db, purchase_id, payment_id)

        if not transitioned:
            current = await get_purchase(db, purchase_id)
            if not current or current["status"] != PurchaseStatus.COMPLETED.value:
                # A failure landed between the status read and the writes
                await _undo_enrollment(db, purchase_id, user["user_id"], course["course_id"])
                await record_orphan_payment(db, purchase_id, payment_id)
                logger.warning(
                    "⚠️ Purchase %s failed while capture %s was applied, enrollment reverted",
                    purchase_id, payment_id,
                )
                return {"action": "ignored", "purchase_id": purchase_id}

    except PyMongoError as e:
        raise DownstreamFailure(f"Store write failed for purchase {purchase_id}: {e}")

    if transitioned:
        logger.info("✅ Payment succeeded. %s enrolled in %s", user["user_id"], course["course_id"])
    else:
        logger.info("Purchase %s already completed, enrollment re-checked", purchase_id)
    return {"action": "completed", "purchase_id": purchase_id}


async def _undo_enrollment(db: AsyncIOMotorDatabase, purchase_id: str, user_id: str, course_id: str):
    # Another completed purchase for the same pair still owns the enrollment
    if await has_other_completed_purchase(db, purchase_id, user_id, course_id):
        return
    await remove_enrolled_course(db, user_id, course_id)
    await remove_enrolled_student(db, course_id, user_id)


async def handle_payment_failed(db: AsyncIOMotorDatabase, gateway: RazorpayGateway, payment: dict) -> dict:
    payment_id = payment.get("id")
    purchase_id = await gateway.resolve_purchase_id(payment.get("order_id"))

    try:
        purchase = await get_purchase(db, purchase_id)
        if not purchase:
            # Failure events can race with purchase cleanup
            logger.info("Purchase %s not found for failed payment, ignored", purchase_id)
            return {"action": "ignored", "purchase_id": purchase_id}

        transitioned = await mark_failed(db, purchase_id, payment_id, payment.get("error_description"))
        if transitioned:
            # Clears memberships left by a capture that crashed before completing
            await _undo_enrollment(db, purchase_id, purchase["user_id"], purchase["course_id"])

    except PyMongoError as e:
        raise DownstreamFailure(f"Store write failed for purchase {purchase_id}: {e}")

    if transitioned:
        logger.info("❌ Payment failed for purchase: %s", purchase_id)
        return {"action": "failed", "purchase_id": purchase_id}

    logger.info("Purchase %s is %s, failure ignored", purchase_id, purchase["status"])
    return {"action": "ignored", "purchase_id": purchase_id}
