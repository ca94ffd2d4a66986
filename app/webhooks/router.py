"""
Webhook endpoints - NO AUTH (provider signature verification)

Both handlers read the raw body themselves: signatures are computed over the
exact bytes, so nothing may parse the body before verification.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.clients.payments import RazorpayGateway
from app.core.config import Settings
from app.core.dependencies import get_db, get_payments, get_settings
from app.core.errors import ReconciliationError
from app.webhooks.identity import handle_identity_event, parse_identity_event
from app.webhooks.payments import handle_payment_event, parse_payment_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])

RAZORPAY_SIGNATURE_HEADER = "X-Razorpay-Signature"


@router.post("/clerk")
async def clerk_webhook(
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Identity Directory notifications (Svix-signed)"""
    body = await request.body()

    try:
        event = parse_identity_event(
            settings.clerk_webhook_secret,
            body,
            request.headers,
            settings.webhook_tolerance_seconds,
        )
        result = await handle_identity_event(db, event)
    except ReconciliationError as e:
        logger.warning("❌ Identity webhook rejected (%s): %s", e.status_code, e.message)
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("❌ Identity webhook processing error")
        raise HTTPException(status_code=500, detail="Server Error")

    return {"success": True, **result}


@router.post("/razorpay")
async def razorpay_webhook(
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_db),
    payments: RazorpayGateway = Depends(get_payments),
):
    """Payment Ledger notifications (X-Razorpay-Signature)"""
    body = await request.body()

    try:
        event = parse_payment_event(payments, body, request.headers.get(RAZORPAY_SIGNATURE_HEADER))
        result = await handle_payment_event(db, payments, event)
    except ReconciliationError as e:
        logger.warning("❌ Payment webhook rejected (%s): %s", e.status_code, e.message)
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("❌ Payment webhook processing error")
        raise HTTPException(status_code=500, detail="Server Error")

    return {"received": True, **result}
