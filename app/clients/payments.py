"""
Razorpay Payment Ledger client

One instance is built at startup and injected wherever payment state is read
or created. The SDK is synchronous, so network calls run in a worker thread.
"""

import asyncio
import logging
from typing import Optional

import razorpay
from razorpay.errors import BadRequestError, SignatureVerificationError

from app.core.errors import DownstreamFailure, NotFound

logger = logging.getLogger(__name__)


class RazorpayGateway:
    def __init__(
        self,
        key_id: Optional[str],
        key_secret: Optional[str],
        webhook_secret: Optional[str],
        client: Optional[razorpay.Client] = None,
    ):
        self.key_id = key_id
        self._webhook_secret = webhook_secret
        self.client = client or razorpay.Client(auth=(key_id, key_secret))

    # ==================== WEBHOOKS ====================

    def verify_webhook_signature(self, body: bytes, signature: Optional[str]) -> bool:
        """Check X-Razorpay-Signature against the exact raw body"""
        if not self._webhook_secret:
            logger.warning("RAZORPAY_WEBHOOK_SECRET not set, rejecting webhook")
            return False
        if not signature:
            return False

        try:
            self.client.utility.verify_webhook_signature(
                body.decode("utf-8"),
                signature,
                self._webhook_secret,
            )
        except (SignatureVerificationError, UnicodeDecodeError):
            return False
        return True

    # ==================== ORDERS ====================

    async def fetch_order(self, order_id: str) -> dict:
        try:
            return await asyncio.to_thread(self.client.order.fetch, order_id)
        except BadRequestError as e:
            # Razorpay answers BAD_REQUEST_ERROR for ids it does not know
            raise NotFound(f"Order {order_id} not found: {e}")
        except Exception as e:
            raise DownstreamFailure(f"Order lookup failed for {order_id}: {e}")

    async def resolve_purchase_id(self, order_id: Optional[str]) -> str:
        """
        Map a payment's order back to the local purchase via order notes.
        Raises NotFound when the order carries no correlation id.
        """
        if not order_id:
            raise NotFound("Payment is not attached to an order")

        order = await self.fetch_order(order_id)
        purchase_id = (order.get("notes") or {}).get("purchase_id")
        if not purchase_id:
            raise NotFound(f"Order {order_id} has no purchase_id note")
        return purchase_id

    async def create_order(self, amount: int, currency: str, receipt: str, notes: dict) -> dict:
        order_data = {
            "amount": amount,  # minor units
            "currency": currency,
            "receipt": receipt,
            "notes": notes,
        }
        return await asyncio.to_thread(self.client.order.create, data=order_data)
