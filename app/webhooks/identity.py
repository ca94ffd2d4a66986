"""
Identity Directory change handler
Mirrors Clerk user.created / user.updated / user.deleted into the users collection
"""

import json
import logging
from typing import Mapping, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.core.errors import AuthenticationFailure, DownstreamFailure, MalformedEvent, NotFound
from app.users.database import delete_user, insert_user, update_user
from app.webhooks.signatures import verify_svix

logger = logging.getLogger(__name__)

USER_CREATED = "user.created"
USER_UPDATED = "user.updated"
USER_DELETED = "user.deleted"


def parse_identity_event(
    secret: Optional[str],
    body: bytes,
    headers: Mapping[str, str],
    tolerance_seconds: int = 300,
) -> dict:
    """Verify the envelope, then and only then decode it"""
    if not verify_svix(secret, body, headers, tolerance_seconds):
        raise AuthenticationFailure("Invalid webhook signature")

    try:
        event = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise MalformedEvent("Webhook body is not valid JSON")

    if not isinstance(event, dict):
        raise MalformedEvent("Webhook body is not a JSON object")
    return event


def user_fields(data: dict) -> dict:
    """Mutable profile fields derived from a Clerk user object"""
    emails = data.get("email_addresses") or []
    primary_id = data.get("primary_email_address_id")

    email = next(
        (e.get("email_address") for e in emails if primary_id and e.get("id") == primary_id),
        None
    )
    if email is None and emails:
        email = emails[0].get("email_address")

    name = " ".join(part for part in (data.get("first_name"), data.get("last_name")) if part)

    return {
        "email": email,
        "name": name,
        "image_url": data.get("image_url"),
    }


async def handle_identity_event(db: AsyncIOMotorDatabase, event: dict) -> dict:
    """
    Apply one directory notification. Exactly one store write per handled event.

    Returns {"action": ...} describing what happened. Unknown event types are
    acknowledged so the directory does not keep retrying them.
    """
    event_type = event.get("type")
    data = event.get("data") or {}

    if event_type not in (USER_CREATED, USER_UPDATED, USER_DELETED):
        logger.info("⚠️ Unhandled identity event type: %s", event_type)
        return {"action": "ignored"}

    user_id = data.get("id")
    if not user_id:
        raise MalformedEvent(f"{event_type} event has no user id")

    try:
        if event_type == USER_CREATED:
            try:
                await insert_user(db, user_id, user_fields(data))
            except DuplicateKeyError:
                # Redelivery of a create we already applied
                logger.info("User %s already exists, create ignored", user_id)
                return {"action": "duplicate"}
            logger.info("✅ User created: %s", user_id)
            return {"action": "created"}

        if event_type == USER_UPDATED:
            if not await update_user(db, user_id, user_fields(data)):
                raise NotFound(f"User {user_id} not found")
            logger.info("📝 User updated: %s", user_id)
            return {"action": "updated"}

        deleted = await delete_user(db, user_id)
        if deleted:
            logger.info("🗑️ User deleted: %s", user_id)
        else:
            logger.info("User %s already absent, delete ignored", user_id)
        return {"action": "deleted"}

    except PyMongoError as e:
        raise DownstreamFailure(f"Store write failed for {event_type} {user_id}: {e}")
