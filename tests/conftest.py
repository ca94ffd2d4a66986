"""Shared fixtures: in-memory MongoDB, mocked provider APIs, signing helpers."""

from __future__ import annotations

import asyncio
import base64
import hashlib
import hmac
import time
import uuid
from datetime import datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from mongomock_motor import AsyncMongoMockClient

from app.clients.payments import RazorpayGateway
from app.core.config import Settings
from app.main import create_app
from app.webhooks.signatures import sign_svix

CLERK_WEBHOOK_SECRET = "whsec_" + base64.b64encode(b"clerk-test-signing-key").decode()
RAZORPAY_WEBHOOK_SECRET = "razorpay-test-webhook-secret"
SESSION_SECRET = "session-test-secret"


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        mongo_db="coursehub_test",
        razorpay_key_id="rzp_test_key",
        razorpay_key_secret="rzp_test_secret",
        razorpay_webhook_secret=RAZORPAY_WEBHOOK_SECRET,
        clerk_secret_key="sk_test",
        clerk_webhook_secret=CLERK_WEBHOOK_SECRET,
        clerk_jwt_key=SESSION_SECRET,
        clerk_jwt_algorithm="HS256",
    )


@pytest.fixture()
def db():
    # unique name per test: mock clients may share one in-memory server
    return AsyncMongoMockClient()[f"coursehub_test_{uuid.uuid4().hex[:8]}"]


@pytest.fixture()
def payments(settings: Settings) -> RazorpayGateway:
    """Real gateway (real signature checks) with the order API mocked out."""
    gateway = RazorpayGateway(
        settings.razorpay_key_id,
        settings.razorpay_key_secret,
        settings.razorpay_webhook_secret,
    )
    gateway.client.order = MagicMock()
    return gateway


@pytest.fixture()
def directory():
    mock = MagicMock()
    mock.get_role = AsyncMock(return_value="educator")
    mock.update_public_metadata = AsyncMock(return_value={})
    return mock


@pytest.fixture()
def client(settings, db, payments, directory):
    app = create_app(settings=settings, db=db, payments=payments, directory=directory)
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def run():
    """Run a coroutine against the shared mock database from a sync test."""
    return asyncio.run


# ── Signing helpers ───────────────────────────────────────────────────────


@pytest.fixture()
def clerk_headers():
    def _headers(body: bytes, msg_id: str = "msg_test_1", timestamp: int | None = None) -> dict:
        ts = str(int(time.time()) if timestamp is None else timestamp)
        return {
            "svix-id": msg_id,
            "svix-timestamp": ts,
            "svix-signature": "v1," + sign_svix(CLERK_WEBHOOK_SECRET, msg_id, ts, body),
            "content-type": "application/json",
        }
    return _headers


@pytest.fixture()
def razorpay_headers():
    def _headers(body: bytes) -> dict:
        signature = hmac.new(RAZORPAY_WEBHOOK_SECRET.encode(), body, hashlib.sha256).hexdigest()
        return {"X-Razorpay-Signature": signature, "content-type": "application/json"}
    return _headers


@pytest.fixture()
def auth_headers():
    def _headers(user_id: str) -> dict:
        token = jwt.encode({"sub": user_id}, SESSION_SECRET, algorithm="HS256")
        return {"Authorization": f"Bearer {token}"}
    return _headers


# ── Seed data ─────────────────────────────────────────────────────────────


@pytest.fixture()
def seed(db, run):
    """Insert documents the way the reconciler and course API shape them."""

    def _user(user_id: str, name: str = "Ada Lovelace", enrolled: list | None = None) -> dict:
        doc = {
            "user_id": user_id,
            "email": f"{user_id.lower()}@example.com",
            "name": name,
            "image_url": f"https://img.example.com/{user_id}.png",
            "enrolled_courses": list(enrolled or []),
            "created_at": datetime.utcnow(),
            "updated_at": datetime.utcnow(),
        }
        run(db.users.insert_one(doc))
        return doc

    def _course(course_id: str, educator_id: str = "EDU1", price: int = 49900,
                discount: int = 0, students: list | None = None, title: str | None = None) -> dict:
        doc = {
            "course_id": course_id,
            "educator_id": educator_id,
            "title": title or f"Course {course_id}",
            "description": "",
            "thumbnail_url": None,
            "price": price,
            "discount": discount,
            "currency": "INR",
            "is_published": True,
            "enrolled_students": list(students or []),
            "created_at": datetime.utcnow(),
            "updated_at": datetime.utcnow(),
        }
        run(db.courses.insert_one(doc))
        return doc

    def _purchase(purchase_id: str, user_id: str, course_id: str, amount: int = 49900,
                  status: str = "pending", order_id: str | None = None) -> dict:
        doc = {
            "purchase_id": purchase_id,
            "user_id": user_id,
            "course_id": course_id,
            "amount": amount,
            "currency": "INR",
            "status": status,
            "razorpay_order_id": order_id or f"order_{purchase_id}",
            "razorpay_payment_id": None,
            "created_at": datetime.utcnow(),
            "updated_at": datetime.utcnow(),
        }
        run(db.purchases.insert_one(doc))
        return doc

    return SimpleNamespace(user=_user, course=_course, purchase=_purchase)
