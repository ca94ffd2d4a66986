import logging

import httpx
from fastapi import Depends, Header, HTTPException, Request
from jose import JWTError, jwt
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.clients.directory import ClerkDirectory
from app.clients.payments import RazorpayGateway
from app.core.config import Settings

logger = logging.getLogger(__name__)

# ==================== PROCESS-SCOPED RESOURCES ====================
# Built once in the app lifespan and stored on app.state


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_db(request: Request) -> AsyncIOMotorDatabase:
    """Database dependency"""
    return request.app.state.db


def get_payments(request: Request) -> RazorpayGateway:
    return request.app.state.payments


def get_directory(request: Request) -> ClerkDirectory:
    return request.app.state.directory


# ==================== AUTH ====================

async def get_current_user_id(
    authorization: str = Header(None),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    Verify the Clerk session token and return its subject.
    The subject is the identity-provider user id stored as users.user_id.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Unauthorized")

    if not settings.clerk_jwt_key:
        logger.warning("CLERK_JWT_KEY not set, rejecting request")
        raise HTTPException(status_code=401, detail="Unauthorized")

    token = authorization.split(" ", 1)[1]
    try:
        payload = jwt.decode(
            token,
            settings.clerk_jwt_key,
            algorithms=[settings.clerk_jwt_algorithm],
        )
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or Expired Token")

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Token has no subject")
    return user_id


async def require_educator(
    user_id: str = Depends(get_current_user_id),
    directory: ClerkDirectory = Depends(get_directory),
) -> str:
    """Allow only users whose directory role is educator"""
    try:
        role = await directory.get_role(user_id)
    except httpx.HTTPError as e:
        logger.error("❌ Directory role lookup failed for %s: %s", user_id, e)
        raise HTTPException(status_code=502, detail="Identity provider unavailable")

    if role != "educator":
        raise HTTPException(status_code=403, detail="Unauthorized Access")
    return user_id
