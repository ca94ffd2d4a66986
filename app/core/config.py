"""
Application Configuration
Environment-driven settings for the store, payment and identity providers
"""

import os
from typing import List, Optional
from pydantic import BaseModel


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseModel):
    # MongoDB
    mongo_url: str = "mongodb://localhost:27017"
    mongo_db: str = "coursehub_db"

    # Razorpay (Payment Ledger)
    razorpay_key_id: Optional[str] = None
    razorpay_key_secret: Optional[str] = None
    razorpay_webhook_secret: Optional[str] = None
    default_currency: str = "INR"

    # Clerk (Identity Directory)
    clerk_api_url: str = "https://api.clerk.com/v1"
    clerk_secret_key: Optional[str] = None
    clerk_webhook_secret: Optional[str] = None
    clerk_jwt_key: Optional[str] = None
    clerk_jwt_algorithm: str = "RS256"

    # Webhooks
    webhook_tolerance_seconds: int = 300

    # Misc
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from process environment"""
        return cls(
            mongo_url=os.getenv("MONGO_URL", "mongodb://localhost:27017"),
            mongo_db=os.getenv("MONGO_DB", "coursehub_db"),
            razorpay_key_id=os.getenv("RAZORPAY_KEY_ID"),
            razorpay_key_secret=os.getenv("RAZORPAY_KEY_SECRET"),
            razorpay_webhook_secret=os.getenv("RAZORPAY_WEBHOOK_SECRET"),
            default_currency=os.getenv("DEFAULT_CURRENCY", "INR"),
            clerk_api_url=os.getenv("CLERK_API_URL", "https://api.clerk.com/v1"),
            clerk_secret_key=os.getenv("CLERK_SECRET_KEY"),
            clerk_webhook_secret=os.getenv("CLERK_WEBHOOK_SECRET"),
            # PEM keys arrive with literal \n in most hosting dashboards
            clerk_jwt_key=(os.getenv("CLERK_JWT_KEY") or "").replace("\\n", "\n") or None,
            clerk_jwt_algorithm=os.getenv("CLERK_JWT_ALGORITHM", "RS256"),
            webhook_tolerance_seconds=int(os.getenv("WEBHOOK_TOLERANCE_SECONDS", "300")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            cors_origins=_split_csv(os.getenv("CORS_ORIGINS", "*")),
        )
