from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from app.clients.directory import ClerkDirectory
from app.clients.payments import RazorpayGateway
from app.core.config import Settings
from app.core.database import create_indexes
from app.core.logging_config import configure_logging
from app.courses.course_router import router as course_router
from app.educator.educator_router import router as educator_router
from app.users.user_router import router as user_router
from app.webhooks.router import router as webhook_router

load_dotenv()


def create_app(
    settings: Optional[Settings] = None,
    db: Optional[AsyncIOMotorDatabase] = None,
    payments: Optional[RazorpayGateway] = None,
    directory: Optional[ClerkDirectory] = None,
) -> FastAPI:
    """
    Build the API. Provider clients and the database handle are created once
    per process in the lifespan; pass them in to override (tests, scripts).
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        mongo_client = None
        if db is None:
            mongo_client = AsyncIOMotorClient(settings.mongo_url)
            app.state.db = mongo_client[settings.mongo_db]
        else:
            app.state.db = db

        app.state.payments = payments or RazorpayGateway(
            settings.razorpay_key_id,
            settings.razorpay_key_secret,
            settings.razorpay_webhook_secret,
        )
        app.state.directory = directory or ClerkDirectory(
            settings.clerk_api_url,
            settings.clerk_secret_key,
        )

        await create_indexes(app.state.db)
        yield

        if directory is None:
            await app.state.directory.aclose()
        if mongo_client is not None:
            mongo_client.close()

    app = FastAPI(title="CourseHub API", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ==================== ROUTER REGISTRATION ====================
    # Webhooks first: they verify signatures over the untouched raw body
    app.include_router(webhook_router)
    app.include_router(course_router)
    app.include_router(user_router)
    app.include_router(educator_router)

    @app.get("/")
    async def health():
        return {"status": "ok", "message": "API is up and running"}

    return app


app = create_app()
