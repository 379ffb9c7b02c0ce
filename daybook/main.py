from contextlib import asynccontextmanager
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from daybook.api.v1.api import api_router
from daybook.core.config import settings
from daybook.core.database import AsyncSessionLocal, Base, engine
from daybook.core.logging_config import setup_logging
from daybook.core.telegram_client import TelegramClient
from daybook.services.reminder_scheduler import ReminderScheduler
from daybook.models import entry, user, user_setting  # noqa: F401 (register models on Base.metadata)

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL)
    logger.info(f"Starting {settings.PROJECT_NAME}...")

    if settings.AUTO_CREATE_TABLES:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    telegram = TelegramClient()
    if not telegram.token:
        logger.warning("⚠️ TELEGRAM_BOT_TOKEN is not set; reminders will fail to send")

    scheduler = ReminderScheduler(
        AsyncSessionLocal,
        telegram,
        interval_seconds=settings.REMINDER_INTERVAL_SECONDS,
    )
    app.state.reminder_scheduler = scheduler
    if settings.SCHEDULER_ENABLED:
        scheduler.start()

    try:
        yield
    finally:
        logger.info("Shutting down gracefully...")
        scheduler.stop()
        await telegram.close()
        await engine.dispose()

def create_app() -> FastAPI:
    app = FastAPI(title=settings.PROJECT_NAME, openapi_url=f"{settings.API_V1_STR}/openapi.json", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(api_router, prefix=settings.API_V1_STR)

    @app.get("/")
    async def root():
        return {"message": f"{settings.PROJECT_NAME} is running"}

    return app

app = create_app()
