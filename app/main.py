import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.database import init_db
from app.core.errors import register_exception_handlers
from app.routers import payments, plans, subscriptions

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

OPENAPI_TAGS = [
    {"name": "Subscriptions", "description": "Create and manage Razorpay subscriptions."},
    {"name": "Plans", "description": "Create, list and deactivate subscription plans."},
    {"name": "Payments", "description": "One-time orders and the Razorpay webhook."},
]


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    # Deployed databases are managed by alembic; DEBUG runs create the tables directly.
    if settings.DEBUG:
        init_db()
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Subscription billing backed by Razorpay. "
        "Creates subscriptions, verifies checkout payments, and reconciles "
        "lifecycle changes from Razorpay webhooks."
    ),
    openapi_tags=OPENAPI_TAGS,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(
    subscriptions.router,
    prefix="/api/subscriptions",
    tags=["Subscriptions"],
)
app.include_router(plans.router, prefix="/api/plans", tags=["Plans"])
app.include_router(payments.router, prefix="/api/payments", tags=["Payments"])


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "status": "running",
    }
