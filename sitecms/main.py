"""Site CMS backend - FastAPI entry point."""
import sys

# asyncpg is incompatible with Windows ProactorEventLoop (default on Windows).
# Must be set before any asyncio usage.
if sys.platform == "win32":
    import asyncio
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

import sentry_sdk
import structlog
from fastapi import Depends, FastAPI
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.config import settings
from sitecms.database import engine, ping
from sitecms.dependencies import get_db
from sitecms.middleware.cors import setup_cors
from sitecms.middleware.error_handler import setup_error_handlers
from sitecms.middleware.logging_middleware import LoggingMiddleware, setup_logging
from sitecms.middleware.metrics import MetricsMiddleware, setup_metrics
from sitecms.middleware.rate_limiter import RateLimitMiddleware
from sitecms.api.v1 import auth as auth_router
from sitecms.api.v1 import contact as contact_router
from sitecms.api.v1 import faqs as faqs_router
from sitecms.api.v1 import faq_categories as faq_categories_router
from sitecms.api.v1 import resources as resources_router
from sitecms.api.v1 import resource_categories as resource_categories_router
from sitecms.api.v1 import admin_contact_inquiries
from sitecms.api.v1 import admin_faqs
from sitecms.api.v1 import admin_faq_categories
from sitecms.api.v1 import admin_resources
from sitecms.api.v1 import admin_resource_categories
from sitecms.utils.kv_store import RedisStore, get_store
from sitecms.utils.redis_client import close_redis

logger = structlog.get_logger()

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    logger.info("startup", env=settings.APP_ENV, cache_backend=settings.CACHE_BACKEND)
    if settings.SENTRY_DSN:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            integrations=[FastApiIntegration()],
            traces_sample_rate=0.1 if settings.APP_ENV == "production" else 1.0,
            environment=settings.APP_ENV,
        )

    yield

    await close_redis()
    await engine.dispose()
    logger.info("shutdown")


def create_app() -> FastAPI:
    setup_logging()
    application = FastAPI(
        title=f"{settings.APP_NAME} API",
        description="Contact inquiries, FAQ and resource library backend",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Middleware (order matters: last added = first executed)
    setup_cors(application)
    setup_error_handlers(application)
    application.add_middleware(LoggingMiddleware)
    application.add_middleware(RateLimitMiddleware)
    application.add_middleware(MetricsMiddleware)

    setup_metrics(application)

    # Public API
    application.include_router(auth_router.router, prefix=f"{API_PREFIX}/auth", tags=["Auth"])
    application.include_router(contact_router.router, prefix=f"{API_PREFIX}/contact", tags=["Contact"])
    application.include_router(faqs_router.router, prefix=f"{API_PREFIX}/faqs", tags=["FAQ"])
    application.include_router(
        faq_categories_router.router, prefix=f"{API_PREFIX}/faq-categories", tags=["FAQ"]
    )
    application.include_router(resources_router.router, prefix=f"{API_PREFIX}/resources", tags=["Resources"])
    application.include_router(
        resource_categories_router.router, prefix=f"{API_PREFIX}/resource-categories", tags=["Resource Categories"]
    )

    # Admin API
    admin = f"{API_PREFIX}/admin"
    application.include_router(
        admin_contact_inquiries.router, prefix=f"{admin}/contact-inquiries", tags=["Admin: Contact"]
    )
    application.include_router(admin_faqs.router, prefix=f"{admin}/faqs", tags=["Admin: FAQ"])
    application.include_router(
        admin_faq_categories.router, prefix=f"{admin}/faq-categories", tags=["Admin: FAQ"]
    )
    application.include_router(admin_resources.router, prefix=f"{admin}/resources", tags=["Admin: Resources"])
    application.include_router(
        admin_resource_categories.router, prefix=f"{admin}/resource-categories", tags=["Admin: Resource Categories"]
    )

    @application.get("/health", tags=["health"])
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    @application.get("/health/ready", tags=["health"])
    async def readiness(db: AsyncSession = Depends(get_db)) -> dict[str, str]:
        """Database reachable and which key/value backend is serving cache and rate limits."""
        await ping(db)
        store = await get_store()
        return {
            "status": "ready",
            "database": "ok",
            "cache": "redis" if isinstance(store, RedisStore) else "memory",
        }

    return application


app = create_app()
