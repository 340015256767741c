"""Async SQLAlchemy engine, session factory and slow statement logging."""
import logging
import time

from sqlalchemy import Engine, event, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from sitecms.config import settings

logger = logging.getLogger(__name__)


def watch_slow_queries(sync_engine: Engine, threshold_ms: int | None = None) -> None:
    """Log every statement on ``sync_engine`` that runs longer than ``threshold_ms``."""
    threshold = settings.SLOW_QUERY_THRESHOLD_MS if threshold_ms is None else threshold_ms

    @event.listens_for(sync_engine, "before_cursor_execute")
    def _start_timer(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("query_start_time", []).append(time.perf_counter())

    @event.listens_for(sync_engine, "after_cursor_execute")
    def _stop_timer(conn, cursor, statement, parameters, context, executemany):
        starts = conn.info.get("query_start_time")
        if not starts:
            return
        elapsed_ms = (time.perf_counter() - starts.pop()) * 1000
        if elapsed_ms >= threshold:
            verb = statement.lstrip().split(None, 1)[0].upper() if statement.strip() else "?"
            logger.warning("Slow %s (%.1fms): %s", verb, elapsed_ms, statement[:200])


def build_engine(url: str | None = None) -> AsyncEngine:
    url = url or settings.DATABASE_URL
    options: dict = {"echo": settings.DB_ECHO}
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_pre_ping=True,
        )
    new_engine = create_async_engine(url, **options)
    watch_slow_queries(new_engine.sync_engine)
    return new_engine


async def ping(session: AsyncSession) -> bool:
    await session.execute(text("SELECT 1"))
    return True


engine = build_engine()

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
