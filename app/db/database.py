# app/db/database.py
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from fastapi import HTTPException
from app.core import tracing as logger
from app.core.config import settings


def _engine_options() -> dict:
    """Pool and driver options; SQLite (tests, local runs) takes none of the asyncpg ones."""
    if settings.is_sqlite:
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_pre_ping": True,
        "pool_recycle": 300,
        "connect_args": {
            "server_settings": {"application_name": "taskboard_api"},
            "command_timeout": 5,
        },
    }


engine = create_async_engine(settings.DATABASE_URL, echo=False, **_engine_options())

# Objects stay readable after commit; handlers serialise them afterwards
AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False
)

Base = declarative_base()


async def init_db():
    """Create any missing tables (users, tasks, task_assignees)."""
    import app.db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialized", tables=sorted(Base.metadata.tables))


async def get_db():
    """One session per request, rolled back if the request fails."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as e:
            details = {"status_code": e.status_code} if isinstance(e, HTTPException) else {}
            logger.warning("Rolling back request session", error=str(e), type=type(e).__name__, **details)
            await session.rollback()
            raise
