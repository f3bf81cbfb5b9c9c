"""
Async engine, session factory and declarative base.

Request handlers get a session from get_db(); scripts and Celery tasks open
AsyncSessionLocal() themselves. Both commit explicitly.
"""
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings

_is_sqlite = settings.DATABASE_URL.startswith("sqlite")

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG and settings.LOG_LEVEL == "DEBUG",
    connect_args={"check_same_thread": False} if _is_sqlite else {},
)

if _is_sqlite:
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        # ON DELETE CASCADE of pay periods -> time entries / pay stubs
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db():
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def ping(session: AsyncSession) -> None:
    """Round trip to the database; raises SQLAlchemyError when it is unreachable."""
    await session.execute(text("SELECT 1"))


async def create_tables():
    """Create all tables (local development without Alembic)."""
    import app.models  # noqa – registers all models
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
