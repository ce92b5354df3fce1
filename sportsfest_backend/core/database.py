# sportsfest_backend/core/database.py

from fastapi import Request
from sqlmodel import SQLModel
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from sportsfest_backend.core.config import DATABASE_URL, SQL_ECHO

# --- Engine ---
engine = create_async_engine(DATABASE_URL, echo=SQL_ECHO, future=True)

# --- Async session maker ---
async_session_maker = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


def build_session_maker(database_url: str, echo: bool = False, **engine_kwargs):
    """
    Create an engine + session maker pair for an explicit URL.
    Used by tests and scripts that must not touch the default database file.
    """
    custom_engine = create_async_engine(database_url, echo=echo, future=True, **engine_kwargs)
    return custom_engine, sessionmaker(bind=custom_engine, class_=AsyncSession, expire_on_commit=False)


# --- Async DB session (used in routes) ---
async def get_db(request: Request):
    # The app may run against its own session maker (see main.create_app)
    maker = getattr(request.app.state, "session_maker", async_session_maker)
    async with maker() as session:
        yield session


# --- Initialize DB tables ---
async def init_db(db_engine=None):
    """Create tables asynchronously if they don't exist."""
    # Table classes must be registered on the metadata before create_all
    from sportsfest_backend import models  # noqa: F401

    async with (db_engine or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
