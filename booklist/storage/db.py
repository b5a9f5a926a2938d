from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from booklist.domain.errors import StorageError
from booklist.storage.base import Base, import_all_models

_db_service: "DatabaseService | None" = None


def _build_sqlite_url(db_path: Path) -> str:
    resolved = db_path.resolve()
    return f"sqlite+aiosqlite:///{resolved.as_posix()}"


class DatabaseService:
    def __init__(self, db_url: str):
        self.db_url = db_url
        self.engine: AsyncEngine = create_async_engine(db_url, future=True)
        self._sessionmaker = async_sessionmaker(self.engine, expire_on_commit=False)

    async def init_models(self) -> None:
        import_all_models()
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as exc:
            logger.opt(exception=exc).debug("Failed to create schema.")
            raise StorageError(str(exc)) from exc

    @asynccontextmanager
    async def with_session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self._sessionmaker() as session:
            yield session

    async def dispose(self) -> None:
        await self.engine.dispose()


async def init_db_service(db_path: Path, *, create_schema: bool = False) -> DatabaseService:
    """Open the database at ``db_path``.

    Only ``create_schema=True`` (the ``-init`` action) may create the file;
    every other action expects an initialized database.
    """

    global _db_service
    if _db_service is None:
        if create_schema:
            db_path.parent.mkdir(parents=True, exist_ok=True)
        elif not db_path.exists():
            raise StorageError(f"No database at {db_path}; run `booklist -init` first.")
        service = DatabaseService(_build_sqlite_url(db_path))
        if create_schema:
            await service.init_models()
        _db_service = service
    return _db_service


def get_db_service() -> DatabaseService:
    if _db_service is None:
        raise RuntimeError("Database service not initialized. Call init_db_service() first.")
    return _db_service


async def shutdown_db_service() -> None:
    global _db_service
    if _db_service is None:
        return
    await _db_service.dispose()
    _db_service = None


@asynccontextmanager
async def session_scope() -> AsyncGenerator[AsyncSession, None]:
    """Context manager for managing an async session scope.

    Commits if the block completes, rolls back otherwise. SQLAlchemy errors
    leave the scope as ``StorageError``; other exceptions propagate unchanged.

    Yields:
        AsyncSession: The async session object.

    Raises:
        StorageError: If a database error occurs inside the scope or on commit.

    """

    db_service = get_db_service()
    async with db_service.with_session() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as exc:
            logger.opt(exception=exc).debug("Rolling back session after a database error.")
            await session.rollback()
            raise StorageError(str(exc)) from exc
        except Exception:
            await session.rollback()
            raise
