from __future__ import annotations

import asyncio
from datetime import date
from pathlib import Path

import pytest
from sqlalchemy import text as sa_text
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from booklist.domain.errors import NotFoundError, StorageError
from booklist.storage.base import Base, import_all_models
from booklist.storage.books import crud as books_crud
from booklist.storage.types import InsertResult


async def _build_test_db(tmp_path: Path):
    db_path = tmp_path / "books_crud_test.db"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path.as_posix()}", future=True)
    import_all_models()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return engine


def test_insert_title_only_reads_back_empty_fields(tmp_path: Path) -> None:
    async def _run() -> None:
        engine = await _build_test_db(tmp_path)
        session_maker = async_sessionmaker(engine, expire_on_commit=False)
        try:
            async with session_maker() as session:
                inserted = await books_crud.insert_book(session, title="Solaris")
                await session.commit()

            async with session_maker() as session:
                book = await books_crud.get_book(session, inserted.id)
                raw = (
                    await session.execute(
                        sa_text("SELECT author, addn_authors, state, stars, date_read FROM books WHERE id = :id"),
                        {"id": inserted.id},
                    )
                ).one()

            assert inserted == InsertResult(id=book.id)
            assert book.title == "Solaris"
            assert book.author == ""
            assert book.additional_authors == ""
            assert book.state == ""
            assert book.stars == 0
            assert book.date_read is None
            assert book.created_at == book.updated_at
            # absent values are stored as NULL, not empty strings
            assert tuple(raw) == (None, None, None, None, None)
        finally:
            await engine.dispose()

    asyncio.run(_run())


def test_get_book_missing_raises_not_found(tmp_path: Path) -> None:
    async def _run() -> None:
        engine = await _build_test_db(tmp_path)
        session_maker = async_sessionmaker(engine, expire_on_commit=False)
        try:
            async with session_maker() as session:
                with pytest.raises(NotFoundError):
                    await books_crud.get_book(session, 42)
        finally:
            await engine.dispose()

    asyncio.run(_run())


def test_update_book_field_touches_one_column(tmp_path: Path) -> None:
    async def _run() -> None:
        engine = await _build_test_db(tmp_path)
        session_maker = async_sessionmaker(engine, expire_on_commit=False)
        try:
            async with session_maker() as session:
                inserted = await books_crud.insert_book(session, title="Emma", author="Jane Austen", stars=3)
                before = await books_crud.get_book(session, inserted.id)

                matched = await books_crud.update_book_field(session, inserted.id, "additional_authors", "Fiona Stafford")
                await books_crud.update_book_field(session, inserted.id, "date_read", date(2014, 2, 14))
                missing = await books_crud.update_book_field(session, 999, "title", "Nobody")
                await session.commit()

                after = await books_crud.get_book(session, inserted.id)

            assert matched == 1
            assert missing == 0
            assert after.additional_authors == "Fiona Stafford"
            assert after.date_read == date(2014, 2, 14)
            assert after.title == "Emma"
            assert after.author == "Jane Austen"
            assert after.stars == 3
            assert after.created_at == before.created_at
            assert after.updated_at > before.updated_at
        finally:
            await engine.dispose()

    asyncio.run(_run())


def test_update_book_field_rejects_unknown_field(tmp_path: Path) -> None:
    async def _run() -> None:
        engine = await _build_test_db(tmp_path)
        session_maker = async_sessionmaker(engine, expire_on_commit=False)
        try:
            async with session_maker() as session:
                with pytest.raises(ValueError):
                    await books_crud.update_book_field(session, 1, "created_at", "2020-01-01")
        finally:
            await engine.dispose()

    asyncio.run(_run())


def test_delete_book_reports_rowcount(tmp_path: Path) -> None:
    async def _run() -> None:
        engine = await _build_test_db(tmp_path)
        session_maker = async_sessionmaker(engine, expire_on_commit=False)
        try:
            async with session_maker() as session:
                inserted = await books_crud.insert_book(session, title="Ubik")
                first = await books_crud.delete_book(session, inserted.id)
                second = await books_crud.delete_book(session, inserted.id)
                await session.commit()

            assert first == 1
            assert second == 0
        finally:
            await engine.dispose()

    asyncio.run(_run())


def test_stream_books_like_pattern_is_used_verbatim(tmp_path: Path) -> None:
    async def _run() -> None:
        engine = await _build_test_db(tmp_path)
        session_maker = async_sessionmaker(engine, expire_on_commit=False)
        try:
            async with session_maker() as session:
                for title in ("Dune", "Dune Messiah", "Children of Dune", "Neuromancer"):
                    await books_crud.insert_book(session, title=title)
                await session.commit()

                exact = [book.title async for book in books_crud.stream_books(session, field="title", pattern="Dune")]
                contains = [book.title async for book in books_crud.stream_books(session, field="title", pattern="%Dune%")]
                everything = [book.title async for book in books_crud.stream_books(session)]

            assert exact == ["Dune"]
            assert contains == ["Dune", "Dune Messiah", "Children of Dune"]
            assert everything == ["Dune", "Dune Messiah", "Children of Dune", "Neuromancer"]
        finally:
            await engine.dispose()

    asyncio.run(_run())


def test_stream_books_raises_on_undecodable_row(tmp_path: Path) -> None:
    async def _run() -> None:
        engine = await _build_test_db(tmp_path)
        session_maker = async_sessionmaker(engine, expire_on_commit=False)
        try:
            async with session_maker() as session:
                good = await books_crud.insert_book(session, title="Good Omens")
                await session.execute(
                    sa_text(
                        "INSERT INTO books (title, date_read, created_at, updated_at) "
                        "VALUES ('Broken', 'not-a-date', '2020-01-01 00:00:00.000000', '2020-01-01 00:00:00.000000')"
                    )
                )
                await session.commit()

                seen: list[int] = []
                with pytest.raises(StorageError):
                    async for book in books_crud.stream_books(session):
                        seen.append(book.id)

            assert seen == [good.id]
        finally:
            await engine.dispose()

    asyncio.run(_run())
