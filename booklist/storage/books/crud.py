from __future__ import annotations

from datetime import date, datetime
from typing import Any, AsyncIterator

from sqlalchemy import delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from booklist.domain.command import SearchField
from booklist.domain.dates import utcnow
from booklist.domain.errors import NotFoundError, StorageError
from booklist.storage.books.base import Book
from booklist.storage.types import BookRow, InsertResult

_BOOK_COLUMNS = (
    Book.id,
    Book.title,
    Book.author,
    Book.additional_authors,
    Book.state,
    Book.stars,
    Book.date_read,
    Book.created_at,
    Book.updated_at,
)

_SEARCHABLE = {
    "title": Book.title,
    "author": Book.author,
    "additional_authors": Book.additional_authors,
    "state": Book.state,
}

_UPDATABLE = {
    **_SEARCHABLE,
    "stars": Book.stars,
    "date_read": Book.date_read,
}


def _to_row(row: tuple) -> BookRow:
    # NULL columns read back as empty string / zero
    return BookRow(
        id=int(row[0]),
        title=str(row[1] or ""),
        author=row[2] or "",
        additional_authors=row[3] or "",
        state=row[4] or "",
        stars=int(row[5] or 0),
        date_read=row[6],
        created_at=row[7],
        updated_at=row[8],
    )


def _none_if_empty(value: Any) -> Any:
    return value if value else None


async def insert_book(
    session: AsyncSession,
    *,
    title: str,
    author: str = "",
    additional_authors: str = "",
    state: str = "",
    stars: int = 0,
    date_read: date | None = None,
) -> InsertResult:
    now = utcnow()
    stmt = insert(Book).values(
        {
            Book.title: title,
            Book.author: _none_if_empty(author),
            Book.additional_authors: _none_if_empty(additional_authors),
            Book.state: _none_if_empty(state),
            Book.stars: _none_if_empty(stars),
            Book.date_read: date_read,
            Book.created_at: now,
            Book.updated_at: now,
        }
    )
    result = await session.execute(stmt)
    return InsertResult(id=int(result.lastrowid))


async def get_book(session: AsyncSession, book_id: int) -> BookRow:
    result = await session.execute(select(*_BOOK_COLUMNS).where(Book.id == book_id))
    try:
        row = result.first()
        book = _to_row(tuple(row)) if row else None
    except (TypeError, ValueError) as exc:
        raise StorageError(f"Could not decode book {book_id}: {exc}") from exc
    if book is None:
        raise NotFoundError(book_id)
    return book


async def update_book_field(
    session: AsyncSession,
    book_id: int,
    field: str,
    value: str | int | date,
    *,
    updated_at: datetime | None = None,
) -> int:
    """Set one column plus ``updated_at``. Returns the number of rows matched."""
    column = _UPDATABLE.get(field)
    if column is None:
        raise ValueError(f"Unknown book field: {field}")
    stmt = (
        update(Book)
        .where(Book.id == book_id)
        .values({column: value, Book.updated_at: updated_at or utcnow()})
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    return int(result.rowcount)


async def delete_book(session: AsyncSession, book_id: int) -> int:
    result = await session.execute(delete(Book).where(Book.id == book_id))
    return int(result.rowcount)


async def stream_books(
    session: AsyncSession,
    *,
    field: SearchField | None = None,
    pattern: str | None = None,
) -> AsyncIterator[BookRow]:
    """Yield books one at a time in storage order.

    With ``field`` set, only rows whose column matches the ``LIKE`` pattern
    are returned. The pattern is used as given. A row that cannot be decoded
    ends the iteration with ``StorageError``.
    """
    stmt = select(*_BOOK_COLUMNS)
    if field is not None:
        column = _SEARCHABLE.get(field)
        if column is None:
            raise ValueError(f"Field is not searchable: {field}")
        stmt = stmt.where(column.like(pattern))

    result = await session.stream(stmt)
    try:
        async for row in result:
            yield _to_row(tuple(row))
    except (TypeError, ValueError) as exc:
        raise StorageError(f"Could not decode book row: {exc}") from exc
    finally:
        await result.close()
