from __future__ import annotations

from dataclasses import dataclass, field
from typing import AsyncIterator

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from booklist.domain.command import BookCommand
from booklist.domain.dates import parse_date_read
from booklist.domain.errors import InvalidDateError, NotFoundError, StorageError, ValidationError
from booklist.storage.repo import SQLAlchemyRepo
from booklist.storage.types import BookRow

# Edit applies fields in this order, one statement each.
_TEXT_FIELDS = ("title", "author", "additional_authors", "state")


@dataclass
class EditResult:
    book_id: int
    fields_updated: list[str] = field(default_factory=list)
    rows_matched: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class DeleteResult:
    book_id: int
    book: BookRow | None
    rows_deleted: int
    read_error: str | None = None


def _check_title(title: str, message: str = "A title is needed to add a record") -> str:
    if not title.strip():
        raise ValidationError(message)
    return title


async def add_book(session: AsyncSession, command: BookCommand) -> BookRow:
    _check_title(command.title)
    date_read = parse_date_read(command.date_read) if command.date_read else None

    repo = SQLAlchemyRepo(session)
    inserted = await repo.insert_book(
        title=command.title,
        author=command.author,
        additional_authors=command.additional_authors,
        state=command.state,
        stars=command.stars,
        date_read=date_read,
    )
    logger.info("Added book {}", inserted.id)
    return await repo.get_book(inserted.id)


async def read_book(session: AsyncSession, command: BookCommand) -> BookRow | None:
    """Return the book with ``command.book_id``; id 0 reads nothing."""
    if command.book_id == 0:
        return None
    return await SQLAlchemyRepo(session).get_book(command.book_id)


async def edit_book(session: AsyncSession, command: BookCommand) -> EditResult | None:
    """Apply every supplied field as its own UPDATE within the caller's session.

    A blank title or a bad ``date_read`` is recorded in ``EditResult.errors``
    and skipped; the other fields are still written and the caller's
    transaction still commits. Editing an id that does not exist matches zero
    rows and is not an error.
    """
    if command.book_id == 0:
        return None

    repo = SQLAlchemyRepo(session)
    result = EditResult(book_id=command.book_id)

    async def _apply(name: str, value: object) -> None:
        matched = await repo.update_book_field(command.book_id, name, value)
        result.fields_updated.append(name)
        result.rows_matched = max(result.rows_matched, matched)

    for name in _TEXT_FIELDS:
        value = getattr(command, name)
        if not value:
            continue
        if name == "title":
            try:
                _check_title(value, "A title cannot be blank")
            except ValidationError as exc:
                logger.warning("Skipping title for book {}: {}", command.book_id, exc)
                result.errors.append(str(exc))
                continue
        await _apply(name, value)

    if command.date_read:
        try:
            date_read = parse_date_read(command.date_read)
        except InvalidDateError as exc:
            logger.warning("Skipping date_read for book {}: {}", command.book_id, exc)
            result.errors.append(str(exc))
        else:
            await _apply("date_read", date_read)

    if command.stars > 0:
        await _apply("stars", command.stars)

    if result.fields_updated and result.rows_matched == 0:
        logger.debug("Edit matched no book with id {}", command.book_id)
    return result


async def delete_book(session: AsyncSession, command: BookCommand) -> DeleteResult | None:
    """Fetch the record for display, then delete it regardless of the fetch outcome."""
    if command.book_id == 0:
        return None

    repo = SQLAlchemyRepo(session)
    book: BookRow | None = None
    read_error: str | None = None
    try:
        book = await repo.get_book(command.book_id)
    except NotFoundError:
        pass
    except (StorageError, SQLAlchemyError) as exc:
        logger.warning("Could not read book {} before deleting: {}", command.book_id, exc)
        read_error = str(exc)

    rows_deleted = await repo.delete_book(command.book_id)
    logger.info("Deleted {} row(s) for book {}", rows_deleted, command.book_id)
    return DeleteResult(book_id=command.book_id, book=book, rows_deleted=rows_deleted, read_error=read_error)


async def search_books(session: AsyncSession, command: BookCommand) -> AsyncIterator[BookRow]:
    """Run one LIKE query per supplied field, yielding matches as they arrive.

    Results are not merged: a book matching two criteria is yielded twice.
    """
    repo = SQLAlchemyRepo(session)
    for name, pattern in command.search_criteria():
        logger.debug("Searching {} LIKE {!r}", name, pattern)
        async for book in repo.search_books(name, pattern):
            yield book


def list_books(session: AsyncSession) -> AsyncIterator[BookRow]:
    return SQLAlchemyRepo(session).list_books()
