from __future__ import annotations

from datetime import date, datetime
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from booklist.domain.command import SearchField
from booklist.storage.books import crud as books_crud
from booklist.storage.types import BookRow, InsertResult


class SQLAlchemyRepo:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def insert_book(
        self,
        *,
        title: str,
        author: str = "",
        additional_authors: str = "",
        state: str = "",
        stars: int = 0,
        date_read: date | None = None,
    ) -> InsertResult:
        return await books_crud.insert_book(
            self.session,
            title=title,
            author=author,
            additional_authors=additional_authors,
            state=state,
            stars=stars,
            date_read=date_read,
        )

    async def get_book(self, book_id: int) -> BookRow:
        return await books_crud.get_book(self.session, book_id)

    async def update_book_field(
        self,
        book_id: int,
        field: str,
        value: str | int | date,
        *,
        updated_at: datetime | None = None,
    ) -> int:
        return await books_crud.update_book_field(self.session, book_id, field, value, updated_at=updated_at)

    async def delete_book(self, book_id: int) -> int:
        return await books_crud.delete_book(self.session, book_id)

    def search_books(self, field: SearchField, pattern: str) -> AsyncIterator[BookRow]:
        return books_crud.stream_books(self.session, field=field, pattern=pattern)

    def list_books(self) -> AsyncIterator[BookRow]:
        return books_crud.stream_books(self.session)
