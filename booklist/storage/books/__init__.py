"""Book storage model and CRUD helpers."""

from booklist.storage.books.base import Book
from booklist.storage.books import crud

__all__ = ["Book", "crud"]
