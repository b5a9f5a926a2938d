"""Storage layer for SQLite via SQLAlchemy async."""

from booklist.storage import books

__all__ = ["books"]
