from __future__ import annotations


class BooklistError(Exception):
    """Base class for errors reported to the user."""


class ValidationError(BooklistError):
    pass


class InvalidDateError(ValidationError):
    def __init__(self, value: str):
        super().__init__(f"bad date string: {value!r} (expected YYYY-MM-DD)")
        self.value = value


class StorageError(BooklistError):
    pass


class NotFoundError(BooklistError):
    def __init__(self, book_id: int):
        super().__init__("No book with that ID.")
        self.book_id = book_id
