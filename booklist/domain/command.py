from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Action = Literal["add", "edit", "delete", "read", "search", "list", "init"]

SearchField = Literal["title", "author", "additional_authors", "state"]

SEARCH_FIELDS: tuple[SearchField, ...] = ("title", "author", "additional_authors", "state")


@dataclass(frozen=True)
class BookCommand:
    """One parsed CLI invocation.

    Empty strings and zero mean "not supplied"; ``book_id == 0`` selects no
    record and turns read/edit/delete into no-ops.
    """

    action: Action
    book_id: int = 0
    title: str = ""
    author: str = ""
    additional_authors: str = ""
    state: str = ""
    date_read: str = ""
    stars: int = 0

    def search_criteria(self) -> list[tuple[SearchField, str]]:
        criteria: list[tuple[SearchField, str]] = []
        for field in SEARCH_FIELDS:
            pattern = getattr(self, field)
            if pattern:
                criteria.append((field, pattern))
        return criteria
