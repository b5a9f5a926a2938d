from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime


@dataclass
class InsertResult:
    id: int


@dataclass
class BookRow:
    id: int
    title: str
    author: str
    additional_authors: str
    state: str
    stars: int
    date_read: date | None
    created_at: datetime | None = None
    updated_at: datetime | None = None
