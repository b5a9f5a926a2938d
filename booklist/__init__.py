"""Personal book-tracking CLI backed by SQLite."""

__version__ = "1.0.0"
