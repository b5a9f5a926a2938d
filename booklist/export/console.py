from __future__ import annotations

import orjson
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from booklist.config.schema import OutputFormat
from booklist.domain.dates import format_date
from booklist.storage.types import BookRow


def render_book(book: BookRow) -> str:
    """Text block for one record, ending with a blank separator line once printed."""
    lines = [f"ID: {book.id}", f"Title: {book.title}"]
    if book.author:
        lines.append(f"Author: {book.author}")
    if book.additional_authors:
        lines.append(f"Additional authors: {book.additional_authors}")
    if book.state:
        lines.append(f"State: {book.state}")
    if book.date_read is not None:
        lines.append(f"Date Read: {format_date(book.date_read)}")
    if book.stars > 0:
        lines.append(f"Stars: {book.stars}")
    return "\n".join(lines) + "\n"


def render_book_json(book: BookRow) -> str:
    return orjson.dumps(book).decode("utf-8")


def build_table(books: list[BookRow]) -> Table:
    table = Table(title="Books", show_header=True, header_style="bold")
    table.add_column("ID", justify="right")
    table.add_column("Title")
    table.add_column("Author")
    table.add_column("Additional authors")
    table.add_column("State")
    table.add_column("Date Read")
    table.add_column("Stars", justify="right")
    for book in books:
        table.add_row(
            str(book.id),
            escape(book.title),
            escape(book.author),
            escape(book.additional_authors),
            escape(book.state),
            format_date(book.date_read) if book.date_read else "",
            str(book.stars) if book.stars > 0 else "",
        )
    return table


class BookPrinter:
    """Prints records in the configured output format.

    ``plain`` and ``json`` write each record as soon as it is given; ``table``
    collects records until ``flush``.
    """

    def __init__(self, console: Console, output_format: OutputFormat = "plain"):
        self.console = console
        self.output_format = output_format
        self._pending: list[BookRow] = []

    def print_book(self, book: BookRow) -> None:
        if self.output_format == "table":
            self._pending.append(book)
            return
        if self.output_format == "json":
            text = render_book_json(book)
        else:
            text = render_book(book)
        self.console.print(text, markup=False, emoji=False, highlight=False, soft_wrap=True)

    def flush(self) -> None:
        if self._pending:
            self.console.print(build_table(self._pending))
            self._pending = []
