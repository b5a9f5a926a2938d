from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import Any, Sequence

from loguru import logger
from pydantic import ValidationError as ConfigValidationError
from rich.console import Console
from rich.markup import escape

from booklist import __version__
from booklist.config import load_config
from booklist.config.schema import AppConfig, AppConfigRoot
from booklist.domain.command import BookCommand
from booklist.domain.errors import NotFoundError, StorageError, ValidationError
from booklist.export.console import BookPrinter
from booklist.records.service import (
    add_book,
    delete_book,
    edit_book,
    list_books,
    read_book,
    search_books,
)
from booklist.storage.db import init_db_service, session_scope, shutdown_db_service
from booklist.utils.logging import setup_logging

console = Console()
err_console = Console(stderr=True)

NOT_FOUND_MESSAGE = "No book with that ID."


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="booklist",
        description="Keep track of the books you read.",
        allow_abbrev=False,
    )

    actions = parser.add_mutually_exclusive_group()
    actions.add_argument("-a", dest="add", action="store_true", help="Add a book record")
    actions.add_argument(
        "-e", dest="edit", type=_non_negative_int, nargs="?", const=0, default=None, metavar="ID",
        help="Edit a book record",
    )
    actions.add_argument(
        "-d", dest="delete", type=_non_negative_int, nargs="?", const=0, default=None, metavar="ID",
        help="Delete a book record",
    )
    actions.add_argument(
        "-r", dest="read", type=_non_negative_int, nargs="?", const=0, default=None, metavar="ID",
        help="Read a book record",
    )
    actions.add_argument("-s", dest="search", action="store_true", help="Search for a book")
    actions.add_argument("-l", dest="list", action="store_true", help="List all books in the database")
    actions.add_argument("-init", dest="init", action="store_true", help="Initialize the database")
    parser.add_argument("-version", action="version", version=f"%(prog)s {__version__}")

    fields = parser.add_argument_group("book fields")
    fields.add_argument("-id", dest="id", type=_non_negative_int, default=0, help="Book ID number")
    fields.add_argument("-title", default="", help="Book title")
    fields.add_argument("-author", default="", help="Book author")
    fields.add_argument("-addn_authors", dest="additional_authors", default="", help="Additional authors")
    fields.add_argument("-state", default="", help="What state the book is in")
    fields.add_argument("-date_read", default="", help="Date read (eg 2014-02-14)")
    fields.add_argument("-stars", type=_non_negative_int, default=0, help="Rating for book (generally 1-5)")

    options = parser.add_argument_group("options")
    options.add_argument(
        "-format", dest="output_format", choices=["plain", "json", "table"], default=None,
        help="Output format for records",
    )
    options.add_argument("--config", type=Path, default=None, help="Path to an extra config YAML")
    options.add_argument("--db", type=Path, default=None, help="Override the database path")
    options.add_argument("--log-level", type=str, default=None, help="Override the log level")
    return parser


def _build_command(args: argparse.Namespace) -> BookCommand | None:
    fields: dict[str, Any] = {
        "title": args.title,
        "author": args.author,
        "additional_authors": args.additional_authors,
        "state": args.state,
        "date_read": args.date_read,
        "stars": args.stars,
    }
    if args.add:
        return BookCommand(action="add", **fields)
    for action in ("edit", "delete", "read"):
        target = getattr(args, action)
        if target is not None:
            return BookCommand(action=action, book_id=target or args.id, **fields)
    if args.search:
        return BookCommand(action="search", **fields)
    if args.list:
        return BookCommand(action="list")
    if args.init:
        return BookCommand(action="init")
    return None


def _build_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if args.db:
        overrides["storage"] = {"sqlite_path": str(args.db.expanduser().resolve())}
    if args.log_level:
        overrides["app"] = {"log_level": args.log_level}
    if args.output_format:
        overrides["output"] = {"format": args.output_format}
    return overrides


async def _run_command(command: BookCommand, config: AppConfigRoot, printer: BookPrinter) -> int:
    if command.action == "init":
        console.print(f"Initialized database at {config.sqlite_path}", markup=False, highlight=False, soft_wrap=True)
        return 0

    if command.action == "add":
        async with session_scope() as session:
            book = await add_book(session, command)
        printer.print_book(book)
        return 0

    if command.action == "read":
        await _show_book(command, printer)
        return 0

    if command.action == "edit":
        async with session_scope() as session:
            result = await edit_book(session, command)
        if result is None:
            return 0
        for message in result.errors:
            err_console.print(f"[yellow]Warning:[/yellow] {escape(message)}")
        await _show_book(command, printer)
        return 0

    if command.action == "delete":
        async with session_scope() as session:
            deleted = await delete_book(session, command)
        if deleted is None:
            return 0
        if deleted.book is not None:
            printer.print_book(deleted.book)
        elif deleted.read_error is None:
            console.print(NOT_FOUND_MESSAGE, highlight=False)
        return 0

    if command.action == "search":
        if not command.search_criteria():
            err_console.print("Nothing to search for: give -title, -author, -addn_authors or -state.")
            return 0
        async with session_scope() as session:
            async for book in search_books(session, command):
                printer.print_book(book)
        return 0

    if command.action == "list":
        async with session_scope() as session:
            async for book in list_books(session):
                printer.print_book(book)
        return 0

    raise ValueError(f"Unsupported action: {command.action}")


async def _show_book(command: BookCommand, printer: BookPrinter) -> None:
    try:
        async with session_scope() as session:
            book = await read_book(session, command)
    except NotFoundError:
        console.print(NOT_FOUND_MESSAGE, highlight=False)
        return
    if book is not None:
        printer.print_book(book)


async def _main_async(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    command = _build_command(args)
    if command is None:
        parser.print_usage()
        return 0

    # quiet until the configured level is known
    setup_logging(AppConfig().log_level)
    try:
        config = load_config(config_path=args.config, overrides=_build_overrides(args))
    except ConfigValidationError as exc:
        err_console.print(f"[red]Invalid configuration:[/red] {escape(str(exc))}")
        return 1

    setup_logging(config.app.log_level)
    printer = BookPrinter(console, config.output.format)

    with logger.contextualize(action=command.action, book_id=command.book_id):
        logger.debug("Using database at {}", config.sqlite_path)
        try:
            await init_db_service(config.sqlite_path, create_schema=command.action == "init")
            return await _run_command(command, config, printer)
        except ValidationError as exc:
            err_console.print(f"[red]Error:[/red] {escape(str(exc))}")
            return 1
        except StorageError as exc:
            err_console.print(f"[red]Storage error:[/red] {escape(str(exc))}")
            return 1
        finally:
            printer.flush()
            await shutdown_db_service()


def main(argv: Sequence[str] | None = None) -> int:
    return asyncio.run(_main_async(argv))


if __name__ == "__main__":
    raise SystemExit(main())
