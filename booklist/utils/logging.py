from __future__ import annotations

import sys
from loguru import logger

from booklist.config.schema import LOG_LEVELS

_DEFAULT_CONTEXT = {
    "action": "-",
    "book_id": "-",
}

_SHORT_FORMAT = "booklist: <level>{level}</level>: {message}"

_VERBOSE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> "
    "| <level>{level:<8}</level> "
    "| action={extra[action]} id={extra[book_id]} "
    "| {name}:{line} "
    "| {message}"
)


def _inject_default_context(record: dict) -> None:
    extra = record["extra"]
    for key, value in _DEFAULT_CONTEXT.items():
        extra.setdefault(key, value)


def _is_verbose(level: str) -> bool:
    return LOG_LEVELS.index(level) <= LOG_LEVELS.index("INFO")


def setup_logging(level: str) -> None:
    """Point loguru at stderr for one CLI run.

    WARNING and above print a one-line ``booklist: WARNING: ...`` message.
    INFO and lower switch to the timestamped format carrying the action and
    book id bound by the CLI.
    """
    logger.remove()
    logger.configure(patcher=_inject_default_context)
    logger.add(
        sys.stderr,
        level=level,
        backtrace=True,
        diagnose=False,
        format=_VERBOSE_FORMAT if _is_verbose(level) else _SHORT_FORMAT,
    )
