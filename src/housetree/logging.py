"""Loguru setup for housetree: the STAGE level and a stderr handler for runs.

housetree logs through loguru but stays silent until `enable_logging` is
called. Importing this module drops loguru's default stderr handler (ID 0)
so that the handler added by `enable_logging` is the only one writing
housetree records; if an application already removed handler 0 the removal
is skipped.
"""

from __future__ import annotations

import contextlib
import sys
import warnings
from typing import TYPE_CHECKING, Final, Literal

from loguru import logger

if TYPE_CHECKING:
    from types import TracebackType

    from loguru import Record

PACKAGE_NAME: Final[str] = __name__.split(".")[0]

with contextlib.suppress(ValueError):
    logger.remove(0)

# One record per pipeline stage and per artifact outcome.
STAGE_LEVEL: Final[str] = "STAGE"
STAGE_LEVEL_NUMBER: Final[int] = 25  # INFO < STAGE < WARNING

type LogLevel = Literal["TRACE", "DEBUG", "INFO", "STAGE", "WARNING", "ERROR", "CRITICAL"]
type LogFormat = Literal["short", "full"]

_LOG_FORMATS: Final[dict[str, str]] = {
    "short": "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
    "full": (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
    ),
}


def _register_stage_level() -> None:
    """Add the STAGE level to loguru, or warn if it exists with another number."""
    try:
        existing = logger.level(STAGE_LEVEL)
    except ValueError:
        logger.level(STAGE_LEVEL, no=STAGE_LEVEL_NUMBER, icon="▶")
        return
    if existing.no != STAGE_LEVEL_NUMBER:
        warnings.warn(
            f"Log level {STAGE_LEVEL} is already registered as {existing.no}, expected {STAGE_LEVEL_NUMBER}",
            stacklevel=2,
        )


_register_stage_level()


class LoggingHandle:
    """The stderr handler installed by `enable_logging`.

    Disabling the handle removes the handler and silences housetree again.
    It is also a context manager that disables itself on exit.

    Attributes:
        handler_id (int | None): Loguru handler ID, or None once disabled.

    Examples:
        >>> with enable_logging(level="DEBUG"):  # doctest: +SKIP
        ...     run_pipeline(PipelineSettings())
    """

    def __init__(self, handler_id: int) -> None:
        self.handler_id: int | None = handler_id

    def disable(self) -> None:
        """Remove the handler and disable housetree logging. Safe to call twice."""
        if self.handler_id is None:
            return
        with contextlib.suppress(ValueError):
            logger.remove(self.handler_id)
        self.handler_id = None
        logger.disable(PACKAGE_NAME)

    def __enter__(self) -> LoggingHandle:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.disable()


def enable_logging(*, level: LogLevel = STAGE_LEVEL, log_format: LogFormat = "short") -> LoggingHandle:
    """Send housetree records to stderr.

    Args:
        level (LogLevel): Minimum level to show. The default "STAGE" prints
            one line per pipeline stage and artifact; "DEBUG" adds shapes,
            parameters and split sizes.
        log_format (LogFormat): "short" prints time, level and message;
            "full" adds the date and module:function:line.

    Returns:
        LoggingHandle: Handle that removes the handler again.
    """
    logger.enable(PACKAGE_NAME)
    handler_id = logger.add(sys.stderr, level=level, filter=_is_housetree_record, format=_LOG_FORMATS[log_format])
    return LoggingHandle(handler_id)


def _is_housetree_record(record: Record) -> bool:
    """Return True for records emitted from housetree modules."""
    name = record["name"]
    return name is not None and name.startswith(PACKAGE_NAME)
