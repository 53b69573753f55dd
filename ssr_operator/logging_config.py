"""Logging setup tagging each record with the environment being processed."""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
import logging
from typing import Iterator

from ssr_operator import config

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(threadName)s | env=%(environment)s | %(name)s | %(message)s"
NO_ENVIRONMENT = "-"

_current_environment: ContextVar[str] = ContextVar("ssr_operator_environment", default=NO_ENVIRONMENT)


def current_environment() -> str:
    return _current_environment.get()


@contextmanager
def environment_context(label: str) -> Iterator[None]:
    """Tag log records emitted in this block, on this thread, with ``label``."""
    token = _current_environment.set(label)
    try:
        yield
    finally:
        _current_environment.reset(token)


class EnvironmentFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "environment"):
            record.environment = current_environment()
        return True


def resolve_level(level: str | int | None = None) -> int:
    if isinstance(level, int):
        return level
    name = (level or config.get_optional_value("operator.log.level") or "INFO").upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(*, level: str | int | None = None, force: bool = False) -> None:
    """Install the operator's stream handler on the root logger.

    Handlers already present are kept, re-levelled and given the environment
    filter, unless ``force`` replaces them.
    """
    root = logging.getLogger()
    resolved_level = resolve_level(level)
    root.setLevel(resolved_level)

    if root.handlers and not force:
        for handler in root.handlers:
            handler.setLevel(resolved_level)
            if not any(isinstance(f, EnvironmentFilter) for f in handler.filters):
                handler.addFilter(EnvironmentFilter())
        return

    handler = logging.StreamHandler()
    handler.setLevel(resolved_level)
    handler.addFilter(EnvironmentFilter())
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.handlers.clear()
    root.addHandler(handler)
