"""Observability facade over Pydantic Logfire.

Spans wrap collection fetches and reorders. When logfire is not installed or
not enabled, spans are no-ops and log calls go to the standard ``logging``
logger for ``sustainwdn`` instead.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from sustainwdn.config import Settings

logger = logging.getLogger("sustainwdn")

_logfire = None


def is_available() -> bool:
    return _logfire is not None


def configure(settings: Settings) -> None:
    """Initialize logfire from the ``logfire`` settings section.

    Leaves the facade in logging-only mode if logfire is disabled or missing.
    """
    global _logfire

    if not settings.logfire.enabled:
        return

    try:
        import logfire as lf
    except ImportError:
        logger.warning("logfire is enabled in app.yaml but not installed")
        return

    kwargs: dict[str, Any] = {
        "service_name": settings.logfire.service_name,
        "send_to_logfire": "if-token-present",
    }
    if settings.logfire.environment:
        kwargs["environment"] = settings.logfire.environment
    if settings.logfire.sample_rate != 1.0:
        kwargs["trace_sample_rate"] = settings.logfire.sample_rate
    if settings.logfire.console:
        kwargs["console"] = lf.ConsoleOptions()

    lf.configure(**kwargs)
    _logfire = lf


def reset() -> None:
    """Drop the configured logfire module. Used by tests."""
    global _logfire
    _logfire = None


def instrument_sqlalchemy(engine) -> None:
    if is_available():
        _logfire.instrument_sqlalchemy(engine=engine)


def instrument_httpx() -> None:
    if is_available():
        _logfire.instrument_httpx()


@contextmanager
def span(name: str, **attrs: Any):
    """Yield a logfire span, or None when logfire is unavailable."""
    if is_available():
        with _logfire.span(name, **attrs) as s:
            yield s
    else:
        yield None


def _format(msg: str, kwargs: dict[str, Any]) -> str:
    if not kwargs:
        return msg
    details = " ".join(f"{k}={v!r}" for k, v in kwargs.items())
    return f"{msg} ({details})"


def warning(msg: str, **kwargs: Any) -> None:
    if is_available():
        _logfire.warn(msg, **kwargs)
    else:
        logger.warning(_format(msg, kwargs))


def exception(msg: str, **kwargs: Any) -> bool:
    """Send the active exception to logfire.

    Returns False when logfire is unavailable so the caller can log it
    through its own logger instead.
    """
    if not is_available():
        return False
    _logfire.exception(msg, **kwargs)
    return True
