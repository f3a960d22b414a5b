"""Error taxonomy for ordered collections and the app's exception handlers."""

from __future__ import annotations

import logging

from litestar import Request, Response
from litestar.exceptions import HTTPException
from litestar.status_codes import HTTP_500_INTERNAL_SERVER_ERROR, HTTP_503_SERVICE_UNAVAILABLE

from sustainwdn.lib import observability

logger = logging.getLogger(__name__)


class OrderingError(Exception):
    """Base class for ordered collection failures."""


class FetchError(OrderingError):
    """Reading a collection from its backend failed."""


class WriteError(OrderingError):
    """One or more writes to a collection's backend failed.

    ``action`` names the failed operation class, e.g. "update order".
    """

    def __init__(self, message: str, action: str = "update order") -> None:
        super().__init__(message)
        self.action = action


class ValidationError(OrderingError):
    """An id was not found in the current sequence.

    Raised only by strict helpers; the reorder entry points treat unknown
    ids as a no-op instead.
    """


def _accepts_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "")


def _render(request: Request, status_code: int, message: str) -> Response:
    if _accepts_html(request):
        from sustainwdn.config import get_settings

        template = request.app.template_engine.get_template("error.html")
        content = template.render(
            status_code=status_code,
            message=message,
            site_name=get_settings().site_name,
        )
        return Response(content=content, status_code=status_code, media_type="text/html")

    return Response(
        content={"status_code": status_code, "detail": message},
        status_code=status_code,
        media_type="application/json",
    )


def http_exception_handler(request: Request, exc: HTTPException) -> Response:
    """Handle HTTP exceptions with HTML for browsers, JSON for APIs."""
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _render(request, exc.status_code, detail)


def fetch_error_handler(request: Request, exc: FetchError) -> Response:
    """A collection could not be read from its backend."""
    logger.warning("Collection fetch failed: %s", exc)
    return _render(request, HTTP_503_SERVICE_UNAVAILABLE, "Content is temporarily unavailable.")


def internal_server_error_handler(request: Request, exc: Exception) -> Response:
    """Handle unexpected exceptions with HTML for browsers, JSON for APIs."""
    method, path = request.method, request.url.path
    if not observability.exception("Unhandled exception on {method} {path}", method=method, path=path):
        logger.exception("Unhandled exception on %s %s", method, path)

    if _accepts_html(request):
        return _render(request, HTTP_500_INTERNAL_SERVER_ERROR, "An unexpected error occurred.")
    return _render(request, HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")
