"""Flash messages: the toast surface for admin and profile actions."""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from litestar import Request


class FlashType(str, Enum):
    """Types of flash messages with corresponding CSS classes."""

    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class FlashMessage:
    """A flash message with type and dismissibility."""

    message: str
    type: FlashType = FlashType.INFO
    dismissible: bool = True


def add_flash(
    request: "Request",
    message: str,
    flash_type: FlashType = FlashType.INFO,
    dismissible: bool = True,
) -> None:
    """Queue a flash message on the session.

    Args:
        request: The Litestar request object
        message: The message text to display
        flash_type: Type of message (success, error, warning, info)
        dismissible: Whether the message can be dismissed by the user
    """
    queue = request.session.setdefault("flash_messages", [])
    queue.append({
        "message": message,
        "type": flash_type.value,
        "dismissible": dismissible,
    })


def get_flash_messages(request: "Request") -> list[FlashMessage]:
    """Pop and return all queued flash messages."""
    messages = request.session.pop("flash_messages", [])
    return [
        FlashMessage(
            message=m["message"],
            type=FlashType(m["type"]),
            dismissible=m.get("dismissible", True),
        )
        for m in messages
    ]


def flash_success(request: "Request", message: str, dismissible: bool = True) -> None:
    add_flash(request, message, FlashType.SUCCESS, dismissible)


def flash_error(request: "Request", message: str, dismissible: bool = True) -> None:
    add_flash(request, message, FlashType.ERROR, dismissible)


def flash_warning(request: "Request", message: str, dismissible: bool = True) -> None:
    add_flash(request, message, FlashType.WARNING, dismissible)


def flash_info(request: "Request", message: str, dismissible: bool = True) -> None:
    add_flash(request, message, FlashType.INFO, dismissible)


class Notifier(Protocol):
    """Receives success/failure notices from mutations."""

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class SessionNotifier:
    """Notifier that queues flash messages on a request session."""

    def __init__(self, request: "Request") -> None:
        self.request = request

    def success(self, message: str) -> None:
        flash_success(self.request, message)

    def error(self, message: str) -> None:
        flash_error(self.request, message)


class NullNotifier:
    """Notifier that drops every message (CLI and background jobs)."""

    def success(self, message: str) -> None:
        pass

    def error(self, message: str) -> None:
        pass
