"""Debounced autosave for form fields.

Edits are buffered and flushed once no new edit has arrived for
``idle_seconds``. A flush saves only the fields whose buffered value differs
from the value last persisted, and is skipped when there are none.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

SaveCallback = Callable[[dict[str, Any]], Awaitable[None]]
ErrorCallback = Callable[[Exception], None]


class DebouncedAutosave:
    """Buffer field edits and persist them after an idle period.

    ``on_settled`` is called after a successful save that left nothing
    buffered, so an owner can forget the buffer.
    """

    def __init__(
        self,
        save: SaveCallback,
        idle_seconds: float = 1.0,
        initial: dict[str, Any] | None = None,
        on_error: ErrorCallback | None = None,
        on_settled: Callable[["DebouncedAutosave"], None] | None = None,
    ) -> None:
        self._save = save
        self.idle_seconds = idle_seconds
        self._on_error = on_error
        self._on_settled = on_settled
        self._persisted: dict[str, Any] = dict(initial or {})
        self._buffer: dict[str, Any] = dict(self._persisted)
        self._timer: asyncio.Task | None = None
        self._lock = asyncio.Lock()

    @property
    def values(self) -> dict[str, Any]:
        return dict(self._buffer)

    @property
    def changes(self) -> dict[str, Any]:
        """Buffered fields that differ from what was last persisted."""
        return {
            name: value
            for name, value in self._buffer.items()
            if name not in self._persisted or self._persisted[name] != value
        }

    @property
    def dirty(self) -> bool:
        return bool(self.changes)

    @property
    def pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def edit(self, **fields: Any) -> None:
        """Buffer new field values and restart the idle timer."""
        self._buffer.update(fields)
        self._cancel_timer()
        self._timer = asyncio.get_running_loop().create_task(self._flush_after_idle())

    async def _flush_after_idle(self) -> None:
        await asyncio.sleep(self.idle_seconds)
        # A new edit may cancel this task; the save itself must run to completion.
        await asyncio.shield(self.flush())

    async def flush(self) -> bool:
        """Persist the changed fields now. Returns True if a save was made."""
        async with self._lock:
            changes = self.changes
            if not changes:
                return False

            try:
                await self._save(changes)
            except Exception as exc:
                logger.warning("Autosave failed; keeping buffered edits", exc_info=True)
                if self._on_error is not None:
                    self._on_error(exc)
                return False

            self._persisted.update(changes)
            if self._on_settled is not None and not self.dirty:
                self._on_settled(self)
            return True

    async def discard(self) -> None:
        """Drop buffered edits without saving them.

        Waits for a save already in progress, so nothing older lands after
        the caller's own write.
        """
        self._cancel_timer()
        async with self._lock:
            self._buffer = dict(self._persisted)

    async def close(self) -> None:
        """Cancel the idle timer and flush anything still buffered."""
        self._cancel_timer()
        await self.flush()

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            current = asyncio.current_task()
            if self._timer is not current:
                self._timer.cancel()
        self._timer = None
