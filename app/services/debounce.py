"""
Scan input debouncing.

Two layers sit between the card reader and the attendance decision:

* :class:`KeystrokeBuffer` coalesces the keyboard-wedge characters a reader
  types into one code string. It flushes on Enter, or once the reader has
  been quiet for the idle gap, whichever comes first.
* :class:`ScanDebouncer` rejects empty codes and a repeat of the same code
  inside the cooldown window.

Both take ``now`` explicitly, so they are tested without sleeping.
:class:`ScanInputReader` wires a buffer to a running asyncio loop for kiosks
that receive raw key events.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import OrderedDict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Literal, Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN = timedelta(seconds=30)
DEFAULT_IDLE_GAP = 0.2  # seconds
TERMINATORS = frozenset({"Enter", "\r", "\n"})

RejectReason = Literal["empty", "cooldown"]


@dataclass(frozen=True)
class ScanAccepted:
    code: str

    @property
    def accepted(self) -> bool:
        return True


@dataclass(frozen=True)
class ScanRejected:
    code: str
    reason: RejectReason
    retry_after: float = 0.0  # seconds until the cooldown lapses

    @property
    def accepted(self) -> bool:
        return False


ScanVerdict = Union[ScanAccepted, ScanRejected]


class ScanDebouncer:
    """Reject a second scan of the same code within ``cooldown``.

    The ``code -> last accepted`` map is pruned as it goes: entries older
    than ``retention_windows`` cooldowns can no longer reject anything and
    are dropped, and the map never holds more than ``max_entries`` codes.
    """

    def __init__(
        self,
        cooldown: timedelta = DEFAULT_COOLDOWN,
        retention_windows: int = 4,
        max_entries: int = 10_000,
    ) -> None:
        self.cooldown = cooldown
        self.retention = cooldown * max(1, retention_windows)
        self.max_entries = max(1, max_entries)
        self._last_accepted: OrderedDict[str, datetime] = OrderedDict()

    def __len__(self) -> int:
        return len(self._last_accepted)

    def accept(self, code: str | None, now: datetime) -> ScanVerdict:
        code = (code or "").strip()
        if not code:
            return ScanRejected(code="", reason="empty")

        last = self._last_accepted.get(code)
        if last is not None and now - last < self.cooldown:
            remaining = (self.cooldown - (now - last)).total_seconds()
            return ScanRejected(code=code, reason="cooldown", retry_after=round(remaining, 3))

        self._last_accepted[code] = now
        self._last_accepted.move_to_end(code)
        self._evict(now)
        return ScanAccepted(code=code)

    def forget(self, code: str) -> None:
        """Drop *code* so its next scan is not held back by the cooldown."""
        self._last_accepted.pop(code.strip(), None)

    def _evict(self, now: datetime) -> None:
        # Insertion order is acceptance order, so the stalest codes come first.
        while self._last_accepted:
            oldest_code, oldest_at = next(iter(self._last_accepted.items()))
            if now - oldest_at >= self.retention or len(self._last_accepted) > self.max_entries:
                del self._last_accepted[oldest_code]
            else:
                break


class KeystrokeBuffer:
    """Accumulate reader keystrokes into whole codes.

    ``feed`` returns the codes flushed by that keystroke, oldest first. A
    keystroke arriving after the idle gap first flushes whatever was pending,
    so a pure caller that never polls still sees one flush per scan.
    """

    def __init__(self, idle_gap: float = DEFAULT_IDLE_GAP) -> None:
        self.idle_gap = idle_gap
        self._chars: list[str] = []
        self._last_key_at: Optional[float] = None

    @property
    def pending(self) -> str:
        return "".join(self._chars)

    def feed(self, key: str, now: float) -> list[str]:
        flushed: list[str] = []
        stale = self.flush_if_idle(now)
        if stale:
            flushed.append(stale)

        if key in TERMINATORS:
            code = self.flush()
            if code:
                flushed.append(code)
        elif len(key) == 1:
            self._chars.append(key)
        # Named keys (Shift, Tab, ...) are ignored but still count as activity.
        self._last_key_at = now
        return flushed

    def flush_if_idle(self, now: float) -> Optional[str]:
        if self._last_key_at is None or now - self._last_key_at < self.idle_gap:
            return None
        return self.flush()

    def flush(self) -> Optional[str]:
        code = "".join(self._chars).strip()
        self._chars.clear()
        self._last_key_at = None
        return code or None


CodeHandler = Callable[[str], Union[Awaitable[None], None]]


class ScanInputReader:
    """Drive a :class:`KeystrokeBuffer` from live key events on an asyncio loop.

    One idle timer per reader; every keystroke cancels and re-arms it.
    After :meth:`close` no timer fires and no handler is called.
    """

    def __init__(
        self,
        on_code: CodeHandler,
        idle_gap: float = DEFAULT_IDLE_GAP,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._on_code = on_code
        self._loop = loop or asyncio.get_running_loop()
        self._buffer = KeystrokeBuffer(idle_gap)
        self._timer: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def press(self, key: str) -> None:
        if self._closed:
            return
        self._cancel_timer()
        for code in self._buffer.feed(key, self._loop.time()):
            self._dispatch(code)
        if self._buffer.pending:
            self._timer = self._loop.call_later(self._buffer.idle_gap, self._on_idle)

    def close(self) -> None:
        self._closed = True
        self._cancel_timer()
        self._buffer.flush()
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()

    async def aclose(self) -> None:
        """Stop reading, but let handlers already dispatched finish."""
        self._closed = True
        self._cancel_timer()
        self._buffer.flush()
        tasks = list(self._tasks)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    def _on_idle(self) -> None:
        self._timer = None
        if self._closed:
            return
        code = self._buffer.flush()
        if code:
            self._dispatch(code)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _dispatch(self, code: str) -> None:
        logger.debug("Reader flushed code %s", code)
        result = self._on_code(code)
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._on_handler_done)

    def _on_handler_done(self, task: asyncio.Future) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.exception("Scan handler failed", exc_info=exc)
