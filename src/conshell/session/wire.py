"""Wire — a view sink that turns console notifications into queued events.

Consumers subscribe to the wire and render events at their own pace.
This lets a plain terminal loop, a TUI or a test harness watch the same
console without implementing the sink interface themselves.
"""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass, field
from typing import Any

from conshell.view.sink import ExitInfo, ViewSink


class EventType(enum.Enum):
    STARTED = "started"
    STDOUT = "stdout"
    STDERR = "stderr"
    ENDED = "ended"
    ABORTED = "aborted"
    ERROR = "error"
    CLEAR = "clear"


@dataclass
class WireEvent:
    """An event on the wire."""

    type: EventType
    data: dict[str, Any] = field(default_factory=dict)


class Wire(ViewSink):
    """Async message bus: console -> UI subscribers.

    Single-producer, multi-consumer broadcast. Sink callbacks arrive on
    the event loop thread, so queues are fed directly.
    """

    def __init__(self) -> None:
        self._subscribers: list[asyncio.Queue[WireEvent | None]] = []
        self._closed: bool = False

    def send(self, event: WireEvent) -> None:
        """Send an event to all subscribers.

        Silently drops events after ``close()`` has been called.
        """
        if self._closed:
            return
        for q in self._subscribers:
            q.put_nowait(event)

    # ------------------------------------------------------------------
    # ViewSink
    # ------------------------------------------------------------------

    def started(self) -> None:
        self.send(WireEvent(type=EventType.STARTED))

    def stdout(self, chunk: str) -> None:
        self.send(WireEvent(type=EventType.STDOUT, data={"text": chunk}))

    def stderr(self, chunk: str) -> None:
        self.send(WireEvent(type=EventType.STDERR, data={"text": chunk}))

    def ended(self, exit_info: ExitInfo) -> None:
        self.send(
            WireEvent(type=EventType.ENDED, data={"exit_code": exit_info.exit_code})
        )

    def aborted(self, reason: str) -> None:
        self.send(WireEvent(type=EventType.ABORTED, data={"reason": reason}))

    def error(self, cause: BaseException) -> None:
        self.send(
            WireEvent(
                type=EventType.ERROR,
                data={"error": str(cause), "kind": type(cause).__name__},
            )
        )

    def clear(self) -> None:
        self.send(WireEvent(type=EventType.CLEAR))

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self) -> asyncio.Queue[WireEvent | None]:
        """Subscribe to events. Returns a queue to read from."""
        q: asyncio.Queue[WireEvent | None] = asyncio.Queue()
        self._subscribers.append(q)
        return q

    def unsubscribe(self, q: asyncio.Queue) -> None:
        """Unsubscribe from events."""
        if q in self._subscribers:
            self._subscribers.remove(q)

    def close(self) -> None:
        """Signal all subscribers that the wire is closing."""
        self._closed = True
        for q in self._subscribers:
            q.put_nowait(None)
