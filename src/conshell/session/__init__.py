"""Console sessions — the controller, its command history and the event wire."""

from conshell.session.console import Console
from conshell.session.history import MAX_HISTORY, HistoryRing
from conshell.session.wire import EventType, Wire, WireEvent

__all__ = [
    "MAX_HISTORY",
    "Console",
    "EventType",
    "HistoryRing",
    "Wire",
    "WireEvent",
]
