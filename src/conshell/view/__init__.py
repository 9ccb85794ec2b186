"""View layer — the sink contract consumed by the console core, plus a
bounded text buffer and a reference display built on it."""

from conshell.view.buffer import OutputBuffer
from conshell.view.display import ConsoleDisplay
from conshell.view.sink import ExitInfo, ViewSink

__all__ = [
    "ConsoleDisplay",
    "ExitInfo",
    "OutputBuffer",
    "ViewSink",
]
