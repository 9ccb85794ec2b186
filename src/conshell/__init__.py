"""conshell — an embeddable interactive console core.

Forks a long-lived shell, streams its output to a view sink, forwards
submitted lines to its stdin and keeps a bounded command history.
"""

from conshell.errors import (
    ConsoleError,
    ReadError,
    SessionClosedError,
    SpawnError,
    SubmissionError,
    WriteError,
)
from conshell.session.console import Console
from conshell.view.sink import ExitInfo, ViewSink

__version__ = "0.1.0"

__all__ = [
    "Console",
    "ConsoleError",
    "ExitInfo",
    "ReadError",
    "SessionClosedError",
    "SpawnError",
    "SubmissionError",
    "ViewSink",
    "WriteError",
]
