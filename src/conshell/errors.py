"""Typed failures raised by console sessions."""

from __future__ import annotations


class ConsoleError(Exception):
    """Base class for all console failures."""


class SpawnError(ConsoleError):
    """The child process could not be started."""


class WriteError(ConsoleError):
    """Writing to the child's stdin failed (closed pipe, dead process)."""


class ReadError(ConsoleError):
    """Reading from the child's output stream failed."""


class SubmissionError(ConsoleError):
    """A command could not be handed to the child process."""


class SessionClosedError(ConsoleError):
    """The session was already closed; open a new one."""
