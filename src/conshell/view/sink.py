"""The notification contract between the console core and a display."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ExitInfo:
    """How the child's output stream ended."""

    exit_code: int | None = None


class ViewSink(ABC):
    """Receives console output and lifecycle notifications.

    The core calls these one at a time, in read order, on the event loop
    thread. Implementations must not block.
    """

    @abstractmethod
    def started(self) -> None:
        """The output pump is running."""

    @abstractmethod
    def stdout(self, chunk: str) -> None:
        """A chunk of the child's combined output."""

    @abstractmethod
    def stderr(self, chunk: str) -> None:
        """Unused while stderr is merged into stdout."""

    @abstractmethod
    def ended(self, exit_info: ExitInfo) -> None:
        """The child's output reached end of stream."""

    @abstractmethod
    def aborted(self, reason: str) -> None:
        """The pump was cancelled before the stream ended."""

    @abstractmethod
    def error(self, cause: BaseException) -> None:
        """A read or submission failure."""

    def clear(self) -> None:
        """Drop everything displayed so far. Called when the session closes."""
