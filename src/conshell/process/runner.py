"""Sends command lines to the child and tracks the echo they produce."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Protocol

from conshell.errors import SubmissionError, WriteError

logger = logging.getLogger(__name__)


class LineWriter(Protocol):
    """The part of a child process handle the runner needs."""

    @property
    def alive(self) -> bool: ...

    def write_line(self, text: str) -> None: ...


def _run_now(callback: Callable[[], None]) -> None:
    callback()


class CommandRunner:
    """Fire-and-forget command submission with one-shot echo suppression.

    An interactive shell echoes each submitted line back on its output.
    After every submission the first chunk read from the child is replaced
    by a single line break; everything after it passes through verbatim.
    This assumes the echo arrives as (or within) that next chunk.

    The echo flag is armed through ``sequence``, which should run the
    callback in order with chunk delivery (see ``OutputPump.call_in_order``).
    Chunks read before a submission then display unchanged.
    """

    def __init__(
        self,
        child: LineWriter | None,
        sequence: Callable[[Callable[[], None]], None] = _run_now,
    ) -> None:
        self._child = child
        self._sequence = sequence
        self._skip_echo = False
        self._lock = threading.Lock()

    def sequence_with(self, sequence: Callable[[Callable[[], None]], None]) -> None:
        self._sequence = sequence

    def submit(self, command: str) -> None:
        """Write ``command`` plus a newline to the child's stdin.

        Never waits for the reply; output arrives later through the pump.

        Raises:
            SubmissionError: If there is no live child or the write fails.
        """
        child = self._child
        if child is None or not child.alive:
            raise SubmissionError("No running child process")

        failed = threading.Event()
        armed = threading.Event()

        def _arm() -> None:
            with self._lock:
                if not failed.is_set():
                    self._skip_echo = True
                    armed.set()

        # Must be queued before the write so the echo lands behind it.
        self._sequence(_arm)
        try:
            child.write_line(command)
        except WriteError as exc:
            with self._lock:
                failed.set()
                if armed.is_set():
                    self._skip_echo = False
            raise SubmissionError(str(exc)) from exc
        logger.debug("Submitted command: %r", command)

    def filter_echo(self, chunk: str) -> str:
        """Return what should be displayed for ``chunk``."""
        with self._lock:
            if self._skip_echo:
                self._skip_echo = False
                return "\n"
        return chunk

    def detach(self) -> None:
        """Forget the child; later submissions fail."""
        self._child = None

    @property
    def pending_echo(self) -> bool:
        with self._lock:
            return self._skip_echo
