"""Console display — a view sink backed by an ``OutputBuffer``.

Holds what a text widget would show: child output followed by the line
being edited. Key handlers of a real UI map onto ``type_text``,
``backspace``, ``recall_previous``, ``recall_next`` and ``submit``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from conshell.view.buffer import MAX_LENGTH, OutputBuffer
from conshell.view.sink import ExitInfo, ViewSink

if TYPE_CHECKING:
    from conshell.session.console import Console

logger = logging.getLogger(__name__)


class ConsoleDisplay(ViewSink):
    """Reference display for a :class:`Console`.

    Submitted text stays in the buffer as typed; the shell's own echo of
    the line is replaced by a line break in the output stream, so each
    command appears once.
    """

    def __init__(self, max_length: int = MAX_LENGTH) -> None:
        self.buffer = OutputBuffer(max_length)
        self.console: Console | None = None
        self.running = False
        self.exit_info: ExitInfo | None = None
        self.abort_reason: str | None = None
        self.last_error: BaseException | None = None

    def attach(self, console: Console) -> None:
        self.console = console

    # ------------------------------------------------------------------
    # ViewSink
    # ------------------------------------------------------------------

    def started(self) -> None:
        self.running = True

    def stdout(self, chunk: str) -> None:
        self.buffer.append(chunk)

    def stderr(self, chunk: str) -> None:
        pass

    def ended(self, exit_info: ExitInfo) -> None:
        self.running = False
        self.exit_info = exit_info

    def aborted(self, reason: str) -> None:
        self.running = False
        self.abort_reason = reason

    def error(self, cause: BaseException) -> None:
        logger.debug("Console error: %s", cause)
        self.last_error = cause

    def clear(self) -> None:
        self.buffer.clear()

    # ------------------------------------------------------------------
    # Input actions
    # ------------------------------------------------------------------

    def type_text(self, text: str) -> None:
        self.buffer.insert_input(text)

    def backspace(self) -> None:
        """Delete the last input character; never reaches into output."""
        if self.buffer.input_text:
            self.buffer.remove(len(self.buffer) - 1, 1)

    def recall_previous(self) -> str:
        command = self._require_console().previous()
        self.buffer.replace_input(command)
        return command

    def recall_next(self) -> str:
        command = self._require_console().next()
        self.buffer.replace_input(command)
        return command

    def submit(self) -> str:
        """Commit the input line and execute it.

        Raises:
            SubmissionError: Propagated from the console.
        """
        console = self._require_console()
        command = self.buffer.take_input()
        console.execute(command)
        return command

    @property
    def text(self) -> str:
        return self.buffer.text

    def _require_console(self) -> Console:
        if self.console is None:
            raise RuntimeError("Display is not attached to a console")
        return self.console
