"""Console session — one child shell, its output pump and command history."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Sequence

from conshell.errors import SessionClosedError, SubmissionError
from conshell.process.child import ChildProcess
from conshell.process.pump import OutputPump
from conshell.process.runner import CommandRunner
from conshell.session.history import MAX_HISTORY, HistoryRing

if TYPE_CHECKING:
    from conshell.config import ConsoleConfig
    from conshell.view.sink import ViewSink

logger = logging.getLogger(__name__)


class Console:
    """An embeddable interactive console.

    Forks a shell-like child, streams its output to a view sink and
    forwards submitted lines to its stdin. ``execute``, ``previous``,
    ``next`` and ``close`` are plain synchronous calls; output arrives
    asynchronously through the sink.

    A session owns at most one child. After ``close()`` the session is
    finished and a new ``Console`` is required.

    Usage:
        console = await Console.open(sink, ["/bin/sh", "-i"])
        console.execute("ls")
        ...
        console.close()
        await console.wait_closed()
    """

    def __init__(
        self,
        sink: ViewSink,
        command: Sequence[str],
        *,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
        history_size: int = MAX_HISTORY,
        chunk_size: int = 128,
        strip_ansi: bool = False,
        spawn: Callable[..., Any] = ChildProcess.spawn,
    ) -> None:
        if not command:
            raise ValueError("A shell command is required")
        self._sink = sink
        self._command = list(command)
        self._cwd = cwd
        self._env = dict(env or {})
        self._chunk_size = chunk_size
        self._strip_ansi = strip_ansi
        self._spawn = spawn

        self._history = HistoryRing(history_size)
        self._child: Any = None
        self._runner = CommandRunner(None)
        self._pump: OutputPump | None = None
        self._closed = False

    @classmethod
    async def open(
        cls, sink: ViewSink, command: Sequence[str], **options: Any
    ) -> Console:
        """Create a console and start its child process."""
        console = cls(sink, command, **options)
        await console.start()
        return console

    @classmethod
    def from_config(
        cls, sink: ViewSink, config: ConsoleConfig, **options: Any
    ) -> Console:
        return cls(
            sink,
            [config.shell.command, *config.shell.args],
            cwd=config.shell.cwd,
            env=config.shell.env,
            history_size=config.history_size,
            chunk_size=config.chunk_size,
            strip_ansi=config.strip_ansi,
            **options,
        )

    async def start(self) -> None:
        """Spawn the child and start pumping its output.

        Raises:
            SpawnError: If the child cannot be started.
            SessionClosedError: If the session was already started or closed.
        """
        if self._closed or self._child is not None:
            raise SessionClosedError("Console sessions cannot be restarted")

        self._child = self._spawn(
            self._command[0], self._command[1:], cwd=self._cwd, env=self._env
        )
        self._runner = CommandRunner(self._child)
        self._pump = OutputPump(
            self._child,
            self._sink,
            echo_filter=self._runner.filter_echo,
            chunk_size=self._chunk_size,
            strip_ansi=self._strip_ansi,
        )
        self._runner.sequence_with(self._pump.call_in_order)
        self._pump.start()

    def execute(self, command: str | None) -> None:
        """Send ``command`` to the child and record it in history.

        Empty or ``None`` commands are ignored.

        Raises:
            SubmissionError: If the child is gone or the write fails. The
                failure is also reported to the sink's ``error`` callback.
        """
        if not command:
            return
        if self._closed:
            raise SubmissionError("Console session is closed")
        try:
            self._runner.submit(command)
        except SubmissionError as exc:
            logger.warning("Command submission failed: %s", exc)
            if self._pump is not None:
                self._pump.post_error(exc)
            raise
        self._history.record(command)

    def previous(self) -> str:
        """Older command from history, or ``""`` when none remain."""
        return self._history.older()

    def next(self) -> str:
        """Newer command from history, or ``""`` at the newest."""
        return self._history.newer()

    def close(self) -> None:
        """Terminate the child and clear the view. Idempotent."""
        if self._closed:
            return
        self._closed = True
        if self._pump is not None:
            self._pump.cancel()
        self._runner.detach()
        if self._child is not None:
            self._child.terminate()
        self._sink.clear()
        logger.info("Console session closed")

    async def wait_closed(self) -> None:
        """Wait for the output pump to deliver its final notification."""
        if self._pump is not None:
            await self._pump.wait()

    @property
    def alive(self) -> bool:
        return not self._closed and self._child is not None and self._child.alive

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def history(self) -> HistoryRing:
        return self._history
