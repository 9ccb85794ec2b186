"""Child process handle — a shell with piped stdin and combined stdout/stderr."""

from __future__ import annotations

import enum
import logging
import os
import signal
import subprocess
import uuid
from dataclasses import dataclass, field
from typing import Sequence

from conshell.errors import ReadError, SpawnError, WriteError

logger = logging.getLogger(__name__)

# Upper bound on reaping after SIGKILL; normally returns at once.
REAP_TIMEOUT = 2.0


class ProcessStatus(enum.Enum):
    """Lifecycle states for a child process."""

    PENDING = "pending"
    RUNNING = "running"
    TERMINATING = "terminating"  # terminate() in progress
    TERMINATED = "terminated"  # Stopped by us
    EXITED = "exited"  # Process exited on its own


@dataclass
class ChildProcess:
    """A long-lived interactive child process driven over pipes.

    Wraps ``subprocess.Popen`` with:
    - stderr merged into stdout, so the console sees a single stream
    - unbuffered raw pipes, so a read returns whatever is available
    - process group isolation (start_new_session) for safe tree-killing
    - idempotent, never-raising ``terminate()``

    A read blocked in another thread observes EOF once the process group
    is gone, so terminating always unblocks the output pump.
    """

    command: list[str] = field(default_factory=list)
    cwd: str | None = None
    env: dict[str, str] = field(default_factory=dict)
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])

    # Internal state
    _proc: subprocess.Popen | None = field(default=None, init=False)
    _pgid: int = field(default=0, init=False)
    _status: ProcessStatus = field(default=ProcessStatus.PENDING, init=False)

    @classmethod
    def spawn(
        cls,
        command: str,
        args: Sequence[str] = (),
        cwd: str | None = None,
        env: dict[str, str] | None = None,
    ) -> ChildProcess:
        """Create and start a child running ``command`` with ``args``."""
        child = cls(command=[command, *args], cwd=cwd, env=dict(env or {}))
        child.start()
        return child

    def start(self) -> None:
        """Spawn the process in its own process group.

        Raises:
            SpawnError: If the executable cannot be started.
        """
        if self._status != ProcessStatus.PENDING:
            raise SpawnError(f"Process {self.id} was already started")

        env = {**os.environ, **self.env}
        try:
            self._proc = subprocess.Popen(
                self.command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                bufsize=0,
                start_new_session=True,
                env=env,
                cwd=self.cwd,
            )
        except (OSError, ValueError) as exc:
            self._status = ProcessStatus.EXITED
            raise SpawnError(
                f"Could not start {' '.join(self.command) or '<empty command>'}: {exc}"
            ) from exc

        try:
            self._pgid = os.getpgid(self._proc.pid)
        except ProcessLookupError:
            self._pgid = self._proc.pid
        self._status = ProcessStatus.RUNNING

        logger.info(
            "Child %s started: pid=%d cmd=%s",
            self.id,
            self._proc.pid,
            " ".join(self.command),
        )

    def write_line(self, text: str) -> None:
        """Write ``text`` followed by a newline to stdin and flush.

        Raises:
            WriteError: If stdin is closed or the process is gone.
        """
        if not self.alive or self._proc is None or self._proc.stdin is None:
            raise WriteError(f"Process {self.id} is not running")
        try:
            self._proc.stdin.write(text.encode("utf-8") + b"\n")
            self._proc.stdin.flush()
        except (OSError, ValueError) as exc:
            raise WriteError(f"Write to process {self.id} failed: {exc}") from exc

    def read_chunk(self, max_size: int = 128) -> bytes:
        """Block until output is available and return up to ``max_size`` bytes.

        Returns ``b""`` at end of stream, including after ``terminate()``.

        Raises:
            ReadError: On an I/O failure while the process is still live.
        """
        if self._proc is None or self._proc.stdout is None:
            raise ReadError(f"Process {self.id} has no output stream")
        try:
            data = self._proc.stdout.read(max_size)
        except (OSError, ValueError) as exc:
            if self._status in (ProcessStatus.TERMINATING, ProcessStatus.TERMINATED):
                return b""
            raise ReadError(f"Read from process {self.id} failed: {exc}") from exc
        if not data:
            if self._status == ProcessStatus.RUNNING and self._proc.poll() is not None:
                self._status = ProcessStatus.EXITED
            return b""
        return data

    def wait(self, timeout: float | None = None) -> int | None:
        """Wait for the process to exit. Returns exit code or None on timeout."""
        if self._proc is None:
            return None
        try:
            code = self._proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            return None
        if self._status == ProcessStatus.RUNNING:
            self._status = ProcessStatus.EXITED
        return code

    def terminate(self) -> None:
        """Stop the whole process group and close both pipes.

        Idempotent and never raises.
        """
        if self._proc is None or self._status in (
            ProcessStatus.TERMINATING,
            ProcessStatus.TERMINATED,
        ):
            return

        self._status = ProcessStatus.TERMINATING
        if self._proc.poll() is None:
            # Interactive shells ignore SIGTERM, so kill outright.
            self._signal(signal.SIGKILL)
            try:
                self._proc.wait(timeout=REAP_TIMEOUT)
            except Exception as e:
                logger.warning("Child %s not reaped: %s", self.id, e)

        for pipe in (self._proc.stdin, self._proc.stdout):
            if pipe is None:
                continue
            try:
                pipe.close()
            except (OSError, ValueError):
                pass

        self._status = ProcessStatus.TERMINATED
        logger.info("Child %s terminated (code=%s)", self.id, self._proc.returncode)

    def _signal(self, sig: signal.Signals) -> None:
        try:
            os.killpg(self._pgid, sig)
        except ProcessLookupError:
            logger.debug("Process group already gone: %d", self._pgid)
        except Exception as e:
            logger.warning("Error signalling child %s: %s", self.id, e)

    @property
    def alive(self) -> bool:
        if self._status != ProcessStatus.RUNNING or self._proc is None:
            return False
        if self._proc.poll() is not None:
            self._status = ProcessStatus.EXITED
            return False
        return True

    @property
    def status(self) -> ProcessStatus:
        return self._status

    @property
    def pid(self) -> int | None:
        return self._proc.pid if self._proc is not None else None

    @property
    def exit_code(self) -> int | None:
        return self._proc.poll() if self._proc is not None else None
