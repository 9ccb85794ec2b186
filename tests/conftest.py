"""Shared test doubles: a scripted child process and a recording view sink."""

from __future__ import annotations

import queue
import threading
from typing import Any

import pytest

from conshell.errors import ReadError, WriteError
from conshell.view.sink import ExitInfo, ViewSink


class FakeChild:
    """Child process double driven by ``feed()``.

    ``read_chunk`` returns one fed item per call and blocks while nothing
    is queued. Once ``terminate()`` is called a blocked read raises
    ``ReadError``, like a pipe torn down under a reader.
    """

    def __init__(self, *, echo: bool = False, exit_code: int = 0) -> None:
        self.echo = echo
        self.exit_code = exit_code
        self.written: list[str] = []
        self.reads = 0
        self.terminate_calls = 0
        self.fail_writes = False
        self._items: queue.Queue[Any] = queue.Queue()
        self._terminated = threading.Event()
        self._alive = True

    def feed(self, item: bytes | BaseException | None) -> None:
        """Queue output bytes, an exception to raise, or None for EOF."""
        self._items.put(item)

    def read_chunk(self, max_size: int = 128) -> bytes:
        self.reads += 1
        while True:
            if self._terminated.is_set():
                raise ReadError("stream closed")
            try:
                item = self._items.get(timeout=0.01)
            except queue.Empty:
                continue
            if item is None:
                self._alive = False
                return b""
            if isinstance(item, BaseException):
                raise item
            return item

    def write_line(self, text: str) -> None:
        if self.fail_writes or not self._alive:
            raise WriteError("broken pipe")
        self.written.append(text)
        if self.echo:
            self.feed((text + "\n").encode())

    def wait(self, timeout: float | None = None) -> int | None:
        return None if self._alive else self.exit_code

    def terminate(self) -> None:
        self.terminate_calls += 1
        self._alive = False
        self._terminated.set()

    @property
    def alive(self) -> bool:
        return self._alive


class RecordingSink(ViewSink):
    """View sink that records every notification as a tuple."""

    def __init__(self) -> None:
        self.events: list[tuple[Any, ...]] = []

    def started(self) -> None:
        self.events.append(("started",))

    def stdout(self, chunk: str) -> None:
        self.events.append(("stdout", chunk))

    def stderr(self, chunk: str) -> None:
        self.events.append(("stderr", chunk))

    def ended(self, exit_info: ExitInfo) -> None:
        self.events.append(("ended", exit_info))

    def aborted(self, reason: str) -> None:
        self.events.append(("aborted", reason))

    def error(self, cause: BaseException) -> None:
        self.events.append(("error", cause))

    def clear(self) -> None:
        self.events.append(("clear",))

    @property
    def kinds(self) -> list[str]:
        return [e[0] for e in self.events]

    @property
    def output(self) -> list[str]:
        return [e[1] for e in self.events if e[0] == "stdout"]


@pytest.fixture
def child() -> FakeChild:
    return FakeChild()


@pytest.fixture
def echo_child() -> FakeChild:
    return FakeChild(echo=True)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


def spawner(child: FakeChild, calls: list[dict[str, Any]] | None = None):
    """Build a ``spawn`` callable for ``Console`` that hands out ``child``."""

    def _spawn(command, args, cwd=None, env=None):
        if calls is not None:
            calls.append({"command": command, "args": list(args), "cwd": cwd, "env": env})
        return child

    return _spawn
