"""Output pump — reads the child's output and delivers it in order."""

from __future__ import annotations

import asyncio
import codecs
import enum
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from conshell.errors import ReadError
from conshell.view.sink import ExitInfo, ViewSink

logger = logging.getLogger(__name__)

_ANSI_RE = re.compile(r"\x1b\[[0-9;?]*[a-zA-Z]")


def strip_ansi(text: str) -> str:
    """Strip ANSI escape sequences from text."""
    return _ANSI_RE.sub("", text)


class ChunkReader(Protocol):
    """The part of a child process handle the pump needs."""

    def read_chunk(self, max_size: int = 128) -> bytes: ...

    def wait(self, timeout: float | None = None) -> int | None: ...

    def terminate(self) -> None: ...


class _Kind(enum.Enum):
    STARTED = "started"
    CHUNK = "chunk"
    CALL = "call"  # Callback run in order with delivery
    ERROR = "error"  # Non-fatal, e.g. a failed submission
    ENDED = "ended"
    FAILED = "failed"
    ABORTED = "aborted"


_TERMINAL = (_Kind.ENDED, _Kind.FAILED, _Kind.ABORTED)


@dataclass
class _Item:
    kind: _Kind
    payload: Any = None


class OutputPump:
    """Background reader plus a single ordered delivery queue.

    The reader task performs the blocking ``read_chunk`` call in the
    loop's default executor, and the executor thread posts each decoded
    chunk to an ``asyncio.Queue`` as soon as it is read. The delivery task
    drains that queue and calls the view sink one item at a time, passing
    each chunk through the echo filter first. ``call_in_order`` slots a
    callback into the same queue. Both tasks live on the loop that called
    ``start()``.

    Exactly one terminal notification (``ended``, ``error`` or
    ``aborted``) is delivered, after which the child is terminated and
    the pump stops. Failures never escape the pump; they become sink
    notifications.
    """

    def __init__(
        self,
        child: ChunkReader,
        sink: ViewSink,
        echo_filter: Callable[[str], str] | None = None,
        chunk_size: int = 128,
        encoding: str = "utf-8",
        strip_ansi: bool = False,
        exit_timeout: float = 1.0,
    ) -> None:
        self._child = child
        self._sink = sink
        self._echo_filter = echo_filter
        self._chunk_size = chunk_size
        self._encoding = encoding
        self._strip_ansi = strip_ansi
        self._exit_timeout = exit_timeout

        self._cancelled = False
        self._finished = False
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[_Item] | None = None
        self._reader_task: asyncio.Task | None = None
        self._deliver_task: asyncio.Task | None = None

    def start(self) -> None:
        """Start reading. Must be called from the event loop thread."""
        if self._loop is not None:
            raise RuntimeError("Output pump already started")
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._post(_Kind.STARTED)
        self._reader_task = self._loop.create_task(self._read_loop())
        self._deliver_task = self._loop.create_task(self._deliver_loop())

    def cancel(self) -> None:
        """Ask the reader to stop after the read in progress.

        Safe from any thread. Chunks not yet delivered are dropped.
        """
        self._cancelled = True

    def post_error(self, cause: BaseException) -> None:
        """Queue a non-fatal ``error`` notification behind pending output."""
        if self._loop is None or self._finished or self._loop.is_closed():
            logger.debug("Pump not running, dropping error: %s", cause)
            return
        self._post(_Kind.ERROR, cause)

    def call_in_order(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` on the delivery task after every chunk read so far.

        Safe from any thread. Runs immediately when the pump is not running.
        """
        if self._loop is None or self._finished or self._loop.is_closed():
            callback()
            return
        self._post(_Kind.CALL, callback)

    async def wait(self) -> None:
        """Wait until the pump has delivered its terminal notification."""
        tasks = [t for t in (self._reader_task, self._deliver_task) if t is not None]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def finished(self) -> bool:
        return self._finished

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def _post(self, kind: _Kind, payload: Any = None) -> None:
        if self._loop is None or self._queue is None:
            raise RuntimeError("Output pump not started")
        self._loop.call_soon_threadsafe(self._queue.put_nowait, _Item(kind, payload))

    def _read_and_post(self, decoder: codecs.IncrementalDecoder) -> bytes:
        """Read one chunk and post it from the reader thread itself.

        Posting before control returns to the loop keeps chunks ahead of
        any marker queued by a later submission.
        """
        data = self._child.read_chunk(self._chunk_size)
        if data:
            text = decoder.decode(data)
            if self._strip_ansi:
                text = strip_ansi(text)
            if text:
                self._post(_Kind.CHUNK, text)
        return data

    async def _read_loop(self) -> None:
        """Read chunks until EOF, a read error, or cancellation."""
        loop = asyncio.get_running_loop()
        decoder = codecs.getincrementaldecoder(self._encoding)(errors="replace")
        try:
            while not self._cancelled:
                try:
                    data = await loop.run_in_executor(
                        None, self._read_and_post, decoder
                    )
                except ReadError as exc:
                    if self._cancelled:
                        break
                    logger.debug("Pump read failed: %s", exc)
                    self._post(_Kind.FAILED, exc)
                    return

                if not data:
                    if self._cancelled:
                        break
                    tail = decoder.decode(b"", final=True)
                    if tail:
                        self._post(_Kind.CHUNK, tail)
                    exit_code = await loop.run_in_executor(
                        None, self._child.wait, self._exit_timeout
                    )
                    self._post(_Kind.ENDED, ExitInfo(exit_code=exit_code))
                    return

            self._post(_Kind.ABORTED, "cancelled")
        except asyncio.CancelledError:
            self._cancelled = True
            self._post(_Kind.ABORTED, "cancelled")
            raise
        except Exception as e:
            logger.exception("Output pump reader crashed")
            self._post(_Kind.FAILED, ReadError(str(e)))

    async def _deliver_loop(self) -> None:
        """Deliver queued items to the sink one at a time, in order."""
        if self._queue is None:
            raise RuntimeError("Output pump not started")
        try:
            while True:
                item = await self._queue.get()
                if item.kind == _Kind.CHUNK:
                    if self._cancelled:
                        continue
                    text = item.payload
                    if self._echo_filter is not None:
                        text = self._echo_filter(text)
                    self._notify(self._sink.stdout, text)
                elif item.kind == _Kind.CALL:
                    self._notify(item.payload)
                elif item.kind == _Kind.STARTED:
                    self._notify(self._sink.started)
                elif item.kind == _Kind.ERROR:
                    self._notify(self._sink.error, item.payload)
                elif item.kind == _Kind.ENDED:
                    self._notify(self._sink.ended, item.payload)
                elif item.kind == _Kind.FAILED:
                    self._notify(self._sink.error, item.payload)
                elif item.kind == _Kind.ABORTED:
                    self._notify(self._sink.aborted, item.payload)
                if item.kind in _TERMINAL:
                    logger.debug("Output pump stopped: %s", item.kind.value)
                    break
        finally:
            self._finished = True
            await asyncio.get_running_loop().run_in_executor(None, self._child.terminate)

    def _notify(self, callback: Callable[..., None], *args: Any) -> None:
        try:
            callback(*args)
        except Exception:
            logger.exception("View sink callback %s failed", callback.__name__)
