"""Bounded console text buffer with prompt-offset bookkeeping."""

from __future__ import annotations

import threading

MAX_LENGTH = 8192


class OutputBuffer:
    """Thread-safe, size-bounded console text.

    The text is split by ``prompt_offset`` into two regions:

    * **output** (``[0, prompt_offset)``) — everything already printed,
      including committed input lines. Never edited.
    * **input** (``[prompt_offset, len)``) — what the user is typing.

    Whenever an append pushes the length past ``max_length``, the oldest
    text is trimmed so that an extra ``max_length // 8`` characters are
    freed, leaving headroom before the next trim. Every mutation holds
    the lock because offset arithmetic does not commute under
    interleaving.
    """

    def __init__(self, max_length: int = MAX_LENGTH) -> None:
        if max_length < 1:
            raise ValueError("max_length must be positive")
        self._max_length = max_length
        self._text = ""
        self._prompt_offset = 0
        self._trimmed = 0  # Total characters ever trimmed
        self._lock = threading.RLock()

    def append(self, text: str) -> None:
        """Append child output. The prompt moves to the new end."""
        with self._lock:
            self._text += text
            self._trim()
            self._prompt_offset = len(self._text)

    def insert_input(self, text: str) -> None:
        """Append user-typed text to the input region."""
        with self._lock:
            self._text += text
            self._trim()

    def remove(self, offset: int, length: int) -> str:
        """Delete ``length`` characters at ``offset`` and return them.

        The prompt offset moves back by however much of the span lay
        before it. Spans outside the buffer are clamped.
        """
        with self._lock:
            start = max(0, min(offset, len(self._text)))
            end = max(start, min(offset + length, len(self._text)))
            removed = self._text[start:end]
            self._text = self._text[:start] + self._text[end:]
            before_prompt = max(0, min(end, self._prompt_offset) - start)
            self._prompt_offset -= before_prompt
            return removed

    def replace_input(self, text: str) -> None:
        """Swap the input region for ``text``."""
        with self._lock:
            self._text = self._text[: self._prompt_offset]
            self.insert_input(text)

    def take_input(self) -> str:
        """Return the input region and commit it to the output."""
        with self._lock:
            text = self._text[self._prompt_offset :]
            self._prompt_offset = len(self._text)
            return text

    def clear(self) -> None:
        with self._lock:
            self._text = ""
            self._prompt_offset = 0

    def _trim(self) -> None:
        excess = len(self._text) - self._max_length
        if excess > 0:
            count = excess + self._max_length // 8
            self.remove(0, count)
            self._trimmed += count

    @property
    def text(self) -> str:
        with self._lock:
            return self._text

    @property
    def input_text(self) -> str:
        with self._lock:
            return self._text[self._prompt_offset :]

    @property
    def prompt_offset(self) -> int:
        with self._lock:
            return self._prompt_offset

    @property
    def max_length(self) -> int:
        return self._max_length

    @property
    def trimmed(self) -> int:
        with self._lock:
            return self._trimmed

    def __len__(self) -> int:
        with self._lock:
            return len(self._text)
