"""Fixed-capacity command history with a recall cursor."""

from __future__ import annotations

MAX_HISTORY = 20


class HistoryRing:
    """Circular store of the most recent commands.

    ``record()`` writes into the next slot and wraps, silently overwriting
    the oldest entry once full. A single cursor walks the stored entries:
    ``older()`` returns the entry under the cursor then steps back;
    ``newer()`` steps forward then returns the entry under the cursor.
    Both return ``""`` when there is nothing further in that direction.

    Cursor positions are logical (0 = oldest stored entry) and range over
    ``[-1, len - 1]``, where -1 means nothing older remains.
    """

    def __init__(self, capacity: int = MAX_HISTORY) -> None:
        if capacity < 1:
            raise ValueError("History capacity must be at least 1")
        self._slots: list[str | None] = [None] * capacity
        self._last = 0  # Physical slot that receives the next command
        self._size = 0
        self._prev = -1

    def record(self, command: str) -> None:
        """Store ``command`` and reset the cursor to it."""
        capacity = len(self._slots)
        self._slots[self._last] = command
        self._last = (self._last + 1) % capacity
        self._size = min(self._size + 1, capacity)
        self._prev = self._size - 1

    def older(self) -> str:
        if self._prev < 0:
            return ""
        command = self._entry(self._prev)
        self._prev -= 1
        return command

    def newer(self) -> str:
        if self._prev + 1 >= self._size:
            return ""
        self._prev += 1
        return self._entry(self._prev)

    def entries(self) -> list[str]:
        """Stored commands, oldest first."""
        return [self._entry(i) for i in range(self._size)]

    def _entry(self, index: int) -> str:
        slot = (self._last - self._size + index) % len(self._slots)
        return self._slots[slot] or ""

    @property
    def capacity(self) -> int:
        return len(self._slots)

    @property
    def cursor(self) -> int:
        return self._prev

    def __len__(self) -> int:
        return self._size
