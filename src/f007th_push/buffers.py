"""Fixed-capacity byte buffers used for payloads and server responses.

Both buffers are allocated once and reused for every publish. Writes never
grow the underlying storage; anything past capacity is dropped.
"""

from __future__ import annotations

from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]


class BoundedBuffer:
    """Byte region of fixed capacity with a saturating write offset."""

    __slots__ = ("_data", "_offset")

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError(f"Buffer capacity must not be negative: {capacity}")
        self._data = bytearray(capacity)
        self._offset = 0

    @property
    def capacity(self) -> int:
        return len(self._data)

    @property
    def remaining_capacity(self) -> int:
        return max(0, len(self._data) - self._offset)

    def reset(self) -> None:
        """Forget previous contents so stale bytes are never exposed."""
        self._offset = 0
        if self._data:
            self._data[0] = 0

    def write(self, data: BytesLike) -> int:
        """Copy as much of ``data`` as fits and return the number of bytes copied."""
        count = min(len(data), self.remaining_capacity)
        if count:
            self._data[self._offset : self._offset + count] = bytes(data[:count])
            self._offset += count
        return count

    def getvalue(self) -> bytes:
        return bytes(self._data[: self._offset])

    def __len__(self) -> int:
        return self._offset


class BoundedResponseSink:
    """Collect at most ``capacity`` bytes of a response body.

    Chunks arriving after the buffer is full are still reported as consumed
    so the transport never treats truncation as an abort.
    """

    def __init__(self, capacity: int) -> None:
        self._buffer = BoundedBuffer(capacity)
        self._truncated = False

    @property
    def capacity(self) -> int:
        return self._buffer.capacity

    @property
    def remaining_capacity(self) -> int:
        return self._buffer.remaining_capacity

    @property
    def truncated(self) -> bool:
        """True once the buffer has been filled to capacity."""
        return self._truncated

    def reset(self) -> None:
        self._buffer.reset()
        self._truncated = False

    def accept(self, chunk: BytesLike) -> int:
        self._buffer.write(chunk)
        # exactly full and overflowed are the same state
        if chunk and self._buffer.remaining_capacity == 0:
            self._truncated = True
        return len(chunk)

    def getvalue(self) -> bytes:
        return self._buffer.getvalue()

    def text(self) -> str:
        return self.getvalue().decode("utf-8", errors="replace")

    def __len__(self) -> int:
        return len(self._buffer)


__all__ = ["BoundedBuffer", "BoundedResponseSink"]
