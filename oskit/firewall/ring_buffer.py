"""A bounded byte FIFO shared between producer and consumer threads."""

from __future__ import annotations

import threading

__all__ = ["RingBufferError", "RingBuffer"]


class RingBufferError(Exception):
    """Raised when a transfer does not fit or asks for missing data."""


class RingBuffer:
    """Circular byte buffer with the locks and conditions its users share.

    ``lock`` is reentrant, so callers may hold it while calling
    :meth:`enqueue` and :meth:`dequeue`.  ``not_empty`` is signalled when
    data arrives or the producer stops; ``not_full`` when space is freed.
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._data = bytearray(capacity)
        self._read_pos = 0
        self._write_pos = 0
        self._len = 0
        self.lock = threading.RLock()
        self.not_empty = threading.Condition(self.lock)
        self.not_full = threading.Condition(self.lock)
        self.done = False
        self.num_packets = 0

    def __len__(self) -> int:
        return self._len

    @property
    def free_space(self) -> int:
        """Number of bytes that can still be enqueued."""
        return self.capacity - self._len

    def enqueue(self, data: bytes) -> int:
        """Append ``data``; return its length."""
        data = bytes(data)
        size = len(data)
        with self.lock:
            if self.capacity - self._len < size:
                raise RingBufferError(
                    f"cannot enqueue {size} bytes, {self.free_space} free"
                )
            first = min(size, self.capacity - self._write_pos)
            self._data[self._write_pos : self._write_pos + first] = data[:first]
            self._data[: size - first] = data[first:]
            self._write_pos = (self._write_pos + size) % self.capacity
            self._len += size
        return size

    def dequeue(self, size: int) -> bytes:
        """Remove and return the oldest ``size`` bytes."""
        if size < 0:
            raise ValueError("size must not be negative")
        with self.lock:
            if size > self._len:
                raise RingBufferError(
                    f"cannot dequeue {size} bytes, {self._len} stored"
                )
            first = min(size, self.capacity - self._read_pos)
            out = bytes(self._data[self._read_pos : self._read_pos + first])
            out += bytes(self._data[: size - first])
            self._read_pos = (self._read_pos + size) % self.capacity
            self._len -= size
        return out

    def stop(self) -> None:
        """Mark the stream finished and wake every waiting consumer."""
        with self.not_empty:
            self.done = True
            self.not_empty.notify_all()