"""Pool of reusable byte buffers for relaying response bodies."""

from collections.abc import Iterator
from contextlib import contextmanager


class BufferPool:
    """Fixed-size ``bytearray`` buffers handed out per request and returned after use.

    Checkout and return never await, so the pool is safe to share between
    all requests on the event loop. At most ``max_idle`` buffers are retained;
    extras are left to the garbage collector.
    """

    def __init__(self, size: int = 32 * 1024, max_idle: int = 16):
        self.size = size
        self.max_idle = max_idle
        self._idle: list[bytearray] = []

    @contextmanager
    def borrow(self) -> Iterator[bytearray]:
        buffer = self._idle.pop() if self._idle else bytearray(self.size)
        try:
            yield buffer
        finally:
            if len(self._idle) < self.max_idle:
                self._idle.append(buffer)

    @property
    def idle(self) -> int:
        return len(self._idle)
