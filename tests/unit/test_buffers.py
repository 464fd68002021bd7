"""Tests for the reusable buffer pool."""

from pinata.utils.buffers import BufferPool


class TestBufferPool:
    def test_buffers_are_reused(self):
        pool = BufferPool(size=64, max_idle=4)

        with pool.borrow() as first:
            assert len(first) == 64
        with pool.borrow() as second:
            assert second is first

    def test_concurrent_borrows_get_distinct_buffers(self):
        pool = BufferPool(size=64, max_idle=4)

        with pool.borrow() as a, pool.borrow() as b:
            assert a is not b
        assert pool.idle == 2

    def test_idle_buffers_are_capped(self):
        pool = BufferPool(size=16, max_idle=1)

        with pool.borrow(), pool.borrow(), pool.borrow():
            pass

        assert pool.idle == 1

    def test_buffer_returned_on_error(self):
        pool = BufferPool(size=16)

        try:
            with pool.borrow():
                raise RuntimeError("boom")
        except RuntimeError:
            pass

        assert pool.idle == 1
