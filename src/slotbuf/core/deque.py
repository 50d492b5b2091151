from __future__ import annotations

import logging
from typing import Any, Callable, Iterator, List, Optional

from ..allocators.base import Block
from ..allocators.registry import AllocatorSpec, get_allocator
from ..errors import ContainerClosedError
from ..layout import check_capacity

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 4
GROWTH_FACTOR = 2


class GrowableDeque:
    """
    Double-ended queue over a single block with the live range ``[head, tail)``.

    The range never wraps. A new deque starts centred in its block so both
    ends have room; when an end runs into the edge of the block the deque
    reallocates to twice the capacity and re-centres the live range. Pushes
    at either end are amortised O(1).

    The deque has a single owner and performs no locking.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        *,
        allocator: AllocatorSpec = "object",
        dispose: Callable[[Any], None] | None = None,
        **allocator_kwargs: Any,
    ) -> None:
        self._closed = True
        capacity = check_capacity(capacity, allow_zero=True)
        self._allocator = get_allocator(allocator, **allocator_kwargs)
        self._block: Optional[Block] = self._allocator.allocate(capacity)
        self._capacity = capacity
        self._head = capacity // 2
        self._tail = self._head
        self._dispose = dispose
        self._closed = False

    @classmethod
    def with_capacity(cls, capacity: int, **kwargs: Any) -> "GrowableDeque":
        return cls(capacity, **kwargs)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def head(self) -> int:
        return self._head

    @property
    def tail(self) -> int:
        return self._tail

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return self._tail - self._head

    def _live_block(self) -> Block:
        if self._closed or self._block is None:
            raise ContainerClosedError("deque is closed")
        return self._block

    def grow(self, new_capacity: int | None = None) -> None:
        """
        Reallocate the deque into a block of `new_capacity` slots.

        By default the capacity doubles (at least DEFAULT_CAPACITY). The live
        range is placed at ``(new_capacity - len) // 2`` so both ends regain
        room. The new block is obtained before anything moves, so an
        AllocationError leaves the deque as it was.
        """
        block = self._live_block()
        length = self._tail - self._head
        if new_capacity is None:
            new_capacity = max(self._capacity * GROWTH_FACTOR, DEFAULT_CAPACITY)
        new_capacity = check_capacity(new_capacity, allow_zero=True)
        if new_capacity < length:
            raise ValueError(f"new_capacity {new_capacity} cannot hold the {length} live elements.")

        new_block = self._allocator.allocate(new_capacity)
        new_head = (new_capacity - length) // 2
        self._allocator.relocate(block, self._head, new_block, new_head, length)
        self._allocator.release(block)

        logger.debug(
            "deque grew %d -> %d slots, live range [%d, %d)",
            self._capacity,
            new_capacity,
            new_head,
            new_head + length,
        )
        self._block = new_block
        self._capacity = new_capacity
        self._head = new_head
        self._tail = new_head + length

    def push_front(self, item: Any) -> None:
        if self._head == 0:
            self.grow()
        block = self._live_block()
        self._allocator.store(block, self._head - 1, item)
        self._head -= 1

    def push_back(self, item: Any) -> None:
        if self._tail == self._capacity:
            self.grow()
        block = self._live_block()
        self._allocator.store(block, self._tail, item)
        self._tail += 1

    def pop_front(self, default: Any = None) -> Any:
        """Remove and return the front element, or `default` when empty."""
        block = self._live_block()
        if self._head == self._tail:
            return default
        item = self._allocator.load(block, self._head)
        self._allocator.vacate(block, self._head)
        self._head += 1
        return item

    def pop_back(self, default: Any = None) -> Any:
        """Remove and return the back element, or `default` when empty."""
        block = self._live_block()
        if self._head == self._tail:
            return default
        item = self._allocator.load(block, self._tail - 1)
        self._allocator.vacate(block, self._tail - 1)
        self._tail -= 1
        return item

    def peek_front(self, default: Any = None) -> Any:
        block = self._live_block()
        if self._head == self._tail:
            return default
        return self._allocator.load(block, self._head)

    def peek_back(self, default: Any = None) -> Any:
        block = self._live_block()
        if self._head == self._tail:
            return default
        return self._allocator.load(block, self._tail - 1)

    def __getitem__(self, index: int) -> Any:
        block = self._live_block()
        length = self._tail - self._head
        if index < 0:
            index += length
        if not 0 <= index < length:
            raise IndexError("deque index out of range")
        return self._allocator.load(block, self._head + index)

    def snapshot(self) -> List[Any]:
        """Live elements front to back without giving up ownership."""
        block = self._live_block()
        return [self._allocator.load(block, i) for i in range(self._head, self._tail)]

    def __iter__(self) -> Iterator[Any]:
        return iter(self.snapshot())

    def __repr__(self) -> str:
        if self._closed:
            return f"{type(self).__name__}(<closed>, capacity={self._capacity})"
        return (
            f"{type(self).__name__}(items={self.snapshot()!r}, head={self._head}, "
            f"tail={self._tail}, len={len(self)}, capacity={self._capacity})"
        )

    def _drop_live(self, block: Block) -> None:
        # Each slot is vacated before dispose runs; a failing dispose is re-raised
        # only after every remaining element has been handed over.
        first_error: Optional[Exception] = None
        while self._head < self._tail:
            index = self._head
            item = self._allocator.load(block, index)
            self._allocator.vacate(block, index)
            self._head += 1
            if self._dispose is None:
                continue
            try:
                self._dispose(item)
            except Exception as exc:
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error

    def clear(self) -> None:
        """Dispose every element and re-centre the empty range."""
        block = self._live_block()
        try:
            self._drop_live(block)
        finally:
            if self._head == self._tail:
                self._head = self._tail = self._capacity // 2

    def close(self) -> None:
        """Dispose ``[head, tail)`` in index order, then release the block. Idempotent."""
        if self._closed:
            return
        self._closed = True
        block = self._block
        self._block = None
        assert block is not None
        try:
            self._drop_live(block)
        finally:
            self._tail = self._head
            self._allocator.release(block)
        logger.debug("closed deque of capacity %d", self._capacity)

    def __enter__(self) -> "GrowableDeque":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self) -> None:
        if not getattr(self, "_closed", True):
            self.close()
