from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Iterator, List, Optional

from ..allocators.base import Block
from ..allocators.registry import AllocatorSpec, get_allocator
from ..errors import ContainerClosedError, QueueFull
from ..layout import check_capacity, wrap_slot

logger = logging.getLogger(__name__)


class BoundedCircularQueue:
    """
    Fixed-capacity FIFO queue over a block of slots indexed modulo capacity.

    The queue tracks two monotonically increasing counters: ``pushed`` is
    only written by producers and ``popped`` only by consumers. The live
    range is ``[popped, pushed)`` in logical positions, so ``head``,
    ``tail`` and ``len`` are all derived from the pair and can never drift
    apart.

    Producers serialise on one lock and consumers on another, so a push
    never waits for a pop. A producer stores the element before publishing
    the new ``pushed`` value, and a consumer reads and vacates the slot
    before publishing ``popped``; the counter each side reads is therefore
    never ahead of the slot contents it guards. :meth:`resize` and
    :meth:`close` take both locks and run with the queue stopped.

    Parameters
    ----------
    capacity:
        Number of slots. Must be positive.
    allocator:
        Allocator name, class or instance resolved through the registry.
    dispose:
        Optional callable invoked once for every element still held when
        the queue is closed. Elements returned by :meth:`pop` are owned by
        the caller and are never passed to it.
    """

    def __init__(
        self,
        capacity: int,
        *,
        allocator: AllocatorSpec = "object",
        dispose: Callable[[Any], None] | None = None,
        **allocator_kwargs: Any,
    ) -> None:
        self._closed = True
        capacity = check_capacity(capacity, allow_zero=False)
        self._allocator = get_allocator(allocator, **allocator_kwargs)
        self._block: Optional[Block] = self._allocator.allocate(capacity)
        self._capacity = capacity
        self._pushed = 0
        self._popped = 0
        self._dispose = dispose
        self._push_lock = threading.Lock()
        self._pop_lock = threading.Lock()
        self._closed = False

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def head(self) -> int:
        """Slot of the next element to pop."""
        return wrap_slot(self._popped, self._capacity)

    @property
    def tail(self) -> int:
        """Slot the next push writes into."""
        return wrap_slot(self._pushed, self._capacity)

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        # Read the consumer counter first: pushed only grows between the two reads.
        popped = self._popped
        pushed = self._pushed
        return max(0, min(self._capacity, pushed - popped))

    def is_empty(self) -> bool:
        return len(self) == 0

    def is_full(self) -> bool:
        return len(self) == self._capacity

    def _live_block(self) -> Block:
        if self._closed or self._block is None:
            raise ContainerClosedError("queue is closed")
        return self._block

    def push(self, item: Any) -> None:
        """
        Append `item` at the tail.

        Raises QueueFull when the queue already holds `capacity` elements;
        nothing is overwritten and the queue is left unchanged.
        """
        with self._push_lock:
            block = self._live_block()
            pushed = self._pushed
            if pushed - self._popped >= self._capacity:
                raise QueueFull(f"queue is full ({self._capacity} elements)")
            self._allocator.store(block, wrap_slot(pushed, self._capacity), item)
            self._pushed = pushed + 1

    def try_push(self, item: Any) -> bool:
        """Append `item` if there is room. Returns False when the queue is full."""
        try:
            self.push(item)
        except QueueFull:
            return False
        return True

    def pop(self, default: Any = None) -> Any:
        """
        Remove and return the oldest element, or `default` if the queue is empty.
        """
        with self._pop_lock:
            block = self._live_block()
            popped = self._popped
            if self._pushed == popped:
                return default
            slot = wrap_slot(popped, self._capacity)
            item = self._allocator.load(block, slot)
            self._allocator.vacate(block, slot)
            self._popped = popped + 1
            return item

    def peek(self, default: Any = None) -> Any:
        """Return the oldest element without removing it."""
        with self._pop_lock:
            block = self._live_block()
            popped = self._popped
            if self._pushed == popped:
                return default
            return self._allocator.load(block, wrap_slot(popped, self._capacity))

    def resize(self, new_capacity: int) -> None:
        """
        Move the live elements into a new block of `new_capacity` slots.

        Elements land oldest first at slots ``[0, len)``, so afterwards
        ``head == 0`` and ``tail == len % new_capacity``. The queue is
        stopped for the duration. If the new block cannot be allocated the
        queue keeps its old block untouched.
        """
        new_capacity = check_capacity(new_capacity, allow_zero=False)
        with self._push_lock, self._pop_lock:
            block = self._live_block()
            count = self._pushed - self._popped
            if new_capacity < count:
                raise ValueError(
                    f"new_capacity {new_capacity} cannot hold the {count} live elements."
                )
            new_block = self._allocator.allocate(new_capacity)

            # Two-slice copy: [head, capacity) then the wrapped part [0, rest).
            start = wrap_slot(self._popped, self._capacity)
            first = min(count, self._capacity - start)
            self._allocator.relocate(block, start, new_block, 0, first)
            self._allocator.relocate(block, 0, new_block, first, count - first)
            self._allocator.release(block)

            self._block = new_block
            self._capacity = new_capacity
            self._popped = 0
            self._pushed = count
        logger.debug("resized queue to %d slots holding %d elements", new_capacity, count)

    def snapshot(self) -> List[Any]:
        """Live elements oldest first. Ownership stays with the queue."""
        with self._push_lock, self._pop_lock:
            block = self._live_block()
            return [
                self._allocator.load(block, wrap_slot(position, self._capacity))
                for position in range(self._popped, self._pushed)
            ]

    def __iter__(self) -> Iterator[Any]:
        return iter(self.snapshot())

    def close(self) -> None:
        """
        Dispose every live element once, oldest first, then release the block.

        A failing `dispose` does not stop the remaining elements from being
        disposed; the first exception is raised once the block is released.
        Safe to call more than once.
        """
        if self._closed:
            return
        with self._push_lock, self._pop_lock:
            if self._closed:
                return
            self._closed = True
            block = self._block
            self._block = None
            assert block is not None
            first_error: Optional[Exception] = None
            try:
                for position in range(self._popped, self._pushed):
                    slot = wrap_slot(position, self._capacity)
                    item = self._allocator.load(block, slot)
                    self._allocator.vacate(block, slot)
                    self._popped = position + 1
                    if self._dispose is None:
                        continue
                    try:
                        self._dispose(item)
                    except Exception as exc:
                        if first_error is None:
                            first_error = exc
            finally:
                self._popped = self._pushed
                self._allocator.release(block)
        if first_error is not None:
            raise first_error
        logger.debug("closed queue of capacity %d", self._capacity)

    def __enter__(self) -> "BoundedCircularQueue":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self) -> None:
        if not getattr(self, "_closed", True):
            self.close()

    def __repr__(self) -> str:
        if self._closed:
            return f"{type(self).__name__}(<closed>, capacity={self._capacity})"
        return (
            f"{type(self).__name__}(items={self.snapshot()!r}, head={self.head}, "
            f"tail={self.tail}, len={len(self)}, capacity={self._capacity})"
        )
