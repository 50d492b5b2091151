from __future__ import annotations

import sys
from dataclasses import dataclass

from .errors import AllocationError

# Largest object size the interpreter can address.
MAX_BLOCK_BYTES = sys.maxsize


@dataclass(frozen=True)
class Layout:
    """
    Size description of a block of `count` equally sized slots.

    `itemsize` is the number of bytes one slot occupies in the backing store.
    """

    count: int
    itemsize: int

    @property
    def nbytes(self) -> int:
        """Total size of the block in bytes."""
        return self.count * self.itemsize

    @classmethod
    def array(cls, count: int, itemsize: int) -> "Layout":
        """
        Build the layout of an array of `count` slots.

        Raises AllocationError when the byte size cannot be represented.
        """
        count = check_capacity(count, allow_zero=True)
        if itemsize <= 0:
            raise ValueError(f"itemsize must be positive, got {itemsize!r}.")
        if count > MAX_BLOCK_BYTES // itemsize:
            raise AllocationError(
                f"Block of {count} slots x {itemsize} bytes exceeds {MAX_BLOCK_BYTES} bytes."
            )
        return cls(count=count, itemsize=itemsize)


def check_capacity(capacity: int, *, allow_zero: bool) -> int:
    """Validate a slot count and return it as a plain int."""
    if isinstance(capacity, bool) or not isinstance(capacity, int):
        raise TypeError(f"capacity must be an int, got {type(capacity).__name__}.")
    if capacity < 0 or (capacity == 0 and not allow_zero):
        bound = "non-negative" if allow_zero else "positive"
        raise ValueError(f"capacity must be {bound}, got {capacity}.")
    return int(capacity)


def wrap_slot(position: int, capacity: int) -> int:
    """
    Translate a logical position into a physical slot of a circular block.

    Positions are unbounded counters; the slot is the position modulo capacity.
    """
    return position % capacity
