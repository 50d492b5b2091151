"""
Public interface for the slotbuf containers.

`BoundedCircularQueue` and `GrowableDeque` are the two containers. Allocator
registration helpers are re-exported from `slotbuf.allocators.registry` so
that users can plug in their own block storage.
"""

from .allocators import available_allocators, get_allocator, register_allocator
from .core.circular import BoundedCircularQueue
from .core.deque import GrowableDeque
from .errors import (
    AllocationError,
    CapacityExceeded,
    ContainerClosedError,
    ElementTypeError,
    QueueFull,
    SlotBufError,
    SlotStateError,
)

__all__ = [
    "BoundedCircularQueue",
    "GrowableDeque",
    "AllocationError",
    "CapacityExceeded",
    "ContainerClosedError",
    "ElementTypeError",
    "QueueFull",
    "SlotBufError",
    "SlotStateError",
    "available_allocators",
    "get_allocator",
    "register_allocator",
]
