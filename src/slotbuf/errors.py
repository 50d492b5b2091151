"""Exception hierarchy for slotbuf containers.

Every error raised on purpose by the library derives from :class:`SlotBufError`
so callers can catch container failures in one place.
"""


class SlotBufError(Exception):
    """Base exception for all container errors."""


class AllocationError(SlotBufError, MemoryError):
    """A block could not be obtained (size overflow or backing store failure)."""


class CapacityExceeded(SlotBufError):
    """An insertion would exceed a fixed capacity."""


class QueueFull(CapacityExceeded):
    """Push on a bounded circular queue that already holds `capacity` elements."""


class SlotStateError(SlotBufError):
    """A slot was used in a state it must never be used in (vacant read, live overwrite, double release)."""


class ContainerClosedError(SlotBufError):
    """The container was closed and its block released."""


class ElementTypeError(SlotBufError, ValueError):
    """A value cannot be held by a slot without being altered (wrong type, lossy cast, overflow)."""
