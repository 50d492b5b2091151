from __future__ import annotations

import abc
import logging
from dataclasses import dataclass
from typing import Any

from ..layout import Layout
from ..errors import AllocationError, SlotStateError

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Block:
    """
    A raw block of slots handed out by a :class:`BlockAllocator`.

    The block remembers the layout it was allocated with so that it can be
    released with exactly the same element count.
    """

    slots: Any
    layout: Layout
    released: bool = False

    @property
    def count(self) -> int:
        return self.layout.count


class BlockAllocator(abc.ABC):
    """
    Abstract base class for the raw storage used by the containers.

    Concrete allocators decide what a slot is (a Python reference, a tensor
    element) and implement slot-level access. Containers only ever talk to
    their block through these methods.
    """

    name: str = "abstract"

    def __init__(self, **config: Any) -> None:
        self._config = dict(config)

    @property
    @abc.abstractmethod
    def itemsize(self) -> int:
        """Bytes occupied by one slot."""

    @abc.abstractmethod
    def _new_slots(self, count: int) -> Any:
        """Create backing storage for `count` vacant slots."""

    @abc.abstractmethod
    def load(self, block: Block, index: int) -> Any:
        """Return the value held in slot `index`."""

    @abc.abstractmethod
    def store(self, block: Block, index: int, value: Any) -> None:
        """Place `value` into the vacant slot `index`."""

    @abc.abstractmethod
    def vacate(self, block: Block, index: int) -> None:
        """Mark slot `index` as no longer holding a live element."""

    @abc.abstractmethod
    def relocate(self, src: Block, start: int, dst: Block, dst_start: int, n: int) -> None:
        """
        Move `n` live slots from `src[start:start + n]` to `dst[dst_start:dst_start + n]`.

        The source slots are left vacant; the destination slots must be vacant.
        """

    def allocate(self, count: int) -> Block:
        """
        Request a block of `count` vacant slots.

        Raises AllocationError if the size overflows or the backing store
        refuses the request.
        """
        layout = Layout.array(count, self.itemsize)
        try:
            slots = self._new_slots(layout.count)
        except (MemoryError, RuntimeError, OverflowError) as exc:
            raise AllocationError(
                f"{self.name} allocator could not provide {layout.count} slots ({layout.nbytes} bytes)."
            ) from exc
        logger.debug("allocated %s block: %d slots, %d bytes", self.name, layout.count, layout.nbytes)
        return Block(slots=slots, layout=layout)

    def release(self, block: Block) -> None:
        """Return a block to the allocator. A block may be released only once."""
        if block.released:
            raise SlotStateError("block released twice")
        block.released = True
        block.slots = None
        logger.debug("released %s block of %d slots", self.name, block.count)

    def options(self) -> dict[str, Any]:
        """Configuration the allocator was created with."""
        return dict(self._config)
