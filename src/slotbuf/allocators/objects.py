from __future__ import annotations

import struct
from typing import Any

from .base import Block, BlockAllocator
from .registry import register_allocator
from ..errors import SlotStateError


class _Vacant:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<vacant>"


VACANT = _Vacant()

# One slot stores a single object reference.
_POINTER_SIZE = struct.calcsize("P")


class ObjectAllocator(BlockAllocator):
    """
    Allocator whose slots hold arbitrary Python objects.

    Vacant slots carry a private marker, which lets the allocator reject
    reads of slots that hold no element and writes that would silently drop
    a live one.
    """

    name = "object"

    @property
    def itemsize(self) -> int:
        return _POINTER_SIZE

    def _new_slots(self, count: int) -> list:
        return [VACANT] * count

    def load(self, block: Block, index: int) -> Any:
        value = block.slots[index]
        if value is VACANT:
            raise SlotStateError(f"slot {index} is vacant")
        return value

    def store(self, block: Block, index: int, value: Any) -> None:
        if block.slots[index] is not VACANT:
            raise SlotStateError(f"slot {index} already holds a live element")
        block.slots[index] = value

    def vacate(self, block: Block, index: int) -> None:
        block.slots[index] = VACANT

    def relocate(self, src: Block, start: int, dst: Block, dst_start: int, n: int) -> None:
        if n <= 0:
            return
        target = dst.slots[dst_start : dst_start + n]
        if any(slot is not VACANT for slot in target):
            raise SlotStateError("relocation target overlaps live slots")
        dst.slots[dst_start : dst_start + n] = src.slots[start : start + n]
        src.slots[start : start + n] = [VACANT] * n

    def is_vacant(self, block: Block, index: int) -> bool:
        return block.slots[index] is VACANT


register_allocator(ObjectAllocator.name, ObjectAllocator)
