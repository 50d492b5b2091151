from .base import Block, BlockAllocator
from .registry import available_allocators, get_allocator, register_allocator
from . import objects  # noqa: F401 - ensures default allocator registration
from . import tensor  # noqa: F401 - ensure registration
from .objects import ObjectAllocator
from .tensor import TensorAllocator

__all__ = [
    "Block",
    "BlockAllocator",
    "ObjectAllocator",
    "TensorAllocator",
    "available_allocators",
    "get_allocator",
    "register_allocator",
]
