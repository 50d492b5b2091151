from __future__ import annotations

from typing import Any, Union

import torch

from .base import Block, BlockAllocator
from .registry import register_allocator
from ..errors import ElementTypeError


class TensorAllocator(BlockAllocator):
    """
    Allocator backed by an uninitialised 1D tensor from ``torch.empty``.

    Slots hold scalars of a single dtype on a single device. Loads convert
    back to Python scalars, so popped values never alias the block. Vacant
    slots keep whatever bytes they held; the containers never read them.
    """

    name = "tensor"

    def __init__(
        self,
        dtype: torch.dtype = torch.int64,
        device: Union[str, torch.device, None] = None,
        **config: Any,
    ) -> None:
        super().__init__(dtype=dtype, device=device, **config)
        if not isinstance(dtype, torch.dtype):
            raise TypeError(f"dtype must be a torch.dtype, got {dtype!r}.")
        self.dtype = dtype
        self.device = torch.device("cpu") if device is None else torch.device(device)

    @property
    def itemsize(self) -> int:
        return torch.empty((), dtype=self.dtype).element_size()

    def _new_slots(self, count: int) -> torch.Tensor:
        return torch.empty(count, dtype=self.dtype, device=self.device)

    def load(self, block: Block, index: int) -> Any:
        return block.slots[index].item()

    def store(self, block: Block, index: int, value: Any) -> None:
        block.slots[index] = self._as_scalar(value)

    def _as_scalar(self, value: Any) -> torch.Tensor:
        """
        Convert `value` to a 0-dim tensor of the block dtype.

        Raises ElementTypeError unless the conversion is exact, so a slot never
        hands back a truncated, wrapped or otherwise altered element.
        """
        try:
            scalar = torch.tensor(value, dtype=self.dtype)
        except (TypeError, ValueError, RuntimeError, OverflowError) as exc:
            raise ElementTypeError(f"{value!r} cannot be stored as {self.dtype}.") from exc
        if scalar.dim() != 0:
            raise ElementTypeError(f"Slots hold scalars, got shape {tuple(scalar.shape)}.")
        stored = scalar.item()
        # NaN is the one value that never compares equal to itself.
        if stored != value and not (stored != stored and value != value):
            raise ElementTypeError(f"{value!r} changes to {stored!r} when stored as {self.dtype}.")
        return scalar

    def vacate(self, block: Block, index: int) -> None:
        # Numeric slots own no resources; the index bounds alone define liveness.
        return None

    def relocate(self, src: Block, start: int, dst: Block, dst_start: int, n: int) -> None:
        if n <= 0:
            return
        dst.slots[dst_start : dst_start + n].copy_(src.slots[start : start + n])


register_allocator(TensorAllocator.name, TensorAllocator)
