from __future__ import annotations

from typing import Any, Dict, Tuple, Type, Union

from .base import BlockAllocator

AllocatorSpec = Union[str, Type[BlockAllocator], BlockAllocator]

_ALLOCATORS: Dict[str, Type[BlockAllocator]] = {}


def register_allocator(
    name: str,
    allocator_cls: Type[BlockAllocator],
    *,
    replace: bool = False,
) -> None:
    """
    Make `allocator_cls` selectable as ``allocator=name`` on the containers.

    Registering the same class twice is a no-op. Claiming a name that
    already belongs to a different class raises ValueError unless
    `replace` is set, so one module cannot silently swap the storage of
    every container built by name.
    """
    if not isinstance(name, str) or not name:
        raise ValueError(f"Allocator names must be non-empty strings, got {name!r}.")
    if not isinstance(allocator_cls, type) or not issubclass(allocator_cls, BlockAllocator):
        raise TypeError(f"{allocator_cls!r} is not a BlockAllocator subclass.")
    current = _ALLOCATORS.get(name)
    if current is not None and current is not allocator_cls and not replace:
        raise ValueError(
            f"Allocator name '{name}' is taken by {current.__qualname__}; "
            "pass replace=True to rebind it."
        )
    _ALLOCATORS[name] = allocator_cls


def available_allocators() -> Tuple[str, ...]:
    """Registered allocator names, sorted."""
    return tuple(sorted(_ALLOCATORS))


def get_allocator(allocator: AllocatorSpec, **options: Any) -> BlockAllocator:
    """
    Turn a container's ``allocator=`` argument into an allocator instance.

    A name is looked up in the registry and a class is instantiated; either
    way `options` go to the constructor. An instance is used as is, which
    lets several containers share one allocator, and then takes no options
    since it was configured when it was built.
    """
    if isinstance(allocator, BlockAllocator):
        if options:
            names = ", ".join(sorted(options))
            raise ValueError(f"Allocator instance is already configured; got extra options: {names}.")
        return allocator

    if isinstance(allocator, str):
        allocator_cls = _ALLOCATORS.get(allocator)
        if allocator_cls is None:
            known = ", ".join(available_allocators()) or "<none>"
            raise KeyError(f"No allocator named '{allocator}'. Registered allocators: {known}")
    elif isinstance(allocator, type) and issubclass(allocator, BlockAllocator):
        allocator_cls = allocator
    else:
        raise TypeError(
            f"allocator must be a registered name, a BlockAllocator subclass or instance, got {allocator!r}."
        )
    return allocator_cls(**options)
