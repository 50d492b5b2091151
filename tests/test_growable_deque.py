from __future__ import annotations

import gc

import pytest
import torch

from slotbuf import AllocationError, ContainerClosedError, ElementTypeError, GrowableDeque
from slotbuf.allocators import ObjectAllocator


def test_new_deque_is_centred() -> None:
    dq = GrowableDeque()
    assert (dq.capacity, dq.head, dq.tail, len(dq)) == (4, 2, 2, 0)

    dq = GrowableDeque.with_capacity(9)
    assert (dq.capacity, dq.head, dq.tail) == (9, 4, 4)


def test_mixed_pushes_pop_from_both_ends() -> None:
    dq = GrowableDeque()
    dq.push_front(5)
    dq.push_front(6)
    dq.push_back(11)
    assert dq.snapshot() == [6, 5, 11]

    assert dq.pop_front() == 6
    assert dq.pop_back() == 11
    assert dq.pop_front() == 5
    assert dq.pop_front() is None
    assert dq.pop_back() is None


def test_growth_from_front_preserves_order() -> None:
    dq = GrowableDeque.with_capacity(4)
    for value in range(5):
        dq.push_front(value)
    assert dq.capacity == 8
    assert [dq.pop_front() for _ in range(5)] == [4, 3, 2, 1, 0]
    assert len(dq) == 0


def test_growth_recentres_live_range() -> None:
    dq = GrowableDeque()
    dq.push_front(5)
    dq.push_front(6)
    # head reached 0 with two live elements; doubling centres them in 8 slots.
    dq.push_front(7)
    assert (dq.capacity, dq.head, dq.tail) == (8, 2, 5)
    assert dq.snapshot() == [7, 6, 5]


def test_demo_sequence_renders_front_to_back() -> None:
    dq = GrowableDeque()
    for value in (5, 6, 7):
        dq.push_front(value)
    dq.push_back(11)
    dq.push_back(12)
    for _ in range(4):
        dq.push_front(9)

    assert repr(dq) == (
        "GrowableDeque(items=[9, 9, 9, 9, 7, 6, 5, 11, 12], head=2, tail=11, len=9, capacity=16)"
    )


def test_long_run_at_both_ends_matches_reference() -> None:
    dq = GrowableDeque.with_capacity(1)
    expected: list[int] = []
    for value in range(200):
        if value % 3 == 0:
            dq.push_front(value)
            expected.insert(0, value)
        else:
            dq.push_back(value)
            expected.append(value)
        assert 0 <= dq.head <= dq.tail <= dq.capacity

    assert dq.snapshot() == expected
    drained = []
    while len(dq):
        drained.append(dq.pop_front())
    assert drained == expected


def test_zero_capacity_grows_on_first_push() -> None:
    dq = GrowableDeque.with_capacity(0)
    assert (dq.capacity, dq.head, dq.tail) == (0, 0, 0)
    dq.push_back("x")
    assert dq.capacity == 4
    dq.push_front("w")
    assert dq.snapshot() == ["w", "x"]


def test_explicit_grow_checks_room() -> None:
    dq = GrowableDeque()
    for value in range(3):
        dq.push_back(value)
    with pytest.raises(ValueError):
        dq.grow(2)
    dq.grow(3)
    assert (dq.head, dq.tail, dq.capacity) == (0, 3, 3)
    dq.push_front(-1)
    assert dq.snapshot() == [-1, 0, 1, 2]


def test_peek_and_indexing() -> None:
    dq = GrowableDeque()
    assert dq.peek_front("empty") == "empty"
    for value in "abc":
        dq.push_back(value)
    assert dq.peek_front() == "a"
    assert dq.peek_back() == "c"
    assert dq[1] == "b"
    assert dq[-1] == "c"
    with pytest.raises(IndexError):
        dq[3]
    assert list(dq) == ["a", "b", "c"]


def test_repeated_pop_on_empty_then_push() -> None:
    dq = GrowableDeque()
    for _ in range(10):
        assert dq.pop_back() is None
        assert dq.pop_front() is None
    assert (dq.head, dq.tail) == (2, 2)
    dq.push_back(1)
    assert dq.pop_front() == 1


def test_close_disposes_live_range_in_index_order() -> None:
    disposed = []
    dq = GrowableDeque(dispose=disposed.append)
    for value in range(5):
        dq.push_front(value)
    dq.push_back("tail")
    assert dq.pop_front() == 4

    dq.close()
    dq.close()
    assert disposed == [3, 2, 1, 0, "tail"]
    with pytest.raises(ContainerClosedError):
        dq.push_back(1)


def test_clear_disposes_and_recentres() -> None:
    disposed = []
    with GrowableDeque(dispose=disposed.append) as dq:
        dq.push_back(1)
        dq.push_back(2)
        dq.clear()
        assert disposed == [1, 2]
        assert (dq.head, dq.tail, len(dq)) == (2, 2, 0)
        dq.push_back(3)
    assert disposed == [1, 2, 3]


class _FailingAllocator(ObjectAllocator):
    def __init__(self, budget: int) -> None:
        super().__init__()
        self.budget = budget

    def _new_slots(self, count: int) -> list:
        if count > self.budget:
            raise MemoryError(count)
        return super()._new_slots(count)


def test_failed_growth_leaves_deque_intact() -> None:
    dq = GrowableDeque(allocator=_FailingAllocator(budget=4))
    dq.push_front(1)
    dq.push_front(2)
    with pytest.raises(AllocationError):
        dq.push_front(3)
    assert (dq.capacity, dq.head, dq.tail) == (4, 0, 2)
    assert dq.snapshot() == [2, 1]
    dq.push_back(0)
    assert dq.snapshot() == [2, 1, 0]


def test_tensor_backed_deque() -> None:
    dq = GrowableDeque(allocator="tensor", dtype=torch.float64)
    for value in range(6):
        dq.push_back(value * 0.5)
    dq.push_front(-1.0)
    assert dq.capacity == 16
    assert dq.snapshot() == [-1.0, 0.0, 0.5, 1.0, 1.5, 2.0, 2.5]
    assert dq.pop_back() == 2.5
    assert isinstance(dq.pop_front(), float)


def test_tensor_deque_rejects_lossy_values() -> None:
    dq = GrowableDeque(allocator="tensor")
    dq.push_back(1)
    with pytest.raises(ElementTypeError):
        dq.push_back(2.75)
    with pytest.raises(ElementTypeError):
        dq.push_front(2**70)
    assert len(dq) == 1
    assert dq.snapshot() == [1]


class _Tracked:
    finalized: list = []

    def __init__(self, value: int) -> None:
        self.value = value

    def __del__(self) -> None:
        _Tracked.finalized.append(self.value)


def test_dropping_deque_finalizes_live_elements_once() -> None:
    _Tracked.finalized.clear()
    dq = GrowableDeque(4)
    for value in range(5):
        dq.push_front(_Tracked(value))
    assert dq.capacity == 8
    popped = dq.pop_front()
    assert popped.value == 4

    del dq
    gc.collect()
    assert sorted(_Tracked.finalized) == [0, 1, 2, 3]
    del popped
    gc.collect()
    assert sorted(_Tracked.finalized) == [0, 1, 2, 3, 4]


def _dispose_failing_on(bad, seen: list):
    def dispose(item) -> None:
        seen.append(item)
        if item == bad:
            raise RuntimeError(f"cannot dispose {item}")

    return dispose


def test_failing_dispose_still_disposes_the_rest_on_close() -> None:
    seen = []
    dq = GrowableDeque(dispose=_dispose_failing_on(1, seen))
    for value in range(4):
        dq.push_back(value)
    with pytest.raises(RuntimeError, match="cannot dispose 1"):
        dq.close()
    assert seen == [0, 1, 2, 3]
    assert dq.closed
    assert len(dq) == 0
    dq.close()
    assert seen == [0, 1, 2, 3]


def test_failing_dispose_still_empties_on_clear() -> None:
    seen = []
    dq = GrowableDeque(dispose=_dispose_failing_on("a", seen))
    dq.push_back("a")
    dq.push_back("b")
    with pytest.raises(RuntimeError):
        dq.clear()
    assert seen == ["a", "b"]
    assert (dq.head, dq.tail, len(dq)) == (2, 2, 0)
    dq.push_back("c")
    assert dq.snapshot() == ["c"]
