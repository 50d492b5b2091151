from .circular import BoundedCircularQueue
from .deque import DEFAULT_CAPACITY, GROWTH_FACTOR, GrowableDeque

__all__ = ["BoundedCircularQueue", "GrowableDeque", "DEFAULT_CAPACITY", "GROWTH_FACTOR"]
