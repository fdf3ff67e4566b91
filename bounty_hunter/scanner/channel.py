import threading
from collections import deque
from typing import Deque, Generic, Iterator, TypeVar

from bounty_hunter.scanner.errors import ChannelClosedError

T = TypeVar("T")


class Channel(Generic[T]):
    """
    Bounded, closable FIFO shared between threads.

    put() blocks while the buffer is full and get() blocks while it is empty.
    After close() no item may be added; consumers drain what is left and then
    get() raises ChannelClosedError.
    """

    def __init__(self, capacity: int, name: str = "channel"):
        if capacity < 1:
            raise ValueError(f"Channel capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self.name = name
        self._items: Deque[T] = deque()
        self._closed = False
        self._lock = threading.Lock()
        self._not_empty = threading.Condition(self._lock)
        self._not_full = threading.Condition(self._lock)

    def put(self, item: T) -> None:
        with self._not_full:
            while len(self._items) >= self.capacity and not self._closed:
                self._not_full.wait()
            if self._closed:
                raise ChannelClosedError(f"put() on closed channel '{self.name}'")
            self._items.append(item)
            self._not_empty.notify()

    def get(self) -> T:
        with self._not_empty:
            while not self._items and not self._closed:
                self._not_empty.wait()
            if not self._items:
                raise ChannelClosedError(f"Channel '{self.name}' is closed and drained")
            item = self._items.popleft()
            self._not_full.notify()
            return item

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self._not_empty.notify_all()
            self._not_full.notify_all()

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.get()
            except ChannelClosedError:
                return
