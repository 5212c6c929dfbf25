"""Fixed-capacity circular history of test outcomes."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence

from teststability.history.result import Result


class RingBuffer:
    """Bounded history that evicts its oldest result once full.

    Results are written at ``tail``; ``head`` marks the oldest occupied
    slot. The physical slot array always holds exactly ``capacity``
    entries, with ``None`` for slots that were never written. That
    layout is what the codec persists, so it is exposed read-only
    through ``slots``.

    The buffer does no locking. Callers sharing one instance between
    threads must serialize ``insert`` against ``snapshot``.
    """

    def __init__(self, capacity: int):
        """Create an empty buffer.

        Args:
            capacity: Number of slots. Zero is allowed and produces a
                buffer that never stores anything.

        Raises:
            ValueError: If capacity is negative
        """
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self._slots: list[Result | None] = [None] * capacity
        self._head = 0
        self._tail = 0
        self._size = 0

    @classmethod
    def from_state(
        cls,
        slots: Sequence[Result | None],
        head: int,
        tail: int,
        size: int,
    ) -> RingBuffer:
        """Rebuild a buffer from a raw slot layout and its counters.

        The counters are taken as given; no consistency checks are
        made against the slots. The new buffer owns a fresh copy of
        ``slots``.
        """
        buffer = cls(len(slots))
        buffer._slots = list(slots)
        buffer._head = head
        buffer._tail = tail
        buffer._size = size
        return buffer

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def get_capacity(self) -> int:
        return self.capacity

    @property
    def head(self) -> int:
        return self._head

    @property
    def tail(self) -> int:
        return self._tail

    @property
    def size(self) -> int:
        return self._size

    @property
    def slots(self) -> list[Result | None]:
        """Copy of the physical slots in index order."""
        return list(self._slots)

    def is_empty_capacity(self) -> bool:
        """Return True if this buffer has no slots at all.

        Not the same as holding no results yet; see ``size``.
        """
        return not self._slots

    def insert(self, result: Result) -> None:
        """Append a result, evicting the oldest one if the buffer is full.

        No-op on a zero-capacity buffer.
        """
        capacity = len(self._slots)
        if capacity == 0:
            return

        self._slots[self._tail] = result
        self._tail = (self._tail + 1) % capacity

        if self._size == capacity:
            self._head = (self._head + 1) % capacity
        else:
            self._size += 1

    def insert_all(self, results: Iterable[Result]) -> None:
        """Insert results in order, oldest first."""
        for result in results:
            self.insert(result)

    def add(self, build_number: int, passed: bool) -> None:
        """Record the outcome of one build."""
        self.insert(Result(build_number=build_number, passed=passed))

    def snapshot(self) -> list[Result]:
        """Return the stored results ordered oldest to newest."""
        capacity = len(self._slots)
        if capacity == 0:
            return []
        return [
            self._slots[(self._head + i) % capacity]
            for i in range(self._size)
        ]

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[Result]:
        return iter(self.snapshot())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RingBuffer):
            return NotImplemented
        return (
            self._head == other._head
            and self._tail == other._tail
            and self._size == other._size
            and self._slots == other._slots
        )

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"RingBuffer(capacity={self.capacity}, head={self._head}, "
            f"tail={self._tail}, size={self._size})"
        )
