"""Per-test-case histories and their YAML document on disk."""

from __future__ import annotations

from collections.abc import Iterator, ItemsView, KeysView
from pathlib import Path
from typing import TYPE_CHECKING

import yaml
from pydantic import BaseModel, Field, ValidationError

from teststability.core.log import logger
from teststability.history.codec import BufferCodec, SerializedHistory
from teststability.history.errors import FormatError, HistoryError
from teststability.history.ring_buffer import RingBuffer

if TYPE_CHECKING:
    from teststability.core.config import HistoryConfig


class StabilityData:
    """Histories keyed by a stable test case identifier.

    Keys are opaque; they are only used for lookup. New histories are
    created with ``capacity`` slots the first time a key is recorded.
    """

    def __init__(
        self,
        histories: dict[str, RingBuffer] | None = None,
        capacity: int = 30,
    ):
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self.capacity = capacity
        self._histories = dict(histories or {})

    def history_for(self, key: str) -> RingBuffer | None:
        """Return the history recorded for a test case, if any."""
        return self._histories.get(key)

    def record(self, key: str, build_number: int, passed: bool) -> RingBuffer:
        """Append one outcome to a test case's history.

        Returns:
            The history the outcome was recorded in
        """
        history = self._histories.get(key)
        if history is None:
            history = RingBuffer(self.capacity)
            self._histories[key] = history
            logger.debug(
                "Created history", test_id=key, capacity=self.capacity
            )
        history.add(build_number, passed)
        return history

    def items(self) -> ItemsView[str, RingBuffer]:
        """Return (test id, history) pairs."""
        return self._histories.items()

    def keys(self) -> KeysView[str]:
        return self._histories.keys()

    def __contains__(self, key: object) -> bool:
        return key in self._histories

    def __iter__(self) -> Iterator[str]:
        return iter(self._histories)

    def __len__(self) -> int:
        return len(self._histories)


class HistoryDocument(BaseModel):
    """On-disk layout of a history store."""

    histories: dict[str, SerializedHistory] = Field(default_factory=dict)


class HistoryStore:
    """Reads and writes StabilityData as a YAML document.

    Each history is stored under its test case id as the four codec
    fields::

        histories:
          suite.TestCase.test_method:
            head: 0
            tail: 2
            size: 2
            data: 10;1,11;0,
    """

    def __init__(self, path: Path, codec: BufferCodec | None = None):
        self.path = Path(path)
        self.codec = codec or BufferCodec()

    @classmethod
    def from_config(cls, config: HistoryConfig) -> HistoryStore:
        """Open the store file named in the history configuration."""
        return cls(config.store_file, BufferCodec(strict=config.strict))

    def load(self, capacity: int = 30) -> StabilityData:
        """Load all histories from disk.

        A missing file yields empty data.

        Raises:
            FormatError: If the file or a stored history is malformed
            CapacityMismatch: If a strict codec rejects a history
        """
        if not self.path.is_file():
            logger.debug(
                "History store not found, starting empty",
                file=str(self.path),
            )
            return StabilityData(capacity=capacity)

        with logger.span("Loading history store", file=str(self.path)):
            try:
                with open(self.path, encoding="utf-8") as f:
                    raw = yaml.safe_load(f) or {}
                document = HistoryDocument.model_validate(raw)
            except (yaml.YAMLError, UnicodeDecodeError, ValidationError) as e:
                raise FormatError(
                    f"Invalid history store {self.path}: {e}"
                ) from e

            histories = {}
            for key, serialized in document.histories.items():
                try:
                    histories[key] = self.codec.load(serialized)
                except HistoryError as e:
                    raise type(e)(f"History for {key!r}: {e}") from e

        logger.info(
            "Loaded history store",
            file=str(self.path),
            histories=len(histories),
        )
        return StabilityData(histories, capacity=capacity)

    def save(self, data: StabilityData) -> None:
        """Write all histories to disk, replacing the existing file.

        Zero-capacity histories are left out. Their encoding is the
        empty string, which reads back as a single empty slot.
        """
        histories = {}
        for key, history in data.items():
            if history.is_empty_capacity():
                logger.debug("Skipping zero-capacity history", test_id=key)
                continue
            histories[key] = self.codec.serialize(history)
        document = HistoryDocument(histories=histories)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(document.model_dump(), f, sort_keys=True)

        logger.info(
            "Saved history store",
            file=str(self.path),
            histories=len(histories),
        )
