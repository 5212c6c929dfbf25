"""Compact text encoding of a RingBuffer's physical layout.

A buffer is stored as three counters and one data string::

    head: 1
    tail: 1
    size: 2
    data: "3;1,2;0"

``data`` lists every physical slot in index order, not in logical
order. Each slot is either empty or ``<build_number>;<flag>`` where
the flag is ``1`` for a pass and ``0`` for a failure. Slots are
joined with ``,`` so a buffer that never filled keeps its empty
slots (capacity 5 with nothing recorded is ``,,,,``).

Keeping the physical layout means an untouched buffer re-encodes to
exactly the same text after a load, wraparound included.
"""

from __future__ import annotations

import re

from pydantic import BaseModel

from teststability.core.log import logger
from teststability.history.errors import CapacityMismatch, FormatError
from teststability.history.result import Result
from teststability.history.ring_buffer import RingBuffer

SLOT_SEPARATOR = ","
FIELD_SEPARATOR = ";"
PASSED_FLAG = "1"
FAILED_FLAG = "0"

_INTEGER = re.compile(r"[+-]?[0-9]+")


class SerializedHistory(BaseModel):
    """The four stored fields of one history, in storage order."""

    head: int
    tail: int
    size: int
    data: str


def _parse_int(text: str | int, what: str) -> int:
    """Parse a decimal integer with an optional sign.

    Raises:
        FormatError: If text is not a plain decimal integer
    """
    if isinstance(text, bool):
        raise FormatError(f"Invalid {what}: {text!r}")
    if isinstance(text, int):
        return text
    if not isinstance(text, str) or not _INTEGER.fullmatch(text):
        raise FormatError(f"Invalid {what}: {text!r}")
    return int(text)


class BufferCodec:
    """Converts RingBuffers to and from their stored text form.

    The default codec trusts the stored counters: ``head``, ``tail``
    and ``size`` are restored verbatim even if they disagree with the
    slots. A strict codec rejects such input with CapacityMismatch,
    and also rejects flags other than ``0``/``1`` and slots with
    extra ``;`` fields.
    """

    def __init__(self, strict: bool = False):
        self.strict = strict

    def serialize(self, buffer: RingBuffer) -> SerializedHistory:
        """Encode a buffer's counters and physical slots."""
        return SerializedHistory(
            head=buffer.head,
            tail=buffer.tail,
            size=buffer.size,
            data=self.encode_slots(buffer.slots),
        )

    def deserialize(
        self,
        head: int | str,
        tail: int | str,
        size: int | str,
        data: str,
    ) -> RingBuffer:
        """Rebuild a buffer from its stored fields.

        Capacity is the number of ``,``-separated fields in data.

        Raises:
            FormatError: If a counter or slot cannot be parsed
            CapacityMismatch: In strict mode, if the counters do not
                fit the decoded capacity
        """
        head = _parse_int(head, "head")
        tail = _parse_int(tail, "tail")
        size = _parse_int(size, "size")
        slots = self.decode_slots(data)

        if self.strict:
            self._check_counters(len(slots), head, tail, size)

        return RingBuffer.from_state(slots, head=head, tail=tail, size=size)

    def load(self, serialized: SerializedHistory) -> RingBuffer:
        """Rebuild a buffer from a SerializedHistory."""
        return self.deserialize(
            serialized.head,
            serialized.tail,
            serialized.size,
            serialized.data,
        )

    def encode_slots(self, slots: list[Result | None]) -> str:
        """Join physical slots into the data string."""
        fields = []
        for slot in slots:
            if slot is None:
                fields.append("")
                continue
            flag = PASSED_FLAG if slot.passed else FAILED_FLAG
            fields.append(f"{slot.build_number}{FIELD_SEPARATOR}{flag}")
        return SLOT_SEPARATOR.join(fields)

    def decode_slots(self, data: str) -> list[Result | None]:
        """Split the data string back into physical slots.

        Empty fields are kept in place, so ``,,`` is three empty slots.
        An empty string is a single empty slot.
        """
        if not isinstance(data, str):
            raise FormatError(f"Invalid data: {data!r}")

        slots: list[Result | None] = []
        for index, field in enumerate(data.split(SLOT_SEPARATOR)):
            if not field:
                slots.append(None)
                continue
            result = self._decode_field(field, index)
            logger.spew(
                "Decoded slot",
                index=index,
                build_number=result.build_number,
                passed=result.passed,
            )
            slots.append(result)
        return slots

    def _decode_field(self, field: str, index: int) -> Result:
        parts = field.split(FIELD_SEPARATOR)
        if len(parts) < 2:
            raise FormatError(
                f"Slot {index} is missing '{FIELD_SEPARATOR}': {field!r}"
            )

        build_number = _parse_int(parts[0], f"build number in slot {index}")
        flag = parts[1]

        if self.strict:
            if len(parts) > 2:
                raise FormatError(
                    f"Slot {index} has too many fields: {field!r}"
                )
            if flag not in (PASSED_FLAG, FAILED_FLAG):
                raise FormatError(f"Slot {index} has invalid flag: {flag!r}")

        return Result(build_number=build_number, passed=flag == PASSED_FLAG)

    @staticmethod
    def _check_counters(capacity: int, head: int, tail: int, size: int):
        if size < 0 or size > capacity:
            raise CapacityMismatch(
                f"size {size} does not fit capacity {capacity}"
            )
        for name, value in (("head", head), ("tail", tail)):
            if not 0 <= value < max(capacity, 1):
                raise CapacityMismatch(
                    f"{name} {value} is outside capacity {capacity}"
                )


_default_codec = BufferCodec()


def serialize(buffer: RingBuffer) -> SerializedHistory:
    """Encode a buffer with the permissive default codec."""
    return _default_codec.serialize(buffer)


def deserialize(
    head: int | str, tail: int | str, size: int | str, data: str
) -> RingBuffer:
    """Decode a buffer with the permissive default codec."""
    return _default_codec.deserialize(head, tail, size, data)
