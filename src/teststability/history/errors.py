"""Errors raised while decoding stored histories."""


class HistoryError(Exception):
    """Base class for history decoding errors."""


class FormatError(HistoryError, ValueError):
    """Serialized history text could not be parsed."""


class CapacityMismatch(HistoryError, ValueError):
    """Decoded counters do not fit the decoded slot array.

    Only raised by a strict codec; the default codec trusts the stored
    counters verbatim.
    """
