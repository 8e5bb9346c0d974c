# nerc/errors.py

from __future__ import annotations

from typing import Optional


class NercError(Exception):
    """Base class for annotation errors."""


class ConfigurationError(NercError):
    """Invalid or contradictory annotation options."""


class InvalidSpanError(NercError):
    def __init__(self, message: str, sentence_index: Optional[int] = None):
        super().__init__(message)
        self.sentence_index = sentence_index

    def __str__(self) -> str:
        msg = super().__str__()
        if self.sentence_index is None:
            return msg
        return f"sentence {self.sentence_index}: {msg}"


class UnknownTypeError(NercError):
    def __init__(self, ne_type: str):
        super().__init__(f"No CoNLL type for entity type {ne_type!r}")
        self.ne_type = ne_type


class OutOfRangeError(NercError):
    """A name could not be bound to the tokens of its sentence."""
