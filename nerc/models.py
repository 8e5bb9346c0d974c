# nerc/models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Protocol, Sequence, Tuple

from nerc.errors import InvalidSpanError


class Source(str, Enum):
    STATISTICAL = "statistical"
    DICTIONARY = "dictionary"
    LEXICAL = "lexical"


# Only consulted when two candidates carry the same score.
SOURCE_PRIORITY = {
    Source.STATISTICAL: 0,
    Source.LEXICAL: 1,
    Source.DICTIONARY: 2,
}


@dataclass(frozen=True)
class Token:
    id: str
    form: str
    sentence_index: int
    position_in_sentence: int
    lemma: str = "_"
    morphofeat: str = "_"


@dataclass(frozen=True)
class Span:
    start: int
    end: int

    def __post_init__(self):
        if self.start < 0 or self.start >= self.end:
            raise InvalidSpanError(f"Invalid span [{self.start}, {self.end})")

    def overlaps(self, other: "Span") -> bool:
        return not (self.end <= other.start or other.end <= self.start)

    def length(self) -> int:
        return self.end - self.start

    def same_range(self, other: "Span") -> bool:
        return self.start == other.start and self.end == other.end


@dataclass(frozen=True)
class CandidateSpan(Span):
    type: str = "MISC"
    conf: float = 0.0
    source: Source = Source.STATISTICAL

    @property
    def rank(self) -> Tuple[float, int]:
        return (self.conf, SOURCE_PRIORITY[self.source])


@dataclass(frozen=True)
class Name(Span):
    type: str = "MISC"
    token_ids: Tuple[str, ...] = ()


class SpanFinder(Protocol):
    def find(self, tokens: Sequence[str]) -> List[CandidateSpan]:
        ...
