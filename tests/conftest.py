# tests/conftest.py

from typing import List, Sequence

import pytest
import spacy

from nerc.detect_dict import Dictionaries
from nerc.models import CandidateSpan, Source


class FixedFinder:
    """Returns the same candidates for every sentence."""

    def __init__(self, spans: List[CandidateSpan]):
        self.spans = spans
        self.calls = 0

    def find(self, tokens: Sequence[str]) -> List[CandidateSpan]:
        self.calls += 1
        return list(self.spans)

    def find_exact(self, tokens: Sequence[str]) -> List[CandidateSpan]:
        return self.find(tokens)


def cand(start, end, ent, conf=0.5, source=Source.STATISTICAL):
    return CandidateSpan(start=start, end=end, type=ent, conf=conf, source=source)


@pytest.fixture
def dictionaries() -> Dictionaries:
    d = Dictionaries()
    d.add("Acme", "ORGANIZATION")
    d.add("New York", "LOCATION")
    d.add("New York City", "GPE")
    return d


@pytest.fixture
def ruler_nlp():
    """A blank English pipeline whose only component is an entity ruler."""
    nlp = spacy.blank("en")
    ruler = nlp.add_pipe("entity_ruler")
    ruler.add_patterns(
        [
            {"label": "PERSON", "pattern": [{"ORTH": "John"}, {"ORTH": "Smith"}]},
            {"label": "ORG", "pattern": "Acme"},
            {"label": "GPE", "pattern": [{"ORTH": "New"}, {"ORTH": "York"}]},
            {"label": "CARDINAL", "pattern": "three"},
        ]
    )
    return nlp
