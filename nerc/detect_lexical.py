# nerc/detect_lexical.py

from __future__ import annotations

import regex as re
from typing import Dict, List, Sequence, Tuple

from nerc.models import CandidateSpan, Source


MONTHS = (
    r"(?:January|February|March|April|May|June|July|August|September|October|"
    r"November|December|Jan\.?|Feb\.?|Mar\.?|Apr\.?|Jun\.?|Jul\.?|Aug\.?|"
    r"Sep\.?|Sept\.?|Oct\.?|Nov\.?|Dec\.?)"
)
DATE_RE = re.compile(
    r"(?<!\S)(?:\d{1,2}[/-]\d{1,2}[/-]\d{2,4}"
    r"|\d{4}-\d{2}-\d{2}"
    rf"|{MONTHS} \d{{1,2}}(?: , \d{{4}}| \d{{4}})?"
    rf"|\d{{1,2}} {MONTHS}(?: \d{{4}})?"
    rf"|{MONTHS} \d{{4}})(?!\S)"
)
PERCENT_RE = re.compile(r"(?<!\S)\d+(?:[.,]\d+)?(?: ?%| percent)(?!\S)")
MONEY_RE = re.compile(
    r"(?<!\S)(?:[$€£] ?\d+(?:[.,]\d+)*(?: (?:million|billion|thousand))?"
    r"|\d+(?:[.,]\d+)* (?:dollars|euros|pounds))(?!\S)"
)
NUMBER_RE = re.compile(r"(?<!\S)\d+(?:[.,]\d+)*(?!\S)")

# Overlapping matches are settled by span fusion; specific rules score higher.
RULES: Tuple[Tuple[str, "re.Pattern", float], ...] = (
    ("DATE", DATE_RE, 0.95),
    ("MONEY", MONEY_RE, 0.95),
    ("PERCENT", PERCENT_RE, 0.95),
    ("NUMBER", NUMBER_RE, 0.9),
)

LEXICAL_TYPES = frozenset(ent for ent, _pattern, _conf in RULES)


def token_offsets(tokens: Sequence[str]) -> Tuple[str, Dict[int, int], Dict[int, int]]:
    """
    Join tokens with single spaces and index the character offsets at which
    each token starts and ends.
    """
    starts: Dict[int, int] = {}
    ends: Dict[int, int] = {}
    cursor = 0
    for i, tok in enumerate(tokens):
        starts[cursor] = i
        cursor += len(tok)
        ends[cursor] = i + 1
        cursor += 1
    return " ".join(tokens), starts, ends


class LexicalFinder:
    """
    Rule based recognizer for dates, amounts of money, percentages and
    plain numbers. Only matches that begin and end on token boundaries
    become candidates.
    """

    def __init__(self, rules=RULES):
        self.rules = rules

    def find_exact(self, tokens: Sequence[str]) -> List[CandidateSpan]:
        text, starts, ends = token_offsets(tokens)
        spans: List[CandidateSpan] = []

        for ent, pattern, conf in self.rules:
            for m in pattern.finditer(text):
                start = starts.get(m.start())
                end = ends.get(m.end())
                if start is None or end is None or start >= end:
                    continue
                spans.append(
                    CandidateSpan(
                        start=start,
                        end=end,
                        type=ent,
                        conf=conf,
                        source=Source.LEXICAL,
                    )
                )

        return spans

    def find(self, tokens: Sequence[str]) -> List[CandidateSpan]:
        return self.find_exact(tokens)
