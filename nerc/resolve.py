# nerc/resolve.py

from __future__ import annotations

from typing import List, Optional, Sequence

from nerc.errors import InvalidSpanError
from nerc.mode import AnnotationMode, PrimaryMode
from nerc.models import CandidateSpan


def validate_spans(spans: Sequence[CandidateSpan], sentence_length: int) -> None:
    for span in spans:
        if span.start < 0 or span.start >= span.end or span.end > sentence_length:
            raise InvalidSpanError(
                f"{span.source.value} span [{span.start}, {span.end}) does not fit "
                f"a sentence of {sentence_length} tokens"
            )


def post_process_duplicates(
    statistical: List[CandidateSpan], dictionary: List[CandidateSpan]
) -> List[CandidateSpan]:
    """
    Drop statistical spans with exactly the same range as a dictionary span,
    so the dictionary type wins for duplicates.
    """
    return [
        s for s in statistical
        if not any(s.same_range(d) for d in dictionary)
    ]


def drop_overlapping_spans(spans: List[CandidateSpan]) -> List[CandidateSpan]:
    """
    Greedily keep a conflict-free subset of spans:
    - higher rank (confidence, then source priority) first
    - then longer spans
    - then earlier spans
    The kept spans are returned in sentence order.
    """
    if not spans:
        return []

    ordered = sorted(spans, key=lambda s: (-s.rank[0], -s.rank[1], -s.length(), s.start))

    accepted: List[CandidateSpan] = []
    for span in ordered:
        if any(span.overlaps(kept) for kept in accepted):
            continue
        accepted.append(span)

    accepted.sort(key=lambda s: s.start)
    return accepted


def fuse_spans(
    mode: AnnotationMode,
    sentence_length: int,
    statistical: Optional[List[CandidateSpan]] = None,
    dictionary: Optional[List[CandidateSpan]] = None,
    lexical: Optional[List[CandidateSpan]] = None,
) -> List[CandidateSpan]:
    statistical = list(statistical or [])
    dictionary = list(dictionary or [])

    primary = mode.primary
    if primary == PrimaryMode.STATISTICAL:
        spans = statistical
    elif primary == PrimaryMode.STATISTICAL_POSTPROCESS:
        spans = post_process_duplicates(statistical, dictionary) + dictionary
    elif primary == PrimaryMode.DICTIONARY:
        spans = dictionary
    else:
        spans = []

    if mode.lexical_augment:
        spans = spans + list(lexical or [])

    validate_spans(spans, sentence_length)
    return drop_overlapping_spans(spans)
