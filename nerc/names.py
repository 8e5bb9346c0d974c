# nerc/names.py

from __future__ import annotations

from typing import List, Sequence

from nerc.errors import InvalidSpanError, OutOfRangeError
from nerc.models import CandidateSpan, Name


def materialize(spans: Sequence[CandidateSpan], token_ids: Sequence[str]) -> List[Name]:
    """Bind each fused span to the ids of the tokens it covers."""
    names: List[Name] = []
    for span in spans:
        if span.end > len(token_ids):
            raise OutOfRangeError(
                f"Span [{span.start}, {span.end}) outside sentence of {len(token_ids)} tokens"
            )
        try:
            name = Name(
                start=span.start,
                end=span.end,
                type=span.type,
                token_ids=tuple(token_ids[span.start:span.end]),
            )
        except InvalidSpanError as e:
            raise OutOfRangeError(str(e)) from e
        names.append(name)
    return names
