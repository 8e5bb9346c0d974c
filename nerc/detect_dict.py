# nerc/detect_dict.py

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from nerc.errors import ConfigurationError
from nerc.models import CandidateSpan, Source

logger = logging.getLogger(__name__)


class Dictionaries:
    """
    Gazetteer of multi-token entries.

    `path` is a single file or a directory of *.txt files. Each line is
    either `entry<TAB>TYPE` or a bare `entry`, in which case the type is the
    upper-cased file name (person.txt -> PERSON).
    """

    def __init__(self, path: Optional[str] = None):
        self.entries: Dict[Tuple[str, ...], str] = {}
        self.max_len = 0
        if path:
            self.load(path)

    def load(self, path: str) -> None:
        p = Path(path)
        if p.is_dir():
            files = sorted(p.glob("*.txt"))
        elif p.is_file():
            files = [p]
        else:
            raise ConfigurationError(f"Dictionary path {path!r} does not exist")

        for f in files:
            default_type = f.stem.upper()
            with open(f, "r", encoding="utf-8") as fh:
                for raw in fh:
                    line = raw.strip()
                    if not line or line.startswith("#"):
                        continue
                    if "\t" in line:
                        entry, ne_type = line.rsplit("\t", 1)
                    else:
                        entry, ne_type = line, default_type
                    self.add(entry, ne_type.strip())

        logger.info("Loaded %d dictionary entries from %s", len(self.entries), path)

    def add(self, entry: str, ne_type: str) -> None:
        key = tuple(entry.split())
        if not key:
            return
        self.entries[key] = ne_type
        self.max_len = max(self.max_len, len(key))

    def lookup(self, tokens: Sequence[str]) -> Optional[str]:
        return self.entries.get(tuple(tokens))

    def __contains__(self, tokens) -> bool:
        return tuple(tokens) in self.entries

    def __len__(self) -> int:
        return len(self.entries)


@lru_cache(maxsize=8)
def load_dictionaries(path: str) -> Dictionaries:
    """Load a gazetteer once per path."""
    return Dictionaries(path)


class DictionaryFinder:
    """Exact, case-sensitive gazetteer matching over a token sequence."""

    def __init__(self, dictionaries: Dictionaries, conf: float = 1.0):
        self.dictionaries = dictionaries
        self.conf = conf

    def find_exact(self, tokens: Sequence[str]) -> List[CandidateSpan]:
        spans: List[CandidateSpan] = []
        n = len(tokens)
        for start in range(n):
            longest = min(self.dictionaries.max_len, n - start)
            for length in range(longest, 0, -1):
                ne_type = self.dictionaries.lookup(tokens[start:start + length])
                if ne_type is None:
                    continue
                spans.append(
                    CandidateSpan(
                        start=start,
                        end=start + length,
                        type=ne_type,
                        conf=self.conf,
                        source=Source.DICTIONARY,
                    )
                )
        return spans

    def find(self, tokens: Sequence[str]) -> List[CandidateSpan]:
        return self.find_exact(tokens)
