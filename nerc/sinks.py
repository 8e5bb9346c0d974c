# nerc/sinks.py

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, List, Sequence, Tuple

from nerc.detect_lexical import LEXICAL_TYPES
from nerc.document import Document
from nerc.errors import UnknownTypeError
from nerc.models import Name, Token

logger = logging.getLogger(__name__)


class EntitySink(ABC):
    """Receives the names found in each sentence, in sentence order."""

    @abstractmethod
    def write(self, sentence_index: int, tokens: Sequence[Token], names: Sequence[Name]) -> None:
        ...

    @abstractmethod
    def getvalue(self):
        ...


class DocumentSink(EntitySink):
    """Appends every name to the document's entity layer."""

    def __init__(self, document: Document):
        self.document = document

    def write(self, sentence_index: int, tokens: Sequence[Token], names: Sequence[Name]) -> None:
        for name in sorted(names, key=lambda n: n.start):
            terms = self.document.get_terms_for_token_ids(name.token_ids)
            self.document.new_entity([terms], name.type)

    def getvalue(self) -> Document:
        return self.document


class Dialect(str, Enum):
    CONLL02 = "conll02"
    CONLL03 = "conll03"


BEGIN = "B-"
IN = "I-"
OUT = "O"


def to_conll_type(ne_type: str) -> str:
    """
    PERSON -> PER, ORGANIZATION -> ORG, LOCATION -> LOC, GPE -> GPE, MISC -> MISC.
    Lexical types (DATE, PERCENT, ...) have no CoNLL type.
    """
    if ne_type in LEXICAL_TYPES:
        raise UnknownTypeError(ne_type)
    if ne_type.startswith(("PER", "ORG", "LOC", "GPE")):
        return ne_type[:3]
    if ne_type.upper() == "MISC":
        return ne_type
    raise UnknownTypeError(ne_type)


def _line(token: Token, tag: str) -> str:
    return f"{token.form}\t{token.lemma}\t{token.morphofeat}\t{tag}"


class ConllSink(EntitySink):
    """
    Renders each sentence as tab-separated `form lemma morphofeat BIO` lines
    followed by a blank line.

    conll03: the first token of an entity is B- only when it directly follows
    another entity, otherwise I-.
    conll02: the first token of an entity is always B-.
    """

    def __init__(self, dialect: Dialect | str = Dialect.CONLL02):
        self.dialect = Dialect(dialect)
        self.errors: List[UnknownTypeError] = []
        self._parts: List[str] = []

    def write(self, sentence_index: int, tokens: Sequence[Token], names: Sequence[Name]) -> None:
        by_start: Dict[int, Name] = {n.start: n for n in names}
        lines: List[str] = []
        previous_is_entity = False

        i = 0
        while i < len(tokens):
            name = by_start.get(i)
            if name is None:
                lines.append(_line(tokens[i], OUT))
                previous_is_entity = False
                i += 1
                continue

            covered = tokens[name.start:name.end]
            try:
                ne_type = to_conll_type(name.type)
            except UnknownTypeError as e:
                logger.warning(
                    "Sentence %d: %s; tokens %d-%d written as O",
                    sentence_index, e, name.start, name.end,
                )
                self.errors.append(e)
                lines.extend(_line(t, OUT) for t in covered)
                previous_is_entity = False
                i = name.end
                continue

            for j, token in enumerate(covered):
                if j == 0 and (self.dialect == Dialect.CONLL02 or previous_is_entity):
                    prefix = BEGIN
                else:
                    prefix = IN
                lines.append(_line(token, prefix + ne_type))
            previous_is_entity = True
            i = name.end

        self._parts.append("".join(line + "\n" for line in lines) + "\n")

    def getvalue(self) -> str:
        return "".join(self._parts)


def document_to_conll(
    document: Document, dialect: Dialect | str = Dialect.CONLL02
) -> Tuple[str, List[UnknownTypeError]]:
    """Render the entities already stored in a document as CoNLL text."""
    position: Dict[str, Tuple[int, int]] = {}
    for s_ix, sentence in enumerate(document.get_sentences()):
        for pos, token in enumerate(sentence):
            position[token.id] = (s_ix, pos)

    per_sentence: Dict[int, List[Name]] = {}
    for entity in document.entities:
        for span in entity.references:
            if not span:
                continue
            s_ix, start = position[span[0].id]
            per_sentence.setdefault(s_ix, []).append(
                Name(
                    start=start,
                    end=start + len(span),
                    type=entity.type,
                    token_ids=tuple(t.id for t in span),
                )
            )

    sink = ConllSink(dialect)
    for s_ix, sentence in enumerate(document.get_sentences()):
        sink.write(s_ix, sentence, per_sentence.get(s_ix, []))
    return sink.getvalue(), sink.errors
