# nerc/document.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Sequence

from nerc.errors import OutOfRangeError
from nerc.models import Token


@dataclass
class Entity:
    id: str
    type: str
    references: List[List[Token]]

    def token_ids(self) -> List[str]:
        return [t.id for span in self.references for t in span]


@dataclass
class Document:
    """
    In-memory document: sentences of tokens plus an entity layer.

    Terms and word forms are the same objects here, so a term span is just
    the list of tokens it covers.
    """

    sentences: List[List[Token]] = field(default_factory=list)
    entities: List[Entity] = field(default_factory=list)

    def __post_init__(self):
        self._by_id: Dict[str, Token] = {
            t.id: t for sentence in self.sentences for t in sentence
        }

    @classmethod
    def from_tokens(cls, sentences: Iterable[Sequence[str]]) -> "Document":
        built: List[List[Token]] = []
        n = 0
        for s_ix, forms in enumerate(sentences):
            sentence = []
            for pos, form in enumerate(forms):
                n += 1
                sentence.append(
                    Token(id=f"w{n}", form=form, sentence_index=s_ix, position_in_sentence=pos)
                )
            built.append(sentence)
        return cls(sentences=built)

    @classmethod
    def from_text(cls, text: str, nlp) -> "Document":
        """Tokenize and sentence-split raw text with a spaCy pipeline."""
        doc = nlp(text)
        built: List[List[Token]] = []
        n = 0
        for s_ix, sent in enumerate(doc.sents):
            sentence = []
            for pos, tok in enumerate(t for t in sent if not t.is_space):
                n += 1
                sentence.append(
                    Token(
                        id=f"w{n}",
                        form=tok.text,
                        sentence_index=s_ix,
                        position_in_sentence=pos,
                        lemma=tok.lemma_ or "_",
                        morphofeat=tok.tag_ or "_",
                    )
                )
            if sentence:
                built.append(sentence)
        return cls(sentences=built)

    def get_sentences(self) -> List[List[Token]]:
        return self.sentences

    def get_terms_for_token_ids(self, ids: Sequence[str]) -> List[Token]:
        try:
            return [self._by_id[i] for i in ids]
        except KeyError as e:
            raise OutOfRangeError(f"Unknown token id {e.args[0]!r}") from e

    def new_entity(self, term_spans: List[List[Token]], ne_type: str) -> Entity:
        entity = Entity(id=f"e{len(self.entities) + 1}", type=ne_type, references=term_spans)
        self.entities.append(entity)
        return entity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sentences": [[t.form for t in s] for s in self.sentences],
            "entities": [
                {
                    "id": e.id,
                    "type": e.type,
                    "token_ids": e.token_ids(),
                    "text": " ".join(t.form for span in e.references for t in span),
                }
                for e in self.entities
            ],
        }
