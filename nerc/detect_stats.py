# nerc/detect_stats.py

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import spacy
from spacy.tokens import Doc

from nerc.detect_dict import Dictionaries
from nerc.models import CandidateSpan, Source

# Loaded spaCy pipelines, keyed by model name
_MODELS: Dict[str, "spacy.language.Language"] = {}


def get_nlp(model: str = "en_core_web_sm") -> "spacy.language.Language":
    if model not in _MODELS:
        _MODELS[model] = spacy.load(model)
    return _MODELS[model]


# Map spaCy NER labels -> entity types written to the entity layer
LABEL_TO_TYPE = {
    "PERSON": "PERSON",
    "PER": "PERSON",
    "ORG": "ORGANIZATION",
    "GPE": "GPE",
    "LOC": "LOCATION",
    "FAC": "LOCATION",
    "NORP": "MISC",
    "EVENT": "MISC",
    "PRODUCT": "MISC",
    "WORK_OF_ART": "MISC",
    "LAW": "MISC",
    "LANGUAGE": "MISC",
    "MISC": "MISC",
}

BASE_CONF = 0.85
DICT_FEATURE_BOOST = 0.1


class StatisticalFinder:
    """
    Runs a spaCy pipeline over an already tokenized sentence.

    spaCy doesn't expose per-entity probabilities, so every entity gets the
    same base confidence. When dictionaries are given, entities whose tokens
    are a dictionary entry get a confidence boost.
    """

    def __init__(
        self,
        nlp: Optional["spacy.language.Language"] = None,
        model: str = "en_core_web_sm",
        dictionaries: Optional[Dictionaries] = None,
    ):
        self._nlp = nlp
        self.model = model
        self.dictionaries = dictionaries

    @property
    def nlp(self) -> "spacy.language.Language":
        if self._nlp is None:
            self._nlp = get_nlp(self.model)
        return self._nlp

    def _tag(self, tokens: Sequence[str]) -> Doc:
        nlp = self.nlp
        doc = Doc(nlp.vocab, words=list(tokens))
        for _name, proc in nlp.pipeline:
            doc = proc(doc)
        return doc

    def find(self, tokens: Sequence[str]) -> List[CandidateSpan]:
        if not tokens:
            return []
        doc = self._tag(tokens)

        spans: List[CandidateSpan] = []
        for ent in doc.ents:
            ne_type = LABEL_TO_TYPE.get(ent.label_)
            if ne_type is None:
                continue

            conf = BASE_CONF
            if self.dictionaries is not None and tokens[ent.start:ent.end] in self.dictionaries:
                conf = min(1.0, conf + DICT_FEATURE_BOOST)

            spans.append(
                CandidateSpan(
                    start=ent.start,
                    end=ent.end,
                    type=ne_type,
                    conf=conf,
                    source=Source.STATISTICAL,
                )
            )

        return spans
