# nerc/pipeline.py

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from nerc.detect_dict import DictionaryFinder, load_dictionaries
from nerc.detect_lexical import LexicalFinder
from nerc.detect_stats import StatisticalFinder, get_nlp
from nerc.document import Document
from nerc.errors import ConfigurationError, InvalidSpanError, UnknownTypeError
from nerc.mode import AnnotateConfig, AnnotationMode
from nerc.models import Name, SpanFinder, Token
from nerc.names import materialize
from nerc.resolve import fuse_spans
from nerc.sinks import ConllSink, Dialect, DocumentSink, EntitySink

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("naf", Dialect.CONLL02.value, Dialect.CONLL03.value)


@dataclass
class AnnotationReport:
    sentences: int = 0
    entities: int = 0
    skipped: List[InvalidSpanError] = field(default_factory=list)


class Annotator:
    """
    Finds names in every sentence of a document with the sources selected by
    the annotation mode and hands them to a sink.
    """

    def __init__(
        self,
        mode: AnnotationMode,
        statistical: Optional[SpanFinder] = None,
        dictionary: Optional[SpanFinder] = None,
        lexical: Optional[SpanFinder] = None,
    ):
        if mode.statistical and statistical is None:
            raise ConfigurationError("Mode needs a statistical finder")
        if (mode.dictionary_tag or mode.dictionary_postprocess) and dictionary is None:
            raise ConfigurationError("Mode needs a dictionary finder")
        if mode.lexical_augment and lexical is None:
            raise ConfigurationError("Mode needs a lexical finder")

        self.mode = mode
        self.statistical = statistical
        self.dictionary = dictionary
        self.lexical = lexical

    def annotate_sentence(self, tokens: Sequence[Token]) -> List[Name]:
        forms = [t.form for t in tokens]
        mode = self.mode

        stat_spans = self.statistical.find(forms) if mode.statistical else None
        dict_spans = None
        if mode.dictionary_tag or mode.dictionary_postprocess:
            dict_spans = self.dictionary.find_exact(forms)
        lex_spans = self.lexical.find_exact(forms) if mode.lexical_augment else None

        fused = fuse_spans(mode, len(forms), stat_spans, dict_spans, lex_spans)
        return materialize(fused, [t.id for t in tokens])

    def _safe_annotate(self, index: int, tokens: Sequence[Token]) -> Union[List[Name], InvalidSpanError]:
        try:
            return self.annotate_sentence(tokens)
        except InvalidSpanError as e:
            e.sentence_index = index
            return e

    def annotate(self, document: Document, sink: EntitySink, workers: int = 1) -> AnnotationReport:
        """
        Annotate every sentence and write the names to `sink` in sentence order.

        A sentence with an invalid span from one of the sources is skipped and
        reported; everything written before it stays written.
        """
        sentences = document.get_sentences()
        report = AnnotationReport()

        if workers > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                results = pool.map(self._safe_annotate, range(len(sentences)), sentences)
                self._write_all(sentences, results, sink, report)
        else:
            results = (self._safe_annotate(i, s) for i, s in enumerate(sentences))
            self._write_all(sentences, results, sink, report)

        logger.info(
            "Annotated %d sentences, %d entities, %d skipped",
            report.sentences, report.entities, len(report.skipped),
        )
        return report

    def _write_all(self, sentences, results, sink: EntitySink, report: AnnotationReport) -> None:
        for index, (tokens, result) in enumerate(zip(sentences, results)):
            if isinstance(result, InvalidSpanError):
                logger.warning("Skipping sentence %d: %s", index, result)
                report.skipped.append(result)
                continue
            sink.write(index, tokens, result)
            report.sentences += 1
            report.entities += len(result)


def build_annotator(config: AnnotateConfig, nlp=None) -> Annotator:
    mode = config.mode()

    dictionaries = load_dictionaries(config.dict_path) if mode.uses_dictionary else None

    statistical = None
    if mode.statistical:
        statistical = StatisticalFinder(
            nlp=nlp,
            model=config.model,
            dictionaries=dictionaries if mode.dictionary_features else None,
        )
    dictionary = None
    if mode.dictionary_tag or mode.dictionary_postprocess:
        dictionary = DictionaryFinder(dictionaries)
    lexical = LexicalFinder() if mode.lexical_augment else None

    logger.info("Annotation mode: %s (lexical=%s)", mode.primary.value, mode.lexical_augment)
    return Annotator(mode, statistical=statistical, dictionary=dictionary, lexical=lexical)


def annotate_document(
    document: Document,
    annotator: Annotator,
    output: str = "naf",
    workers: int = 1,
) -> Tuple[Union[Dict[str, Any], str], AnnotationReport, List[UnknownTypeError]]:
    """
    Annotate a document and render it.

    output:
      - "naf": the document with its entity layer, as a dict
      - "conll02" / "conll03": BIO-tagged columns
    """
    if output not in OUTPUT_FORMATS:
        raise ConfigurationError(f"Unknown output format {output!r}; expected one of {OUTPUT_FORMATS}")

    if output == "naf":
        sink: EntitySink = DocumentSink(document)
        report = annotator.annotate(document, sink, workers=workers)
        return document.to_dict(), report, []

    conll = ConllSink(output)
    report = annotator.annotate(document, conll, workers=workers)
    return conll.getvalue(), report, conll.errors


def annotate_text(
    text: str,
    config: AnnotateConfig,
    nlp=None,
) -> Tuple[Union[Dict[str, Any], str], AnnotationReport, List[UnknownTypeError]]:
    """Tokenize raw text with spaCy, then annotate and render it per `config.output`."""
    nlp = nlp or get_nlp(config.model)
    document = Document.from_text(text, nlp)
    annotator = build_annotator(config, nlp=nlp)
    return annotate_document(document, annotator, config.output, config.workers)
