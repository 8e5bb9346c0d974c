# tests/test_pipeline.py

import pytest
import spacy

from nerc.detect_dict import DictionaryFinder
from nerc.detect_lexical import LexicalFinder
from nerc.detect_stats import StatisticalFinder
from nerc.document import Document
from nerc.errors import ConfigurationError, OutOfRangeError
from nerc.mode import AnnotateConfig, resolve_mode
from nerc.models import Source
from nerc.pipeline import Annotator, annotate_document, annotate_text, build_annotator
from nerc.sinks import ConllSink, DocumentSink

from conftest import FixedFinder, cand


SENTENCE = ["John", "Smith", "works", "at", "Acme"]


def test_statistical_post_processed_by_dictionary(dictionaries):
    annotator = Annotator(
        resolve_mode("dicts/", "post"),
        statistical=FixedFinder([cand(0, 2, "PER", conf=0.9), cand(4, 5, "PERSON", conf=0.9)]),
        dictionary=DictionaryFinder(dictionaries),
    )
    doc = Document.from_tokens([SENTENCE])
    report = annotator.annotate(doc, DocumentSink(doc))

    assert report.sentences == 1 and report.entities == 2
    assert [(e.type, e.token_ids()) for e in doc.entities] == [
        ("PER", ["w1", "w2"]),
        ("ORGANIZATION", ["w5"]),
    ]


def test_conll_output_for_every_sentence():
    annotator = Annotator(
        resolve_mode(None), statistical=FixedFinder([cand(0, 1, "MISC", conf=0.9)])
    )
    doc = Document.from_tokens([["Lakers", "win"], ["Lakers", "lose", "again"]])
    sink = ConllSink("conll03")
    annotator.annotate(doc, sink)
    assert sink.getvalue() == (
        "Lakers\t_\t_\tI-MISC\nwin\t_\t_\tO\n\n"
        "Lakers\t_\t_\tI-MISC\nlose\t_\t_\tO\nagain\t_\t_\tO\n\n"
    )


def test_invalid_span_skips_only_that_sentence():
    # the span fits the three-token sentences but not the one-token one
    annotator = Annotator(resolve_mode(None), statistical=FixedFinder([cand(1, 3, "ORG")]))
    doc = Document.from_tokens([["a", "b", "c"], ["d"], ["e", "f", "g"]])
    sink = ConllSink("conll02")
    report = annotator.annotate(doc, sink)

    assert report.sentences == 2
    assert [e.sentence_index for e in report.skipped] == [1]
    assert "sentence 1" in str(report.skipped[0])
    assert sink.getvalue().count("\n\n") == 2
    assert "d\t" not in sink.getvalue()


def test_workers_keep_sentence_order():
    annotator = Annotator(
        resolve_mode(None, rule_based_option="numeric", statistical=False),
        lexical=LexicalFinder(),
    )
    sentences = [[f"s{i}", str(i)] for i in range(25)]
    serial = ConllSink("conll02")
    parallel = ConllSink("conll02")
    annotator.annotate(Document.from_tokens(sentences), serial)
    annotator.annotate(Document.from_tokens(sentences), parallel, workers=4)
    assert parallel.getvalue() == serial.getvalue()
    assert parallel.getvalue().startswith("s0\t_\t_\tO\n0\t_\t_\tO\n\n")
    assert len(parallel.errors) == 25


def test_missing_finder_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        Annotator(resolve_mode("dicts/", "tag"))
    with pytest.raises(ConfigurationError):
        Annotator(resolve_mode(None, rule_based_option="numeric"), statistical=FixedFinder([]))


def test_out_of_range_is_fatal(monkeypatch):
    annotator = Annotator(resolve_mode(None), statistical=FixedFinder([]))

    def broken(spans, token_ids):
        raise OutOfRangeError("boom")

    monkeypatch.setattr("nerc.pipeline.materialize", broken)
    doc = Document.from_tokens([["a"]])
    with pytest.raises(OutOfRangeError):
        annotator.annotate(doc, DocumentSink(doc))


def test_build_annotator_dictionary_tag_with_lexical(tmp_path):
    (tmp_path / "organization.txt").write_text("Acme\n", encoding="utf-8")
    config = AnnotateConfig(dict_path=str(tmp_path), dict_option="tag", rule_based_option="numeric")
    annotator = build_annotator(config)
    assert annotator.statistical is None
    assert isinstance(annotator.dictionary, DictionaryFinder)
    assert isinstance(annotator.lexical, LexicalFinder)

    doc = Document.from_tokens([["Acme", "paid", "$", "5"]])
    rendered, report, errors = annotate_document(doc, annotator, "naf")
    assert [(e["type"], e["text"]) for e in rendered["entities"]] == [
        ("ORGANIZATION", "Acme"),
        ("MONEY", "$ 5"),
    ]
    assert errors == []


def test_build_annotator_with_dictionary_features(tmp_path, ruler_nlp):
    (tmp_path / "location.txt").write_text("New York\n", encoding="utf-8")
    config = AnnotateConfig(dict_path=str(tmp_path))
    annotator = build_annotator(config, nlp=ruler_nlp)
    assert isinstance(annotator.statistical, StatisticalFinder)
    assert annotator.statistical.dictionaries is not None
    assert annotator.dictionary is None

    doc = Document.from_tokens([["John", "Smith", "left", "New", "York"]])
    rendered, _, errors = annotate_document(doc, annotator, "conll02")
    assert errors == []
    assert [line.split("\t")[3] for line in rendered.splitlines() if line] == [
        "B-PER", "I-PER", "O", "B-GPE", "I-GPE",
    ]


def test_unknown_output_format():
    annotator = Annotator(resolve_mode(None), statistical=FixedFinder([]))
    with pytest.raises(ConfigurationError):
        annotate_document(Document.from_tokens([["a"]]), annotator, "json")


def test_dictionary_span_scores_one(dictionaries):
    spans = DictionaryFinder(dictionaries).find(["Acme"])
    assert spans[0].conf == 1.0 and spans[0].source == Source.DICTIONARY


def test_lexical_percentage_reported_in_conll():
    annotator = Annotator(
        resolve_mode(None, rule_based_option="numeric", statistical=False),
        lexical=LexicalFinder(),
    )
    sink = ConllSink("conll02")
    annotator.annotate(Document.from_tokens([["grew", "12", "%"]]), sink)
    assert sink.getvalue() == "grew\t_\t_\tO\n12\t_\t_\tO\n%\t_\t_\tO\n\n"
    assert [e.ne_type for e in sink.errors] == ["PERCENT"]


def test_dictionaries_loaded_once_per_path(tmp_path):
    (tmp_path / "organization.txt").write_text("Acme\n", encoding="utf-8")
    config = AnnotateConfig(dict_path=str(tmp_path), dict_option="tag")
    first = build_annotator(config)
    second = build_annotator(config)
    assert first.dictionary.dictionaries is second.dictionary.dictionaries


@pytest.fixture
def text_nlp():
    """Blank English pipeline that splits sentences, tags one verb and finds names."""
    nlp = spacy.blank("en")
    nlp.add_pipe("sentencizer")
    attrs = nlp.add_pipe("attribute_ruler")
    attrs.add(patterns=[[{"ORTH": "works"}]], attrs={"TAG": "VBZ", "LEMMA": "work"})
    ruler = nlp.add_pipe("entity_ruler")
    ruler.add_patterns(
        [
            {"label": "PERSON", "pattern": [{"ORTH": "John"}, {"ORTH": "Smith"}]},
            {"label": "ORG", "pattern": "Acme"},
        ]
    )
    return nlp


TEXT = "John Smith works at Acme.  Acme hires."


def test_document_from_text(text_nlp):
    doc = Document.from_text(TEXT, text_nlp)
    sentences = doc.get_sentences()
    assert [[t.form for t in s] for s in sentences] == [
        ["John", "Smith", "works", "at", "Acme", "."],
        ["Acme", "hires", "."],
    ]
    ids = [t.id for s in sentences for t in s]
    assert ids == [f"w{i}" for i in range(1, 10)]
    assert [t.position_in_sentence for t in sentences[1]] == [0, 1, 2]
    works = sentences[0][2]
    assert (works.lemma, works.morphofeat) == ("work", "VBZ")
    assert (sentences[0][0].lemma, sentences[0][0].morphofeat) == ("_", "_")


def test_annotate_text_to_conll(text_nlp):
    rendered, report, errors = annotate_text(TEXT, AnnotateConfig(output="conll02"), nlp=text_nlp)
    assert errors == [] and report.sentences == 2 and report.entities == 3
    assert rendered == (
        "John\t_\t_\tB-PER\n"
        "Smith\t_\t_\tI-PER\n"
        "works\twork\tVBZ\tO\n"
        "at\t_\t_\tO\n"
        "Acme\t_\t_\tB-ORG\n"
        ".\t_\t_\tO\n"
        "\n"
        "Acme\t_\t_\tB-ORG\n"
        "hires\t_\t_\tO\n"
        ".\t_\t_\tO\n"
        "\n"
    )
