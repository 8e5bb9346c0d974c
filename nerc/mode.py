# nerc/mode.py

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

import yaml

from nerc.errors import ConfigurationError

DEFAULT_DICT_OPTION = "off"
DEFAULT_LEXER = "off"
DICT_OPTIONS = (DEFAULT_DICT_OPTION, "tag", "post")


class PrimaryMode(str, Enum):
    STATISTICAL = "statistical"
    DICTIONARY = "dictionary"
    STATISTICAL_POSTPROCESS = "statistical+post"
    LEXICAL = "lexical"


@dataclass(frozen=True)
class AnnotationMode:
    statistical: bool = True
    dictionary_tag: bool = False
    dictionary_postprocess: bool = False
    dictionary_features: bool = False
    lexical_augment: bool = False

    def __post_init__(self):
        if self.dictionary_tag and self.statistical:
            raise ConfigurationError(
                "Dictionary tagging and statistical tagging are mutually exclusive"
            )
        if self.dictionary_postprocess and not self.statistical:
            raise ConfigurationError(
                "Dictionary post-processing requires the statistical tagger"
            )
        if not (self.statistical or self.dictionary_tag or self.lexical_augment):
            raise ConfigurationError("No entity source is enabled")

    @property
    def primary(self) -> PrimaryMode:
        if self.dictionary_tag:
            return PrimaryMode.DICTIONARY
        if self.dictionary_postprocess:
            return PrimaryMode.STATISTICAL_POSTPROCESS
        if self.statistical:
            return PrimaryMode.STATISTICAL
        return PrimaryMode.LEXICAL

    @property
    def uses_dictionary(self) -> bool:
        return self.dictionary_tag or self.dictionary_postprocess or self.dictionary_features


def resolve_mode(
    dict_path: str | None,
    dict_option: str = DEFAULT_DICT_OPTION,
    rule_based_option: str = DEFAULT_LEXER,
    statistical: bool = True,
) -> AnnotationMode:
    """
    Work out which sources run for every sentence.

    First match wins:
      - dictionary + "tag"  -> dictionary only
      - dictionary + "post" -> statistical, post-processed by the dictionary
      - dictionary + "off"  -> statistical with dictionary features
      - no dictionary       -> statistical only
    Lexical augmentation is independent of the primary mode.
    """
    option = (dict_option or DEFAULT_DICT_OPTION).lower()
    if option not in DICT_OPTIONS:
        raise ConfigurationError(
            f"Unknown dictionary option {dict_option!r}; expected one of {DICT_OPTIONS}"
        )
    if option != DEFAULT_DICT_OPTION and not dict_path:
        raise ConfigurationError(f"Dictionary option {option!r} needs a dictionary path")

    lexical = (rule_based_option or DEFAULT_LEXER).lower() != DEFAULT_LEXER

    if dict_path and option == "tag":
        return AnnotationMode(statistical=False, dictionary_tag=True, lexical_augment=lexical)

    if dict_path and option == "post":
        if not statistical:
            raise ConfigurationError(
                "Dictionary option 'post' needs the statistical tagger enabled"
            )
        return AnnotationMode(dictionary_postprocess=True, lexical_augment=lexical)

    return AnnotationMode(
        statistical=statistical,
        dictionary_features=bool(dict_path) and statistical,
        lexical_augment=lexical,
    )


@dataclass
class AnnotateConfig:
    dict_path: str | None = None
    dict_option: str = DEFAULT_DICT_OPTION
    rule_based_option: str = DEFAULT_LEXER
    statistical: bool = True
    model: str = "en_core_web_sm"
    output: str = "naf"
    workers: int = 1

    def mode(self) -> AnnotationMode:
        return resolve_mode(
            self.dict_path,
            self.dict_option,
            self.rule_based_option,
            self.statistical,
        )


def _option(value: Any, default: str) -> str:
    # YAML reads a bare `off` as False
    if value is None or value is False:
        return default
    return str(value)


def load_config(path: str) -> AnnotateConfig:
    with open(path, "r", encoding="utf-8") as f:
        cfg: Dict[str, Any] = yaml.safe_load(f) or {}

    dict_cfg = cfg.get("dictionary", {}) or {}
    lex_cfg = cfg.get("lexical", {}) or {}
    stat_cfg = cfg.get("statistical", {}) or {}
    out_cfg = cfg.get("output", {}) or {}

    return AnnotateConfig(
        dict_path=dict_cfg.get("path"),
        dict_option=_option(dict_cfg.get("option"), DEFAULT_DICT_OPTION),
        rule_based_option=_option(lex_cfg.get("option"), DEFAULT_LEXER),
        statistical=bool(stat_cfg.get("enabled", True)),
        model=stat_cfg.get("model", "en_core_web_sm"),
        output=out_cfg.get("format", "naf"),
        workers=int(cfg.get("workers", 1)),
    )
