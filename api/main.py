import os
import logging
import logging.config
from dataclasses import replace
from functools import lru_cache

import yaml
from fastapi import Depends, FastAPI, HTTPException

from api.schemas import AnnotateRequest, AnnotateResponse, EntitySchema
from nerc.document import Document
from nerc.errors import ConfigurationError
from nerc.mode import AnnotateConfig, load_config
from nerc.pipeline import annotate_document, build_annotator


def setup_logging():
    cfg_path = os.path.join("configs", "logging.yaml")
    if os.path.exists(cfg_path):
        try:
            with open(cfg_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
            os.makedirs("logs", exist_ok=True)
            logging.config.dictConfig(config)
        except Exception as e:
            print(f"[logging] Failed to load logging.yaml: {e}")
            logging.basicConfig(level=logging.INFO)
    else:
        logging.basicConfig(level=logging.INFO)


setup_logging()
logger = logging.getLogger("api")

app = FastAPI(
    title="NERC",
    version="0.1.0",
    description="Named entity tagging from spaCy, dictionaries and lexical rules.",
)


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@lru_cache(maxsize=1)
def get_server_config() -> AnnotateConfig:
    """Server-side settings; the dictionary path is never taken from a request."""
    path = os.environ.get("NERC_CONFIG", os.path.join("configs", "annotate.yaml"))
    if os.path.exists(path):
        return load_config(path)
    logger.warning("No config at %s, using defaults", path)
    return AnnotateConfig()


@app.post("/annotate", response_model=AnnotateResponse)
def annotate(
    req: AnnotateRequest,
    server_config: AnnotateConfig = Depends(get_server_config),
) -> AnnotateResponse:
    logger.info("Received /annotate request with %d sentences", len(req.sentences))
    overrides = {
        k: v
        for k, v in (
            ("dict_option", req.dict_option),
            ("rule_based_option", req.rule_based_option),
            ("statistical", req.statistical),
            ("output", req.output),
        )
        if v is not None
    }
    config = replace(server_config, **overrides)
    document = Document.from_tokens(req.sentences)
    try:
        annotator = build_annotator(config)
        rendered, report, type_errors = annotate_document(document, annotator, config.output)
    except ConfigurationError as e:
        logger.warning("Rejected /annotate request: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    entities = [EntitySchema(**e) for e in document.to_dict()["entities"]]
    return AnnotateResponse(
        entities=entities,
        conll=rendered if isinstance(rendered, str) else None,
        skipped_sentences=[e.sentence_index for e in report.skipped],
        errors=[str(e) for e in report.skipped + type_errors],
    )
