# api/schemas.py

from typing import List, Optional
from pydantic import BaseModel


class EntitySchema(BaseModel):
    id: str
    type: str
    token_ids: List[str]
    text: str


class AnnotateRequest(BaseModel):
    sentences: List[List[str]]
    # None keeps the server's configured value
    dict_option: Optional[str] = None  # "off" / "tag" / "post"
    rule_based_option: Optional[str] = None
    statistical: Optional[bool] = None
    output: Optional[str] = None  # "naf" / "conll02" / "conll03"


class AnnotateResponse(BaseModel):
    entities: List[EntitySchema]
    conll: Optional[str] = None
    skipped_sentences: List[int] = []
    errors: List[str] = []
