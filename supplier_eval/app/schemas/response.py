from pydantic import BaseModel, Field
from typing import List

from supplier_eval.app.schemas.recommendation import DerivationOut


class ResponseItemIn(BaseModel):
    question_id: str
    response_value: str | None = None  # Yes / No / N/A or free text
    notes: str | None = None


class SubmitResponsesIn(BaseModel):
    responses: List[ResponseItemIn] = Field(default_factory=list)
    final: bool = False


class SubmitResponsesOut(BaseModel):
    ok: bool = True
    assignment_id: str
    saved: int
    final: bool
    retracted: List[str] = Field(default_factory=list)
    derived: DerivationOut | None = None
