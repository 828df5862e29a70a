"""Pydantic schemes for recommendations.
"""
# app/schemas/recommendation.py
from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from supplier_eval.db.models.recommendation import RecommendationStatus


class RecommendationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    recommendation_id: str
    response_id: str
    question_id: str
    recommendation_text: str
    priority: int
    status: RecommendationStatus
    action_plan: str | None = None
    due_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    completed_at: datetime | None = None


class RecommendationItemOut(RecommendationOut):
    """Recommendation with its question and answer, as listed to vendors."""
    question_text: str | None = None
    answer: str | None = None
    evaluation_id: str | None = None
    vendor_id: str | None = None


class RecommendationGroupOut(BaseModel):
    evaluation_id: str
    evaluation_title: str
    recommendations: List[RecommendationItemOut] = Field(default_factory=list)


class StatusUpdateIn(BaseModel):
    # checked against the lifecycle enum by the service, not here
    status: str = Field(..., min_length=1)


class PlanUpdateIn(BaseModel):
    """Only the fields sent are changed; null clears a field."""
    model_config = ConfigDict(extra="forbid")

    action_plan: str | None = Field(default=None, max_length=4000)
    due_date: datetime | None = None


class DerivationErrorOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    response_id: str
    reason: str
    detail: str = ""


class DerivationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    assignment_id: str
    recommendations: List[RecommendationOut] = Field(default_factory=list)
    created: List[str] = Field(default_factory=list)
    without_recommendation: List[str] = Field(default_factory=list)
    retracted: List[str] = Field(default_factory=list)
    errors: List[DerivationErrorOut] = Field(default_factory=list)


class MigrationOut(BaseModel):
    updated: int
    question_ids: List[str] = Field(default_factory=list)
    errors: List[dict] | None = None
