"""Recommendation listing, derivation, status and plan updates.
"""
# app/routers/recommendations.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from supplier_eval.app.core.errors import Forbidden
from supplier_eval.app.core.security import get_caller, get_caller_id, get_identity_resolver
from supplier_eval.app.schemas.recommendation import (
    DerivationOut,
    PlanUpdateIn,
    RecommendationGroupOut,
    RecommendationOut,
    StatusUpdateIn,
)
from supplier_eval.app.services.identity import CallerIdentity, IdentityResolver
from supplier_eval.app.services.lifecycle import set_status, update_plan
from supplier_eval.app.services.recommendations import derive_recommendations, list_recommendation_groups
from supplier_eval.db.session import get_db

router = APIRouter()


@router.get("/api/recommendations", response_model=List[RecommendationGroupOut])
def list_recommendations(caller: CallerIdentity = Depends(get_caller), db: Session = Depends(get_db)):
    """Recommendations grouped by evaluation; suppliers see only their vendor's."""
    return list_recommendation_groups(db, caller)


@router.put("/api/recommendations/{recommendation_id}", response_model=RecommendationOut)
def update_recommendation_status(
    recommendation_id: str,
    payload: StatusUpdateIn,
    caller_id: str = Depends(get_caller_id),
    resolver: IdentityResolver = Depends(get_identity_resolver),
    db: Session = Depends(get_db),
):
    """Move a recommendation through its lifecycle.

    Errors:
        400: Unknown status or a transition that is not allowed.
        403: Not the owning vendor, or a reopen attempted by a non-administrator.
        404: The recommendation was not found.
    """
    return set_status(db, resolver, caller_id, recommendation_id, payload.status)


@router.patch("/api/recommendations/{recommendation_id}", response_model=RecommendationOut)
def update_recommendation_plan(
    recommendation_id: str,
    payload: PlanUpdateIn,
    caller_id: str = Depends(get_caller_id),
    resolver: IdentityResolver = Depends(get_identity_resolver),
    db: Session = Depends(get_db),
):
    """Set the action plan and due date of an open recommendation.

    Errors:
        400: Empty body, or the recommendation is implemented or rejected.
        403: Not the owning vendor.
        404: The recommendation was not found.
    """
    return update_plan(db, resolver, caller_id, recommendation_id, payload.model_dump(exclude_unset=True))


@router.post("/api/assignments/{assignment_id}/recommendations", response_model=DerivationOut)
def derive_for_assignment(assignment_id: str, caller: CallerIdentity = Depends(get_caller), db: Session = Depends(get_db)):
    """Derive recommendations for one vendor assignment (idempotent)."""
    if not (caller.is_admin or caller.can("recommendations", "create")):
        raise Forbidden("Not allowed to derive recommendations")
    return DerivationOut.model_validate(derive_recommendations(db, assignment_id))
