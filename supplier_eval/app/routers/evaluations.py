"""Scoring and answering endpoints for evaluations.
"""
# app/routers/evaluations.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from supplier_eval.app.core.errors import Forbidden
from supplier_eval.app.core.security import get_caller
from supplier_eval.app.schemas.compliance import VendorComplianceOut
from supplier_eval.app.schemas.recommendation import DerivationOut
from supplier_eval.app.schemas.response import SubmitResponsesIn, SubmitResponsesOut
from supplier_eval.app.services.compliance import compute_compliance
from supplier_eval.app.services.identity import CallerIdentity
from supplier_eval.app.services.responses import submit_responses
from supplier_eval.db.session import get_db

router = APIRouter()


@router.get("/api/evaluations/{evaluation_id}/compliance", response_model=List[VendorComplianceOut])
def get_compliance(evaluation_id: str, caller: CallerIdentity = Depends(get_caller), db: Session = Depends(get_db)):
    """Weighted compliance per answering vendor.

    Administrators and holders of `evaluations:read` see every vendor,
    suppliers only their own.

    Errors:
        403: Neither of the above.
        404: The evaluation was not found.
    """
    if not (caller.is_admin or caller.can("evaluations", "read") or caller.is_supplier):
        raise Forbidden("Not allowed to view compliance")

    scores = compute_compliance(db, evaluation_id)
    if caller.is_admin or caller.can("evaluations", "read"):
        return scores
    return [s for s in scores if s.vendor_id == caller.vendor_id]


@router.post("/api/evaluations/{evaluation_id}/responses", response_model=SubmitResponsesOut)
def save_responses(evaluation_id: str, payload: SubmitResponsesIn,
                   caller: CallerIdentity = Depends(get_caller), db: Session = Depends(get_db)):
    """Save the caller's vendor answers; `final=true` completes the assignment.

    Errors:
        400: A question outside the evaluation, or an empty answer.
        403: The caller is not a supplier assigned to the evaluation.
        404: The evaluation was not found.
    """
    result = submit_responses(db, caller, evaluation_id, payload.responses, final=payload.final)
    return SubmitResponsesOut(
        assignment_id=result.assignment_id,
        saved=result.saved,
        final=result.final,
        retracted=result.retracted,
        derived=DerivationOut.model_validate(result.derived) if result.derived is not None else None,
    )
