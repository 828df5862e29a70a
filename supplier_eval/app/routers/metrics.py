# app/routers/metrics.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from supplier_eval.app.core.security import require_admin
from supplier_eval.app.schemas.compliance import FleetMetricsOut
from supplier_eval.app.services.identity import CallerIdentity
from supplier_eval.app.services.metrics import compute_fleet_metrics
from supplier_eval.db.session import get_db

router = APIRouter()


@router.get("/api/metrics", response_model=FleetMetricsOut)
def get_metrics(_: CallerIdentity = Depends(require_admin), db: Session = Depends(get_db)):
    """Fleet-wide compliance distribution, ranking and completion rate (administrators only)."""
    return FleetMetricsOut.model_validate(compute_fleet_metrics(db))
