# app/routers/admin.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from supplier_eval.app.core.security import require_admin
from supplier_eval.app.schemas.recommendation import MigrationOut
from supplier_eval.app.services.identity import CallerIdentity
from supplier_eval.app.services.recommendations import migrate_legacy_recommendation_text
from supplier_eval.db.session import get_db

router = APIRouter()


# Copy legacy options.recommendation_text into the canonical column
@router.post("/api/admin/questions/migrate-recommendations", response_model=MigrationOut)
def migrate_recommendations(_: CallerIdentity = Depends(require_admin), db: Session = Depends(get_db)):
    result = migrate_legacy_recommendation_text(db)
    return MigrationOut(
        updated=len(result["updated"]),
        question_ids=result["updated"],
        errors=result["errors"] or None,
    )
