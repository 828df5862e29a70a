# app/main.py
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from supplier_eval.app.core.config import settings
from supplier_eval.app.core.errors import DataIntegrity, ServiceError, Transient
from supplier_eval.app.core.logging import get_logs_writer_logger
from supplier_eval.app.routers import admin, auth, evaluations, metrics, recommendations
from supplier_eval.app.services.bootstrap import ensure_default_roles
from supplier_eval.db import Base
from supplier_eval.db.session import engine, session_scope

logger = get_logs_writer_logger(__name__)

app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)

app.include_router(auth.router)
app.include_router(evaluations.router)
app.include_router(recommendations.router)
app.include_router(metrics.router)
app.include_router(admin.router)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    detail = exc.detail
    if isinstance(exc, DataIntegrity):
        # already logged with context where it was raised
        detail = "Internal data error"
    return JSONResponse(status_code=exc.status_code, content={"detail": detail, "reason": exc.reason})


@app.exception_handler(OperationalError)
async def storage_error_handler(request: Request, exc: OperationalError):
    logger.warning("Storage error on %s: %s", request.url.path, exc)
    return await service_error_handler(request, Transient("Storage unavailable"))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"detail": jsonable_encoder(exc.errors()), "reason": "invalid_request"},
    )


@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)
    with session_scope() as db:
        ensure_default_roles(db)


@app.get("/health")
def health():
    return {"status": "ok"}
