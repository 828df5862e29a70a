# tests/conftest.py
from __future__ import annotations

import os
import tempfile

# settings are read at import time
os.environ.setdefault("LOG_PATH", tempfile.mkdtemp(prefix="supplier-eval-logs-"))
os.environ.setdefault("SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from supplier_eval.app.core.config import settings
from supplier_eval.app.services.bootstrap import ensure_default_roles
from supplier_eval.app.services.tokens import issue_caller_token
from supplier_eval.db import Base
from supplier_eval.db.models import (
    AnswerValue,
    AssignmentStatus,
    Evaluation, EvaluationQuestion, EvaluationStatus,
    Question,
    Recommendation, RecommendationStatus,
    Response,
    User,
    Vendor,
    VendorAssignment,
)
from supplier_eval.db.session import get_db


class Factory:
    """Creates committed rows for tests."""

    def __init__(self, db, roles):
        self.db = db
        self.roles = roles

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def vendor(self, name="Acme"):
        return self._save(Vendor(name=name))

    def user(self, role=None, vendor=None, email=None, **kwargs):
        role_obj = self.roles.get(role) if role else None
        email = email or f"{role or 'user'}-{len(self.db.query(User).all())}@example.com"
        return self._save(User(
            email=email,
            role_id=role_obj.role_id if role_obj else None,
            vendor_id=vendor.vendor_id if vendor else None,
            **kwargs,
        ))

    def admin(self):
        return self.user(settings.ADMIN_ROLE_NAME)

    def evaluator(self):
        return self.user(settings.EVALUATOR_ROLE_NAME)

    def supplier(self, vendor):
        return self.user(settings.SUPPLIER_ROLE_NAME, vendor=vendor)

    def question(self, text="Question", weight=None, recommendation_text=None, options=None, category=None):
        return self._save(Question(
            question_text=text,
            weight=weight,
            recommendation_text=recommendation_text,
            options=options,
            category=category,
        ))

    def evaluation(self, title="Evaluation", questions=(), status=EvaluationStatus.in_progress):
        evaluation = Evaluation(title=title, status=status)
        for position, item in enumerate(questions):
            question, override = item if isinstance(item, tuple) else (item, None)
            evaluation.question_links.append(
                EvaluationQuestion(question_id=question.question_id, position=position, weight=override)
            )
        return self._save(evaluation)

    def assign(self, evaluation, vendor, status=AssignmentStatus.pending):
        return self._save(VendorAssignment(
            evaluation_id=evaluation.evaluation_id,
            vendor_id=vendor.vendor_id,
            status=status,
        ))

    def respond(self, assignment, question, answer=None, score=0.0, response_value=None):
        if isinstance(answer, str):
            answer = AnswerValue(answer)
        return self._save(Response(
            evaluation_id=assignment.evaluation_id,
            question_id=question.question_id,
            vendor_id=assignment.vendor_id,
            assignment_id=assignment.assignment_id,
            answer=answer,
            response_value=response_value if response_value is not None else (answer.value if answer else None),
            score=score,
        ))

    def recommendation(self, response, status=RecommendationStatus.pending, text="Fix it"):
        return self._save(Recommendation(
            response_id=response.response_id,
            question_id=response.question_id,
            recommendation_text=text,
            status=status,
        ))


def _auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {issue_caller_token(user.user_id)}"}


@pytest.fixture
def auth_headers():
    return _auth_headers


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture
def roles(db):
    return ensure_default_roles(db)


@pytest.fixture
def factory(db, roles):
    return Factory(db, roles)


@pytest.fixture
def client(session_factory):
    from supplier_eval.app.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def scenario(factory):
    """Two questions weighted 2 and 1; vendor answers Q1 "No" and Q2 "Yes"."""
    vendor = factory.vendor("Vendor V")
    q1 = factory.question("Do you have an ISO 9001 certificate?", weight=2,
                          recommendation_text="Obtain ISO 9001 certification", category="quality")
    q2 = factory.question("Do you run supplier audits?", weight=1,
                          recommendation_text="Schedule yearly audits")
    evaluation = factory.evaluation("Quality 2026", [q1, q2])
    assignment = factory.assign(evaluation, vendor, AssignmentStatus.completed)
    r1 = factory.respond(assignment, q1, "No", score=0)
    r2 = factory.respond(assignment, q2, "Yes", score=1)
    return {
        "vendor": vendor, "q1": q1, "q2": q2, "evaluation": evaluation,
        "assignment": assignment, "r1": r1, "r2": r2,
    }
