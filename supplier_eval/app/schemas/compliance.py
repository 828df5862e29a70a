"""Pydantic schemes for compliance scores and fleet metrics.
"""
# app/schemas/compliance.py
from pydantic import BaseModel, ConfigDict


class VendorComplianceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    vendor_id: str
    score_pct: int
    response_count: int


class VendorMetricsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str | None = None
    compliance: int | None = None
    evaluations: int
    completed_evaluations: int
    pending_evaluations: int


class FleetMetricsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    vendor_data: list[VendorMetricsOut]
    compliance_distribution: dict[str, int]
    top_performers: list[VendorMetricsOut]
    global_completion_rate: int
    evaluation_status_distribution: dict[str, int]
