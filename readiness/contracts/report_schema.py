"""Public report contract consumed by reporters and dashboards.

Built from a ``ReadinessReport``; statuses are copied, never re-derived.
"""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from readiness.engine.report import ReadinessReport

SCHEMA_VERSION = "1.0"

StatusValue = Literal["RED", "YELLOW", "GREEN"]


class EvidenceDoc(BaseModel):
    type: str
    source_system: str
    identifier: str
    timestamp: Optional[str] = None
    url: str = ""
    details: Dict[str, Any] = Field(default_factory=dict)
    raw_ref: Optional[str] = None


class SubCheckDoc(BaseModel):
    id: str
    status: StatusValue
    required: bool
    reasons: List[str] = Field(default_factory=list)


class CheckDoc(BaseModel):
    id: str
    name: str
    status: StatusValue
    required: bool
    summary: str
    reasons: List[str] = Field(default_factory=list)
    evidence: List[EvidenceDoc] = Field(default_factory=list)
    sub_checks: List[SubCheckDoc] = Field(default_factory=list)
    started_at: str
    ended_at: str
    duration_ms: int = Field(ge=0)


class ReleaseDoc(BaseModel):
    service: str
    version: str
    commit: str = ""
    environment: str = ""


class SummaryDoc(BaseModel):
    RED: int = 0
    YELLOW: int = 0
    GREEN: int = 0
    total: int = 0


class ReportDocument(BaseModel):
    schema_version: str = Field(default=SCHEMA_VERSION)
    release: ReleaseDoc
    overall_status: StatusValue
    checks: List[CheckDoc]
    summary: SummaryDoc
    blocking: List[str] = Field(default_factory=list)
    non_blocking: List[str] = Field(default_factory=list)
    generated_at: str
    build_id: str = ""
    incomplete: bool = False
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_report(cls, report: ReadinessReport) -> "ReportDocument":
        return cls.model_validate(report.to_dict())
