"""Evidence-to-decision core: value types, status algebra, policy, report.

The runner lives in ``readiness.engine.runner``; it is not re-exported here
because it depends on the check registry.
"""
from readiness.engine.errors import (
    AdapterError,
    AdapterTimeout,
    AuthFailure,
    CheckInternalError,
    ConfigError,
    EvidenceValidationError,
    NotFound,
    RateLimited,
    ReadinessError,
    ReportWriteError,
)
from readiness.engine.policy import CheckPolicy, Policy, SubCheckPolicy
from readiness.engine.report import ReadinessReport
from readiness.engine.status_algebra import classify, combine
from readiness.engine.types import CheckResult, Evidence, ReleaseInfo, Status, SubResult

__all__ = [
    "AdapterError",
    "AdapterTimeout",
    "AuthFailure",
    "CheckInternalError",
    "CheckPolicy",
    "CheckResult",
    "ConfigError",
    "Evidence",
    "EvidenceValidationError",
    "NotFound",
    "Policy",
    "RateLimited",
    "ReadinessError",
    "ReadinessReport",
    "ReleaseInfo",
    "ReportWriteError",
    "Status",
    "SubCheckPolicy",
    "SubResult",
    "classify",
    "combine",
]
