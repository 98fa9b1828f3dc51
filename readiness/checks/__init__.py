"""Readiness checks and their ordered registry.

Adding a check means adding its class here; the runner evaluates checks in
this order and the report lists them in the same order.
"""
from readiness.checks.base import BaseCheck, MultiPartCheck, Verdict
from readiness.checks.certification import CertificationCheck
from readiness.checks.change_management import ChangeManagementCheck
from readiness.checks.deployment import DeploymentCheck
from readiness.checks.pre_release import PreReleaseCheck
from readiness.checks.regression import RegressionCheck

DEFAULT_REGISTRY = (
    DeploymentCheck,
    RegressionCheck,
    CertificationCheck,
    PreReleaseCheck,
    ChangeManagementCheck,
)

__all__ = [
    "BaseCheck",
    "CertificationCheck",
    "ChangeManagementCheck",
    "DEFAULT_REGISTRY",
    "DeploymentCheck",
    "MultiPartCheck",
    "PreReleaseCheck",
    "RegressionCheck",
    "Verdict",
]
