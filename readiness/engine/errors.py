"""Error taxonomy for the readiness engine.

Only ``ConfigError`` and ``ReportWriteError`` are fatal to a run. Adapter
and evidence failures are recovered inside the owning check and turned into
a stricter status; ``CheckInternalError`` is recorded by the runner.
"""
from __future__ import annotations


class ReadinessError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(ReadinessError):
    """Malformed or missing policy / context field. No check runs."""


class ReportWriteError(ReadinessError):
    """A report sink could not persist its output."""


class EvidenceValidationError(ReadinessError):
    """Evidence payload exists but is structurally invalid."""


class CheckInternalError(ReadinessError):
    """Unexpected failure inside a check's own logic."""

    def __init__(self, check_id: str, cause: BaseException):
        super().__init__(f"{check_id}: {type(cause).__name__}: {cause}")
        self.check_id = check_id
        self.cause = cause


# ---------------------------------------------------------------------------
# Adapter failures
# ---------------------------------------------------------------------------

class AdapterError(ReadinessError):
    """An adapter could not return a normalized record."""

    kind = "adapter_error"

    def __init__(self, message: str = "", source_system: str = ""):
        super().__init__(message or self.kind)
        self.source_system = source_system

    def describe(self) -> str:
        prefix = f"{self.source_system} " if self.source_system else ""
        return f"{prefix}{self.kind}: {self}"


class NotFound(AdapterError):
    kind = "not_found"


class AdapterTimeout(AdapterError):
    kind = "timeout"


class AuthFailure(AdapterError):
    kind = "auth_failure"


class RateLimited(AdapterError):
    kind = "rate_limited"
