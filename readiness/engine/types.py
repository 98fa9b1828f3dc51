"""Core value types for the readiness engine.

Everything here is immutable once constructed:

- ``Evidence`` is owned by exactly one ``CheckResult``.
- ``CheckResult`` is created once by a check (or by the runner on failure).
- ``SubResult`` is the per-part outcome a multi-part check hands to the
  aggregator.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple


class Status(str, Enum):
    GREEN = "GREEN"
    YELLOW = "YELLOW"
    RED = "RED"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    def __str__(self) -> str:
        return self.value


_SEVERITY = {Status.GREEN: 0, Status.YELLOW: 1, Status.RED: 2}


def _freeze_mapping(value: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(value or {}))


# ---------------------------------------------------------------------------
# Release identity
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ReleaseInfo:
    """Resolved identity of the release under evaluation."""

    service: str
    version: str
    commit: str = ""
    environment: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "service": self.service,
            "version": self.version,
            "commit": self.commit,
            "environment": self.environment,
        }


# ---------------------------------------------------------------------------
# Evidence
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Evidence:
    """One externally sourced fact cited to justify a status."""

    type: str                      # "argocd_application" | "jenkins_build" | ...
    source_system: str             # "argocd" | "jenkins" | "github" | "confluence" | "cm"
    identifier: str
    timestamp: Optional[datetime] = None
    url: str = ""
    details: Mapping[str, Any] = field(default_factory=dict)
    raw_ref: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "details", _freeze_mapping(self.details))

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.source_system, self.type, self.identifier)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "source_system": self.source_system,
            "identifier": self.identifier,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "url": self.url,
            "details": dict(self.details),
            "raw_ref": self.raw_ref,
        }


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SubResult:
    """Outcome of one named part of a multi-part check."""

    id: str
    status: Status
    reasons: Tuple[str, ...] = ()
    evidence: Tuple[Evidence, ...] = ()
    required: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "reasons", tuple(self.reasons))
        object.__setattr__(self, "evidence", tuple(self.evidence))
        if self.status is not Status.GREEN and not self.reasons:
            raise ValueError(f"sub-check {self.id!r} is {self.status} without a reason")


@dataclass(frozen=True)
class CheckResult:
    """The single, immutable verdict of one readiness check."""

    id: str
    name: str
    status: Status
    summary: str
    reasons: Tuple[str, ...]
    evidence: Tuple[Evidence, ...]
    started_at: datetime
    ended_at: datetime
    duration_ms: int
    sub_results: Tuple[SubResult, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "reasons", tuple(self.reasons))
        object.__setattr__(self, "evidence", tuple(self.evidence))
        object.__setattr__(self, "sub_results", tuple(self.sub_results))
        if not isinstance(self.status, Status):
            raise ValueError(f"check {self.id!r} has non-Status status {self.status!r}")
        if self.status is not Status.GREEN and not self.reasons:
            raise ValueError(f"check {self.id!r} is {self.status} without a reason")
        if self.status is Status.GREEN and not self.evidence:
            raise ValueError(f"check {self.id!r} is GREEN without evidence")
        if self.duration_ms < 0:
            raise ValueError(f"check {self.id!r} has negative duration")

    @classmethod
    def timed(
        cls,
        check_id: str,
        name: str,
        status: Status,
        summary: str,
        reasons: Iterable[str],
        evidence: Iterable[Evidence],
        started_at: datetime,
        ended_at: datetime,
        sub_results: Iterable[SubResult] = (),
    ) -> "CheckResult":
        """Build a result, deriving ``duration_ms`` from the two timestamps."""
        if ended_at < started_at:
            ended_at = started_at
        duration_ms = int((ended_at - started_at).total_seconds() * 1000)
        return cls(
            id=check_id,
            name=name,
            status=status,
            summary=summary,
            reasons=tuple(reasons),
            evidence=tuple(evidence),
            started_at=started_at,
            ended_at=ended_at,
            duration_ms=duration_ms,
            sub_results=tuple(sub_results),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "summary": self.summary,
            "reasons": list(self.reasons),
            "evidence": [ev.to_dict() for ev in self.evidence],
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat(),
            "duration_ms": self.duration_ms,
            "sub_checks": [
                {
                    "id": sub.id,
                    "status": sub.status.value,
                    "required": sub.required,
                    "reasons": list(sub.reasons),
                }
                for sub in self.sub_results
            ],
        }
