from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Tuple

from readiness.engine.status_algebra import BLOCKING, NON_BLOCKING, classify, combine
from readiness.engine.types import CheckResult, ReleaseInfo, Status


@dataclass(frozen=True)
class ReadinessReport:
    """Immutable outcome of one readiness run.

    ``overall_status``, ``summary``, ``blocking`` and ``non_blocking`` are
    recomputed from ``checks`` and ``required`` on every access; there is no
    stored verdict to drift out of sync.
    """

    release: ReleaseInfo
    checks: Tuple[CheckResult, ...]
    required: Mapping[str, bool]
    generated_at: datetime
    build_id: str = ""
    incomplete: bool = False
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "checks", tuple(self.checks))
        object.__setattr__(self, "required", MappingProxyType(dict(self.required)))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))
        ids = [c.id for c in self.checks]
        if len(ids) != len(set(ids)):
            raise ValueError(f"duplicate check ids in report: {ids}")
        missing = [cid for cid in ids if cid not in self.required]
        if missing:
            raise ValueError(f"no required flag for checks: {missing}")

    @property
    def overall_status(self) -> Status:
        return combine(
            [c.status for c in self.checks],
            [self.required[c.id] for c in self.checks],
        )

    @property
    def summary(self) -> Dict[str, int]:
        counts = {s.value: 0 for s in (Status.RED, Status.YELLOW, Status.GREEN)}
        for check in self.checks:
            counts[check.status.value] += 1
        counts["total"] = len(self.checks)
        return counts

    def _split(self, kind: str) -> List[str]:
        return [c.id for c in self.checks if classify(c.status, self.required[c.id]) == kind]

    @property
    def blocking(self) -> List[str]:
        return self._split(BLOCKING)

    @property
    def non_blocking(self) -> List[str]:
        return self._split(NON_BLOCKING)

    def check(self, check_id: str) -> CheckResult:
        for result in self.checks:
            if result.id == check_id:
                return result
        raise KeyError(check_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "release": self.release.to_dict(),
            "overall_status": self.overall_status.value,
            "checks": [dict(c.to_dict(), required=self.required[c.id]) for c in self.checks],
            "summary": self.summary,
            "blocking": self.blocking,
            "non_blocking": self.non_blocking,
            "generated_at": self.generated_at.isoformat(),
            "build_id": self.build_id,
            "incomplete": self.incomplete,
            "metadata": dict(self.metadata),
        }
