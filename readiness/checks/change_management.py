"""Change-management check over an exported CM record.

No live CM API is called: the policy supplies the CM reference and the path
of an exported JSON/YAML payload. Missing or unparsable evidence is RED;
structurally invalid evidence is RED with "invalid evidence", never folded
into "missing".
"""
from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple

import yaml
from pydantic import ValidationError

from readiness.checks.base import BaseCheck, Verdict, staleness
from readiness.contracts.change_record import ChangeRecordExport
from readiness.engine.context import ExecutionContext
from readiness.engine.errors import EvidenceValidationError
from readiness.engine.policy import CheckPolicy
from readiness.engine.types import Evidence, Status

logger = logging.getLogger(__name__)

COMPLETE_STATES = frozenset({"complete", "completed", "closed", "closed_complete", "done", "passed"})
FAILED_TASK_STATES = frozenset(
    {"failed", "cancelled", "canceled", "rejected", "closed_incomplete", "closed_skipped", "skipped"}
)
FAILED_CHANGE_STATES = frozenset({"cancelled", "canceled", "rejected", "failed", "closed_incomplete"})


class UnparsableEvidence(Exception):
    pass


def load_change_record(path: Path) -> ChangeRecordExport:
    """Read and validate one exported CM record.

    Raises ``OSError`` when unreadable, ``UnparsableEvidence`` when the
    bytes are not JSON/YAML, ``EvidenceValidationError`` when the document
    does not match the export schema.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise UnparsableEvidence("not UTF-8 text") from exc
    try:
        if path.suffix.lower() in (".yml", ".yaml"):
            payload = yaml.safe_load(text)
        else:
            payload = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise UnparsableEvidence(str(exc).splitlines()[0]) from exc
    if not isinstance(payload, dict):
        raise EvidenceValidationError(f"expected an object, got {type(payload).__name__}")
    try:
        return ChangeRecordExport.model_validate(payload)
    except ValidationError as exc:
        fields = sorted({".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()})
        raise EvidenceValidationError(f"schema violations in {', '.join(fields)}") from exc


def reference_matches(reference: str, record: ChangeRecordExport) -> bool:
    """A reference may be the CM number itself, the record URL, or a URL containing the number."""
    ref = reference.strip()
    if ref == record.number or (record.url and ref == record.url):
        return True
    return re.search(rf"(?<![A-Za-z0-9]){re.escape(record.number)}(?![A-Za-z0-9])", ref) is not None


def _evidence(record: ChangeRecordExport, path: Path) -> Evidence:
    testing = [t.state for t in record.tasks if t.is_testing]
    return Evidence(
        type="change_record",
        source_system="cm",
        identifier=record.number,
        timestamp=record.exported_at,
        url=record.url,
        details={
            "state": record.state,
            "testing_task_states": testing,
            "approvals": [f"{a.approver}:{a.state}" for a in record.approvals],
        },
        raw_ref=str(path),
    )


class ChangeManagementCheck(BaseCheck):
    check_id = "change_management"
    name = "Change management"
    REQUIRED_PARAMS = ("evidence_path",)

    @classmethod
    def validate_policy(cls, policy: CheckPolicy) -> List[str]:
        raw = policy.param("min_approvals", 0)
        if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
            return ["min_approvals must be a non-negative integer"]
        return []

    def evaluate(self, context: ExecutionContext, policy: CheckPolicy) -> Verdict:
        reference = str(policy.param("cm_reference") or "").strip()
        if not reference:
            return Verdict(Status.RED, "no change record referenced", ("evidence missing: CM link not supplied",))

        path = context.resolve_path(str(policy.param("evidence_path")))
        try:
            record = load_change_record(path)
        except FileNotFoundError:
            return Verdict(Status.RED, f"{reference}: no exported evidence", (f"evidence missing: {path} not found",))
        except OSError as exc:
            return Verdict(Status.RED, f"{reference}: no exported evidence", (f"evidence missing: {exc.strerror or exc}",))
        except UnparsableEvidence as exc:
            return Verdict(Status.RED, f"{reference}: evidence unreadable", (f"unparsable evidence: {exc}",))
        except EvidenceValidationError as exc:
            logger.warning("change_management: invalid evidence in %s: %s", path, exc)
            return Verdict(Status.RED, f"{reference}: evidence rejected", (f"invalid evidence: {exc}",))

        evidence = (_evidence(record, path),)

        if not reference_matches(reference, record):
            return Verdict(
                Status.RED,
                f"{reference}: export is for {record.number}",
                (f"CM reference mismatch: expected {reference}, export has {record.number}",),
                evidence,
            )
        if record.state in FAILED_CHANGE_STATES:
            return Verdict(
                Status.RED,
                f"{record.number} is {record.state}",
                (f"change record state is {record.state}",),
                evidence,
            )
        rejected = [a.approver for a in record.approvals if a.state == "rejected"]
        if rejected:
            return Verdict(
                Status.RED,
                f"{record.number} rejected",
                (f"approval rejected by {', '.join(rejected)}",),
                evidence,
            )

        testing_status, testing_reason = self._testing_status(record)
        if testing_status is Status.RED:
            return Verdict(Status.RED, f"{record.number} testing not satisfied", (testing_reason or "",), evidence)

        yellow: List[str] = []
        if testing_reason:
            yellow.append(testing_reason)
        min_approvals = int(policy.param("min_approvals", 0))
        approved = sum(1 for a in record.approvals if a.state == "approved")
        if approved < min_approvals:
            yellow.append(f"awaiting approvals: {approved}/{min_approvals}")
        stale = staleness(record.exported_at, policy.freshness_threshold, context.now())
        if stale:
            yellow.append(stale)

        if yellow:
            return Verdict(Status.YELLOW, f"{record.number} not yet complete", tuple(yellow), evidence)
        return Verdict(Status.GREEN, f"{record.number} testing task complete", (), evidence)

    @staticmethod
    def _testing_status(record: ChangeRecordExport) -> Tuple[Status, Optional[str]]:
        tasks = [t for t in record.tasks if t.is_testing]
        if not tasks:
            return Status.RED, "no testing task on change record"
        failed = [t for t in tasks if t.state in FAILED_TASK_STATES]
        if failed:
            names = ", ".join(t.name for t in failed)
            return Status.RED, f"testing task {names} in state {', '.join(t.state for t in failed)}"
        # Any other state of an existing task counts as pending.
        pending = [t.name for t in tasks if t.state not in COMPLETE_STATES]
        if pending:
            return Status.YELLOW, f"testing task {', '.join(pending)} pending"
        return Status.GREEN, None
