"""Policy evaluator.

Resolves, once per run, which checks and sub-checks are required, their
freshness thresholds, adapter timeouts and check-specific parameters.
Anything malformed or missing raises ``ConfigError`` before a check runs;
``required`` is never assumed.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from readiness.common.utils import parse_duration
from readiness.engine.errors import ConfigError

DEFAULT_FRESHNESS = timedelta(hours=24)
DEFAULT_TIMEOUT = timedelta(seconds=30)


# ---------------------------------------------------------------------------
# Resolved, immutable policy
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SubCheckPolicy:
    id: str
    required: bool
    freshness_threshold: timedelta
    params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))


@dataclass(frozen=True)
class CheckPolicy:
    check_id: str
    required: bool
    freshness_threshold: timedelta
    timeout: timedelta
    params: Mapping[str, Any] = field(default_factory=dict)
    sub_checks: Tuple[SubCheckPolicy, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))
        object.__setattr__(self, "sub_checks", tuple(self.sub_checks))

    def param(self, name: str, default: Any = None) -> Any:
        return self.params.get(name, default)


class Policy:
    """Read-only view over the resolved ``check_id -> CheckPolicy`` mapping."""

    def __init__(self, checks: Mapping[str, CheckPolicy]):
        self._checks: Mapping[str, CheckPolicy] = MappingProxyType(dict(checks))

    def __contains__(self, check_id: object) -> bool:
        return check_id in self._checks

    @property
    def check_ids(self) -> Tuple[str, ...]:
        return tuple(self._checks)

    def check(self, check_id: str) -> CheckPolicy:
        try:
            return self._checks[check_id]
        except KeyError:
            raise ConfigError(f"no policy entry for check '{check_id}'") from None

    def is_required(self, check_id: str) -> bool:
        return self.check(check_id).required

    def freshness_threshold(self, check_id: str) -> timedelta:
        return self.check(check_id).freshness_threshold

    def timeout(self, check_id: str) -> timedelta:
        return self.check(check_id).timeout

    def params(self, check_id: str) -> Mapping[str, Any]:
        return self.check(check_id).params

    def sub_checks(self, check_id: str) -> Tuple[SubCheckPolicy, ...]:
        return self.check(check_id).sub_checks

    def required_flags(self, check_ids: Iterable[str]) -> Dict[str, bool]:
        return {check_id: self.is_required(check_id) for check_id in check_ids}

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], declarations: Sequence[Any]) -> "Policy":
        """Build a policy for the declared checks from a raw ``checks:`` mapping.

        ``declarations`` are the registered check classes; each exposes
        ``check_id``, ``REQUIRED_PARAMS``, ``SUB_CHECKS`` and
        ``validate_policy(check_policy) -> List[str]``.
        """
        if not isinstance(raw, Mapping):
            raise ConfigError("'checks' must be a mapping of check id to policy")
        known = {decl.check_id for decl in declarations}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ConfigError(f"policy names unknown checks: {', '.join(unknown)}")

        errors: List[str] = []
        resolved: Dict[str, CheckPolicy] = {}
        for decl in declarations:
            entry = raw.get(decl.check_id)
            if entry is None:
                errors.append(f"{decl.check_id}: missing policy entry")
                continue
            try:
                resolved[decl.check_id] = _resolve_check(decl, entry)
            except ConfigError as exc:
                errors.append(str(exc))
        if errors:
            raise ConfigError("invalid policy:\n  - " + "\n  - ".join(errors))
        return cls(resolved)


# ---------------------------------------------------------------------------
# Raw policy schema
# ---------------------------------------------------------------------------

def _duration(value: Any) -> Optional[timedelta]:
    if value is None:
        return None
    delta = parse_duration(value)
    if delta.total_seconds() <= 0:
        raise ValueError("duration must be positive")
    return delta


class _SubCheckEntry(BaseModel):
    model_config = ConfigDict(extra="allow")

    required: bool = True
    freshness_threshold: Optional[timedelta] = None

    @field_validator("freshness_threshold", mode="before")
    @classmethod
    def _parse_freshness(cls, v: Any) -> Optional[timedelta]:
        return _duration(v)


class _CheckEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    required: bool
    freshness_threshold: Optional[timedelta] = None
    timeout: Optional[timedelta] = None
    params: Dict[str, Any] = Field(default_factory=dict)
    sub_checks: Dict[str, _SubCheckEntry] = Field(default_factory=dict)

    @field_validator("freshness_threshold", "timeout", mode="before")
    @classmethod
    def _parse_durations(cls, v: Any) -> Optional[timedelta]:
        return _duration(v)

    @field_validator("required", mode="before")
    @classmethod
    def _strict_bool(cls, v: Any) -> Any:
        if not isinstance(v, bool):
            raise ValueError("must be true or false")
        return v


def _format_validation_error(check_id: str, exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{check_id}.{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


def _resolve_check(decl: Any, entry: Any) -> CheckPolicy:
    check_id = decl.check_id
    if not isinstance(entry, Mapping):
        raise ConfigError(f"{check_id}: policy entry must be a mapping")
    try:
        parsed = _CheckEntry.model_validate(dict(entry))
    except ValidationError as exc:
        raise ConfigError(_format_validation_error(check_id, exc)) from exc

    freshness = parsed.freshness_threshold or DEFAULT_FRESHNESS
    timeout = parsed.timeout or DEFAULT_TIMEOUT

    declared_subs: Tuple[str, ...] = tuple(getattr(decl, "SUB_CHECKS", ()))
    unknown_subs = [sub_id for sub_id in parsed.sub_checks if sub_id not in declared_subs]
    if unknown_subs:
        raise ConfigError(f"{check_id}: unknown sub-checks {', '.join(unknown_subs)}")

    # Policy order first, then any sub-check the file left out (required by default).
    order = list(parsed.sub_checks) + [s for s in declared_subs if s not in parsed.sub_checks]
    sub_policies = []
    for sub_id in order:
        sub_entry = parsed.sub_checks.get(sub_id) or _SubCheckEntry()
        extras = dict(sub_entry.model_extra or {})
        sub_policies.append(
            SubCheckPolicy(
                id=sub_id,
                required=sub_entry.required,
                freshness_threshold=sub_entry.freshness_threshold or freshness,
                params=extras,
            )
        )

    missing = [name for name in getattr(decl, "REQUIRED_PARAMS", ()) if parsed.params.get(name) in (None, "")]
    if missing:
        raise ConfigError(f"{check_id}: missing required params: {', '.join(missing)}")

    policy = CheckPolicy(
        check_id=check_id,
        required=parsed.required,
        freshness_threshold=freshness,
        timeout=timeout,
        params=parsed.params,
        sub_checks=tuple(sub_policies),
    )
    validate = getattr(decl, "validate_policy", None)
    problems = validate(policy) if validate is not None else []
    if problems:
        raise ConfigError(f"{check_id}: " + "; ".join(problems))
    return policy
