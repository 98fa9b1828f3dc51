"""YAML configuration loading.

A single file declares the release, adapter endpoints, runner settings and
the per-check policy. Every structural problem surfaces as ``ConfigError``
before any check runs. Secrets are never stored in the file: adapters name
the environment variables that hold their credentials.

Example::

    release: {service: payments-api, version: 1.4.2, commit: 3f9c2e1a}
    adapters:
      jenkins: {url: https://ci.example.com, user_env: JENKINS_USER, token_env: JENKINS_TOKEN}
    checks:
      regression: {required: true, freshness_threshold: 24h, params: {job: payments/regression}}
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from readiness.adapters import (
    AdapterSet,
    ArgoCdAdapter,
    ConfluenceAdapter,
    GitHubAdapter,
    HttpClient,
    JenkinsAdapter,
)
from readiness.checks import DEFAULT_REGISTRY
from readiness.common.utils import env_str, parse_duration, utc_now
from readiness.engine.context import ExecutionContext
from readiness.engine.errors import ConfigError
from readiness.engine.policy import Policy
from readiness.engine.types import ReleaseInfo

logger = logging.getLogger(__name__)

BUILD_ID_ENV_VARS = ("READINESS_BUILD_ID", "BUILD_ID")


def _as_text(v: Any) -> Any:
    # YAML reads ``version: 1.10`` as a float; keep what the author typed where possible.
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v


class ReleaseSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    service: str = Field(min_length=1)
    version: str = Field(min_length=1)
    commit: str = ""
    environment: str = ""

    @field_validator("service", "version", "commit", "environment", mode="before")
    @classmethod
    def _text(cls, v: Any) -> Any:
        return _as_text(v)


class AdapterSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    url: str = Field(min_length=1)
    token_env: str = ""
    user_env: str = ""
    verify_tls: bool = True
    timeout: timedelta = timedelta(seconds=30)

    @field_validator("timeout", mode="before")
    @classmethod
    def _timeout(cls, v: Any) -> timedelta:
        return parse_duration(v)


class AdaptersSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    argocd: Optional[AdapterSettings] = None
    jenkins: Optional[AdapterSettings] = None
    github: Optional[AdapterSettings] = None
    confluence: Optional[AdapterSettings] = None


class RunnerSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    max_workers: Optional[int] = Field(default=None, ge=1)
    grace_period: timedelta = timedelta(seconds=10)

    @field_validator("grace_period", mode="before")
    @classmethod
    def _grace(cls, v: Any) -> timedelta:
        return parse_duration(v)


class ReadinessConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    release: ReleaseSettings
    build_id: str = ""
    runner: RunnerSettings = Field(default_factory=RunnerSettings)
    adapters: AdaptersSettings = Field(default_factory=AdaptersSettings)
    checks: Dict[str, Any]

    @field_validator("build_id", mode="before")
    @classmethod
    def _build_id(cls, v: Any) -> Any:
        return _as_text(v) if v is not None else ""


@dataclass(frozen=True)
class LoadedConfig:
    path: Path
    settings: ReadinessConfig
    policy: Policy

    @property
    def base_dir(self) -> Path:
        return self.path.parent

    @property
    def release(self) -> ReleaseInfo:
        r = self.settings.release
        return ReleaseInfo(service=r.service, version=r.version, commit=r.commit, environment=r.environment)


def _format_errors(exc: ValidationError) -> str:
    lines = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        lines.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "\n  - ".join(lines)


def load_config(path: Path, registry: Sequence[Any] = DEFAULT_REGISTRY) -> LoadedConfig:
    """Read, validate and resolve a config file into settings plus an immutable ``Policy``."""
    path = Path(path).expanduser().resolve()
    try:
        with path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigError(f"cannot read config {path}: {exc.strerror or exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"config {path} is not valid YAML: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"config {path} must be a mapping at the top level")
    try:
        settings = ReadinessConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"invalid config {path}:\n  - {_format_errors(exc)}") from exc
    policy = Policy.from_mapping(settings.checks, registry)
    logger.info(
        "Loaded policy for %s %s: %s",
        settings.release.service,
        settings.release.version,
        ", ".join(f"{cid}({'required' if policy.is_required(cid) else 'optional'})" for cid in policy.check_ids),
    )
    return LoadedConfig(path=path, settings=settings, policy=policy)


def _http(name: str, settings: AdapterSettings) -> HttpClient:
    token = env_str(settings.token_env)
    if settings.token_env and not token:
        logger.warning("%s: environment variable %s is empty; calling without credentials", name, settings.token_env)
    return HttpClient(
        base_url=settings.url,
        source_system=name,
        token=token,
        user=env_str(settings.user_env),
        timeout_s=settings.timeout.total_seconds(),
        verify_tls=settings.verify_tls,
    )


def build_adapter_set(settings: AdaptersSettings) -> AdapterSet:
    """Construct the configured adapters; unconfigured ones stay ``None``."""
    return AdapterSet(
        argocd=ArgoCdAdapter(_http("argocd", settings.argocd)) if settings.argocd else None,
        jenkins=JenkinsAdapter(_http("jenkins", settings.jenkins)) if settings.jenkins else None,
        github=GitHubAdapter(_http("github", settings.github)) if settings.github else None,
        confluence=ConfluenceAdapter(_http("confluence", settings.confluence)) if settings.confluence else None,
    )


def resolve_build_id(cli_value: Optional[str], loaded: LoadedConfig) -> str:
    if cli_value:
        return cli_value
    if loaded.settings.build_id:
        return loaded.settings.build_id
    for name in BUILD_ID_ENV_VARS:
        value = os.getenv(name, "")
        if value:
            return value
    return ""


def build_context(
    loaded: LoadedConfig,
    adapters: AdapterSet,
    build_id: str = "",
    clock: Callable = utc_now,
) -> ExecutionContext:
    return ExecutionContext(
        release=loaded.release,
        policy=loaded.policy,
        adapters=adapters,
        clock=clock,
        build_id=build_id,
        base_dir=loaded.base_dir,
    )
