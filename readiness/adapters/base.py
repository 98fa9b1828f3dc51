"""Adapter contract consumed by the checks.

Adapters fetch and normalize remote data into the records below, or raise
one of ``NotFound | AdapterTimeout | AuthFailure | RateLimited``. Checks
never look at wire formats.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Mapping, Optional, Protocol


# ---------------------------------------------------------------------------
# Normalized records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ArgoAppState:
    name: str
    sync_status: str          # "Synced" | "OutOfSync" | "Unknown"
    health_status: str        # "Healthy" | "Progressing" | "Degraded" | "Suspended" | "Missing" | "Unknown"
    revision: str
    retrieved_at: datetime
    health_changed_at: Optional[datetime] = None
    url: str = ""


@dataclass(frozen=True)
class JenkinsBuild:
    job: str
    number: int
    result: Optional[str]     # None while the build is still running
    timestamp: Optional[datetime]  # None when Jenkins reports no start time
    url: str = ""
    parameters: Mapping[str, str] = field(default_factory=dict)
    building: bool = False


@dataclass(frozen=True)
class HelmChartState:
    repo: str
    chart_path: str
    version: str
    previous_version: Optional[str]
    ref: str
    url: str = ""


@dataclass(frozen=True)
class PullRequestState:
    repo: str
    number: int
    state: str                # "open" | "closed"
    merged: bool
    merged_at: Optional[datetime] = None
    url: str = ""


@dataclass(frozen=True)
class ConfluencePage:
    page_id: str
    title: str
    space: str
    updated_at: Optional[datetime]
    url: str = ""
    labels: tuple = ()


# ---------------------------------------------------------------------------
# Adapter protocols
# ---------------------------------------------------------------------------

class ArgoCdClient(Protocol):
    def application(self, name: str) -> ArgoAppState: ...


class JenkinsClient(Protocol):
    def latest_build(self, job: str, parameters: Optional[Dict[str, str]] = None) -> JenkinsBuild: ...


class GitHubClient(Protocol):
    def chart_state(self, repo: str, chart_path: str, ref: str, base_ref: str) -> HelmChartState: ...

    def pull_request(self, repo: str, number: int) -> PullRequestState: ...


class ConfluenceClient(Protocol):
    def page(
        self,
        page_id: Optional[str] = None,
        space: Optional[str] = None,
        title: Optional[str] = None,
    ) -> ConfluencePage: ...


@dataclass(frozen=True)
class AdapterSet:
    """Adapter handles for one run; any of them may be absent."""

    argocd: Optional[ArgoCdClient] = None
    jenkins: Optional[JenkinsClient] = None
    github: Optional[GitHubClient] = None
    confluence: Optional[ConfluenceClient] = None
