"""Shared fixtures: a frozen clock, the release under test, in-memory adapters and a stub HTTP client."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import pytest

from readiness.adapters.base import AdapterSet
from readiness.engine.context import ExecutionContext
from readiness.engine.errors import NotFound
from readiness.engine.policy import Policy
from readiness.engine.types import ReleaseInfo

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


def _lookup(table: Dict[Any, Any], key: Any, source: str) -> Any:
    value = table.get(key)
    if value is None:
        raise NotFound(f"{key} not found", source_system=source)
    if isinstance(value, BaseException):
        raise value
    return value


class FakeArgoCd:
    def __init__(self) -> None:
        self.apps: Dict[str, Any] = {}
        self.calls: List[str] = []

    def application(self, name: str):
        self.calls.append(name)
        return _lookup(self.apps, name, "argocd")


class FakeJenkins:
    """``builds`` maps job name to a ``JenkinsBuild`` or an exception to raise."""

    def __init__(self) -> None:
        self.builds: Dict[str, Any] = {}
        self.calls: List[Tuple[str, Dict[str, str]]] = []

    def latest_build(self, job: str, parameters: Optional[Dict[str, str]] = None):
        self.calls.append((job, dict(parameters or {})))
        return _lookup(self.builds, job, "jenkins")


class FakeGitHub:
    def __init__(self) -> None:
        self.charts: Dict[str, Any] = {}
        self.pulls: Dict[Tuple[str, int], Any] = {}

    def chart_state(self, repo: str, chart_path: str, ref: str, base_ref: str):
        return _lookup(self.charts, chart_path, "github")

    def pull_request(self, repo: str, number: int):
        return _lookup(self.pulls, (repo, number), "github")


class FakeConfluence:
    """Pages are keyed by page id, or by title for title lookups."""

    def __init__(self) -> None:
        self.pages: Dict[str, Any] = {}

    def page(self, page_id: Optional[str] = None, space: Optional[str] = None, title: Optional[str] = None):
        return _lookup(self.pages, page_id or title, "confluence")


class StubHttp:
    """Stands in for ``HttpClient``: ``responses`` maps a request path to a payload or exception."""

    base_url = "https://tools.example.com"

    def __init__(self) -> None:
        self.responses: Dict[str, Any] = {}
        self.calls: List[Tuple[str, Optional[Dict[str, Any]]]] = []

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        self.calls.append((path, params))
        return _lookup(self.responses, path, "http")


@pytest.fixture
def http() -> StubHttp:
    return StubHttp()


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def release() -> ReleaseInfo:
    return ReleaseInfo(service="payments-api", version="1.4.2", commit="3f9c2e1a7b40d1", environment="staging")


@pytest.fixture
def argocd() -> FakeArgoCd:
    return FakeArgoCd()


@pytest.fixture
def jenkins() -> FakeJenkins:
    return FakeJenkins()


@pytest.fixture
def github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def confluence() -> FakeConfluence:
    return FakeConfluence()


@pytest.fixture
def adapters(argocd, jenkins, github, confluence) -> AdapterSet:
    return AdapterSet(argocd=argocd, jenkins=jenkins, github=github, confluence=confluence)


@pytest.fixture
def make_context(release, adapters, tmp_path):
    """Build an ``ExecutionContext`` whose policy covers the given check classes only.

    ``checks`` maps each check class to its raw policy entry.
    """

    def _make(checks: Dict[type, Dict[str, Any]], **overrides: Any) -> ExecutionContext:
        raw = {cls.check_id: entry for cls, entry in checks.items()}
        policy = Policy.from_mapping(raw, list(checks))
        return ExecutionContext(
            release=overrides.get("release", release),
            policy=policy,
            adapters=overrides.get("adapters", adapters),
            clock=overrides.get("clock", lambda: NOW),
            build_id=overrides.get("build_id", "ci-1"),
            base_dir=overrides.get("base_dir", tmp_path),
        )

    return _make
