from __future__ import annotations

import base64
import binascii
from typing import Optional

import yaml

from readiness.adapters.base import HelmChartState, PullRequestState
from readiness.adapters.http import HttpClient
from readiness.common.utils import parse_iso_ts
from readiness.engine.errors import AdapterError, NotFound


class GitHubAdapter:
    """Helm chart versions and pull request state from the GitHub REST API."""

    def __init__(self, http: HttpClient):
        self._http = http

    def _chart_version(self, repo: str, chart_path: str, ref: str) -> tuple:
        path = f"/repos/{repo}/contents/{chart_path.strip('/')}/Chart.yaml"
        payload = self._http.get_json(path, params={"ref": ref})
        try:
            text = base64.b64decode(payload.get("content", "")).decode("utf-8")
            chart = yaml.safe_load(text) or {}
        except (binascii.Error, UnicodeDecodeError, yaml.YAMLError, AttributeError) as exc:
            raise AdapterError(f"unreadable Chart.yaml at {ref}: {exc}", source_system="github") from exc
        version = str(chart.get("version", "")) if isinstance(chart, dict) else ""
        return version, str(payload.get("html_url", ""))

    def chart_state(self, repo: str, chart_path: str, ref: str, base_ref: str) -> HelmChartState:
        version, url = self._chart_version(repo, chart_path, ref)
        previous: Optional[str]
        try:
            previous, _ = self._chart_version(repo, chart_path, base_ref)
        except NotFound:
            previous = None  # new chart: nothing to bump from
        return HelmChartState(
            repo=repo,
            chart_path=chart_path,
            version=version,
            previous_version=previous,
            ref=ref,
            url=url,
        )

    def pull_request(self, repo: str, number: int) -> PullRequestState:
        payload = self._http.get_json(f"/repos/{repo}/pulls/{int(number)}")
        return PullRequestState(
            repo=repo,
            number=int(number),
            state=str(payload.get("state", "unknown")),
            merged=bool(payload.get("merged", False)),
            merged_at=parse_iso_ts(payload.get("merged_at")),
            url=str(payload.get("html_url", "")),
        )
