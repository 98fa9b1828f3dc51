from __future__ import annotations

from typing import Any, Dict
from urllib.parse import quote

from readiness.adapters.base import ArgoAppState
from readiness.adapters.http import HttpClient
from readiness.common.utils import parse_iso_ts, utc_now


class ArgoCdAdapter:
    """Reads application sync/health state from the ArgoCD REST API."""

    def __init__(self, http: HttpClient):
        self._http = http

    def application(self, name: str) -> ArgoAppState:
        payload = self._http.get_json(f"/api/v1/applications/{quote(name, safe='')}")
        return self._normalize(name, payload if isinstance(payload, dict) else {})

    def _normalize(self, name: str, payload: Dict[str, Any]) -> ArgoAppState:
        status = payload.get("status") or {}
        sync = status.get("sync") or {}
        health = status.get("health") or {}
        return ArgoAppState(
            name=name,
            sync_status=str(sync.get("status") or "Unknown"),
            health_status=str(health.get("status") or "Unknown"),
            revision=str(sync.get("revision") or ""),
            retrieved_at=utc_now(),
            health_changed_at=parse_iso_ts(health.get("lastTransitionTime")),
            url=self._http.url(f"/applications/{quote(name, safe='')}"),
        )
