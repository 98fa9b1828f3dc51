"""Minimal JSON-over-HTTP client shared by the adapters.

One request per call: no retries, no caching. Failures are mapped onto the
adapter error taxonomy so checks never see ``requests`` exceptions.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from readiness.engine.errors import AdapterError, AdapterTimeout, AuthFailure, NotFound, RateLimited

logger = logging.getLogger(__name__)


class HttpClient:
    def __init__(
        self,
        base_url: str,
        source_system: str,
        token: str = "",
        user: str = "",
        timeout_s: float = 30.0,
        verify_tls: bool = True,
        session: Optional[requests.Session] = None,
    ):
        if not base_url:
            raise ValueError(f"{source_system}: base url is required")
        self.base_url = base_url.rstrip("/")
        self.source_system = source_system
        self._timeout_s = timeout_s
        self._session = session or requests.Session()
        self._session.verify = verify_tls
        self._session.headers.update({"Accept": "application/json"})
        if user and token:
            self._session.auth = (user, token)
        elif token:
            self._session.headers["Authorization"] = f"Bearer {token}"

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = self.url(path)
        try:
            resp = self._session.get(url, params=params, timeout=self._timeout_s)
        except requests.Timeout as exc:
            raise AdapterTimeout(f"GET {path} timed out", source_system=self.source_system) from exc
        except requests.RequestException as exc:
            raise AdapterError(f"GET {path} failed: {exc}", source_system=self.source_system) from exc

        status = resp.status_code
        if status == 404:
            raise NotFound(f"GET {path} returned 404", source_system=self.source_system)
        if status in (401, 403):
            raise AuthFailure(f"GET {path} returned {status}", source_system=self.source_system)
        if status == 429:
            raise RateLimited(f"GET {path} returned 429", source_system=self.source_system)
        if status >= 300:
            raise AdapterError(f"GET {path} returned {status} {resp.text[:160]}", source_system=self.source_system)
        try:
            return resp.json()
        except ValueError as exc:
            raise AdapterError(f"GET {path} returned non-JSON body", source_system=self.source_system) from exc
