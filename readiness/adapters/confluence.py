from __future__ import annotations

from typing import Any, Dict, Optional

from readiness.adapters.base import ConfluencePage
from readiness.adapters.http import HttpClient
from readiness.common.utils import parse_iso_ts
from readiness.engine.errors import NotFound

EXPAND = "version,space,metadata.labels"


class ConfluenceAdapter:
    """Looks up a page by id, or by space + title."""

    def __init__(self, http: HttpClient):
        self._http = http

    def page(
        self,
        page_id: Optional[str] = None,
        space: Optional[str] = None,
        title: Optional[str] = None,
    ) -> ConfluencePage:
        if page_id:
            payload = self._http.get_json(f"/rest/api/content/{page_id}", params={"expand": EXPAND})
        elif title:
            params: Dict[str, Any] = {"title": title, "expand": EXPAND}
            if space:
                params["spaceKey"] = space
            listing = self._http.get_json("/rest/api/content", params=params)
            results = listing.get("results", []) if isinstance(listing, dict) else []
            if not results:
                raise NotFound(f"no page titled {title!r}", source_system="confluence")
            payload = results[0]
        else:
            raise NotFound("no page id or title given", source_system="confluence")
        return self._normalize(payload if isinstance(payload, dict) else {})

    def _normalize(self, payload: Dict[str, Any]) -> ConfluencePage:
        version = payload.get("version") or {}
        labels = ((payload.get("metadata") or {}).get("labels") or {}).get("results") or []
        webui = (payload.get("_links") or {}).get("webui", "")
        return ConfluencePage(
            page_id=str(payload.get("id", "")),
            title=str(payload.get("title", "")),
            space=str((payload.get("space") or {}).get("key", "")),
            updated_at=parse_iso_ts(version.get("when")),
            url=self._http.url(webui) if webui else "",
            labels=tuple(str(label.get("name", "")) for label in labels if isinstance(label, dict)),
        )
