from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

from readiness.adapters.base import JenkinsBuild
from readiness.adapters.http import HttpClient
from readiness.common.utils import parse_iso_ts
from readiness.engine.errors import NotFound

BUILD_TREE = "builds[number,result,timestamp,url,building,actions[parameters[name,value]]]{0,%d}"


def job_path(job: str) -> str:
    """``team/payments-regression`` -> ``job/team/job/payments-regression``."""
    return "/".join(f"job/{part}" for part in job.strip("/").split("/") if part)


def _parameters(actions: Iterable[Any]) -> Dict[str, str]:
    params: Dict[str, str] = {}
    for action in actions or ():
        if not isinstance(action, dict):
            continue
        for param in action.get("parameters") or ():
            if isinstance(param, dict) and "name" in param:
                params[str(param["name"])] = str(param.get("value", ""))
    return params


class JenkinsAdapter:
    """Finds the newest build of a job whose parameters match the release."""

    def __init__(self, http: HttpClient, history: int = 50):
        self._http = http
        self._history = history

    def latest_build(self, job: str, parameters: Optional[Dict[str, str]] = None) -> JenkinsBuild:
        payload = self._http.get_json(f"/{job_path(job)}/api/json", params={"tree": BUILD_TREE % self._history})
        wanted = parameters or {}
        builds = payload.get("builds", []) if isinstance(payload, dict) else []
        for raw in sorted(builds, key=lambda b: int(b.get("number") or 0), reverse=True):
            params = _parameters(raw.get("actions"))
            if all(params.get(k) == v for k, v in wanted.items()):
                return JenkinsBuild(
                    job=job,
                    number=int(raw.get("number") or 0),
                    result=raw.get("result"),
                    timestamp=parse_iso_ts(raw.get("timestamp")),
                    url=str(raw.get("url", "")),
                    parameters=params,
                    building=bool(raw.get("building", False)),
                )
        raise NotFound(f"no build of {job} matches {wanted}", source_system="jenkins")
