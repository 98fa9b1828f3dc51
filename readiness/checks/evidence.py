"""Evidence builders and per-record judgements shared by several checks."""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Tuple

from readiness.adapters.base import ConfluencePage, JenkinsBuild, PullRequestState
from readiness.checks.base import staleness
from readiness.engine.types import Evidence, Status

SUCCESS = "SUCCESS"


def jenkins_evidence(build: JenkinsBuild) -> Evidence:
    return Evidence(
        type="jenkins_build",
        source_system="jenkins",
        identifier=f"{build.job}#{build.number}",
        timestamp=build.timestamp,
        url=build.url,
        details={
            "result": build.result,
            "building": build.building,
            "parameters": dict(build.parameters),
        },
    )


def confluence_evidence(page: ConfluencePage) -> Evidence:
    return Evidence(
        type="confluence_page",
        source_system="confluence",
        identifier=page.page_id or page.title,
        timestamp=page.updated_at,
        url=page.url,
        details={"title": page.title, "space": page.space, "labels": list(page.labels)},
    )


def pull_request_evidence(pr: PullRequestState) -> Evidence:
    return Evidence(
        type="github_pull_request",
        source_system="github",
        identifier=f"{pr.repo}#{pr.number}",
        timestamp=pr.merged_at,
        url=pr.url,
        details={"state": pr.state, "merged": pr.merged},
    )


def judge_build(build: JenkinsBuild, threshold: timedelta, now: datetime) -> Tuple[Status, Tuple[str, ...]]:
    """Correctness then freshness of one Jenkins build.

    Anything other than a finished SUCCESS is RED; a SUCCESS older than
    *threshold* is YELLOW.
    """
    label = f"{build.job}#{build.number}"
    if build.building or build.result is None:
        return Status.RED, (f"build {label} still running",)
    result = build.result.upper()
    if result != SUCCESS:
        return Status.RED, (f"build {label} result {result}",)
    stale = staleness(build.timestamp, threshold, now)
    if stale:
        return Status.YELLOW, (f"build {label}: {stale}",)
    return Status.GREEN, ()


def judge_page(page: ConfluencePage, threshold: timedelta, now: datetime) -> Tuple[Status, Tuple[str, ...]]:
    """A present page is GREEN when recently updated, YELLOW when stale."""
    stale = staleness(page.updated_at, threshold, now)
    if stale:
        return Status.YELLOW, (f"page '{page.title}': {stale}",)
    return Status.GREEN, ()
