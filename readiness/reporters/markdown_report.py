from __future__ import annotations

from pathlib import Path
from typing import List

from readiness.contracts.report_schema import CheckDoc, ReportDocument
from readiness.engine.report import ReadinessReport
from readiness.reporters.base import persist

_BADGE = {"GREEN": "🟢 GREEN", "YELLOW": "🟡 YELLOW", "RED": "🔴 RED"}


def _fmt_list(items: List[str]) -> List[str]:
    if not items:
        return ["- (none)"]
    return [f"- {x}" for x in items]


def _check_section(check: CheckDoc) -> List[str]:
    lines = [
        f"### {check.name}: {_BADGE[check.status]}",
        "",
        f"- id: `{check.id}` ({'required' if check.required else 'optional'})",
        f"- summary: {check.summary}",
        f"- duration_ms: {check.duration_ms}",
    ]
    if check.reasons:
        lines.extend(["", "**Reasons**", ""])
        lines.extend(f"- {reason}" for reason in check.reasons)
    if check.sub_checks:
        lines.extend(["", "| sub-check | status | required |", "|---|---|---|"])
        for sub in check.sub_checks:
            lines.append(f"| {sub.id} | {sub.status} | {'yes' if sub.required else 'no'} |")
    if check.evidence:
        lines.extend(["", "**Evidence**", ""])
        for ev in check.evidence:
            label = f"{ev.type} – {ev.identifier}"
            lines.append(f"- [{label}]({ev.url})" if ev.url else f"- {label}")
    lines.append("")
    return lines


class MarkdownReportSink:
    filename = "readiness_report.md"

    def render(self, report: ReadinessReport) -> str:
        doc = ReportDocument.from_report(report)
        release = doc.release
        lines = [
            "# Release Readiness Report",
            "",
            f"- service: {release.service}",
            f"- version: {release.version}",
            f"- commit: {release.commit or '-'}",
            f"- generated_at: {doc.generated_at}",
            f"- build_id: {doc.build_id or '-'}",
            "",
            "## Decision",
            "",
            f"**Overall status: {_BADGE[doc.overall_status]}**",
            "",
            f"RED={doc.summary.RED} YELLOW={doc.summary.YELLOW} GREEN={doc.summary.GREEN}",
            "",
        ]
        if doc.incomplete:
            lines.extend(["> Evaluation was interrupted; unfinished checks are marked RED.", ""])
        lines.extend(["## Blocking", ""])
        lines.extend(_fmt_list(doc.blocking))
        lines.extend(["", "## Non-blocking", ""])
        lines.extend(_fmt_list(doc.non_blocking))
        lines.extend(["", "## Checks", ""])
        for check in doc.checks:
            lines.extend(_check_section(check))
        return "\n".join(lines).rstrip() + "\n"

    def write(self, report: ReadinessReport, out_dir: Path) -> Path:
        return persist(out_dir / self.filename, self.render(report))
