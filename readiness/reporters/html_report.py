"""Static HTML rendering: a header with the overall badge and one card per check."""
from __future__ import annotations

from html import escape
from pathlib import Path
from typing import List

from readiness.contracts.report_schema import CheckDoc, ReportDocument
from readiness.engine.report import ReadinessReport
from readiness.reporters.base import persist

STATUS_CLASSES = {
    "GREEN": "status-green",
    "YELLOW": "status-yellow",
    "RED": "status-red",
}

_STYLE = """
body { font-family: system-ui, sans-serif; background: #f9fafb; color: #1f2937; margin: 0; }
.page { max-width: 1200px; margin: 0 auto; padding: 24px; }
.header { display: flex; justify-content: space-between; align-items: center; background: #fff;
  border: 1px solid #e5e7eb; border-radius: 12px; padding: 16px; margin-bottom: 24px; }
.grid { display: grid; grid-template-columns: repeat(auto-fill, minmax(320px, 1fr)); gap: 16px; }
.card { background: #fff; border: 1px solid #e5e7eb; border-radius: 12px; padding: 16px; }
.card h3 { margin: 0 8px 0 0; font-size: 1.05rem; flex: 1; }
.card-head { display: flex; justify-content: space-between; align-items: flex-start; }
.badge { padding: 4px 8px; border-radius: 6px; font-size: 0.75rem; font-weight: 600; }
.status-green { background: #22c55e; color: #fff; }
.status-yellow { background: #eab308; color: #000; }
.status-red { background: #ef4444; color: #fff; }
.status-unknown { background: #d1d5db; color: #000; }
.label { font-size: 0.75rem; font-weight: 600; color: #6b7280; margin-top: 12px; }
.muted { color: #6b7280; font-size: 0.85rem; }
"""


def _badge(status: str) -> str:
    css = STATUS_CLASSES.get(status, "status-unknown")
    return f'<span class="badge {css}">{escape(status)}</span>'


def _card(check: CheckDoc) -> str:
    parts: List[str] = [
        '<div class="card">',
        f'<div class="card-head"><h3>{escape(check.name)}</h3>{_badge(check.status)}</div>',
    ]
    if check.summary:
        parts.append(f'<p class="muted">{escape(check.summary)}</p>')
    if check.reasons:
        parts.append('<div class="label">Reasons</div><ul>')
        parts.extend(f"<li>{escape(reason)}</li>" for reason in check.reasons)
        parts.append("</ul>")
    if check.evidence:
        parts.append('<div class="label">Evidence</div><ul>')
        for ev in check.evidence:
            label = escape(f"{ev.type} – {ev.identifier}")
            if ev.url:
                parts.append(
                    f'<li><a href="{escape(ev.url, quote=True)}" target="_blank" '
                    f'rel="noopener noreferrer">{label}</a></li>'
                )
            else:
                parts.append(f"<li>{label}</li>")
        parts.append("</ul>")
    parts.append("</div>")
    return "\n".join(parts)


class HtmlReportSink:
    filename = "readiness_report.html"

    def render(self, report: ReadinessReport) -> str:
        doc = ReportDocument.from_report(report)
        release = doc.release
        cards = "\n".join(_card(check) for check in doc.checks)
        incomplete = (
            '<p class="muted">Evaluation was interrupted; unfinished checks are marked RED.</p>'
            if doc.incomplete
            else ""
        )
        return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Release Readiness: {escape(release.service)} {escape(release.version)}</title>
<style>{_STYLE}</style>
</head>
<body>
<div class="page">
<div class="header">
<div>
<h1>Release Readiness Report</h1>
<p class="muted">Service: <strong>{escape(release.service)}</strong> &bull; Release: <strong>{escape(release.version)}</strong></p>
<p class="muted">Generated {escape(doc.generated_at)}</p>
{incomplete}
</div>
<div>{_badge(doc.overall_status)}</div>
</div>
<div class="grid">
{cards}
</div>
</div>
</body>
</html>
"""

    def write(self, report: ReadinessReport, out_dir: Path) -> Path:
        return persist(out_dir / self.filename, self.render(report))
