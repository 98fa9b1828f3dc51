from __future__ import annotations

from pathlib import Path

from readiness.contracts.report_schema import ReportDocument
from readiness.engine.report import ReadinessReport
from readiness.reporters.base import persist


class JsonReportSink:
    filename = "readiness_report.json"

    def render(self, report: ReadinessReport) -> str:
        return ReportDocument.from_report(report).model_dump_json(indent=2) + "\n"

    def write(self, report: ReadinessReport, out_dir: Path) -> Path:
        return persist(out_dir / self.filename, self.render(report))
