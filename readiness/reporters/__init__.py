"""Report sinks: pure formatting of a finished ``ReadinessReport``."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Protocol, Type

from readiness.engine.errors import ConfigError, ReportWriteError
from readiness.engine.report import ReadinessReport
from readiness.reporters.html_report import HtmlReportSink
from readiness.reporters.json_report import JsonReportSink
from readiness.reporters.markdown_report import MarkdownReportSink


class ReportSink(Protocol):
    def write(self, report: ReadinessReport, out_dir: Path) -> Path: ...


SINKS: Dict[str, Type] = {
    "json": JsonReportSink,
    "md": MarkdownReportSink,
    "html": HtmlReportSink,
}


def sinks_for(formats: Iterable[str]) -> List[ReportSink]:
    selected: List[ReportSink] = []
    for fmt in formats:
        key = fmt.strip().lower()
        if key == "markdown":
            key = "md"
        if key not in SINKS:
            raise ConfigError(f"unknown report format {fmt!r} (expected one of {', '.join(SINKS)})")
        selected.append(SINKS[key]())
    return selected


def write_reports(report: ReadinessReport, out_dir: Path, sinks: Iterable[ReportSink]) -> List[Path]:
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ReportWriteError(f"cannot create {out_dir}: {exc}") from exc
    return [sink.write(report, out_dir) for sink in sinks]


__all__ = [
    "HtmlReportSink",
    "JsonReportSink",
    "MarkdownReportSink",
    "ReportSink",
    "sinks_for",
    "write_reports",
]
