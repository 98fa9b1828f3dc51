from __future__ import annotations

import os
from pathlib import Path

from readiness.engine.errors import ReportWriteError


def persist(path: Path, text: str) -> Path:
    """Write *text* via a sibling temp file so readers never see a partial report."""
    tmp = path.with_name(f".{path.name}.tmp")
    try:
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, path)
    except OSError as exc:
        raise ReportWriteError(f"cannot write {path}: {exc}") from exc
    return path
