from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable

from readiness.adapters.base import AdapterSet
from readiness.common.utils import utc_now
from readiness.engine.policy import Policy
from readiness.engine.types import ReleaseInfo


@dataclass(frozen=True)
class ExecutionContext:
    """Per-run, read-only inputs shared by every check.

    ``clock`` is injected so repeated runs over identical evidence decide
    identically; ``base_dir`` anchors relative evidence paths.
    """

    release: ReleaseInfo
    policy: Policy
    adapters: AdapterSet = field(default_factory=AdapterSet)
    clock: Callable[[], datetime] = utc_now
    build_id: str = ""
    base_dir: Path = field(default_factory=Path.cwd)

    def now(self) -> datetime:
        return self.clock()

    def resolve_path(self, value: str) -> Path:
        path = Path(value).expanduser()
        return path if path.is_absolute() else self.base_dir / path
