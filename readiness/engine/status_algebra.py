"""RED/YELLOW/GREEN folding rules.

``combine`` is the only place that decides how several statuses become one.
It folds sub-checks into a check and checks into the overall verdict.
"""
from __future__ import annotations

from typing import Optional, Sequence

from readiness.engine.types import Status

BLOCKING = "blocking"
NON_BLOCKING = "non_blocking"


def combine(statuses: Sequence[Status], required_flags: Sequence[bool]) -> Status:
    """Fold ``statuses`` into one status given each entry's requiredness.

    - any required RED -> RED
    - any optional RED -> YELLOW (an optional failure is never ignored)
    - any YELLOW -> YELLOW
    - otherwise GREEN (an empty input is GREEN)
    """
    if len(statuses) != len(required_flags):
        raise ValueError(
            f"combine() got {len(statuses)} statuses but {len(required_flags)} required flags"
        )
    saw_yellow = False
    for status, required in zip(statuses, required_flags):
        if status is Status.RED:
            if required:
                return Status.RED
            saw_yellow = True
        elif status is Status.YELLOW:
            saw_yellow = True
    return Status.YELLOW if saw_yellow else Status.GREEN


def classify(status: Status, required: bool) -> Optional[str]:
    """Return ``"blocking"`` / ``"non_blocking"`` for a non-GREEN item, else ``None``."""
    if status is Status.GREEN:
        return None
    return BLOCKING if required else NON_BLOCKING
