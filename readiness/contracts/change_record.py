"""Schema of the exported change-management (CM) evidence payload."""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from readiness.common.utils import parse_iso_ts

SCHEMA_VERSION = "1.0"


def _normalize_state(value: object) -> str:
    return str(value).strip().lower().replace(" ", "_").replace("-", "_")


class CmTask(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(min_length=1)
    type: str = ""
    state: str

    @field_validator("state", mode="before")
    @classmethod
    def _state(cls, v: object) -> str:
        return _normalize_state(v)

    @property
    def is_testing(self) -> bool:
        return self.type.strip().lower() == "testing" or "test" in self.name.lower()


class CmApproval(BaseModel):
    model_config = ConfigDict(extra="ignore")

    approver: str = Field(min_length=1)
    state: Literal["approved", "rejected", "requested", "pending"]

    @field_validator("state", mode="before")
    @classmethod
    def _state(cls, v: object) -> str:
        return _normalize_state(v)


class ChangeRecordExport(BaseModel):
    """One CM record as exported from the change-management tool."""

    model_config = ConfigDict(extra="ignore")

    schema_version: str = Field(default=SCHEMA_VERSION)
    number: str = Field(min_length=1)
    state: str
    url: str = ""
    short_description: str = ""
    exported_at: datetime
    tasks: List[CmTask] = Field(default_factory=list)
    approvals: List[CmApproval] = Field(default_factory=list)

    @field_validator("state", mode="before")
    @classmethod
    def _state(cls, v: object) -> str:
        return _normalize_state(v)

    @field_validator("exported_at", mode="before")
    @classmethod
    def _exported_at(cls, v: object) -> object:
        parsed = parse_iso_ts(v)
        if parsed is None:
            raise ValueError("exported_at must be an ISO-8601 timestamp")
        return parsed
