"""Pydantic model for the telemetry event and its backlog serialization."""

from __future__ import annotations

import platform
import time
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, conint, constr, field_validator

NonEmptyStr = constr(min_length=1)
EpochMillis = conint(ge=0)

OS_TYPE = platform.system() or "unknown"


def now_millis() -> int:
    return time.time_ns() // 1_000_000


class Event(BaseModel):
    """One immutable telemetry record.

    On disk the attribute map is stored under ``value`` and the origin
    metadata under ``osType``; both the wire names and the field names are
    accepted when loading.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    action: NonEmptyStr
    date: EpochMillis
    attributes: Optional[Dict[str, str]] = Field(default=None, alias="value")
    os_type: str = Field(default=OS_TYPE, alias="osType")

    @field_validator("attributes", mode="before")
    @classmethod
    def _stringify_attributes(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {str(key): str(item) for key, item in value.items()}
        return value

    @classmethod
    def create(cls, action: str, attributes: Optional[Mapping[str, Any]] = None) -> "Event":
        return cls(action=action, date=now_millis(), attributes=attributes)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)

    @classmethod
    def from_json(cls, raw: Union[str, bytes]) -> "Event":
        return cls.model_validate_json(raw)

    def query_params(self) -> Dict[str, Any]:
        """Flatten the event into collector query parameters."""
        params: Dict[str, Any] = dict(self.attributes or {})
        params["action"] = self.action
        params["date"] = self.date
        return params


__all__ = ["Event", "OS_TYPE", "now_millis"]
