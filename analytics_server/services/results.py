"""
Performance results submitted by the test client, plus the metadata the
server attaches when a submission is stored.
"""
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

class PerformanceResultsAttribute(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    value: str

class PerformanceResultsEvent(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    event_name: str = Field(alias="eventName")
    attributes: List[PerformanceResultsAttribute] = Field(default_factory=list)

    @field_validator("attributes", mode="before")
    @classmethod
    def _null_attributes(cls, v: Any) -> Any:
        # older log lines carry "attributes": null
        return [] if v is None else v

class PerformanceResults(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    build_info: str = Field(default="", alias="buildInfo")
    session_id: str = Field(alias="sessionId")
    user_id: str = Field(alias="userId")
    events: List[PerformanceResultsEvent] = Field(default_factory=list)

    @field_validator("events", mode="before")
    @classmethod
    def _null_events(cls, v: Any) -> Any:
        return [] if v is None else v

    def to_json(self) -> str:
        """Compact JSON using the wire field names."""
        return self.model_dump_json(by_alias=True)

class Metadata(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date_time: datetime = Field(alias="datetime")
    ip: str

def log_record(metadata: Metadata, results: PerformanceResults) -> Dict[str, Any]:
    """Metadata fields first, then the submitted results."""
    rec = metadata.model_dump(mode="json", by_alias=True)
    rec.update(results.model_dump(mode="json", by_alias=True))
    return rec
