"""Pydantic schemas for telemetry payloads, controls and reports."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from models.records import Sample
from services.engine import DerivedMetrics, StatusLevel, validate_inputs


class SamplePayload(BaseModel):
    """One telemetry record as delivered by the measurements source."""

    temperature: float
    humidity: float
    created_at: datetime

    @field_validator("temperature", "humidity")
    @classmethod
    def _require_finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("value must be a finite number")
        return value

    @field_validator("created_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @model_validator(mode="after")
    def _within_domain(self) -> "SamplePayload":
        validate_inputs(self.temperature, self.humidity)
        return self

    def to_sample(self) -> Sample:
        return Sample(
            temperature=self.temperature,
            humidity=self.humidity,
            timestamp=self.created_at,
        )


class SampleView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    temperature: float
    humidity: float
    timestamp: datetime


class ControlRecord(BaseModel):
    """Control row for one actuator (the fan/LED relay in the greenhouse)."""

    device_name: str = Field(..., min_length=1)
    auto_mode: bool = False
    threshold_humidity: int = Field(default=75, ge=0, le=100)
    status: bool = Field(default=False, description="Manual actuator state.")


class ControlUpdate(BaseModel):
    """Partial update; fields left unset keep their stored value."""

    model_config = ConfigDict(extra="forbid")

    auto_mode: Optional[bool] = None
    threshold_humidity: Optional[int] = Field(default=None, ge=0, le=100)
    status: Optional[bool] = None

    def apply_to(self, record: ControlRecord) -> ControlRecord:
        changes = self.model_dump(exclude_unset=True, exclude_none=True)
        return record.model_copy(update=changes, deep=True)


class MetricsReport(BaseModel):
    vpd: float
    absolute_humidity: float
    growth_score: int = Field(..., ge=10, le=100)
    status: StatusLevel
    status_label: str
    status_color: str

    @classmethod
    def from_metrics(cls, metrics: DerivedMetrics) -> "MetricsReport":
        return cls(
            vpd=metrics.vpd,
            absolute_humidity=metrics.absolute_humidity,
            growth_score=metrics.growth_score,
            status=metrics.status.level,
            status_label=metrics.status.label,
            status_color=metrics.status.color,
        )


class IngestError(BaseModel):
    """Details about a CSV row that failed validation or parsing."""

    row_number: int = Field(..., ge=1)
    reason: str


class DashboardSnapshot(BaseModel):
    """Everything needed to draw the dashboard for one moment in time."""

    current: Optional[SampleView] = None
    metrics: MetricsReport
    critical_alert: bool = False
    history: List[SampleView] = Field(default_factory=list)
    controls: ControlRecord
