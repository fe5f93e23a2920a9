from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from models.records import Sample
from models.schemas import ControlRecord, ControlUpdate, MetricsReport, SamplePayload
from services.engine import derive_metrics


def test_sample_payload_builds_utc_sample() -> None:
    payload = SamplePayload.model_validate(
        {"temperature": "24.5", "humidity": 61, "created_at": "2024-01-01T12:00:00"}
    )

    assert payload.to_sample() == Sample(
        temperature=24.5,
        humidity=61.0,
        timestamp=datetime(2024, 1, 1, 12, tzinfo=timezone.utc),
    )


@pytest.mark.parametrize("temperature", [float("inf"), -243.5, -240.0])
def test_sample_payload_rejects_out_of_contract_temperature(temperature: float) -> None:
    with pytest.raises(ValidationError):
        SamplePayload(temperature=temperature, humidity=50, created_at=datetime(2024, 1, 1))


def test_metrics_report_flattens_status() -> None:
    report = MetricsReport.from_metrics(derive_metrics(20, 50))

    assert report.model_dump(mode="json") == {
        "vpd": 1.17,
        "absolute_humidity": 8.64,
        "growth_score": 100,
        "status": "ideal",
        "status_label": "Ideal conditions",
        "status_color": "green",
    }


def test_control_update_ignores_unset_fields() -> None:
    record = ControlRecord(device_name="led_fan", auto_mode=True, threshold_humidity=70, status=True)

    updated = ControlUpdate(status=False).apply_to(record)

    assert updated == ControlRecord(
        device_name="led_fan", auto_mode=True, threshold_humidity=70, status=False
    )
    assert record.status is True
