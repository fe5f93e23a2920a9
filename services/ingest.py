"""Sample ingestion from CSV exports and JSON measurement rows."""

from __future__ import annotations

import csv
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from pydantic import ValidationError

from models.records import Sample
from models.schemas import IngestError, SamplePayload
from services.engine import InvalidSampleError, validate_inputs

logger = logging.getLogger(__name__)

_TIMESTAMP_COLUMNS = ("timestamp", "created_at")


@dataclass
class IngestReport:
    samples: List[Sample] = field(default_factory=list)
    errors: List[IngestError] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.samples) + len(self.errors)


class SampleCsvParser:
    """Turns CSV rows into samples, collecting per-row problems instead of failing."""

    def parse(self, lines: Iterable[str], source: Optional[str] = None) -> IngestReport:
        reader = csv.DictReader(lines)
        if not reader.fieldnames:
            raise ValueError("CSV file is missing a header row.")

        normalized = {name.lower().strip(): name for name in reader.fieldnames if name}
        missing = sorted({"temperature", "humidity"} - normalized.keys())
        timestamp_key = next((key for key in _TIMESTAMP_COLUMNS if key in normalized), None)
        if timestamp_key is None:
            missing.append("timestamp")
        if missing:
            raise ValueError(f"CSV missing required columns: {', '.join(missing)}")

        temperature_col = normalized["temperature"]
        humidity_col = normalized["humidity"]
        timestamp_col = normalized[timestamp_key]

        report = IngestReport()
        for row_number, row in enumerate(reader, start=2):
            reason = None
            temperature_raw = (row.get(temperature_col) or "").strip()
            humidity_raw = (row.get(humidity_col) or "").strip()
            timestamp_raw = (row.get(timestamp_col) or "").strip()

            temperature = _parse_float(temperature_raw)
            humidity = _parse_float(humidity_raw)
            timestamp: Optional[datetime] = None

            if not temperature_raw:
                reason = "missing temperature"
            elif temperature is None:
                reason = "invalid temperature"
            elif not humidity_raw:
                reason = "missing humidity"
            elif humidity is None:
                reason = "invalid humidity"
            elif not timestamp_raw:
                reason = "missing timestamp"
            else:
                try:
                    timestamp = parse_timestamp(timestamp_raw)
                except ValueError:
                    reason = "invalid timestamp"

            if reason is None:
                try:
                    validate_inputs(temperature, humidity)
                except InvalidSampleError:
                    reason = "invalid sample"

            if reason is not None:
                logger.warning(
                    "Skipping row %s: %s",
                    row_number,
                    reason,
                    extra={"row_number": row_number, "reason": reason, "source": source},
                )
                report.errors.append(IngestError(row_number=row_number, reason=reason))
                continue

            report.samples.append(
                Sample(temperature=temperature, humidity=humidity, timestamp=timestamp)
            )

        logger.info(
            "Parsed samples",
            extra={"sample_count": len(report.samples), "error_count": len(report.errors)},
        )
        return report


def load_json_samples(text: str, source: Optional[str] = None) -> IngestReport:
    """Parse a JSON array of measurement rows (``temperature``, ``humidity``, ``created_at``)."""
    try:
        rows = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON document: {exc.msg}") from exc
    if not isinstance(rows, list):
        raise ValueError("Expected a JSON array of measurement rows.")

    report = IngestReport()
    for row_number, row in enumerate(rows, start=1):
        try:
            payload = SamplePayload.model_validate(row)
        except ValidationError as exc:
            first = exc.errors()[0]
            location = ".".join(str(part) for part in first["loc"]) or "row"
            reason = f"invalid {location}: {first['msg']}"
            logger.warning(
                "Skipping row %s: %s",
                row_number,
                reason,
                extra={"row_number": row_number, "reason": reason, "source": source},
            )
            report.errors.append(IngestError(row_number=row_number, reason=reason))
            continue
        report.samples.append(payload.to_sample())

    logger.info(
        "Parsed samples",
        extra={"sample_count": len(report.samples), "error_count": len(report.errors)},
    )
    return report


def _parse_float(value: str) -> Optional[float]:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def parse_timestamp(value: str) -> datetime:
    candidate = value.strip()
    if not candidate:
        raise ValueError("Timestamp is empty.")

    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise ValueError("Invalid timestamp format") from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed.astimezone(timezone.utc)
