"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Sample:
    """A single temperature/humidity reading from the greenhouse sensor."""

    temperature: float
    humidity: float
    timestamp: datetime
