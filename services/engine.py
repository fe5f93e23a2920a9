"""Environmental derivations for temperature/humidity samples.

Every function here is pure: results depend only on the arguments, so they can
be called from any thread, for every new sample or on every redraw.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

# Magnus-type coefficients for saturation vapor pressure (kPa).
SVP_COEFFICIENT = 0.61078
SVP_A = 17.27
SVP_B = 237.3

# Absolute humidity coefficients (g/m^3).
AH_COEFFICIENT = 6.112
AH_A = 17.67
AH_B = 243.5
AH_WATER_FACTOR = 2.1674
KELVIN_OFFSET = 273.15

SINGULAR_TEMPERATURES = (-SVP_B, -AH_B, -KELVIN_OFFSET)

OPTIMAL_TEMPERATURE = (18.0, 30.0)
OPTIMAL_HUMIDITY = (40.0, 80.0)
OPTIMAL_VPD = (0.5, 1.5)
TEMPERATURE_PENALTY = 20
HUMIDITY_PENALTY = 20
VPD_PENALTY = 30
MAX_GROWTH_SCORE = 100
MIN_GROWTH_SCORE = 10

FUNGAL_RISK_BELOW = 0.4
GROWTH_ONSET_UPTO = 0.8
IDEAL_UPTO = 1.2
RAPID_TRANSPIRATION_UPTO = 1.6

_TWO_PLACES = Decimal("0.01")


class InvalidSampleError(ValueError):
    """Raised when a reading cannot be fed to the derivation functions."""


class StatusLevel(str, Enum):
    """VPD bands in ascending order."""

    fungal_risk = "fungal_risk"
    growth_onset = "growth_onset"
    ideal = "ideal"
    rapid_transpiration = "rapid_transpiration"
    critical = "critical"


@dataclass(frozen=True)
class StatusClassification:
    level: StatusLevel
    label: str
    color: str


FUNGAL_RISK = StatusClassification(StatusLevel.fungal_risk, "High humidity / fungal risk", "blue")
GROWTH_ONSET = StatusClassification(StatusLevel.growth_onset, "Growth onset", "cyan")
IDEAL = StatusClassification(StatusLevel.ideal, "Ideal conditions", "green")
RAPID_TRANSPIRATION = StatusClassification(
    StatusLevel.rapid_transpiration, "Rapid transpiration", "yellow"
)
CRITICAL = StatusClassification(StatusLevel.critical, "Critical water loss / stress", "red")


@dataclass(frozen=True)
class DerivedMetrics:
    """Metrics derived from one sample's temperature and humidity."""

    vpd: float
    absolute_humidity: float
    growth_score: int
    status: StatusClassification


def round2(value: float) -> float:
    """Round half-up on the exact binary value, as fixed-point formatting does."""
    return float(Decimal(value).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def _saturation_vapor_pressure(temperature: float) -> float:
    return SVP_COEFFICIENT * math.exp((SVP_A * temperature) / (temperature + SVP_B))


def _absolute_humidity(temperature: float, humidity: float) -> float:
    vapor = AH_COEFFICIENT * math.exp((AH_A * temperature) / (temperature + AH_B))
    return (vapor * humidity * AH_WATER_FACTOR) / (KELVIN_OFFSET + temperature)


def compute_vpd(temperature: float, humidity: float) -> float:
    """Vapor-pressure deficit in kPa, rounded to two decimals."""
    return round2(_saturation_vapor_pressure(temperature) * (1 - humidity / 100))


def compute_absolute_humidity(temperature: float, humidity: float) -> float:
    """Water vapor mass per cubic meter of air, rounded to two decimals."""
    return round2(_absolute_humidity(temperature, humidity))


def compute_growth_score(temperature: float, humidity: float, vpd: float) -> int:
    score = MAX_GROWTH_SCORE
    if temperature < OPTIMAL_TEMPERATURE[0] or temperature > OPTIMAL_TEMPERATURE[1]:
        score -= TEMPERATURE_PENALTY
    if humidity < OPTIMAL_HUMIDITY[0] or humidity > OPTIMAL_HUMIDITY[1]:
        score -= HUMIDITY_PENALTY
    if vpd < OPTIMAL_VPD[0] or vpd > OPTIMAL_VPD[1]:
        score -= VPD_PENALTY
    return max(score, MIN_GROWTH_SCORE)


def classify_status(vpd: float) -> StatusClassification:
    if vpd < FUNGAL_RISK_BELOW:
        return FUNGAL_RISK
    if vpd <= GROWTH_ONSET_UPTO:
        return GROWTH_ONSET
    if vpd <= IDEAL_UPTO:
        return IDEAL
    if vpd <= RAPID_TRANSPIRATION_UPTO:
        return RAPID_TRANSPIRATION
    return CRITICAL


def validate_inputs(temperature: float, humidity: float) -> None:
    """Reject readings the derivations cannot turn into finite values.

    Besides non-finite inputs this covers the singular temperatures and the
    band between roughly -250 and -237 C where the exponentials overflow.
    """
    if not math.isfinite(temperature):
        raise InvalidSampleError(f"Temperature must be finite, got {temperature!r}.")
    if not math.isfinite(humidity):
        raise InvalidSampleError(f"Humidity must be finite, got {humidity!r}.")
    if temperature in SINGULAR_TEMPERATURES:
        raise InvalidSampleError(f"Temperature {temperature} is outside the supported domain.")
    try:
        values = (
            _saturation_vapor_pressure(temperature) * (1 - humidity / 100),
            _absolute_humidity(temperature, humidity),
        )
    except (OverflowError, ZeroDivisionError) as exc:
        raise InvalidSampleError(
            f"Temperature {temperature} is outside the supported domain."
        ) from exc
    if not all(math.isfinite(value) for value in values):
        raise InvalidSampleError(
            f"Reading ({temperature}, {humidity}) is outside the supported domain."
        )


def derive_metrics(temperature: float, humidity: float) -> DerivedMetrics:
    """Validate a reading and compute every derived metric for it.

    The growth score and status are evaluated against the rounded VPD so that
    the reported value, its band and its penalty always agree.
    """
    validate_inputs(temperature, humidity)
    vpd = compute_vpd(temperature, humidity)
    return DerivedMetrics(
        vpd=vpd,
        absolute_humidity=compute_absolute_humidity(temperature, humidity),
        growth_score=compute_growth_score(temperature, humidity, vpd),
        status=classify_status(vpd),
    )
