"""Unit tests for the environmental derivation functions."""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor

import pytest

from services.engine import (
    CRITICAL,
    FUNGAL_RISK,
    GROWTH_ONSET,
    IDEAL,
    RAPID_TRANSPIRATION,
    InvalidSampleError,
    StatusLevel,
    classify_status,
    compute_absolute_humidity,
    compute_growth_score,
    compute_vpd,
    derive_metrics,
    round2,
    validate_inputs,
)


def test_vpd_for_typical_greenhouse_air() -> None:
    assert compute_vpd(25, 60) == 1.27
    assert compute_vpd(20, 50) == 1.17
    assert compute_vpd(15, 90) == 0.17
    assert compute_vpd(30, 40) == 2.55


def test_vpd_is_zero_when_air_is_saturated() -> None:
    assert compute_vpd(22, 100) == 0.0


def test_absolute_humidity_values() -> None:
    assert compute_absolute_humidity(25, 60) == 13.82
    assert compute_absolute_humidity(20, 50) == 8.64
    assert compute_absolute_humidity(0, 0) == 0.0


def test_rounding_is_half_up_on_exact_value() -> None:
    assert round2(0.125) == 0.13
    # 2.675 is stored as 2.67499999... so it rounds down.
    assert round2(2.675) == 2.67
    assert round2(1.005) == 1.0


@pytest.mark.parametrize(
    ("temperature", "humidity", "vpd", "expected"),
    [
        (25, 60, 1.0, 100),
        (35, 60, 1.0, 80),
        (10, 60, 1.0, 80),
        (25, 90, 1.0, 80),
        (25, 30, 1.0, 80),
        (25, 60, 0.3, 70),
        (25, 60, 1.8, 70),
        (35, 90, 1.0, 60),
        (35, 60, 2.0, 50),
        (25, 30, 0.2, 50),
        (35, 30, 2.0, 30),
    ],
)
def test_growth_score_penalties_are_additive(temperature, humidity, vpd, expected) -> None:
    assert compute_growth_score(temperature, humidity, vpd) == expected


def test_growth_score_range_edges_are_not_penalised() -> None:
    assert compute_growth_score(18, 40, 0.5) == 100
    assert compute_growth_score(30, 80, 1.5) == 100


def test_growth_score_never_below_floor() -> None:
    for temperature, humidity, vpd in [(-40, 0, 5.0), (60, 100, 0.0), (35, 30, 2.0)]:
        assert 10 <= compute_growth_score(temperature, humidity, vpd) <= 100


@pytest.mark.parametrize(
    ("vpd", "expected"),
    [
        (0.0, FUNGAL_RISK),
        (0.3999999, FUNGAL_RISK),
        (0.4, GROWTH_ONSET),
        (0.6, GROWTH_ONSET),
        (0.8, GROWTH_ONSET),
        (0.8000001, IDEAL),
        (1.2, IDEAL),
        (1.2000001, RAPID_TRANSPIRATION),
        (1.6, RAPID_TRANSPIRATION),
        (1.6000001, CRITICAL),
        (3.5, CRITICAL),
    ],
)
def test_classify_status_band_boundaries(vpd, expected) -> None:
    assert classify_status(vpd) is expected


def test_status_colors() -> None:
    assert [status.color for status in (FUNGAL_RISK, GROWTH_ONSET, IDEAL, RAPID_TRANSPIRATION, CRITICAL)] == [
        "blue",
        "cyan",
        "green",
        "yellow",
        "red",
    ]


def test_derive_metrics_ideal_range_sample() -> None:
    metrics = derive_metrics(25, 60)

    assert metrics.vpd == 1.27
    assert metrics.absolute_humidity == 13.82
    assert metrics.growth_score == 100
    assert metrics.status.level is StatusLevel.rapid_transpiration
    assert metrics.status.label == "Rapid transpiration"


def test_derive_metrics_cold_humid_sample() -> None:
    metrics = derive_metrics(15, 90)

    assert metrics.vpd == 0.17
    assert metrics.growth_score == 100 - 20 - 20 - 30
    assert metrics.status is FUNGAL_RISK


def test_derive_metrics_range_edges_only_penalise_vpd() -> None:
    metrics = derive_metrics(30, 40)

    assert metrics.vpd == 2.55
    assert metrics.growth_score == 70
    assert metrics.status is CRITICAL


def test_derive_metrics_uses_rounded_vpd_for_band() -> None:
    metrics = derive_metrics(20, 50)

    assert metrics.status is classify_status(metrics.vpd)
    assert metrics.growth_score == compute_growth_score(20, 50, metrics.vpd)


def test_repeated_calls_are_identical() -> None:
    first = derive_metrics(23.4, 67.8)

    for _ in range(1000):
        assert derive_metrics(23.4, 67.8) == first
        assert compute_vpd(23.4, 67.8) == first.vpd
        assert compute_absolute_humidity(23.4, 67.8) == first.absolute_humidity


@pytest.mark.parametrize(
    ("temperature", "humidity"),
    [
        (math.nan, 50.0),
        (25.0, math.nan),
        (math.inf, 50.0),
        (25.0, -math.inf),
        (-237.3, 50.0),
        (-243.5, 50.0),
        (-273.15, 50.0),
        (-240.0, 50.0),
        (-246.0, 50.0),
        (25.0, 1e308),
    ],
)
def test_out_of_contract_inputs_are_rejected(temperature, humidity) -> None:
    with pytest.raises(InvalidSampleError):
        validate_inputs(temperature, humidity)
    with pytest.raises(ValueError):
        derive_metrics(temperature, humidity)


def test_implausible_but_finite_inputs_are_accepted() -> None:
    metrics = derive_metrics(-60.0, 120.0)

    assert metrics.vpd <= 0
    assert metrics.growth_score == 30


def test_temperatures_between_singularities_are_rejected_not_overflowed() -> None:
    with pytest.raises(InvalidSampleError, match="outside the supported domain"):
        derive_metrics(-240.0, 50.0)


def test_derive_metrics_from_many_threads_matches_sequential_results() -> None:
    readings = [(25.0, 60.0), (15.0, 90.0), (30.0, 40.0), (20.0, 50.0), (23.4, 67.8)] * 40
    expected = [derive_metrics(temperature, humidity) for temperature, humidity in readings]

    with ThreadPoolExecutor(max_workers=8) as executor:
        results = list(executor.map(lambda reading: derive_metrics(*reading), readings))

    assert results == expected
