"""Dashboard state assembly over the telemetry and control stores."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from threading import Lock
from typing import Optional

from datastore.controls import ControlStore
from datastore.measurements import MeasurementStore, Subscription
from models.records import Sample
from models.schemas import (
    ControlRecord,
    ControlUpdate,
    DashboardSnapshot,
    MetricsReport,
    SampleView,
)
from services.engine import RAPID_TRANSPIRATION_UPTO, derive_metrics
from services.feed import SampleFeed

logger = logging.getLogger(__name__)

# Reading shown before the first sample arrives.
PLACEHOLDER_TEMPERATURE = 0.0
PLACEHOLDER_HUMIDITY = 0.0


@dataclass(frozen=True)
class DashboardState:
    controls: ControlRecord
    history: tuple[Sample, ...] = ()
    history_limit: int = 50

    @property
    def current(self) -> Optional[Sample]:
        return self.history[-1] if self.history else None


def append_sample(state: DashboardState, sample: Sample) -> DashboardState:
    history = (state.history + (sample,))[-state.history_limit :]
    return replace(state, history=history)


def apply_controls(state: DashboardState, update: ControlUpdate) -> DashboardState:
    return replace(state, controls=update.apply_to(state.controls))


def build_snapshot(state: DashboardState) -> DashboardSnapshot:
    current = state.current
    if current is None:
        metrics = derive_metrics(PLACEHOLDER_TEMPERATURE, PLACEHOLDER_HUMIDITY)
    else:
        metrics = derive_metrics(current.temperature, current.humidity)

    return DashboardSnapshot(
        current=SampleView.model_validate(current) if current is not None else None,
        metrics=MetricsReport.from_metrics(metrics),
        critical_alert=metrics.vpd > RAPID_TRANSPIRATION_UPTO,
        history=[SampleView.model_validate(sample) for sample in state.history],
        controls=state.controls,
    )


class DashboardSession:
    """Follows the measurement log for one device and keeps dashboard state current.

    Inserts reach the session through a bounded :class:`SampleFeed`; they are
    folded into the state whenever the state is read.
    """

    def __init__(
        self,
        measurements: MeasurementStore,
        controls: ControlStore,
        device_name: str,
        history_limit: int = 50,
    ) -> None:
        self.measurements = measurements
        self.controls = controls
        self.device_name = device_name
        self.history_limit = history_limit
        self.feed = SampleFeed(capacity=history_limit)
        self._state: Optional[DashboardState] = None
        self._subscription: Optional[Subscription] = None
        self._lock = Lock()

    def __enter__(self) -> "DashboardSession":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def start(self) -> None:
        with self._lock:
            if self._subscription is not None:
                return
            state = DashboardState(
                controls=self.controls.get(self.device_name),
                history_limit=self.history_limit,
            )
            self._subscription = self.measurements.subscribe(
                self.feed.publish, replay=self.history_limit
            )
            for sample in self.feed.drain():
                state = append_sample(state, sample)
            self._state = state
        logger.info(
            "Dashboard session started",
            extra={"device_name": self.device_name, "sample_count": len(state.history)},
        )

    def state(self) -> DashboardState:
        with self._lock:
            if self._state is None:
                raise RuntimeError("Dashboard session has not been started.")
            state = self._state
            for sample in self.feed.drain():
                state = append_sample(state, sample)
            self._state = state
            return state

    def snapshot(self) -> DashboardSnapshot:
        snapshot = build_snapshot(self.state())
        if snapshot.critical_alert:
            logger.warning(
                "Critical water loss detected",
                extra={
                    "device_name": self.device_name,
                    "temperature": snapshot.current.temperature if snapshot.current else None,
                    "humidity": snapshot.current.humidity if snapshot.current else None,
                    "vpd": snapshot.metrics.vpd,
                },
            )
        return snapshot

    def update_controls(self, update: ControlUpdate) -> ControlRecord:
        with self._lock:
            if self._state is None:
                raise RuntimeError("Dashboard session has not been started.")
            self._state = apply_controls(self._state, update)
            stored = self.controls.update(self.device_name, update)
            self._state = replace(self._state, controls=stored)
        return stored

    def close(self) -> None:
        with self._lock:
            if self._subscription is not None:
                self._subscription.close()
                self._subscription = None
