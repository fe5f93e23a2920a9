from __future__ import annotations

import logging
from threading import Lock, RLock
from typing import Callable, Dict, List

from models.records import Sample

logger = logging.getLogger(__name__)

SampleCallback = Callable[[Sample], None]


class Subscription:
    """Handle returned by :meth:`MeasurementStore.subscribe`."""

    def __init__(self, store: "MeasurementStore", token: int) -> None:
        self._store = store
        self._token = token
        self.closed = False

    def close(self) -> None:
        if self.closed:
            return
        self._store._unsubscribe(self._token)
        self.closed = True


class MeasurementStore:
    """In-memory telemetry log ordered by arrival."""

    def __init__(self, name: str = "measurements") -> None:
        self.name = name
        self._samples: List[Sample] = []
        self._subscribers: Dict[int, SampleCallback] = {}
        self._next_token = 0
        self._lock = Lock()
        # Serialises notification so subscribers observe inserts in arrival order.
        self._notify_lock = RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)

    def insert(self, sample: Sample) -> None:
        # Re-entrant: a subscriber may insert derived samples from its callback.
        with self._notify_lock:
            with self._lock:
                self._samples.append(sample)
                callbacks = list(self._subscribers.values())
            for callback in callbacks:
                try:
                    callback(sample)
                except Exception:
                    logger.exception(
                        "Subscriber failed while handling an insert",
                        extra={"source": self.name},
                    )

    def recent(self, limit: int) -> list[Sample]:
        """Return up to ``limit`` of the newest samples, newest last."""
        if limit <= 0:
            return []
        with self._lock:
            return self._samples[-limit:]

    def subscribe(self, callback: SampleCallback, replay: int = 0) -> Subscription:
        """Register ``callback`` for future inserts.

        With ``replay`` set, the newest ``replay`` stored samples are delivered
        first, so the callback sees each sample exactly once and in order.
        """
        with self._notify_lock:
            with self._lock:
                token = self._next_token
                self._next_token += 1
                self._subscribers[token] = callback
                backlog = self._samples[-replay:] if replay > 0 else []
            for sample in backlog:
                callback(sample)
        logger.debug("Subscriber attached to %s", self.name)
        return Subscription(self, token)

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def _unsubscribe(self, token: int) -> None:
        with self._lock:
            self._subscribers.pop(token, None)
        logger.debug("Subscriber detached from %s", self.name)
