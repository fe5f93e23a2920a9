"""Bounded buffer of recently observed samples."""

from __future__ import annotations

from collections import deque
from threading import Lock
from typing import Deque

from models.records import Sample

DEFAULT_CAPACITY = 50


class SampleFeed:
    """Keeps the last ``capacity`` samples in arrival order, dropping the oldest."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("Feed capacity must be positive.")
        self.capacity = capacity
        self._samples: Deque[Sample] = deque(maxlen=capacity)
        self._lock = Lock()

    def publish(self, sample: Sample) -> None:
        with self._lock:
            self._samples.append(sample)

    def drain(self) -> list[Sample]:
        """Remove and return every buffered sample, oldest first."""
        with self._lock:
            pending = list(self._samples)
            self._samples.clear()
        return pending
