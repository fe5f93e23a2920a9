from __future__ import annotations

import logging
from functools import lru_cache
from threading import Lock
from typing import Dict

from models.schemas import ControlRecord, ControlUpdate
from settings import get_settings

logger = logging.getLogger(__name__)


class ControlStore:
    """In-memory device-control table keyed by device name."""

    def __init__(self, default_threshold: int = 75) -> None:
        self.default_threshold = default_threshold
        self._items: Dict[str, ControlRecord] = {}
        self._lock = Lock()

    def get(self, device_name: str) -> ControlRecord:
        with self._lock:
            return self._get_or_create(device_name).model_copy(deep=True)

    def update(self, device_name: str, update: ControlUpdate) -> ControlRecord:
        with self._lock:
            record = update.apply_to(self._get_or_create(device_name))
            self._items[device_name] = record
            stored = record.model_copy(deep=True)
        logger.info(
            "Control record updated",
            extra={"device_name": device_name, "status": stored.status},
        )
        return stored

    def _get_or_create(self, device_name: str) -> ControlRecord:
        record = self._items.get(device_name)
        if record is None:
            record = ControlRecord(
                device_name=device_name,
                threshold_humidity=self.default_threshold,
            )
            self._items[device_name] = record
        return record


@lru_cache
def build_default_control_store() -> ControlStore:
    return ControlStore(default_threshold=get_settings().humidity_threshold)
