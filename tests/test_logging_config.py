from __future__ import annotations

import logging

from logging_config import ContextualFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="services.dashboard",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="Critical water loss detected",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_appends_known_context() -> None:
    formatter = ContextualFormatter(fmt="%(levelname)s | %(message)s")

    message = formatter.format(_record(device_name="led_fan", vpd=2.55, status=True, unrelated="x"))

    assert message == "WARNING | Critical water loss detected | device_name=led_fan vpd=2.55 status=true"


def test_formatter_without_context_leaves_message_alone() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")

    assert formatter.format(_record()) == "Critical water loss detected"


def test_formatter_honours_custom_keys() -> None:
    formatter = ContextualFormatter(fmt="%(message)s", extra_keys=["row_number"])

    message = formatter.format(_record(row_number=4, reason="invalid humidity"))

    assert message == "Critical water loss detected | row_number=4"


def test_configure_logging_applies_once(monkeypatch) -> None:
    import logging_config

    calls: list[dict] = []
    monkeypatch.setattr(logging_config, "_configured", False)
    monkeypatch.setattr(logging_config, "dictConfig", calls.append)

    logging_config.configure_logging("DEBUG")
    logging_config.configure_logging("INFO")

    assert len(calls) == 1
    assert calls[0]["root"]["level"] == "DEBUG"
    assert calls[0]["formatters"]["contextual"]["extra_keys"][0] == "device_name"
