"""
Test that walletrisk_logging can be imported without circular import and logger works.
"""

from __future__ import annotations


def test_logging_import():
    """Import get_logger from walletrisk_logging and use the logger."""
    from backend_walletrisk.walletrisk_logging import get_logger

    logger = get_logger("test")
    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "debug")
    assert hasattr(logger, "warning")
    assert hasattr(logger, "error")
    # Smoke test: call info (should not raise)
    logger.info("test_message", key="value")


def test_bind_address_smoke():
    from backend_walletrisk.walletrisk_logging import bind_address, get_logger

    bind_address("0x" + "a" * 40, network="eth")
    get_logger("test").info("bound_message")


def test_processors_rename_event_and_render_json():
    import json

    from backend_walletrisk.walletrisk_logging.logger import build_processors

    event = {"event": "score_computed", "address": "0x" + "a" * 40, "score": 38}
    for processor in build_processors("json"):
        event = processor(None, "info", event)
    record = json.loads(event)
    assert record["event_type"] == "score_computed"
    assert "event" not in record
    assert record["level"] == "info"
    assert record["timestamp"].endswith("Z")
