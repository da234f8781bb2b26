from __future__ import annotations

import json
import logging

from debug_blocks.logging import JsonFormatter, TextFormatter, setup_logging


def _record(msg="debug_block_dispatch", **extra):
    record = logging.LogRecord("debug_blocks", logging.INFO, __file__, 1, msg, None, None)
    record.__dict__.update(extra)
    return record


def test_json_formatter_includes_extra_fields():
    line = JsonFormatter().format(_record(block=100, rpc_type="native", backoff_ms=0))
    payload = json.loads(line)

    assert payload["msg"] == "debug_block_dispatch"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "debug_blocks"
    assert payload["block"] == 100
    assert payload["rpc_type"] == "native"
    assert payload["ts"].endswith("Z")
    assert "lineno" not in payload


def test_text_formatter_renders_key_value_pairs():
    line = TextFormatter().format(_record(block=7, retries=2))

    assert "INFO" in line
    assert "debug_block_dispatch block=7 retries=2" in line


def test_setup_logging_is_idempotent():
    logger = setup_logging("DEBUG", "text")
    handlers = list(logger.handlers)
    again = setup_logging("INFO", "json")

    assert again is logger
    assert again.handlers == handlers
    assert isinstance(again.handlers[0].formatter, JsonFormatter)
    assert again.level == logging.INFO
    assert again.propagate is False
