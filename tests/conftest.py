from __future__ import annotations

import pytest

from debug_blocks.debugger import BlockDebugger
from debug_blocks.errors import InvocationFailure

_ENV_VARS = (
    "DEBUGGER_MODE",
    "DEBUG_BLOCK_CMD",
    "MAX_WORKERS",
    "FAIL_ON_ERROR",
    "METRICS_PORT",
    "TRACE_OUTPUT_DIR",
    "RPC_TIMEOUT",
    "LOG_LEVEL",
    "LOG_FORMAT",
)


class RecordingDebugger(BlockDebugger):
    """Records every invoke() call; fails the configured blocks."""

    def __init__(self, fail_blocks=(), on_invoke=None):
        self.calls: list[tuple] = []
        self.fail_blocks = set(fail_blocks)
        self.on_invoke = on_invoke

    def invoke(self, block, endpoint, flavor, backoff_millis, max_retries) -> None:
        self.calls.append((block, endpoint, flavor, backoff_millis, max_retries))
        if self.on_invoke is not None:
            self.on_invoke(block)
        if block in self.fail_blocks:
            raise InvocationFailure(block, "exit code 1")

    @property
    def blocks(self) -> list[int]:
        return [c[0] for c in self.calls]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def recorder() -> RecordingDebugger:
    return RecordingDebugger()
