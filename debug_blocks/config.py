import os
from dataclasses import dataclass
from typing import Mapping, Optional

from debug_blocks.debugger import DEFAULT_DEBUG_BLOCK_CMD
from debug_blocks.errors import InvalidArgument

DEBUGGER_MODES = ("subprocess", "web3")
LOG_FORMATS = ("json", "text")

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off", "")


def _int(env, name, default):
    raw = env.get(name, default)
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise InvalidArgument(f"{name} must be an integer, got {raw!r}") from None


def _float(env, name, default):
    raw = env.get(name, default)
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise InvalidArgument(f"{name} must be a number, got {raw!r}") from None


def _bool(env, name, default):
    raw = str(env.get(name, default)).strip().lower()
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise InvalidArgument(f"{name} must be a boolean, got {raw!r}")


def _choice(env, name, default, choices):
    raw = env.get(name, default).strip().lower()
    if raw not in choices:
        raise InvalidArgument(f"{name} must be one of {', '.join(choices)}, got {raw!r}")
    return raw


# -----------------------------
# Environment Variables
# -----------------------------
@dataclass(frozen=True)
class Settings:
    debugger_mode: str = "subprocess"          # subprocess: external debug_block script, web3: in-process tracer
    debug_block_cmd: str = DEFAULT_DEBUG_BLOCK_CMD
    max_workers: int = 1                       # 1 = strictly sequential
    fail_on_error: bool = False                # exit non-zero when any block failed
    metrics_port: int = 0                      # 0 = no prometheus endpoint
    trace_output_dir: Optional[str] = None
    rpc_timeout: float = 10.0
    log_level: str = "INFO"
    log_format: str = "json"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if env is None else env

        settings = cls(
            debugger_mode=_choice(env, "DEBUGGER_MODE", "subprocess", DEBUGGER_MODES),
            debug_block_cmd=env.get("DEBUG_BLOCK_CMD", DEFAULT_DEBUG_BLOCK_CMD),
            max_workers=_int(env, "MAX_WORKERS", "1"),
            fail_on_error=_bool(env, "FAIL_ON_ERROR", "false"),
            metrics_port=_int(env, "METRICS_PORT", "0"),
            trace_output_dir=env.get("TRACE_OUTPUT_DIR") or None,
            rpc_timeout=_float(env, "RPC_TIMEOUT", "10"),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            log_format=_choice(env, "LOG_FORMAT", "json", LOG_FORMATS),
        )

        if settings.max_workers < 1:
            raise InvalidArgument(f"MAX_WORKERS must be >= 1, got {settings.max_workers}")
        if settings.metrics_port < 0:
            raise InvalidArgument(f"METRICS_PORT must be >= 0, got {settings.metrics_port}")
        if settings.rpc_timeout <= 0:
            raise InvalidArgument(f"RPC_TIMEOUT must be > 0, got {settings.rpc_timeout}")
        return settings
