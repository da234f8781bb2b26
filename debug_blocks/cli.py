from __future__ import annotations

import dataclasses
import os
import signal
import threading
from typing import Optional

import click
from prometheus_client import start_http_server

from debug_blocks.config import DEBUGGER_MODES, Settings
from debug_blocks.debugger import SubprocessBlockDebugger
from debug_blocks.driver import BatchDebugDriver
from debug_blocks.errors import InvalidArgument
from debug_blocks.logging import log, setup_logging
from debug_blocks.web3_debugger import Web3BlockDebugger

USAGE = (
    "Usage: debug-blocks [OPTIONS] INITIAL_BLOCK NUM_BLOCKS RPC_ENDPOINT RPC_TYPE "
    "[BACKOFF] [RETRIES]"
)

EXIT_USAGE = 1
EXIT_BLOCK_FAILURES = 3


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise InvalidArgument(f"{name} must be an integer, got {raw!r}") from None


def parse_positionals(args: tuple[str, ...]) -> dict:
    start_block, num_blocks, endpoint, flavor, *rest = args
    backoff = rest[0] if len(rest) > 0 else "0"
    retries = rest[1] if len(rest) > 1 else "0"
    return {
        "start_block": _parse_int("INITIAL_BLOCK", start_block),
        "num_blocks": _parse_int("NUM_BLOCKS", num_blocks),
        "endpoint": endpoint,
        "flavor": flavor,
        "backoff_millis": _parse_int("BACKOFF", backoff),
        "max_retries": _parse_int("RETRIES", retries),
    }


def check_output_dir(path: Optional[str]) -> None:
    """Trace dumps need a writable directory; a missing one is created on first write."""
    if not path or not os.path.exists(path):
        return
    if not os.path.isdir(path):
        raise InvalidArgument(f"trace output dir is not a directory: {path}")
    if not os.access(path, os.W_OK | os.X_OK):
        raise InvalidArgument(f"trace output dir is not writable: {path}")


def build_debugger(settings: Settings):
    if settings.debugger_mode == "web3":
        return Web3BlockDebugger(
            timeout=settings.rpc_timeout,
            output_dir=settings.trace_output_dir,
        )
    return SubprocessBlockDebugger(settings.debug_block_cmd)


def install_cancel_handlers(driver: BatchDebugDriver) -> dict:
    """SIGINT / SIGTERM stop the batch after the in-flight block. Returns the previous handlers."""
    if threading.current_thread() is not threading.main_thread():
        return {}

    def _handler(signum, frame):
        log.warning(
            "shutdown_signal",
            extra={"signal": signal.Signals(signum).name},
        )
        driver.cancel()

    previous = {}
    for s in (signal.SIGTERM, signal.SIGINT):
        previous[s] = signal.getsignal(s)
        signal.signal(s, _handler)
    return previous


def restore_handlers(previous: dict) -> None:
    for s, handler in previous.items():
        signal.signal(s, handler)


@click.command(
    context_settings={"ignore_unknown_options": True},
    help="Debug NUM_BLOCKS consecutive blocks starting at INITIAL_BLOCK, one per-block debug call each.",
)
@click.option("--debugger", "debugger_mode", type=click.Choice(DEBUGGER_MODES), default=None, help="subprocess (external debug_block script) or web3 (in-process tracer). [env: DEBUGGER_MODE]")
@click.option("--debugger-cmd", "debugger_cmd", type=str, default=None, help="Per-block debug command for the subprocess debugger. [env: DEBUG_BLOCK_CMD]")
@click.option("--max-workers", "max_workers", type=click.IntRange(min=1), default=None, help="Blocks debugged concurrently; 1 keeps strict ascending order. [env: MAX_WORKERS]")
@click.option("--fail-on-error/--no-fail-on-error", "fail_on_error", default=None, help="Exit 3 when any block failed. [env: FAIL_ON_ERROR]")
@click.option("--metrics-port", "metrics_port", type=click.IntRange(min=0), default=None, help="Serve prometheus metrics on this port, 0 disables. [env: METRICS_PORT]")
@click.option("--output-dir", "output_dir", type=click.Path(), default=None, help="Write web3 traces as <block>.json here. [env: TRACE_OUTPUT_DIR]")
@click.option("--rpc-timeout", "rpc_timeout", type=click.FloatRange(min=0, min_open=True), default=None, help="HTTP timeout (seconds) for the web3 debugger. [env: RPC_TIMEOUT]")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def main(
    ctx: click.Context,
    args: tuple[str, ...],
    debugger_mode: Optional[str],
    debugger_cmd: Optional[str],
    max_workers: Optional[int],
    fail_on_error: Optional[bool],
    metrics_port: Optional[int],
    output_dir: Optional[str],
    rpc_timeout: Optional[float],
) -> None:
    if not 4 <= len(args) <= 6:
        click.echo(USAGE, err=True)
        ctx.exit(EXIT_USAGE)

    try:
        settings = Settings.from_env()
        params = parse_positionals(args)
    except InvalidArgument as e:
        click.echo(f"Error: {e}", err=True)
        click.echo(USAGE, err=True)
        ctx.exit(EXIT_USAGE)

    overrides = {
        "debugger_mode": debugger_mode,
        "debug_block_cmd": debugger_cmd,
        "max_workers": max_workers,
        "fail_on_error": fail_on_error,
        "metrics_port": metrics_port,
        "trace_output_dir": output_dir,
        "rpc_timeout": rpc_timeout,
    }
    settings = dataclasses.replace(settings, **{k: v for k, v in overrides.items() if v is not None})
    try:
        check_output_dir(settings.trace_output_dir)
    except InvalidArgument as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(EXIT_USAGE)

    setup_logging(settings.log_level, settings.log_format)

    if settings.metrics_port:
        start_http_server(settings.metrics_port)

    driver = BatchDebugDriver(build_debugger(settings), max_workers=settings.max_workers)
    previous = install_cancel_handlers(driver)
    try:
        batch = driver.run(**params)
    except InvalidArgument as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(EXIT_USAGE)
    finally:
        restore_handlers(previous)

    for result in batch:
        if not result.ok:
            click.echo(f"block {result.block} failed: {result.reason}", err=True)

    click.echo(
        f"{batch.status.value}: {batch.succeeded} succeeded, "
        f"{batch.failed} failed, {batch.cancelled} cancelled"
    )

    if settings.fail_on_error and batch.failed:
        ctx.exit(EXIT_BLOCK_FAILURES)


if __name__ == "__main__":  # pragma: no cover
    main()
