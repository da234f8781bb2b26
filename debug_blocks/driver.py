import threading
import time
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait

from debug_blocks.control import RunStatus
from debug_blocks.debugger import BlockDebugger
from debug_blocks.errors import InvocationFailure
from debug_blocks.execution import BatchResult, InvocationResult, RetryPolicy, RpcTarget
from debug_blocks.logging import log
from debug_blocks.metrics import BATCH_INFLIGHT, BLOCK_DEBUG_LATENCY, BLOCK_DEBUG_TOTAL
from debug_blocks.planning import BlockRange


class BatchDebugDriver:
    """
    Walks a block range and hands every block to a BlockDebugger.

    - blocks are dispatched in ascending order, one at a time unless
      max_workers > 1
    - a failed block is recorded and the batch moves on
    - cancel() is honoured before each dispatch; in-flight calls are
      never interrupted and the partial result is returned
    """

    def __init__(
        self,
        debugger: BlockDebugger,
        *,
        max_workers: int = 1,
        cancel_event: threading.Event | None = None,
    ):
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.debugger = debugger
        self.max_workers = max_workers
        self.cancel_event = cancel_event or threading.Event()

    def cancel(self):
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def run(
        self,
        start_block: int,
        num_blocks: int,
        endpoint: str,
        flavor: str,
        backoff_millis: int = 0,
        max_retries: int = 0,
    ) -> BatchResult:
        # validation raises InvalidArgument before anything is dispatched
        block_range = BlockRange(start_block, num_blocks)
        target = RpcTarget(endpoint, flavor)
        policy = RetryPolicy(backoff_millis, max_retries)

        log.info(
            "batch_start",
            extra={
                "start_block": block_range.start,
                "num_blocks": block_range.count,
                "rpc": target.endpoint,
                "rpc_type": target.flavor,
                "backoff_ms": policy.backoff_millis,
                "retries": policy.max_retries,
                "max_workers": self.max_workers,
            },
        )

        if self.max_workers == 1:
            batch = self._run_serial(block_range, target, policy)
        else:
            batch = self._run_parallel(block_range, target, policy)

        log.info("batch_summary", extra=batch.summary())
        return batch

    # -------------------------------------------------
    # execution modes
    # -------------------------------------------------
    def _run_serial(self, block_range, target, policy) -> BatchResult:
        batch = BatchResult(block_range=block_range)

        for block in block_range:
            if self.cancelled:
                batch.status = RunStatus.CANCELLED
                break
            batch.results.append(self._dispatch(block, target, policy))

        return batch

    def _run_parallel(self, block_range, target, policy) -> BatchResult:
        batch = BatchResult(block_range=block_range)
        blocks = iter(block_range)
        remaining = block_range.count
        pending = {}

        # results are only touched by this thread; workers hand them back via futures
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            while True:
                while remaining and len(pending) < self.max_workers:
                    if self.cancelled:
                        batch.status = RunStatus.CANCELLED
                        break
                    block = next(blocks)
                    remaining -= 1
                    pending[pool.submit(self._dispatch, block, target, policy)] = block

                if not pending:
                    break

                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    pending.pop(future)
                    batch.results.append(future.result())

        if remaining and self.cancelled:
            batch.status = RunStatus.CANCELLED

        # deterministic order
        batch.results.sort(key=lambda r: r.block)
        return batch

    # -------------------------------------------------
    # one block
    # -------------------------------------------------
    def _dispatch(self, block, target, policy) -> InvocationResult:
        log.info(
            "debug_block_dispatch",
            extra={
                "block": block,
                "rpc": target.endpoint,
                "rpc_type": target.flavor,
                "backoff_ms": policy.backoff_millis,
                "retries": policy.max_retries,
            },
        )

        BATCH_INFLIGHT.inc()
        started = time.perf_counter()
        try:
            self.debugger.invoke(
                block,
                target.endpoint,
                target.flavor,
                policy.backoff_millis,
                policy.max_retries,
            )
            result = InvocationResult.success(block)

        except InvocationFailure as e:
            log.error(
                "debug_block_failed",
                extra={
                    "block": block,
                    "rpc_type": target.flavor,
                    "reason": e.reason,
                },
            )
            result = InvocationResult.failure(block, e.reason)

        finally:
            BATCH_INFLIGHT.dec()
            BLOCK_DEBUG_LATENCY.labels(rpc_type=target.flavor).observe(
                time.perf_counter() - started
            )

        BLOCK_DEBUG_TOTAL.labels(rpc_type=target.flavor, outcome=result.outcome.value).inc()
        return result
