from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlparse

from debug_blocks.control import InvocationOutcome, RunStatus
from debug_blocks.errors import InvalidArgument
from debug_blocks.planning import BlockRange
from debug_blocks.planning.block_range import require_non_negative_int


@dataclass(frozen=True)
class RpcTarget:
    endpoint: str
    flavor: str  # jerigon / native / anything the debugger understands

    def __post_init__(self):
        if not isinstance(self.endpoint, str) or not self.endpoint.strip():
            raise InvalidArgument("rpc endpoint must be a non-empty string")
        parsed = urlparse(self.endpoint)
        if not parsed.scheme or not parsed.netloc:
            raise InvalidArgument(f"rpc endpoint is not a URL: {self.endpoint!r}")
        if not isinstance(self.flavor, str) or not self.flavor.strip():
            raise InvalidArgument("rpc flavor must be a non-empty string")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Forwarded to the per-block debugger, which owns the retry loop.
    {0, 0} means a single attempt with no delay.
    """
    backoff_millis: int = 0
    max_retries: int = 0

    def __post_init__(self):
        require_non_negative_int("backoff_millis", self.backoff_millis)
        require_non_negative_int("max_retries", self.max_retries)

    @property
    def backoff_seconds(self) -> float:
        return self.backoff_millis / 1000.0


@dataclass(frozen=True)
class InvocationResult:
    block: int
    outcome: InvocationOutcome
    reason: Optional[str] = None

    @classmethod
    def success(cls, block: int) -> "InvocationResult":
        return cls(block=block, outcome=InvocationOutcome.SUCCESS)

    @classmethod
    def failure(cls, block: int, reason: str) -> "InvocationResult":
        return cls(block=block, outcome=InvocationOutcome.FAILURE, reason=reason)

    @property
    def ok(self) -> bool:
        return self.outcome == InvocationOutcome.SUCCESS


@dataclass
class BatchResult:
    """
    Ordered per-block results of one run, plus its terminal status.

    Behaves as the sequence of InvocationResult (ascending block).
    """
    block_range: BlockRange
    results: list[InvocationResult] = field(default_factory=list)
    status: RunStatus = RunStatus.COMPLETED

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self):
        return iter(self.results)

    def __getitem__(self, index):
        return self.results[index]

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.ok)

    @property
    def cancelled(self) -> int:
        """Planned blocks that were never dispatched."""
        return self.block_range.count - len(self.results)

    @property
    def failed_blocks(self) -> list[int]:
        return [r.block for r in self.results if not r.ok]

    def summary(self) -> dict:
        return {
            "status": self.status.value,
            "planned": self.block_range.count,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "cancelled": self.cancelled,
        }
