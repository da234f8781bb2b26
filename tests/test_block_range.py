from __future__ import annotations

import pytest

from debug_blocks.errors import InvalidArgument
from debug_blocks.execution import BatchResult, InvocationResult, RetryPolicy, RpcTarget
from debug_blocks.control import RunStatus
from debug_blocks.planning import BlockRange


def test_block_range_is_closed_open_and_ascending():
    r = BlockRange(100, 3)
    assert list(r) == [100, 101, 102]
    assert r.end == 103
    assert len(r) == 3
    assert 102 in r
    assert 103 not in r


def test_empty_block_range_yields_nothing():
    r = BlockRange(5_000_000, 0)
    assert len(r) == 0
    assert list(r) == []


@pytest.mark.parametrize("start,count", [(-1, 1), (0, -1), (True, 1), (1.5, 2), ("7", 1)])
def test_block_range_rejects_bad_bounds(start, count):
    with pytest.raises(InvalidArgument):
        BlockRange(start, count)


def test_invalid_argument_is_a_value_error():
    with pytest.raises(ValueError):
        BlockRange(-5, 1)


@pytest.mark.parametrize(
    "endpoint,flavor",
    [
        ("", "native"),
        ("   ", "native"),
        ("host:8545", "native"),
        ("not a url", "native"),
        ("http://host:8545", ""),
        ("http://host:8545", None),
    ],
)
def test_rpc_target_validation(endpoint, flavor):
    with pytest.raises(InvalidArgument):
        RpcTarget(endpoint, flavor)


def test_rpc_target_keeps_unknown_flavor_verbatim():
    t = RpcTarget("https://rpc.example.org/v1/key", "erigon-experimental")
    assert t.flavor == "erigon-experimental"


def test_retry_policy_defaults_to_single_attempt():
    p = RetryPolicy()
    assert (p.backoff_millis, p.max_retries) == (0, 0)
    assert p.backoff_seconds == 0.0
    assert RetryPolicy(1500, 2).backoff_seconds == 1.5


@pytest.mark.parametrize("backoff,retries", [(-1, 0), (0, -1)])
def test_retry_policy_rejects_negative_values(backoff, retries):
    with pytest.raises(InvalidArgument):
        RetryPolicy(backoff, retries)


def test_batch_result_counts():
    batch = BatchResult(
        block_range=BlockRange(10, 5),
        results=[
            InvocationResult.success(10),
            InvocationResult.failure(11, "exit code 2"),
            InvocationResult.success(12),
        ],
        status=RunStatus.CANCELLED,
    )

    assert len(batch) == 3
    assert batch[1].reason == "exit code 2"
    assert batch.succeeded == 2
    assert batch.failed == 1
    assert batch.cancelled == 2
    assert batch.failed_blocks == [11]
    assert batch.summary() == {
        "status": "CANCELLED",
        "planned": 5,
        "succeeded": 2,
        "failed": 1,
        "cancelled": 2,
    }
