from prometheus_client import Counter, Gauge, Histogram

# -----------------------------
# Per-block debug outcome
# -----------------------------
BLOCK_DEBUG_TOTAL = Counter(
    "debug_block_total",
    "Per-block debug invocations by outcome",
    ["rpc_type", "outcome"],
)

BLOCK_DEBUG_LATENCY = Histogram(
    "debug_block_latency_seconds",
    "Wall time of one per-block debug invocation",
    ["rpc_type"],
    buckets=(1, 2, 3, 5, 8, 13, 21, 34, 55, 89),
)

BATCH_INFLIGHT = Gauge(
    "debug_batch_inflight",
    "Block debug invocations currently in flight",
)

# -----------------------------
# RPC
# -----------------------------
RPC_REQUESTS = Counter(
    "rpc_requests_total",
    "RPC requests by method",
    ["rpc_type", "method"],
)
RPC_ERRORS = Counter(
    "rpc_errors_total",
    "RPC errors by method",
    ["rpc_type", "method"],
)
