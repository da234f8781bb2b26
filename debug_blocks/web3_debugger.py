import json
import os
import time

from web3 import Web3
from web3.middleware import ExtraDataToPOAMiddleware

from debug_blocks.debugger import BlockDebugger
from debug_blocks.errors import InvocationFailure
from debug_blocks.logging import log
from debug_blocks.metrics import RPC_ERRORS, RPC_REQUESTS
from debug_blocks.web3_utils import current_utctime, to_json_safe

JERIGON = "jerigon"
NATIVE = "native"

ZERO_TRACER = {"tracer": "zeroTracer"}
PRESTATE_TRACER = {"tracer": "prestateTracer"}
PRESTATE_DIFF_TRACER = {"tracer": "prestateTracer", "tracerConfig": {"diffMode": True}}


class RpcCallError(Exception):
    pass


class Web3BlockDebugger(BlockDebugger):
    """
    In-process per-block debugger.

    jerigon: one debug_traceBlockByNumber call with the zeroTracer, the
             response must carry the block witness.
    native:  eth_getBlockByNumber, then debug_traceTransaction (prestate +
             diff) for every transaction in the block.

    Both flavors also pull block metadata and the chain id. A whole block
    fetch is attempted max_retries + 1 times, backoff_millis apart.
    """

    def __init__(self, timeout: float = 10, output_dir: str | None = None, sleep=time.sleep):
        self.timeout = timeout
        self.output_dir = output_dir
        self._sleep = sleep
        self._fetchers = {
            JERIGON: self._fetch_jerigon,
            NATIVE: self._fetch_native,
        }

    def connect(self, endpoint: str) -> Web3:
        w3 = Web3(
            Web3.HTTPProvider(
                endpoint,
                request_kwargs={"timeout": self.timeout},
            )
        )
        w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        return w3

    # -------------------------------------------------
    # RPC helpers
    # -------------------------------------------------
    def _call(self, flavor, method, fn):
        RPC_REQUESTS.labels(rpc_type=flavor, method=method).inc()
        try:
            return fn()
        except Exception as e:
            RPC_ERRORS.labels(rpc_type=flavor, method=method).inc()
            raise RpcCallError(f"{method}: {str(e)[:200]}") from e

    def _raw(self, w3, flavor, method, params):
        def request():
            resp = w3.provider.make_request(method, params)
            if resp.get("error"):
                raise RuntimeError(resp["error"])
            if resp.get("result") is None:
                raise RuntimeError("empty result")
            return resp["result"]

        return self._call(flavor, method, request)

    def _metadata(self, w3, flavor, block, block_data=None):
        if block_data is None:
            block_data = self._call(flavor, "eth_getBlockByNumber", lambda: w3.eth.get_block(block))
        chain_id = self._call(flavor, "eth_chainId", lambda: w3.eth.chain_id)
        return {"chain_id": chain_id, "block": to_json_safe(block_data)}

    # -------------------------------------------------
    # flavors
    # -------------------------------------------------
    def _fetch_jerigon(self, w3, block):
        trace = self._raw(w3, JERIGON, "debug_traceBlockByNumber", [hex(block), ZERO_TRACER])

        items = trace if isinstance(trace, list) else []
        txn_info = [i["result"] for i in items if isinstance(i, dict) and "result" in i]
        witness = [i["block_witness"] for i in items if isinstance(i, dict) and "block_witness" in i]
        if not witness:
            raise RpcCallError("debug_traceBlockByNumber: expected block_witness in trace")

        return {
            "txn_info": txn_info,
            "trie_pre_images": witness[-1],
            "other_data": self._metadata(w3, JERIGON, block),
        }

    def _fetch_native(self, w3, block):
        block_data = self._call(NATIVE, "eth_getBlockByNumber", lambda: w3.eth.get_block(block))

        txn_info = []
        for tx_hash in block_data["transactions"]:
            tx_hex = Web3.to_hex(tx_hash)
            pre_state = self._raw(w3, NATIVE, "debug_traceTransaction", [tx_hex, PRESTATE_TRACER])
            diff = self._raw(w3, NATIVE, "debug_traceTransaction", [tx_hex, PRESTATE_DIFF_TRACER])
            txn_info.append({"tx_hash": tx_hex, "pre_state": pre_state, "diff": diff})

        return {
            "txn_info": txn_info,
            "other_data": self._metadata(w3, NATIVE, block, block_data),
        }

    # -------------------------------------------------
    # BlockDebugger
    # -------------------------------------------------
    def invoke(self, block, endpoint, flavor, backoff_millis, max_retries) -> None:
        fetch = self._fetchers.get(flavor)
        if fetch is None:
            raise InvocationFailure(block, f"unsupported rpc flavor: {flavor}")

        w3 = self.connect(endpoint)
        attempts = max_retries + 1

        for attempt in range(1, attempts + 1):
            try:
                trace = fetch(w3, block)
                break
            except RpcCallError as e:
                if attempt == attempts:
                    raise InvocationFailure(
                        block, f"{e} (after {attempt} attempts)"
                    ) from e

                log.warning(
                    "rpc_retry",
                    extra={
                        "block": block,
                        "rpc_type": flavor,
                        "attempt": attempt,
                        "max_retries": max_retries,
                        "backoff_ms": backoff_millis,
                        "error": str(e),
                    },
                )
                self._sleep(backoff_millis / 1000.0)

        log.info(
            "block_trace_fetched",
            extra={
                "block": block,
                "rpc_type": flavor,
                "txs": len(trace["txn_info"]),
            },
        )

        if self.output_dir:
            try:
                self.write_trace(block, flavor, trace)
            except OSError as e:
                raise InvocationFailure(block, f"could not write trace: {e}") from e

    def write_trace(self, block, flavor, trace) -> str:
        os.makedirs(self.output_dir, exist_ok=True)
        path = os.path.join(self.output_dir, f"{block}.json")
        record = {
            "block": block,
            "rpc_type": flavor,
            "fetched_at": current_utctime(),
            **to_json_safe(trace),
        }
        with open(path, "w") as f:
            json.dump(record, f, ensure_ascii=False)
        return path
