from .invocation_result import BatchResult, InvocationResult, RetryPolicy, RpcTarget

__all__ = [
    "BatchResult",
    "InvocationResult",
    "RetryPolicy",
    "RpcTarget",
]
