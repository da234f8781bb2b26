from .status import InvocationOutcome, RunStatus

__all__ = [
    "InvocationOutcome",
    "RunStatus",
]
