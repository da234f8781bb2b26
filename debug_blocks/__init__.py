from debug_blocks.control import InvocationOutcome, RunStatus
from debug_blocks.debugger import BlockDebugger, SubprocessBlockDebugger
from debug_blocks.driver import BatchDebugDriver
from debug_blocks.errors import InvalidArgument, InvocationFailure
from debug_blocks.execution import BatchResult, InvocationResult, RetryPolicy, RpcTarget
from debug_blocks.planning import BlockRange

__all__ = [
    # control
    "InvocationOutcome",
    "RunStatus",

    # planning
    "BlockRange",

    # execution
    "BatchDebugDriver",
    "BatchResult",
    "InvocationResult",
    "RetryPolicy",
    "RpcTarget",

    # debuggers
    "BlockDebugger",
    "SubprocessBlockDebugger",

    # errors
    "InvalidArgument",
    "InvocationFailure",
]
