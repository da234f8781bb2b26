from enum import Enum


class InvocationOutcome(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


# terminal state of one run
class RunStatus(str, Enum):
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
