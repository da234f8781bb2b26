class InvalidArgument(ValueError):
    """Malformed or missing batch parameter. Raised before any block is dispatched."""


class InvocationFailure(Exception):
    """One block's debug call failed or could not be started."""

    def __init__(self, block: int, reason: str):
        super().__init__(f"block {block}: {reason}")
        self.block = block
        self.reason = reason
