import shlex
import subprocess

from debug_blocks.errors import InvocationFailure
from debug_blocks.logging import log

DEFAULT_DEBUG_BLOCK_CMD = "debug_block.sh"


class BlockDebugger:
    def invoke(
        self,
        block: int,
        endpoint: str,
        flavor: str,
        backoff_millis: int,
        max_retries: int,
    ) -> None:
        """
        Debug one block against the RPC endpoint.

        Returns on success, raises InvocationFailure otherwise. Retries,
        spaced by backoff_millis, are the implementation's business.
        """
        raise NotImplementedError


class SubprocessBlockDebugger(BlockDebugger):
    """
    Shells out once per block:

        <cmd...> <block> <endpoint> <flavor> <backoff_millis> <max_retries>

    Exit code 0 is success. Output goes straight to the operator's terminal.
    No timeout is applied.
    """

    def __init__(self, cmd: str = DEFAULT_DEBUG_BLOCK_CMD):
        self.argv = shlex.split(cmd)
        if not self.argv:
            raise ValueError("debugger command must not be empty")

    def build_argv(self, block, endpoint, flavor, backoff_millis, max_retries) -> list[str]:
        return [
            *self.argv,
            str(block),
            endpoint,
            flavor,
            str(backoff_millis),
            str(max_retries),
        ]

    def invoke(self, block, endpoint, flavor, backoff_millis, max_retries) -> None:
        argv = self.build_argv(block, endpoint, flavor, backoff_millis, max_retries)
        try:
            # own session: a terminal Ctrl-C reaches only the driver, which stops
            # after this block instead of killing it
            proc = subprocess.run(argv, check=False, start_new_session=True)
        except OSError as e:
            # missing executable / permission denied
            raise InvocationFailure(
                block, f"could not start {self.argv[0]}: {e}"
            ) from e

        if proc.returncode != 0:
            log.debug(
                "debug_block_exit",
                extra={"block": block, "returncode": proc.returncode},
            )
            raise InvocationFailure(block, f"exit code {proc.returncode}")
