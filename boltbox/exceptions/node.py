from typing import Optional, Sequence


class NodeError(Exception):
    exit_code = 10


class ProcessExecutionError(NodeError):
    """An external process exited with a non-zero status, or could not be run at all.

    `returncode` is `None` if the process never started.
    """

    exit_code = 10

    def __init__(
        self,
        command: Sequence[str],
        returncode: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
        reason: Optional[str] = None,
    ):
        self.command = list(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        message = reason or f"Command failed with exit status {returncode}"
        if stderr:
            message = f"{message}: {stderr.strip()}"
        super(ProcessExecutionError, self).__init__(message)


class LaunchConflict(NodeError):
    """A container for the node already exists. Handled inside the launcher."""

    exit_code = 11


class LaunchFailure(NodeError):
    exit_code = 12


class TransientRPCError(NodeError):
    """The lncli shim gave no usable answer. Retried by the executor."""

    exit_code = 13


class RPCExhausted(NodeError):
    """Every attempt of a command failed.

    The error of the final attempt is available as `last_error`.
    """

    exit_code = 14

    def __init__(self, message: str, last_error: Optional[Exception] = None):
        super(RPCExhausted, self).__init__(message)
        self.last_error = last_error


class EmptyResultExhausted(NodeError):
    """A read kept returning an empty result until its attempt budget was spent."""

    exit_code = 15


class NodeValidationError(NodeError, ValueError):
    exit_code = 16


class InvalidCommand(NodeValidationError, TypeError):
    pass


class InvalidAmount(NodeValidationError):
    pass


class InvalidPubkey(NodeValidationError):
    pass
