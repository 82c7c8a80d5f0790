"""Helper module for running external commands.

This uses :mod:`gevent.subprocess`, so waiting for docker-compose or an lncli
container only blocks the calling greenlet. Several nodes can therefore be
driven concurrently from one process.
"""
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

import structlog
from gevent import subprocess

from boltbox.exceptions.node import ProcessExecutionError

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CommandResult:
    stdout: str
    stderr: str


class ProcessExecutor:
    """Run commands to completion, capturing their output.

    The `env` passed to :meth:`.run` is applied on top of the current process
    environment, so the process manager is still found on the `PATH`.

    Instances of this class wait indefinitely for a command unless a `timeout`
    in seconds is given.
    """

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout

    def run(
        self, command: Sequence[str], env: Optional[Mapping[str, str]] = None
    ) -> CommandResult:
        """Run `command` and return its output.

        :raises ProcessExecutionError: if the command exits with a non-zero status,
            times out, or cannot be started.
        """
        command = [str(argument) for argument in command]
        environment = os.environ.copy()
        if env:
            environment.update(env)

        try:
            process = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                universal_newlines=True,
                env=environment,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ProcessExecutionError(
                command, reason=f"Command timed out after {self.timeout}s"
            ) from e
        except OSError as e:
            raise ProcessExecutionError(command, reason=f"Could not run {command[0]}: {e}") from e

        stdout, stderr = process.stdout or "", process.stderr or ""
        if process.returncode != 0:
            log.debug("Command failed", command=command[0], returncode=process.returncode)
            raise ProcessExecutionError(command, process.returncode, stdout, stderr)
        return CommandResult(stdout=stdout, stderr=stderr)
