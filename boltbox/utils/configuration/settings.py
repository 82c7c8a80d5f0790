import shlex
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import structlog

from boltbox.constants import (
    CLI_SERVICE,
    COMPOSE_COMMAND,
    DATA_ROOT,
    MAX_EXEC_ATTEMPTS,
    NODE_SERVICE,
)
from boltbox.exceptions.config import ConfigurationError, NetworkDefinitionError
from boltbox.utils.configuration.base import ConfigMapping, is_integer

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RetrySettings:
    """Attempt budget and backoff for commands sent to a node.

    The wait before retry `n` (counting from 1) is ``delay * backoff ** (n - 1)``,
    capped at `max_delay` if given. With the default `delay` of 0, retries are
    back-to-back.
    """

    attempts: int = MAX_EXEC_ATTEMPTS
    delay: float = 0.0
    backoff: float = 1.0
    max_delay: Optional[float] = None

    def __post_init__(self):
        if not is_integer(self.attempts) or self.attempts < 1:
            raise ConfigurationError(
                f'Setting "retry.attempts" must be a positive integer, not {self.attempts!r}!'
            )
        for name in ("delay", "backoff"):
            value = getattr(self, name)
            if not _is_number(value) or value < 0:
                raise ConfigurationError(
                    f'Setting "retry.{name}" must be a non-negative number, not {value!r}!'
                )
        if self.max_delay is not None and (not _is_number(self.max_delay) or self.max_delay < 0):
            raise ConfigurationError(
                f'Setting "retry.max_delay" must be a non-negative number, not {self.max_delay!r}!'
            )

    def wait_time(self, retry: int) -> float:
        wait = self.delay * self.backoff ** (retry - 1)
        if self.max_delay is not None:
            wait = min(wait, self.max_delay)
        return wait


@dataclass(frozen=True)
class ComposeSettings:
    """How to reach the process manager and which services it provides."""

    command: Tuple[str, ...] = (COMPOSE_COMMAND,)
    file: Optional[str] = None
    project_name: Optional[str] = None
    node_service: str = NODE_SERVICE
    cli_service: str = CLI_SERVICE

    def base_arguments(self) -> List[str]:
        """The process manager invocation up to (not including) its sub-command."""
        arguments = list(self.command)
        if self.file:
            arguments.extend(["-f", self.file])
        if self.project_name:
            arguments.extend(["-p", self.project_name])
        return arguments


def _is_number(value) -> bool:
    return is_integer(value) or isinstance(value, float)


class SettingsConfig(ConfigMapping):
    """Settings Configuration Setting interface and validator.

    Handles default values as well as exception handling on malformed settings.

    Example network definition::

        >simnet.yaml
        settings:
          data_root: /lnd-data
          concurrency: 4
          retry:
            attempts: 10
            delay: 1
            backoff: 2
            max_delay: 30
          compose:
            command: docker compose
            file: ./docker-compose.yml
            node_service: lnd_btc
            cli_service: lncli
        nodes:
          ...
    """

    CONFIGURATION_ERROR = NetworkDefinitionError

    def __init__(self, loaded_definition: Optional[Dict[str, Any]] = None) -> None:
        loaded_definition = loaded_definition or {}
        super(SettingsConfig, self).__init__(loaded_definition.get("settings"))
        self._retry: Optional[RetrySettings] = None
        self._compose: Optional[ComposeSettings] = None
        self.validate()

    def validate(self):
        self.assert_option(
            isinstance(self.dict, dict), 'Setting section "settings" must be a mapping!'
        )
        self.assert_option(
            isinstance(self.data_root, str) and self.data_root,
            'Setting "data_root" must be a non-empty string!',
        )
        self.assert_option(
            self.concurrency is None or (is_integer(self.concurrency) and self.concurrency > 0),
            'Setting "concurrency" must be a positive integer!',
        )
        # Access properties to surface errors at load time.
        _ = self.retry  # noqa: F841
        _ = self.compose  # noqa: F841

    @property
    def data_root(self) -> str:
        return self.dict.get("data_root", DATA_ROOT)

    @property
    def concurrency(self) -> Optional[int]:
        """Maximum number of nodes started at the same time. Unbounded if not set."""
        return self.dict.get("concurrency")

    @property
    def retry(self) -> RetrySettings:
        if self._retry is None:
            options = self.dict.get("retry") or {}
            self.assert_option(isinstance(options, dict), 'Setting "retry" must be a mapping!')
            try:
                self._retry = RetrySettings(**options)
            except TypeError as e:
                raise self.CONFIGURATION_ERROR(f'Unknown "retry" option: {e}') from e
        return self._retry

    @property
    def compose(self) -> ComposeSettings:
        if self._compose is None:
            options = self.dict.get("compose") or {}
            self.assert_option(isinstance(options, dict), 'Setting "compose" must be a mapping!')
            options = dict(options)
            command = options.pop("command", COMPOSE_COMMAND)
            if isinstance(command, str):
                command = shlex.split(command)
            self.assert_option(
                isinstance(command, list) and command and all(isinstance(c, str) for c in command),
                'Setting "compose.command" must be a string or a list of strings!',
            )
            try:
                self._compose = ComposeSettings(command=tuple(command), **options)
            except TypeError as e:
                raise self.CONFIGURATION_ERROR(f'Unknown "compose" option: {e}') from e
            log.debug("Using process manager", command=self._compose.base_arguments())
        return self._compose
