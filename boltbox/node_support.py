import json
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Union

import gevent
import structlog
from gevent.pool import Pool

from boltbox.constants import COMPOSE_CONFLICT_PATTERN, PUBKEY_PATTERN
from boltbox.exceptions import (
    EmptyResultExhausted,
    InvalidAmount,
    InvalidCommand,
    InvalidPubkey,
    LaunchConflict,
    LaunchFailure,
    ProcessExecutionError,
    RPCExhausted,
    TransientRPCError,
)
from boltbox.setup.nodes.commands import command_arguments, compose_run_arguments, render_command
from boltbox.setup.nodes.executor import ProcessExecutor
from boltbox.utils.configuration.base import is_integer
from boltbox.utils.configuration.node import NodeConfig
from boltbox.utils.configuration.nodes import check_unique_nodes

log = structlog.get_logger(__name__)


def parse_output(stdout: str) -> Any:
    """Parse the JSON record printed by lncli.

    The lncli container's entrypoint echoes a few lines of diagnostics before the
    record, so parsing starts at the first line opening an object or an array.

    :raises TransientRPCError: if no valid record is found.
    """
    lines = stdout.splitlines()
    text = stdout
    for index, line in enumerate(lines):
        if line.lstrip().startswith(("{", "[")):
            text = "\n".join(lines[index:])
            break
    try:
        return json.loads(text)
    except ValueError as e:
        raise TransientRPCError(f"Unparsable response: {stdout.strip()[:200]}") from e


def _is_record(response) -> bool:
    return isinstance(response, dict) and bool(response)


def pubkey_of(node_or_pubkey: Any) -> str:
    """Return the identity pubkey of a node, or validate a raw pubkey string.

    Anything exposing an `identity_pubkey` attribute counts as a node.
    """
    pubkey = getattr(node_or_pubkey, "identity_pubkey", node_or_pubkey)
    if not isinstance(pubkey, str) or not PUBKEY_PATTERN.match(pubkey):
        raise InvalidPubkey(
            f"Expected either a started node or a 66 character hex identity pubkey, "
            f"got {pubkey!r}"
        )
    return pubkey


class NodeRunner:
    """Control surface of a single lnd node.

    Launches the node's container through the process manager and sends lncli
    commands to it. All parameters are taken from the node's :class:`NodeConfig`.
    """

    def __init__(self, config: NodeConfig, executor: Optional[ProcessExecutor] = None):
        self.config = config
        self._executor = executor or ProcessExecutor()

    def __repr__(self):
        return f"<{self.__class__.__qualname__} {self.name}>"

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def identity_pubkey(self) -> Optional[str]:
        return self.config.identity_pubkey

    def start(self) -> None:
        """Start the node's container and wait until the node answers.

        An existing container of the same name is reused.

        :raises LaunchFailure: if the process manager fails to create the container,
            or the node reports no identity pubkey.
        :raises RPCExhausted: if the node does not answer in time.
        """
        command = compose_run_arguments(self.config)
        if self.config.verbose:
            log.info("Starting node", node=self.name, command=render_command(command))
        if self.config.neutrino and self.config.backend is None:
            log.warning(
                "No neutrino backend known, starting without one",
                node=self.name,
                network=self.config.network,
            )

        try:
            self._launch(command)
        except LaunchConflict:
            log.warning("Container already exists. Skipping startup.", node=self.name)

        log.info("Testing connection", node=self.name)
        info = self.get_info()
        pubkey = info.get("identity_pubkey") if isinstance(info, dict) else None
        if not pubkey:
            raise LaunchFailure(f"Node {self.name} did not report an identity pubkey: {info!r}")

        self.config.identity_pubkey = pubkey
        log.info("Node started", node=self.name, pubkey=pubkey)

    def _launch(self, command: List[str]) -> None:
        try:
            self._executor.run(command, env=self.config.env)
        except ProcessExecutionError as e:
            if COMPOSE_CONFLICT_PATTERN.search(f"{e.stderr}\n{e.stdout}"):
                raise LaunchConflict(f"Container for {self.name} already exists") from e
            raise LaunchFailure(f"Could not start node {self.name}: {e}") from e

    def exec(self, command: str) -> Any:
        """Run an lncli sub-command, e.g. ``"listpeers"``, and return its parsed output.

        Attempts that produce no output, fail, or produce unparsable output are
        repeated, up to the configured attempt count.

        :raises InvalidCommand: if `command` is not a string.
        :raises RPCExhausted: if every attempt failed. Carries the last attempt's error.
        """
        if not isinstance(command, str):
            raise InvalidCommand("must pass a string for the list of commands to run w/ lncli")

        arguments = command_arguments(self.config.lncli_command, command)
        retry = self.config.settings.retry
        error: Optional[Exception] = None

        for attempt in range(1, retry.attempts + 1):
            try:
                result = self._executor.run(arguments, env=self.config.env)
                if result.stdout.strip():
                    return parse_output(result.stdout)
                elif result.stderr.strip():
                    raise TransientRPCError(
                        f"Problem connecting to node: {result.stderr.strip()}"
                    )
                raise TransientRPCError("No response from container.")
            except (ProcessExecutionError, TransientRPCError) as e:
                # Only the most recent error is reported once all attempts are spent.
                error = e

            if attempt < retry.attempts:
                if self.config.verbose:
                    log.error(
                        "Problem executing command, trying again",
                        node=self.name,
                        command=command,
                        attempt=attempt,
                        error=str(error),
                    )
                wait = retry.wait_time(attempt)
                if wait > 0:
                    gevent.sleep(wait)

        raise RPCExhausted(
            f"Problem executing command for {self.name}: {command}\nError: {error}", error
        ) from error

    def _read(self, command: str, accept: Callable[[Any], bool] = bool) -> Any:
        """Repeat `command` until `accept` approves of the result."""
        attempts = self.config.settings.retry.attempts
        for _ in range(attempts):
            result = self.exec(command)
            if accept(result):
                return result
            log.error("Problem with response", node=self.name, command=command, response=result)
        raise EmptyResultExhausted(
            f"{self.name} returned no usable response to {command!r} in {attempts} attempts"
        )

    def get_info(self) -> Dict[str, Any]:
        return self.exec("getinfo")

    def get_address(self) -> str:
        """Generate a new nested segwit address."""
        response = self._read(
            "newaddress np2wkh", lambda r: _is_record(r) and bool(r.get("address"))
        )
        return response["address"]

    def get_balance(self) -> Dict[str, Any]:
        return self._read("walletbalance")

    def channel_balance(self) -> Dict[str, Any]:
        return self._read("channelbalance")

    def list_peers(self) -> List[Dict[str, Any]]:
        return self._read("listpeers", _is_record).get("peers", [])

    def list_channels(self) -> List[Dict[str, Any]]:
        return self._read("listchannels", _is_record).get("channels", [])

    def open_channel(self, node_or_pubkey: Any, local: int, push: int = 0) -> Any:
        """Open a channel to another node.

        :param node_or_pubkey: a started node, its config, or an identity pubkey.
        :param local: the channel's funding amount, in satoshis.
        :param push: amount pushed to the remote side on opening, in satoshis.
        """
        pubkey = pubkey_of(node_or_pubkey)
        if not is_integer(local) or local <= 0:
            raise InvalidAmount(
                f"Expected a positive integer amount of satoshis to open the channel with, "
                f"got {local!r}"
            )
        if not is_integer(push) or push < 0:
            raise InvalidAmount(
                f"Push amount for channel open must be a non-negative integer "
                f"(number of satoshis), got {push!r}"
            )
        return self.exec(f"openchannel {pubkey} {local} {push}")

    def connect(self, peer: Union["NodeRunner", NodeConfig, str]) -> Any:
        """Connect to a peer, given as a started node or a ``<pubkey>@<host>:<port>`` URI.

        A node is addressed by its name, which is its hostname on the compose network.
        """
        if isinstance(peer, str):
            pubkey, _, address = peer.partition("@")
            pubkey_of(pubkey)
            if not address:
                raise InvalidPubkey(f"Expected a <pubkey>@<host>:<port> URI, got {peer!r}")
            uri = peer
        else:
            config = getattr(peer, "config", peer)
            uri = f"{pubkey_of(config)}@{config.p2p_address}"
        return self.exec(f"connect {uri}")


class NodeController:
    """Starts and looks up the nodes of a network.

    Nodes are started concurrently, `concurrency` at a time (all at once if `None`).
    """

    def __init__(
        self,
        configs: Iterable[NodeConfig],
        concurrency: Optional[int] = None,
        executor: Optional[ProcessExecutor] = None,
    ):
        configs = list(configs)
        check_unique_nodes(
            [
                {"name": config.name, "rpc": config.rpc_port, "p2p": config.p2p_port}
                for config in configs
            ]
        )
        self._node_runners = [NodeRunner(config, executor) for config in configs]
        self._concurrency = concurrency

    def __getitem__(self, item: Union[int, str]) -> NodeRunner:
        if isinstance(item, str):
            for runner in self._node_runners:
                if runner.name == item:
                    return runner
            raise KeyError(item)
        return self._node_runners[item]

    def __len__(self):
        return self._node_runners.__len__()

    def __iter__(self) -> Iterator[NodeRunner]:
        return iter(self._node_runners)

    def start(self, names: Optional[Iterable[str]] = None, wait: bool = True):
        """Start the given nodes, or all of them.

        Returns the greenlet doing the work. With `wait`, blocks until every node
        is started and re-raises the first error encountered.
        """
        runners = self._node_runners if names is None else [self[name] for name in names]
        log.info("Starting nodes", nodes=[runner.name for runner in runners])

        pool = Pool(size=self._concurrency)

        def _start():
            for runner in runners:
                pool.spawn(runner.start)
            pool.join(raise_error=True)
            log.info("All nodes started")

        starter = gevent.spawn(_start)
        if wait:
            starter.get(block=True)
        return starter

    @property
    def pubkeys(self) -> Dict[str, Optional[str]]:
        return {runner.name: runner.identity_pubkey for runner in self._node_runners}
