from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple, Union

from boltbox.constants import (
    DATA_ROOT,
    DEFAULT_NETWORK,
    DEFAULT_REST_PORT,
    NETWORKS,
    NEUTRINO_BACKENDS,
)
from boltbox.exceptions.config import NodeConfigurationError
from boltbox.setup.nodes.commands import lncli_arguments
from boltbox.utils.configuration.base import ValidatingMixin, is_integer
from boltbox.utils.configuration.settings import SettingsConfig
from boltbox.utils.configuration.shim import resolve_shim_environment

#: Keys accepted in a node configuration record.
NODE_OPTIONS = frozenset(
    [
        "name",
        "rpc",
        "p2p",
        "rest",
        "neutrino",
        "backend",
        "network",
        "lnddir",
        "verbose",
        "uid",
        "gid",
    ]
)


def _is_port(value) -> bool:
    return is_integer(value) and 0 < value < 65536


class NodeConfig(ValidatingMixin):
    """Fully resolved configuration of a single lnd node.

    Spinning up a node or a network of nodes via docker-compose (e.g. for a simnet
    bootstrap) starts from one instance of this class per node::

        >>> alice = NodeConfig(name="alice", rpc=10001, p2p=10011)
        >>> alice.rest_port, alice.network, alice.lnddir
        (8080, 'mainnet', '/lnd-data/alice')

    All options are validated before any attribute is set; a failing check raises
    :exc:`NodeConfigurationError`. Construction performs no I/O and does not read
    the process environment: the host identity (`uid`/`gid`) that the containers
    should run as is passed in explicitly.

    :param name: name of the node (e.g. 'alice', 'bob', 'carol'). Used as container
        name, lnd alias and TLS alt-name.
    :param rpc: gRPC port exposed by the node and used by the lncli container.
    :param p2p: p2p listening port.
    :param rest: REST port, defaults to 8080. 0 also selects the default.
    :param neutrino: run the node as a neutrino light client.
    :param backend: connection string of the chain backend. Defaults to a known
        neutrino peer for simnet and testnet if `neutrino` is set.
    :param network: one of mainnet, testnet, simnet and regtest.
    :param lnddir: the node's data directory, defaults to ``<data_root>/<name>``.
    :param verbose: log the commands sent to the node and failed attempts.
    """

    CONFIGURATION_ERROR = NodeConfigurationError

    def __init__(
        self,
        *,
        name: Optional[str] = None,
        rpc: Optional[int] = None,
        p2p: Optional[int] = None,
        rest: Optional[int] = None,
        neutrino: bool = False,
        backend: Optional[str] = None,
        network: str = DEFAULT_NETWORK,
        lnddir: Optional[str] = None,
        verbose: bool = False,
        uid: Union[int, str] = "",
        gid: Union[int, str] = "",
        data_root: str = DATA_ROOT,
        settings: Optional[SettingsConfig] = None,
    ) -> None:
        self.assert_option(
            isinstance(name, str) and name,
            "NodeConfig requires a string to set the name of the node to",
        )
        self.assert_option(_is_port(rpc), "NodeConfig requires a custom rpc port to create a node")
        self.assert_option(
            _is_port(p2p), "NodeConfig requires a custom p2p listening port to create a node"
        )
        self.assert_option(
            rest is None or (is_integer(rest) and (rest == 0 or _is_port(rest))),
            "Must pass an integer port for the rest option",
        )
        self.assert_option(isinstance(neutrino, bool), "Must pass a boolean for neutrino option")
        self.assert_option(
            backend is None or isinstance(backend, str),
            "Must pass a string to use as backend connection information",
        )
        self.assert_option(
            isinstance(network, str) and network in NETWORKS,
            f"Network must be one of {sorted(NETWORKS)}, not {network!r}",
        )
        self.assert_option(
            lnddir is None or (isinstance(lnddir, str) and lnddir),
            "Must pass a non-empty string for the lnddir option",
        )
        self.assert_option(isinstance(verbose, bool), "Expected boolean value for verbose option.")
        for option, value in (("uid", uid), ("gid", gid)):
            self.assert_option(
                is_integer(value) or isinstance(value, str),
                f"Expected an integer or string for the {option} option.",
            )
        self.assert_option(
            isinstance(data_root, str) and data_root, "Must pass a non-empty data root"
        )
        self.assert_option(
            settings is None or isinstance(settings, SettingsConfig),
            "Expected a SettingsConfig instance for the settings option.",
        )

        self.name: str = name
        self.rpc_port: int = rpc
        self.p2p_port: int = p2p
        self.rest_port: int = rest or DEFAULT_REST_PORT
        self.network: str = network
        self.lnddir: str = lnddir or f"{data_root.rstrip('/')}/{name}"
        self.neutrino: bool = neutrino
        self.verbose: bool = verbose
        self.settings: SettingsConfig = settings if settings is not None else SettingsConfig()

        if backend is not None:
            self.backend: Optional[str] = backend
        elif neutrino:
            # Stays unset for networks without a known neutrino peer.
            self.backend = NEUTRINO_BACKENDS.get(network)
        else:
            self.backend = None

        self.env: Mapping[str, str] = MappingProxyType(
            {
                "NETWORK": network,
                "COMPOSE_INTERACTIVE_NO_CLI": "1",
                "UID": str(uid),
                "GROUPS": str(gid),
                # adds the docker host to the tls certificate
                "TLSEXTRADOMAIN": name,
            }
        )
        self.shim_environment: Mapping[str, str] = MappingProxyType(
            resolve_shim_environment(
                {"RPCSERVER": f"{name}:{rpc}", "NETWORK": network, "LNDDIR": self.lnddir}
            )
        )
        self.lncli_command: Tuple[str, ...] = tuple(lncli_arguments(self))

        #: Set by a successful launch.
        self.identity_pubkey: Optional[str] = None

    @classmethod
    def from_dict(cls, record: Mapping[str, Any], **kwargs) -> "NodeConfig":
        """Create a config from a configuration record such as a node entry of a definition file.

        `kwargs` are passed on to the constructor and take precedence over `record`.

        :raises NodeConfigurationError: if the record is not a mapping or has unknown keys.
        """
        cls.assert_option(isinstance(record, Mapping), "A node configuration must be a mapping")
        unknown = set(record) - NODE_OPTIONS
        cls.assert_option(not unknown, f"Unknown node option(s): {', '.join(sorted(unknown))}")
        return cls(**{**record, **kwargs})

    @property
    def rpc_server(self) -> str:
        """Address of the node's RPC server as seen from the lncli container."""
        return self.shim_environment["RPCSERVER"]

    @property
    def p2p_address(self) -> str:
        return f"{self.name}:{self.p2p_port}"

    def __repr__(self):
        return (
            f"<{self.__class__.__qualname__} "
            f"name={self.name} "
            f"rpc={self.rpc_port} "
            f"p2p={self.p2p_port} "
            f"rest={self.rest_port} "
            f"network={self.network} "
            f"neutrino={self.neutrino}>"
        )
