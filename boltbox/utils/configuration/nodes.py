from collections import Counter
from typing import Any, Dict, List, Mapping, Sequence

import structlog

from boltbox.exceptions.config import NodeConfigurationError
from boltbox.utils.configuration.base import ConfigMapping
from boltbox.utils.configuration.node import NodeConfig
from boltbox.utils.configuration.settings import SettingsConfig

log = structlog.get_logger(__name__)


def check_unique_nodes(records: Sequence[Mapping[str, Any]]) -> None:
    """Assert that no two node records share a name or a published port.

    RPC and p2p ports are published on the host under their own number, so they
    must not collide across the network, neither with each other nor among themselves.

    Records with missing or mistyped values are skipped here; constructing their
    :class:`NodeConfig` reports those.
    """
    names = Counter(r.get("name") for r in records if isinstance(r.get("name"), str))
    duplicates = sorted(name for name, count in names.items() if count > 1)
    if duplicates:
        raise NodeConfigurationError(f"Duplicate node name(s): {', '.join(duplicates)}")

    ports = Counter(
        r.get(key)
        for r in records
        for key in ("rpc", "p2p")
        if isinstance(r.get(key), int)
    )
    duplicates = sorted(port for port, count in ports.items() if count > 1)
    if duplicates:
        raise NodeConfigurationError(
            f"Port(s) used by more than one node: {', '.join(str(p) for p in duplicates)}"
        )


class NodesConfig(ConfigMapping):
    """lnd nodes config settings interface.

    Thin wrapper around the 'nodes' setting section of a loaded network definition file.

    Validates the given config for missing values and collisions between nodes.

    Example network definition::

        >simnet.yaml
        ...
        nodes:
          default_options:
            network: simnet
            neutrino: true
          node_options:
            - name: alice
              rpc: 10001
              p2p: 10011
            - name: bob
              rpc: 10002
              p2p: 10012
              verbose: true
    """

    CONFIGURATION_ERROR = NodeConfigurationError

    def __init__(self, loaded_definition: dict):
        super(NodesConfig, self).__init__(loaded_definition.get("nodes"))
        self.validate()

    @property
    def count(self) -> int:
        return len(self.node_options)

    @property
    def default_options(self) -> Dict[str, Any]:
        """Options applied to every node unless overridden in its own record."""
        return self.dict.get("default_options") or {}

    @property
    def node_options(self) -> List[Dict[str, Any]]:
        """The per-node records."""
        return self.dict.get("node_options") or []

    @property
    def records(self) -> List[Dict[str, Any]]:
        return [{**self.default_options, **options} for options in self.node_options]

    def validate(self):
        """Assert that the given configuration is valid.

        Ensures the following statements are True:

            * The configuration is not empty
            * `default_options`, if present, is a dictionary
            * `node_options` is a non-empty list of dictionaries
            * Node names, RPC ports and p2p ports are unique
        """
        self.assert_option(self.dict, "Must specify 'nodes' setting section!")
        self.assert_option(isinstance(self.dict, dict), "Setting 'nodes' must be a mapping!")
        self.assert_option(
            isinstance(self.default_options, dict), "Setting 'default_options' must be a mapping!"
        )
        msg = "Setting 'node_options' must be a non-empty list of node records!"
        self.assert_option(isinstance(self.node_options, list) and self.node_options, msg)
        self.assert_option(all(isinstance(o, dict) for o in self.node_options), msg)
        check_unique_nodes(self.records)

    def node_configs(self, settings: SettingsConfig, **kwargs) -> List[NodeConfig]:
        """Create a :class:`NodeConfig` for each record.

        `kwargs` override options of every node, e.g. the host's `uid` and `gid`.
        """
        return [
            NodeConfig.from_dict(record, settings=settings, data_root=settings.data_root, **kwargs)
            for record in self.records
        ]
