"""Node and network configuration utilities.

Usage::

    definition = NetworkDefinition(pathlib.Path("simnet.yaml"))
    for config in definition.node_configs(uid=1000, gid=1000):
        runner = NodeRunner(config)
        runner.start()
        print(runner.config.identity_pubkey)

A single node can be configured without a definition file::

    config = NodeConfig(name="alice", rpc=10001, p2p=10011, network="simnet", neutrino=True)
"""
from boltbox.utils.configuration.node import NodeConfig
from boltbox.utils.configuration.nodes import NodesConfig
from boltbox.utils.configuration.settings import ComposeSettings, RetrySettings, SettingsConfig

__all__ = ["ComposeSettings", "NodeConfig", "NodesConfig", "RetrySettings", "SettingsConfig"]
