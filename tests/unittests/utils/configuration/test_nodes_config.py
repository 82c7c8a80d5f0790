import pytest

from boltbox.exceptions import NodeConfigurationError
from boltbox.utils.configuration.nodes import NodesConfig, check_unique_nodes
from boltbox.utils.configuration.settings import SettingsConfig


@pytest.fixture
def two_node_definition():
    return {
        "nodes": {
            "default_options": {"network": "simnet", "neutrino": True},
            "node_options": [
                {"name": "alice", "rpc": 10001, "p2p": 10011},
                {"name": "bob", "rpc": 10002, "p2p": 10012, "network": "testnet"},
            ],
        }
    }


class TestNodesConfig:
    def test_count_is_the_number_of_node_records(self, two_node_definition):
        assert NodesConfig(two_node_definition).count == 2

    def test_default_options_default_to_empty_dict(self, minimal_definition_dict):
        assert NodesConfig(minimal_definition_dict).default_options == {}

    def test_node_options_take_precedence_over_default_options(self, two_node_definition):
        alice, bob = NodesConfig(two_node_definition).records
        assert alice["network"] == "simnet"
        assert bob["network"] == "testnet"
        assert bob["neutrino"] is True

    def test_node_configs_are_created_with_the_given_settings(self, two_node_definition):
        settings = SettingsConfig({"settings": {"data_root": "/srv/lnd"}})
        alice, bob = NodesConfig(two_node_definition).node_configs(settings, uid=1000)
        assert alice.settings is settings
        assert alice.lnddir == "/srv/lnd/alice"
        assert alice.backend == "btcd:18555"
        assert bob.backend == "faucet.lightning.community:18333"
        assert bob.env["UID"] == "1000"

    def test_instantiating_with_an_empty_dict_raises_node_configuration_error(self):
        with pytest.raises(NodeConfigurationError):
            NodesConfig({})

    @pytest.mark.parametrize(
        "nodes",
        argvalues=[
            ["alice"],
            {"node_options": []},
            {"node_options": {"alice": {"rpc": 1}}},
            {"node_options": ["alice"]},
            {"default_options": ["network"], "node_options": [{"name": "alice"}]},
        ],
    )
    def test_malformed_section_raises_node_configuration_error(self, nodes):
        with pytest.raises(NodeConfigurationError):
            NodesConfig({"nodes": nodes})


class TestCheckUniqueNodes:
    def test_distinct_nodes_pass(self):
        check_unique_nodes(
            [{"name": "alice", "rpc": 1, "p2p": 2}, {"name": "bob", "rpc": 3, "p2p": 4}]
        )

    def test_duplicate_names_raise(self):
        with pytest.raises(NodeConfigurationError, match="alice"):
            check_unique_nodes(
                [{"name": "alice", "rpc": 1, "p2p": 2}, {"name": "alice", "rpc": 3, "p2p": 4}]
            )

    @pytest.mark.parametrize(
        "bob",
        argvalues=[
            {"name": "bob", "rpc": 1, "p2p": 4},
            {"name": "bob", "rpc": 3, "p2p": 2},
            {"name": "bob", "rpc": 2, "p2p": 4},
        ],
        ids=["rpc/rpc", "p2p/p2p", "rpc/p2p"],
    )
    def test_shared_ports_raise(self, bob):
        with pytest.raises(NodeConfigurationError, match="Port"):
            check_unique_nodes([{"name": "alice", "rpc": 1, "p2p": 2}, bob])
