import json

import pytest

from boltbox.setup.nodes.executor import CommandResult
from boltbox.utils.configuration.node import NodeConfig
from boltbox.utils.configuration.settings import SettingsConfig


def _lncli_output(record) -> str:
    """stdout of the lncli container: the entrypoint's diagnostics, followed by the record."""
    return (
        "LNDDIR=/lnd-data/alice\n"
        "RPCSERVER=alice:10001\n"
        f"{json.dumps(record, indent=4)}\n"
    )


class ScriptedExecutor:
    """Stands in for :class:`ProcessExecutor`, replaying canned responses in order.

    A response is either a string (stdout), a ``(stdout, stderr)`` tuple, or an
    exception instance, which is raised. Every call is recorded in `calls`.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def run(self, command, env=None):
        self.calls.append((list(command), dict(env or {})))
        if not self.responses:
            raise AssertionError(f"Unexpected command: {command}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, str):
            return CommandResult(stdout=response, stderr="")
        return CommandResult(*response)

    @property
    def commands(self):
        return [command for command, _ in self.calls]


@pytest.fixture
def scripted_executor():
    return ScriptedExecutor


@pytest.fixture
def lncli_output():
    return _lncli_output


@pytest.fixture
def minimal_definition_dict():
    """A dictionary with the minimum required keys for a network definition."""
    return {
        "settings": {},
        "nodes": {
            "node_options": [{"name": "alice", "rpc": 10001, "p2p": 10011}],
        },
    }


@pytest.fixture
def alice_config():
    return NodeConfig(name="alice", rpc=10001, p2p=10011, uid=1000, gid=1000)


@pytest.fixture
def fast_settings():
    """Settings with a small attempt budget and no waiting between attempts."""
    return SettingsConfig({"settings": {"retry": {"attempts": 3}}})
