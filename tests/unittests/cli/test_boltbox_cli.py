import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from boltbox import __version__, main
from boltbox.exceptions import ProcessExecutionError
from boltbox.setup.nodes.executor import CommandResult

ALICE_PUBKEY = "02" + "a1" * 32
BOB_PUBKEY = "03" + "b2" * 32
PUBKEYS = {"alice": ALICE_PUBKEY, "bob": BOB_PUBKEY}

DEFINITION = """
nodes:
  default_options:
    network: simnet
  node_options:
    - {name: alice, rpc: 10001, p2p: 10011}
    - {name: bob, rpc: 10002, p2p: 10012}
"""


@pytest.fixture(scope="module")
def runner():
    return CliRunner()


@pytest.fixture
def definition_file(tmp_path):
    path = tmp_path.joinpath("simnet.yaml")
    path.write_text(DEFINITION)
    return str(path)


def node_of(command):
    if "--name" in command:
        return command[command.index("--name") + 1]
    server = next(a for a in command if a.startswith("RPCSERVER="))
    return server.split("=", 1)[1].split(":")[0]


class FakeDocker:
    """Replaces :meth:`ProcessExecutor.run`, answering like running lnd nodes would."""

    def __init__(self, failing_launches=(), responses=None):
        self.failing_launches = set(failing_launches)
        self.responses = responses or {}
        self.calls = []

    def __call__(self, executor, command, env=None):
        self.calls.append((list(command), dict(env or {})))
        name = node_of(command)
        if "--name" in command:
            if name in self.failing_launches:
                raise ProcessExecutionError(command, 1, "", "ERROR: pull access denied")
            return CommandResult("", "")
        sub_command = command[command.index("lncli") + 1]
        if sub_command == "getinfo":
            return CommandResult(json.dumps({"identity_pubkey": PUBKEYS[name]}), "")
        return CommandResult(self.responses.get(sub_command, ""), "")


@pytest.fixture
def fake_docker():
    docker = FakeDocker()
    with patch("boltbox.node_support.ProcessExecutor.run", autospec=True, side_effect=docker):
        yield docker


def test_version(runner):
    result = runner.invoke(main.main, ["version"])
    assert result.exit_code == 0
    assert f"boltbox {__version__}" in result.output


class TestStart:
    def test_start_prints_the_pubkeys_of_started_nodes(self, runner, definition_file, fake_docker):
        result = runner.invoke(main.main, ["start", definition_file, "--uid", "1000"])
        assert result.exit_code == 0, result.output
        assert f"alice {ALICE_PUBKEY}" in result.output
        assert f"bob {BOB_PUBKEY}" in result.output
        assert all(env["UID"] == "1000" for _, env in fake_docker.calls)

    def test_start_selected_node(self, runner, definition_file, fake_docker):
        result = runner.invoke(main.main, ["start", definition_file, "--node", "bob"])
        assert result.exit_code == 0, result.output
        assert {node_of(command) for command, _ in fake_docker.calls} == {"bob"}

    def test_host_identity_defaults_from_environment(self, runner, definition_file, fake_docker):
        result = runner.invoke(
            main.main, ["start", definition_file], env={"UID": "501", "GID": "20"}
        )
        assert result.exit_code == 0, result.output
        _, env = fake_docker.calls[0]
        assert env["UID"] == "501"
        assert env["GROUPS"] == "20"

    def test_launch_failure_exits_with_its_exit_code(self, runner, definition_file, fake_docker):
        fake_docker.failing_launches.add("bob")
        result = runner.invoke(main.main, ["start", definition_file])
        assert result.exit_code == 12

    def test_unknown_node_is_a_usage_error(self, runner, definition_file, fake_docker):
        result = runner.invoke(main.main, ["start", definition_file, "--node", "carol"])
        assert result.exit_code == 2
        assert "carol" in result.output
        assert fake_docker.calls == []

    def test_invalid_definition_exits_with_2(self, runner, tmp_path, fake_docker):
        path = tmp_path.joinpath("broken.yaml")
        path.write_text("nodes:\n  node_options:\n    - {name: alice}\n")
        result = runner.invoke(main.main, ["start", str(path)])
        assert result.exit_code == 2
        assert fake_docker.calls == []


class TestExec:
    def test_exec_prints_the_parsed_result(self, runner, definition_file, fake_docker):
        fake_docker.responses["listpeers"] = '{"peers": []}'
        result = runner.invoke(main.main, ["exec", definition_file, "alice", "listpeers"])
        assert result.exit_code == 0, result.output
        assert '"peers": []' in result.output

    def test_lncli_flags_pass_through(self, runner, definition_file, fake_docker):
        fake_docker.responses["addinvoice"] = '{"r_hash": "ab"}'
        result = runner.invoke(
            main.main, ["exec", definition_file, "bob", "--", "addinvoice", "--amt", "100"]
        )
        assert result.exit_code == 0, result.output
        command, _ = fake_docker.calls[-1]
        assert command[-3:] == ["addinvoice", "--amt", "100"]

    def test_exhausted_retries_exit_with_14(self, runner, definition_file, fake_docker):
        result = runner.invoke(main.main, ["exec", definition_file, "alice", "walletbalance"])
        assert result.exit_code == 14
        assert len(fake_docker.calls) == 5

    def test_unknown_node_is_a_usage_error(self, runner, definition_file, fake_docker):
        result = runner.invoke(main.main, ["exec", definition_file, "carol", "getinfo"])
        assert result.exit_code == 2
        assert "carol" in result.output

    def test_arguments_containing_spaces_stay_intact(self, runner, definition_file, fake_docker):
        fake_docker.responses["addinvoice"] = '{"r_hash": "ab"}'
        result = runner.invoke(
            main.main,
            ["exec", definition_file, "alice", "--", "addinvoice", "--memo", "hello world"],
        )
        assert result.exit_code == 0, result.output
        command, _ = fake_docker.calls[-1]
        assert command[-3:] == ["addinvoice", "--memo", "hello world"]


class TestOpenChannel:
    def test_peer_given_by_name(self, runner, definition_file, fake_docker):
        fake_docker.responses["openchannel"] = '{"funding_txid": "ab12"}'
        result = runner.invoke(
            main.main, ["open-channel", definition_file, "alice", "bob", "20000", "--push", "5"]
        )
        assert result.exit_code == 0, result.output
        assert '"funding_txid": "ab12"' in result.output
        command, _ = fake_docker.calls[-1]
        assert node_of(command) == "alice"
        assert command[-4:] == ["openchannel", BOB_PUBKEY, "20000", "5"]

    def test_peer_given_by_pubkey(self, runner, definition_file, fake_docker):
        fake_docker.responses["openchannel"] = "{}"
        result = runner.invoke(
            main.main, ["open-channel", definition_file, "bob", ALICE_PUBKEY, "20000"]
        )
        assert result.exit_code == 0, result.output
        assert len(fake_docker.calls) == 1

    def test_non_positive_amount_is_a_usage_error(self, runner, definition_file, fake_docker):
        result = runner.invoke(main.main, ["open-channel", definition_file, "alice", "bob", "0"])
        assert result.exit_code == 2
        assert fake_docker.calls == []


def test_show_prints_commands_without_running_them(runner, definition_file, fake_docker):
    result = runner.invoke(main.main, ["show", definition_file, "bob", "--uid", "1", "--gid", "1"])
    assert result.exit_code == 0, result.output
    assert "--name bob lnd_btc" in result.output
    assert "RPCSERVER=bob:10002 -e NETWORK=simnet lncli" in result.output
    assert "MACAROONPATH=/lnd-data/bob/data/chain/bitcoin/simnet/admin.macaroon" in result.output
    assert "lncli --network=simnet --rpcserver=bob:10002" in result.output
    assert fake_docker.calls == []
