"""Argument lists for the process manager and the lncli container.

Commands are built as lists of discrete arguments and never passed through a shell.
:func:`render_command` produces a quoted string for logging only.
"""
import shlex
from typing import TYPE_CHECKING, List, Mapping, Sequence

if TYPE_CHECKING:
    from boltbox.utils.configuration.node import NodeConfig


def environment_flags(variables: Mapping[str, str]) -> List[str]:
    flags: List[str] = []
    for name, value in variables.items():
        flags.extend(["-e", f"{name}={value}"])
    return flags


def compose_run_arguments(config: "NodeConfig") -> List[str]:
    """Command starting the node's container in the background.

    Seed backup is disabled, since the nodes are disposable. With `neutrino` set,
    the node is switched to the neutrino backend, connecting to `config.backend`
    if one is known.
    """
    compose = config.settings.compose
    variables = {
        "LND_DIR": config.lnddir,
        "RPCLISTEN": str(config.rpc_port),
        "RESTLISTEN": str(config.rest_port),
        "NOSEEDBACKUP": "true",
        "TLSEXTRADOMAIN": config.name,
        "MONITORING": "true",
        "LISTEN": str(config.p2p_port),
        "LND_ALIAS": config.name,
    }
    if config.neutrino:
        if config.backend is not None:
            variables["NEUTRINO"] = config.backend
        variables["BACKEND"] = "neutrino"

    return [
        *compose.base_arguments(),
        "run",
        "-d",
        *environment_flags(variables),
        "-p",
        f"{config.rpc_port}:{config.rpc_port}",
        "-p",
        f"{config.p2p_port}:{config.p2p_port}",
        "--name",
        config.name,
        compose.node_service,
    ]


def lncli_arguments(config: "NodeConfig") -> List[str]:
    """Base command running lncli against the node, without a sub-command."""
    compose = config.settings.compose
    shim = config.shim_environment
    variables = {
        "LNDDIR": shim["LNDDIR"],
        "RPCSERVER": shim["RPCSERVER"],
        "NETWORK": shim["NETWORK"],
    }
    return [
        *compose.base_arguments(),
        "run",
        "--rm",
        *environment_flags(variables),
        compose.cli_service,
    ]


def command_arguments(base: Sequence[str], command: str) -> List[str]:
    """Append an lncli sub-command, given as a single string, to `base`."""
    return [*base, *shlex.split(command)]


def render_command(arguments: Sequence[str]) -> str:
    return " ".join(shlex.quote(str(argument)) for argument in arguments)
