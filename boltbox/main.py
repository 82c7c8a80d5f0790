import functools
import json
import os
import shlex
import sys
from contextlib import contextmanager

import click
import gevent
import structlog

from boltbox import __version__
from boltbox.definition import NetworkDefinition
from boltbox.exceptions import ConfigurationError, InvalidPubkey, NodeError
from boltbox.node_support import NodeController, pubkey_of
from boltbox.setup.nodes.commands import compose_run_arguments, render_command
from boltbox.utils.configuration.shim import SHIM_VARIABLES, shim_arguments
from boltbox.utils.logs import DummyStream, configure_logging

log = structlog.get_logger(__name__)

#: Exit status for malformed definitions and node options, same as click's usage errors.
CONFIGURATION_EXIT_CODE = 2


@contextmanager
def exit_on_error():
    """Translate errors into log records and exit codes.

    Exit code 2
    The network definition or a node's options are invalid.

    Exit code 1x
    A node could not be started or did not answer; see
    :mod:`boltbox.exceptions.node` for the individual codes.
    """
    try:
        yield
    except ConfigurationError as ex:
        log.error("Invalid configuration", message=str(ex))
        sys.exit(CONFIGURATION_EXIT_CODE)
    except NodeError as ex:
        log.error("Node error", error=type(ex).__name__, message=str(ex))
        sys.exit(ex.exit_code)


def host_identity_options(func):
    """Decorator for adding '--uid' and '--gid' to subcommands."""

    @click.option(
        "--uid",
        envvar="UID",
        default=lambda: str(os.getuid()),
        show_default="current user",
        help="User id the containers run as.",
    )
    @click.option(
        "--gid",
        envvar="GID",
        default=lambda: str(os.getgid()),
        show_default="current group",
        help="Group id the containers run as.",
    )
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        return func(*args, **kwargs)

    return wrapper


def load_controller(ctx, definition_file, uid, gid) -> NodeController:
    definition = NetworkDefinition(definition_file)
    overrides = {"uid": uid, "gid": gid}
    if ctx.obj["verbose"]:
        overrides["verbose"] = True
    return NodeController(
        definition.node_configs(**overrides), concurrency=definition.settings.concurrency
    )


def runner_of(controller, name):
    try:
        return controller[name]
    except KeyError:
        raise click.BadParameter(f"No node named {name!r} in the network definition.")


definition_argument = click.argument(
    "definition-file", type=click.Path(exists=True, dir_okay=False)
)


@click.group(context_settings={"max_content_width": 120})
@click.option("--verbose", "-v", is_flag=True, help="Log debug output and every node command.")
@click.option("--log-file", type=click.Path(dir_okay=False), help="Also write the log to a file.")
@click.pass_context
def main(ctx, verbose, log_file):
    gevent.get_hub().exception_stream = DummyStream()
    configure_logging(verbose=verbose, log_file=log_file)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@main.command(name="start")
@definition_argument
@click.option("--node", "nodes", multiple=True, help="Only start the named node. Repeatable.")
@host_identity_options
@click.pass_context
def start(ctx, definition_file, nodes, uid, gid):
    """Start the nodes of a network and wait until they answer."""
    with exit_on_error():
        controller = load_controller(ctx, definition_file, uid, gid)
        for name in nodes:
            runner_of(controller, name)
        controller.start(names=nodes or None)
    for name, pubkey in controller.pubkeys.items():
        if pubkey is not None:
            click.echo(f"{name} {pubkey}")


@main.command(name="exec")
@definition_argument
@click.argument("node")
@click.argument("command", nargs=-1, required=True)
@host_identity_options
@click.pass_context
def exec_(ctx, definition_file, node, command, uid, gid):
    """Run an lncli COMMAND against NODE and print its JSON output.

    Separate lncli flags from boltbox options with '--', e.g.:

        boltbox exec simnet.yaml alice -- newaddress np2wkh
    """
    with exit_on_error():
        controller = load_controller(ctx, definition_file, uid, gid)
        result = runner_of(controller, node).exec(shlex.join(command))
    click.echo(json.dumps(result, indent=2))


@main.command(name="show")
@definition_argument
@click.argument("node")
@host_identity_options
@click.pass_context
def show(ctx, definition_file, node, uid, gid):
    """Print the commands and the lncli environment used for NODE, without running anything."""
    with exit_on_error():
        config = runner_of(load_controller(ctx, definition_file, uid, gid), node).config
    click.secho("launch:", bold=True)
    click.echo(f"  {render_command(compose_run_arguments(config))}")
    click.secho("lncli:", bold=True)
    click.echo(f"  {render_command(config.lncli_command)}")
    click.secho("lncli environment:", bold=True)
    for name in SHIM_VARIABLES:
        click.echo(f"  {name}={config.shim_environment[name]}")
    click.echo(f"  {render_command(['lncli', *shim_arguments(config.shim_environment)])}")


@main.command(name="open-channel")
@definition_argument
@click.argument("node")
@click.argument("peer")
@click.argument("local", type=click.IntRange(min=1))
@click.option("--push", type=click.IntRange(min=0), default=0, show_default=True)
@host_identity_options
@click.pass_context
def open_channel(ctx, definition_file, node, peer, local, push, uid, gid):
    """Open a channel of LOCAL satoshis from NODE to PEER.

    PEER is either the name of another node of the network or an identity pubkey.
    """
    with exit_on_error():
        controller = load_controller(ctx, definition_file, uid, gid)
        try:
            pubkey = pubkey_of(peer)
        except InvalidPubkey:
            pubkey = runner_of(controller, peer).get_info().get("identity_pubkey")
        result = runner_of(controller, node).open_channel(pubkey, local, push)
    click.echo(json.dumps(result, indent=2))


@main.command(name="version")
def version():
    """Print version information."""
    click.secho(f"boltbox {__version__}")


if __name__ == "__main__":
    main()
