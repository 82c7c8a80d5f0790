"""Boltbox Setup Utilities.

Before any command can be sent to a node, its container must be running. The
following paragraphs briefly describe the steps taken when starting a network.

For details, please read the documentation of the respective modules in
:mod:`boltbox.setup`.


..note::

    Terminology used throughout this code base:

        Node
        lnd node
            An lnd process running inside a container created from the
            `lnd_btc` compose service. One per :class:`NodeConfig`.

        lncli container
        Shim
            A short-lived container of the `lncli` compose service. Its
            entrypoint resolves connection defaults and execs `lncli`
            against a single node.

        Process manager
            docker-compose, or any command line compatible with it.


Parse and Validate the network definition
=========================================

The definition file is rendered as a template, loaded, and validated using
the tools provided in :mod:`boltbox.utils.configuration`. Node records are
merged with the default options and turned into :class:`NodeConfig` objects.


Launch the node containers
==========================

Construct the launch command
----------------------------
Every option of the node is passed to the container as an environment variable,
and its RPC and p2p ports are published under the same numbers on the host.

Start the container
-------------------
``docker-compose run -d`` creates a detached container named after the node.
If a container of that name already exists, the node is assumed to be running
and the launch is skipped.


Readiness check
===============

``lncli getinfo`` is sent to the node until it answers or the attempt budget
is spent. The identity pubkey it reports is stored on the node's configuration.
"""
