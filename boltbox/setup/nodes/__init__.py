"""lnd node command utilities.

Usage::

    config = NodeConfig(name="alice", rpc=10001, p2p=10011, network="simnet", neutrino=True)
    executor = ProcessExecutor()
    executor.run(compose_run_arguments(config), env=config.env)
    result = executor.run(command_arguments(config.lncli_command, "getinfo"), env=config.env)
"""
