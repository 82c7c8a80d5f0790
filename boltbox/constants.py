import re
from typing import Dict

#: Shared data root inside the node containers. Node directories live beneath it.
DATA_ROOT = "/lnd-data"
DEFAULT_NETWORK = "mainnet"
DEFAULT_REST_PORT = 8080

NETWORKS = frozenset(["mainnet", "testnet", "simnet", "regtest"])

#: Chain backends substituted when a node runs as a neutrino light client and no
#: backend was configured.
NEUTRINO_BACKENDS: Dict[str, str] = {
    "simnet": "btcd:18555",
    "testnet": "faucet.lightning.community:18333",
}

MAX_EXEC_ATTEMPTS = 5

COMPOSE_COMMAND = "docker-compose"
NODE_SERVICE = "lnd_btc"
CLI_SERVICE = "lncli"

#: docker-compose (v1 and v2) refuses to create a container whose name is taken.
COMPOSE_CONFLICT_PATTERN = re.compile(
    r"Cannot create container for service \S+: Conflict"
    r"|Conflict\. The container name \S+ is already in use"
)

#: Defaults applied by the lncli container's entrypoint.
SHIM_DEFAULT_RPCSERVER = "lnd:10009"
SHIM_BLANK_SENTINEL = '""'

PUBKEY_PATTERN = re.compile(r"^[0-9a-fA-F]{66}$")
