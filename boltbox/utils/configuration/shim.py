"""Environment handling of the lncli container.

The container's entrypoint reads its connection parameters from environment
variables. docker initializes variables declared in a compose file with a blank
string, and an explicitly empty value arrives as the two-character string ``""``;
both count as unset and are replaced by the variable's default.
"""
from typing import Dict, List, Mapping, Optional

from boltbox.constants import (
    DATA_ROOT,
    DEFAULT_NETWORK,
    SHIM_BLANK_SENTINEL,
    SHIM_DEFAULT_RPCSERVER,
)
from boltbox.exceptions.config import ShimConfigurationError

#: Variables understood by the shim, in resolution order.
SHIM_VARIABLES = ("RPCSERVER", "NETWORK", "LNDDIR", "MACAROONPATH", "TLSCERTPATH")


def is_unset(value: Optional[str]) -> bool:
    return value is None or value == "" or value == SHIM_BLANK_SENTINEL


def set_default(name: str, value: Optional[str], default: Optional[str]) -> str:
    """Return `value`, or `default` if `value` is unset.

    :raises ShimConfigurationError: if both are unset.
    """
    if not is_unset(value):
        return value
    if is_unset(default):
        raise ShimConfigurationError(f"You should specify a default for {name}")
    return default


def resolve_shim_environment(
    environ: Mapping[str, str], defaults: Optional[Mapping[str, Optional[str]]] = None
) -> Dict[str, str]:
    """Resolve all shim variables from `environ`, applying defaults to unset ones.

    `MACAROONPATH` and `TLSCERTPATH` default to locations below the resolved
    `LNDDIR`. Entries in `defaults` replace the built-in defaults.
    """
    defaults = dict(defaults or {})
    resolved: Dict[str, str] = {}

    resolved["RPCSERVER"] = set_default(
        "RPCSERVER", environ.get("RPCSERVER"), defaults.get("RPCSERVER", SHIM_DEFAULT_RPCSERVER)
    )
    resolved["NETWORK"] = set_default(
        "NETWORK", environ.get("NETWORK"), defaults.get("NETWORK", DEFAULT_NETWORK)
    )
    resolved["LNDDIR"] = set_default(
        "LNDDIR", environ.get("LNDDIR"), defaults.get("LNDDIR", DATA_ROOT)
    )
    lnddir, network = resolved["LNDDIR"], resolved["NETWORK"]
    resolved["MACAROONPATH"] = set_default(
        "MACAROONPATH",
        environ.get("MACAROONPATH"),
        defaults.get("MACAROONPATH", f"{lnddir}/data/chain/bitcoin/{network}/admin.macaroon"),
    )
    resolved["TLSCERTPATH"] = set_default(
        "TLSCERTPATH",
        environ.get("TLSCERTPATH"),
        defaults.get("TLSCERTPATH", f"{lnddir}/tls.cert"),
    )
    return resolved


def shim_arguments(resolved: Mapping[str, str]) -> List[str]:
    """Global lncli flags for a resolved shim environment."""
    return [
        f"--network={resolved['NETWORK']}",
        f"--rpcserver={resolved['RPCSERVER']}",
        f"--lnddir={resolved['LNDDIR']}",
        f"--macaroonpath={resolved['MACAROONPATH']}",
        f"--tlscertpath={resolved['TLSCERTPATH']}",
    ]
