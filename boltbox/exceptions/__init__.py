from boltbox.exceptions.config import (
    ConfigurationError,
    NetworkDefinitionError,
    NodeConfigurationError,
    ShimConfigurationError,
)
from boltbox.exceptions.node import (
    EmptyResultExhausted,
    InvalidAmount,
    InvalidCommand,
    InvalidPubkey,
    LaunchConflict,
    LaunchFailure,
    NodeError,
    NodeValidationError,
    ProcessExecutionError,
    RPCExhausted,
    TransientRPCError,
)

__all__ = [
    "ConfigurationError",
    "EmptyResultExhausted",
    "InvalidAmount",
    "InvalidCommand",
    "InvalidPubkey",
    "LaunchConflict",
    "LaunchFailure",
    "NetworkDefinitionError",
    "NodeConfigurationError",
    "NodeError",
    "NodeValidationError",
    "ProcessExecutionError",
    "RPCExhausted",
    "ShimConfigurationError",
    "TransientRPCError",
]
