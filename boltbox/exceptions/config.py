class ConfigurationError(ValueError):
    """Generic error thrown if there was an error while reading the node configuration."""


class NodeConfigurationError(ConfigurationError):
    """A node configuration record is missing a required option or has a mistyped one."""


class NetworkDefinitionError(ConfigurationError):
    """An error occurred while loading or validating a network definition file."""


class ShimConfigurationError(ConfigurationError):
    """A variable required by the lncli shim has neither a value nor a default."""
