from collections.abc import Mapping
from typing import Optional, Union

from boltbox.exceptions.config import ConfigurationError


def is_integer(value) -> bool:
    """Check for a plain integer. `bool` is an `int` subclass, but never a valid port or amount."""
    return isinstance(value, int) and not isinstance(value, bool)


class ValidatingMixin:

    CONFIGURATION_ERROR = ConfigurationError

    @classmethod
    def assert_option(cls, expression, err: Optional[Union[str, Exception]] = None):
        """Wrap `assert` to raise a ConfigurationError instead of an AssertionError."""
        try:
            assert expression
        except AssertionError as e:
            if err is None or isinstance(err, str):
                raise cls.CONFIGURATION_ERROR(err) from e
            raise err from e


class ConfigMapping(ValidatingMixin, Mapping):
    def __init__(self, loaded_yaml: Optional[Mapping]):
        self.dict = loaded_yaml or {}

    def __getitem__(self, item):
        return self.dict[item]

    def __iter__(self):
        return iter(self.dict)

    def __len__(self):
        return len(self.dict)

    def __eq__(self, other):
        if isinstance(other, dict):
            return self.dict == other
        elif isinstance(other, ConfigMapping):
            return self.dict == other.dict
        raise TypeError(f"Incomparable types! {self.__class__.__qualname__} and {type(other)}")

    def __str__(self):
        return str(self.dict)

    def __repr__(self):
        return f"{self.__class__.__qualname__}({self.dict})"

    def validate(self):
        """Validate the configuration.

        Assert that all required keys are present, and no mutually exclusive
        options were set.
        """
