"""Environment-backed configuration for the datastore bridge."""

import logging
import os

from shared.clients.ClientErrors import ConfigurationError

_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off")


class HelperConfig:
    """Reads settings from environment variables and hands out the application logger.

    Every getter treats an unset or empty variable as missing: the default is
    returned if one is given, otherwise a ConfigurationError is raised.
    Keys are case-insensitive.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _read_raw(self, key: str, default):
        """Returns (key, raw value or None). Raises if the key is unset and required."""
        key = key.upper()
        raw = (os.getenv(key) or "").strip() or None
        if raw is None and default is None:
            raise ConfigurationError(f"Environment variable '{key}' is not set.")
        return key, raw

    def get_string_val(self, key: str, default: str | None = None) -> str:
        """Read a string environment variable, stripped of surrounding whitespace.

        Raises:
            ConfigurationError: If the variable is not set and no default is provided.
        """
        _, raw = self._read_raw(key, default)
        return default if raw is None else raw

    def get_number_val(self, key: str, default: float | int | None = None) -> float | int:
        """Read a numeric environment variable. Values containing a dot are floats, all others ints.

        Raises:
            ConfigurationError: If the variable is not set and no default is provided,
                or the value is not a number.
        """
        key, raw = self._read_raw(key, default)
        if raw is None:
            return default
        try:
            return float(raw) if "." in raw else int(raw)
        except ValueError:
            raise ConfigurationError(f"Environment variable '{key}' is not a valid number: '{raw}'.")

    def get_bool_val(self, key: str, default: bool | None = None) -> bool:
        """Read a boolean environment variable (true/false, 1/0, yes/no, on/off).

        Raises:
            ConfigurationError: If the variable is not set and no default is provided,
                or the value is not a recognised boolean.
        """
        key, raw = self._read_raw(key, default)
        if raw is None:
            return default
        if raw.lower() in _TRUE_VALUES:
            return True
        if raw.lower() in _FALSE_VALUES:
            return False
        raise ConfigurationError(f"Environment variable '{key}' is not a valid boolean: '{raw}'.")

    def get_list_val(self, key: str, default: list | None = None, separator: str = ",", element_type: type = str) -> list:
        """Read a list environment variable written as "[elem1,elem2,...]".

        Args:
            key (str): Environment variable name.
            default (list | None): Fallback value if the variable is not set.
            separator (str): Delimiter between the elements.
            element_type (type): Type every element is cast to.

        Raises:
            ConfigurationError: If the variable is not set and no default is provided,
                is not wrapped in brackets, or contains elements that cannot be cast.
        """
        key, raw = self._read_raw(key, default)
        if raw is None:
            return default
        if not (raw.startswith("[") and raw.endswith("]")):
            raise ConfigurationError(
                f"Environment variable '{key}' must be in the format '[elem1{separator}elem2{separator}...]'. Got: '{raw}'"
            )
        elements = [element.strip() for element in raw[1:-1].split(separator) if element.strip()]
        try:
            return [element_type(element) for element in elements]
        except ValueError as e:
            raise ConfigurationError(
                f"Environment variable '{key}' contains elements that are not {element_type.__name__}: {e}"
            )

    def get_logger(self) -> logging.Logger:
        return self._logger
