"""Named member properties consulted while picking addresses.

A property is looked up in the configuration's ``properties`` mapping
first, then in the process environment and finally falls back to its
default. The environment variable for ``hazelcast.local.localAddress`` is
``HAZELCAST_LOCAL_LOCALADDRESS``.
"""

import os
from typing import Dict, Mapping, Optional


_TRUE_VALUES = ("true", "1", "yes", "on")


def parse_bool(value: Optional[str], default: bool = False) -> bool:
    """Parse a textual boolean flag.

    Args:
        value: Raw value, e.g. ``"true"`` or ``"0"``. ``None`` yields the default.
        default: Value used when ``value`` is ``None`` or blank.

    Returns:
        The parsed flag.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    value = str(value).strip()
    if not value:
        return default
    return value.lower() in _TRUE_VALUES


class PickerProperty:
    """A named property with an optional default value."""

    def __init__(self, name: str, default: Optional[str] = None):
        self._name = name
        self._default = default

    @property
    def name(self) -> str:
        return self._name

    @property
    def default(self) -> Optional[str]:
        return self._default

    @property
    def env_name(self) -> str:
        """Environment variable that can supply this property."""
        return self._name.upper().replace(".", "_").replace("-", "_")

    def __repr__(self) -> str:
        return f"PickerProperty({self._name!r}, {self._default!r})"


LOCAL_ADDRESS = PickerProperty("hazelcast.local.localAddress")
PUBLIC_ADDRESS = PickerProperty("hazelcast.local.publicAddress")
PREFER_IPV4_STACK = PickerProperty("hazelcast.prefer.ipv4.stack", "false")
SOCKET_SERVER_BIND_ANY = PickerProperty("hazelcast.socket.server.bind.any", "true")


class HazelcastProperties:
    """Resolves :class:`PickerProperty` values for one configuration.

    Args:
        properties: Properties declared in the configuration.
        environ: Environment to fall back to. Defaults to ``os.environ``.
    """

    def __init__(
        self,
        properties: Optional[Dict[str, str]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self._properties = dict(properties or {})
        self._environ = os.environ if environ is None else environ

    def get_string(self, prop: PickerProperty) -> Optional[str]:
        value = self._properties.get(prop.name)
        if value is None:
            value = self._environ.get(prop.env_name)
        if value is None:
            return prop.default
        return str(value)

    def get_boolean(self, prop: PickerProperty) -> bool:
        return parse_bool(self.get_string(prop), parse_bool(prop.default))
