"""Member network configuration consumed by the address picker."""

import os
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

import yaml

from hazelcast_picker.exceptions import ConfigurationException
from hazelcast_picker import properties as props
from hazelcast_picker.properties import HazelcastProperties, parse_bool

PREFER_IPV4_STACK_ENV = "HZ_PREFER_IPV4_STACK"
PREFER_IPV6_ADDRESSES_ENV = "HZ_PREFER_IPV6_ADDRESSES"

DEFAULT_PORT = 5701
DEFAULT_PORT_COUNT = 100


class InterfacesConfig:
    """Restricts the addresses a member may bind to.

    Entries are literal IPs or patterns such as ``10.0.*.*``,
    ``10.3.10.4-18`` or ``10.0.0.0/8``.
    """

    def __init__(self, enabled: bool = False, interfaces: List[str] = None):
        self._enabled = enabled
        self._interfaces = list(interfaces or [])

    @property
    def enabled(self) -> bool:
        """Get whether interface matching is enabled."""
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = value

    @property
    def interfaces(self) -> List[str]:
        """Get the configured interface patterns."""
        return self._interfaces

    @interfaces.setter
    def interfaces(self, value: List[str]) -> None:
        self._interfaces = list(value or [])

    def add_interface(self, interface: str) -> "InterfacesConfig":
        """Add an interface pattern."""
        self._interfaces.append(interface)
        return self

    @classmethod
    def from_dict(cls, data: dict) -> "InterfacesConfig":
        """Create InterfacesConfig from a dictionary."""
        return cls(
            enabled=parse_bool(data.get("enabled"), False),
            interfaces=_as_list(data, "interfaces"),
        )


class TcpIpConfig:
    """Static list of cluster members used for discovery.

    Each member string is an IP or hostname with an optional port or port
    range; one string may hold several members separated by commas.
    """

    def __init__(self, enabled: bool = False, members: List[str] = None):
        self._enabled = enabled
        self._members = list(members or [])

    @property
    def enabled(self) -> bool:
        """Get whether TCP/IP member discovery is enabled."""
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = value

    @property
    def members(self) -> List[str]:
        """Get the configured members."""
        return self._members

    @members.setter
    def members(self, value: List[str]) -> None:
        self._members = list(value or [])

    def add_member(self, member: str) -> "TcpIpConfig":
        """Add a member address."""
        self._members.append(member)
        return self

    @classmethod
    def from_dict(cls, data: dict) -> "TcpIpConfig":
        """Create TcpIpConfig from a dictionary."""
        return cls(
            enabled=parse_bool(data.get("enabled"), False),
            members=_as_list(data, "members"),
        )


class JoinConfig:
    """Cluster join configuration."""

    def __init__(self, tcp_ip: TcpIpConfig = None):
        self._tcp_ip = tcp_ip or TcpIpConfig()

    @property
    def tcp_ip(self) -> TcpIpConfig:
        """Get the TCP/IP join configuration."""
        return self._tcp_ip

    @tcp_ip.setter
    def tcp_ip(self, value: TcpIpConfig) -> None:
        self._tcp_ip = value

    @classmethod
    def from_dict(cls, data: dict) -> "JoinConfig":
        """Create JoinConfig from a dictionary."""
        return cls(tcp_ip=TcpIpConfig.from_dict(_section(data, "tcp_ip")))


class NetworkConfig:
    """Network configuration of a cluster member."""

    def __init__(
        self,
        port: int = DEFAULT_PORT,
        port_auto_increment: bool = True,
        port_count: int = DEFAULT_PORT_COUNT,
        reuse_address: bool = True,
        public_address: Optional[str] = None,
        interfaces: InterfacesConfig = None,
        join: JoinConfig = None,
    ):
        self._port = port
        self._port_auto_increment = port_auto_increment
        self._port_count = port_count
        self._reuse_address = reuse_address
        self._public_address = public_address
        self._interfaces = interfaces or InterfacesConfig()
        self._join = join or JoinConfig()
        self._validate()

    def _validate(self) -> None:
        if not isinstance(self._port, int) or self._port < 0 or self._port > 65535:
            raise ConfigurationException("port must be between 0 and 65535")
        if not isinstance(self._port_count, int) or self._port_count < 1:
            raise ConfigurationException("port_count must be at least 1")

    @property
    def port(self) -> int:
        """Get the member port; 0 requests an ephemeral port."""
        return self._port

    @port.setter
    def port(self, value: int) -> None:
        self._port = value
        self._validate()

    @property
    def port_auto_increment(self) -> bool:
        """Get whether following ports are tried when the port is taken."""
        return self._port_auto_increment

    @port_auto_increment.setter
    def port_auto_increment(self, value: bool) -> None:
        self._port_auto_increment = value

    @property
    def port_count(self) -> int:
        """Get the number of ports tried when auto-increment is enabled."""
        return self._port_count

    @port_count.setter
    def port_count(self, value: int) -> None:
        self._port_count = value
        self._validate()

    @property
    def reuse_address(self) -> bool:
        """Get whether SO_REUSEADDR is set on the server socket."""
        return self._reuse_address

    @reuse_address.setter
    def reuse_address(self, value: bool) -> None:
        self._reuse_address = value

    @property
    def public_address(self) -> Optional[str]:
        """Get the address advertised to other members, ``host[:port]``."""
        return self._public_address

    @public_address.setter
    def public_address(self, value: Optional[str]) -> None:
        self._public_address = value

    @property
    def interfaces(self) -> InterfacesConfig:
        """Get the interfaces configuration."""
        return self._interfaces

    @interfaces.setter
    def interfaces(self, value: InterfacesConfig) -> None:
        self._interfaces = value

    @property
    def join(self) -> JoinConfig:
        """Get the join configuration."""
        return self._join

    @join.setter
    def join(self, value: JoinConfig) -> None:
        self._join = value

    @classmethod
    def from_dict(cls, data: dict) -> "NetworkConfig":
        """Create NetworkConfig from a dictionary."""
        return cls(
            port=data.get("port", DEFAULT_PORT),
            port_auto_increment=parse_bool(data.get("port_auto_increment"), True),
            port_count=data.get("port_count", DEFAULT_PORT_COUNT),
            reuse_address=parse_bool(data.get("reuse_address"), True),
            public_address=data.get("public_address"),
            interfaces=InterfacesConfig.from_dict(_section(data, "interfaces")),
            join=JoinConfig.from_dict(_section(data, "join")),
        )


class Config:
    """Member configuration.

    Example:
        Programmatic configuration::

            config = Config()
            config.network.interfaces.enabled = True
            config.network.interfaces.add_interface("10.0.*.*")
            config.set_property("hazelcast.prefer.ipv4.stack", "true")

        Loading from YAML::

            config = Config.from_yaml("hazelcast.yaml")
    """

    def __init__(
        self,
        network: NetworkConfig = None,
        properties: Dict[str, str] = None,
    ):
        self._network = network or NetworkConfig()
        self._properties = dict(properties or {})

    @property
    def network(self) -> NetworkConfig:
        """Get the network configuration."""
        return self._network

    @network.setter
    def network(self, value: NetworkConfig) -> None:
        self._network = value

    @property
    def properties(self) -> Dict[str, str]:
        """Get the configured member properties."""
        return self._properties

    def get_property(self, name: str) -> Optional[str]:
        """Get a configured property, or None."""
        return self._properties.get(name)

    def set_property(self, name: str, value: str) -> "Config":
        """Set a member property."""
        self._properties[name] = value
        return self

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        """Create Config from a dictionary."""
        config = cls()

        if "network" in data:
            config.network = NetworkConfig.from_dict(_section(data, "network"))

        for name, value in _section(data, "properties").items():
            config.set_property(name, str(value).lower() if isinstance(value, bool) else str(value))

        return config

    @classmethod
    def from_yaml(cls, yaml_path: str) -> "Config":
        """Load configuration from a YAML file.

        Raises:
            ConfigurationException: If the file cannot be read or parsed.
        """
        if not os.path.exists(yaml_path):
            raise ConfigurationException(f"Configuration file not found: {yaml_path}")

        try:
            with open(yaml_path, "r", encoding="utf-8") as f:
                content = f.read()
        except IOError as e:
            raise ConfigurationException(f"Failed to read configuration file: {e}", cause=e)

        return cls.from_yaml_string(content)

    @classmethod
    def from_yaml_string(cls, yaml_content: str) -> "Config":
        """Load configuration from a YAML string.

        Raises:
            ConfigurationException: If the YAML cannot be parsed.
        """
        try:
            data = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise ConfigurationException(f"Failed to parse YAML: {e}", cause=e)

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationException("Configuration root must be a mapping")

        if "hazelcast" in data:
            data = _section(data, "hazelcast")

        return cls.from_dict(data)


@dataclass(frozen=True)
class AddressPickerSettings:
    """Everything the address picker reads from configuration.

    Built once from a :class:`Config` and the process environment so the
    picker itself performs no hidden lookups.

    Attributes:
        local_address: Forced bind address, or None.
        public_address: Forced public address, ``host[:port]``, or None.
        interfaces_enabled: Whether interface matching is enabled.
        interfaces: Configured interface patterns.
        tcp_ip_enabled: Whether the TCP/IP member list is enabled.
        members: Configured discovery members.
        prefer_ipv4_stack: Never pick an IPv6 address.
        prefer_ipv6_addresses: Prefer IPv6 over IPv4; always False when
            ``prefer_ipv4_stack`` is set.
        bind_any: Listen on the wildcard address instead of the picked one.
    """

    local_address: Optional[str] = None
    public_address: Optional[str] = None
    interfaces_enabled: bool = False
    interfaces: Tuple[str, ...] = ()
    tcp_ip_enabled: bool = False
    members: Tuple[str, ...] = ()
    prefer_ipv4_stack: bool = False
    prefer_ipv6_addresses: bool = False
    bind_any: bool = True

    def __post_init__(self):
        object.__setattr__(self, "interfaces", tuple(self.interfaces))
        object.__setattr__(self, "members", tuple(self.members))
        if self.prefer_ipv4_stack and self.prefer_ipv6_addresses:
            object.__setattr__(self, "prefer_ipv6_addresses", False)

    @classmethod
    def from_config(
        cls,
        config: Config,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "AddressPickerSettings":
        """Collect the picker inputs from a configuration.

        Args:
            config: The member configuration.
            environ: Environment holding process-wide flags. Defaults to
                ``os.environ``.
        """
        environ = os.environ if environ is None else environ
        properties = HazelcastProperties(config.properties, environ)
        network = config.network

        local_address = _strip(properties.get_string(props.LOCAL_ADDRESS))
        public_address = _strip(properties.get_string(props.PUBLIC_ADDRESS))
        if public_address is None:
            public_address = _strip(network.public_address)

        prefer_ipv4_stack = parse_bool(environ.get(PREFER_IPV4_STACK_ENV)) or properties.get_boolean(
            props.PREFER_IPV4_STACK
        )
        prefer_ipv6_addresses = not prefer_ipv4_stack and parse_bool(
            environ.get(PREFER_IPV6_ADDRESSES_ENV)
        )

        return cls(
            local_address=local_address,
            public_address=public_address,
            interfaces_enabled=parse_bool(network.interfaces.enabled),
            interfaces=tuple(network.interfaces.interfaces),
            tcp_ip_enabled=parse_bool(network.join.tcp_ip.enabled),
            members=tuple(network.join.tcp_ip.members),
            prefer_ipv4_stack=prefer_ipv4_stack,
            prefer_ipv6_addresses=prefer_ipv6_addresses,
            bind_any=properties.get_boolean(props.SOCKET_SERVER_BIND_ANY),
        )


def _strip(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _section(data: dict, key: str) -> dict:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationException(f"'{key}' must be a mapping, got {type(value).__name__}")
    return value


def _as_list(data: dict, key: str) -> List[str]:
    value = data.get(key)
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ConfigurationException(f"'{key}' must be a list, got {type(value).__name__}")
    return [str(item) for item in value]
