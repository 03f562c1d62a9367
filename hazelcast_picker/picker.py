"""Picks the bind and public addresses of a cluster member.

The picker runs once during member startup:

1. The bind address comes from the ``hazelcast.local.localAddress``
   property when set. Otherwise it is picked from the local interfaces,
   restricted to the configured interface patterns or, when interface
   matching is disabled, to the TCP/IP join members. Loopback is used
   when nothing else qualifies.
2. A server socket is opened on the bind address; its actual port becomes
   the port of both addresses.
3. The public address comes from ``hazelcast.local.publicAddress`` or the
   network ``public_address``, and defaults to the bind address.

Example:
    >>> picker = DefaultAddressPicker(Config.from_yaml("hazelcast.yaml"))
    >>> picker.pick_address()
    >>> picker.get_bind_address()
    Address('10.0.0.4', 5701)
"""

import ipaddress
import socket
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional

from hazelcast_picker.config import AddressPickerSettings, Config
from hazelcast_picker.exceptions import (
    HostnameResolutionException,
    IllegalStateException,
    NoMatchingInterfaceException,
)
from hazelcast_picker.logging import get_logger
from hazelcast_picker.network.address import Address, AddressHelper
from hazelcast_picker.network.definitions import (
    AddressDefinition,
    InterfaceDefinition,
    IPAddress,
    host_address,
)
from hazelcast_picker.network.interfaces import InterfaceEnumerator, InterfaceLister
from hazelcast_picker.network.matcher import is_ip_address, matches
from hazelcast_picker.network.resolver import DomainResolver
from hazelcast_picker.network.server_socket import ServerSocketFactory
from hazelcast_picker.properties import LOCAL_ADDRESS

_logger = get_logger("address_picker")

LOOPBACK_ADDRESS = ipaddress.IPv4Address("127.0.0.1")
_LOOPBACK_NAMES = ("127.0.0.1", "localhost")


class AddressPicker(ABC):
    """Strategy deciding which addresses a member binds to and advertises."""

    @abstractmethod
    def pick_address(self) -> None:
        """Resolve the bind and public addresses.

        Raises:
            HazelcastException: If the member cannot start with the
                current configuration.
        """
        pass

    @abstractmethod
    def get_bind_address(self) -> Optional[Address]:
        """Address the server socket is bound to, after :meth:`pick_address`."""
        pass

    @abstractmethod
    def get_public_address(self) -> Optional[Address]:
        """Address advertised to other members, after :meth:`pick_address`."""
        pass

    @abstractmethod
    def get_server_socket(self) -> Optional[socket.socket]:
        """The listening socket opened on the bind address."""
        pass


class DefaultAddressPicker(AddressPicker):
    """Address picker driven by member configuration and local interfaces.

    Args:
        config: The member configuration.
        settings: Picker inputs. Defaults to
            ``AddressPickerSettings.from_config(config)``.
        interface_lister: Callable listing the local interfaces. Defaults
            to the psutil-based lister.
        resolver: Hostname resolver.
        socket_factory: Opens the server socket. Defaults to a factory
            built from ``config.network``.
    """

    def __init__(
        self,
        config: Config,
        settings: Optional[AddressPickerSettings] = None,
        interface_lister: Optional[InterfaceLister] = None,
        resolver: Optional[DomainResolver] = None,
        socket_factory: Optional[ServerSocketFactory] = None,
    ):
        network = config.network
        self._config = config
        self._settings = settings or AddressPickerSettings.from_config(config)
        if interface_lister is not None:
            self._enumerator = InterfaceEnumerator(interface_lister)
        else:
            self._enumerator = InterfaceEnumerator()
        self._resolver = resolver or DomainResolver()
        self._socket_factory = socket_factory or ServerSocketFactory(
            port=network.port,
            port_auto_increment=network.port_auto_increment,
            port_count=network.port_count,
            reuse_address=network.reuse_address,
        )
        self._server_socket: Optional[socket.socket] = None
        self._bind_address: Optional[Address] = None
        self._public_address: Optional[Address] = None
        self._closed = False

    @property
    def settings(self) -> AddressPickerSettings:
        return self._settings

    def pick_address(self) -> None:
        if self._bind_address is not None or self._public_address is not None:
            return
        try:
            bind_address_def = self._pick_address_definition()
            bind_any = self._settings.bind_any
            self._server_socket = self._socket_factory.open(
                bind_address_def.inet_address, bind_address_def.port, bind_any
            )
            port = self._server_socket.getsockname()[1]
            bind_address = self._create_address(bind_address_def, port)
            _logger.info(
                "Picked %s, using socket %s, bind any local is %s",
                bind_address,
                self._server_socket.getsockname(),
                bind_any,
            )

            public_address_def = self._get_public_address_definition(port)
            if public_address_def is not None:
                public_address = self._create_address(public_address_def, public_address_def.port)
                _logger.info("Using public address: %s", public_address)
            else:
                public_address = bind_address
                _logger.debug("Using public address the same as the bind address: %s", public_address)
        except Exception as e:
            self._close_server_socket()
            _logger.error("Cannot pick an address for this member: %s", e)
            raise

        self._bind_address = bind_address
        self._public_address = public_address

    def get_bind_address(self) -> Optional[Address]:
        return self._bind_address

    def get_public_address(self) -> Optional[Address]:
        return self._public_address

    def get_server_socket(self) -> Optional[socket.socket]:
        if self._closed:
            raise IllegalStateException("Address picker is closed")
        return self._server_socket

    def close(self) -> None:
        """Close the server socket opened by :meth:`pick_address`."""
        self._close_server_socket()
        self._closed = True

    def _close_server_socket(self) -> None:
        if self._server_socket is not None:
            self._server_socket.close()
            self._server_socket = None

    def _pick_address_definition(self) -> AddressDefinition:
        strategies: List[Callable[[], Optional[AddressDefinition]]] = [
            self._configured_local_address,
            self._matching_interface_address,
        ]
        for strategy in strategies:
            definition = strategy()
            if definition is not None:
                inet_address = self._enumerator.fix_scope_id(definition.inet_address)
                if inet_address != definition.inet_address:
                    definition = definition.with_inet_address(inet_address)
                return definition
        return self._pick_loopback_address()

    def _configured_local_address(self) -> Optional[AddressDefinition]:
        address = self._settings.local_address
        if address is None:
            return None
        if address in _LOOPBACK_NAMES:
            return self._pick_loopback_address()
        _logger.info("Picking address configured by property '%s'", LOCAL_ADDRESS.name)
        return AddressDefinition.of(self._resolver.resolve_one(address), host=address)

    def _matching_interface_address(self) -> Optional[AddressDefinition]:
        settings = self._settings
        interfaces = self._get_interfaces()
        if InterfaceDefinition("127.0.0.1") in interfaces or InterfaceDefinition("localhost") in interfaces:
            return self._pick_loopback_address()

        _logger.info(
            "Prefer IPv4 stack is %s, prefer IPv6 addresses is %s",
            settings.prefer_ipv4_stack,
            settings.prefer_ipv6_addresses,
        )
        if interfaces:
            definition = self.pick_matching_address(interfaces)
            if definition is not None:
                return definition

        if settings.interfaces_enabled:
            message = (
                "Hazelcast CANNOT start on this node. No matching network interface found.\n"
                "Interface matching must be either disabled or updated in the member configuration. "
                f"Configured interfaces: {list(settings.interfaces)}"
            )
            _logger.error(message)
            raise NoMatchingInterfaceException(message, settings.interfaces)
        if settings.tcp_ip_enabled:
            _logger.warning(
                "Could not find a matching address to start with! Picking one of non-loopback addresses."
            )
        return self.pick_matching_address(None)

    def _get_interfaces(self) -> List[InterfaceDefinition]:
        settings = self._settings
        address_domains = self._resolve_member_addresses() if settings.tcp_ip_enabled else {}

        interfaces: List[InterfaceDefinition] = []
        if settings.interfaces_enabled:
            for configured in settings.interfaces:
                configured = configured.strip()
                if not is_ip_address(configured):
                    _logger.warning("'%s' is not an IP address! Removing from interface list.", configured)
                    continue
                hostname = _find_hostname_matching_interface(address_domains, configured)
                _add_unique(interfaces, InterfaceDefinition(configured, hostname))
            _logger.info(
                "Interfaces is enabled, trying to pick one address matching to one of: %s",
                _describe(interfaces),
            )
        elif settings.tcp_ip_enabled:
            for address, hostname in address_domains.items():
                _add_unique(interfaces, InterfaceDefinition(address, hostname))
            _logger.info(
                "Interfaces is disabled, trying to pick one address from TCP-IP config addresses: %s",
                _describe(interfaces),
            )
        return interfaces

    def _resolve_member_addresses(self) -> Dict[str, Optional[str]]:
        # address -> hostname it was resolved from, in configuration order
        address_domains: Dict[str, Optional[str]] = {}
        for member in AddressHelper.split_members(list(self._settings.members)):
            host = AddressHelper.parse(member).address
            if is_ip_address(host):
                address_domains.setdefault(host, None)
                continue
            try:
                for address in self._resolver.resolve(host):
                    address_domains[address] = host
            except HostnameResolutionException:
                _logger.warning("Cannot resolve hostname: '%s'", host)
        return address_domains

    def pick_matching_address(
        self, interfaces: Optional[List[InterfaceDefinition]]
    ) -> Optional[AddressDefinition]:
        """Scan the local interfaces for an address in ``interfaces``.

        With no interfaces given, any non-loopback address of an interface
        that is up, physical and not loopback qualifies. The first address
        of the preferred family is returned immediately; IPv6 is preferred
        only with ``prefer_ipv6_addresses``, otherwise IPv4. When the scan
        ends without such an address, the last qualifying address of the
        other family is returned.
        """
        prefer_ipv4_stack = self._settings.prefer_ipv4_stack
        prefer_ipv6_addresses = self._settings.prefer_ipv6_addresses
        matching_address = None

        for _, inet_address in self._enumerator.addresses(filter_interfaces=not interfaces):
            if prefer_ipv4_stack and inet_address.version == 6:
                continue

            definition = self._get_matching_address(interfaces, inet_address)
            if definition is None:
                continue
            matching_address = definition

            if prefer_ipv6_addresses:
                if inet_address.version == 6:
                    return matching_address
            elif inet_address.version == 4:
                return matching_address

        return matching_address

    @staticmethod
    def _get_matching_address(
        interfaces: Optional[List[InterfaceDefinition]], inet_address: IPAddress
    ) -> Optional[AddressDefinition]:
        if interfaces:
            for interface in interfaces:
                if matches(inet_address, interface.address):
                    return AddressDefinition.of(inet_address, host=interface.host)
            return None
        if not inet_address.is_loopback:
            return AddressDefinition.of(inet_address)
        return None

    def _get_public_address_definition(self, port: int) -> Optional[AddressDefinition]:
        address = self._settings.public_address
        if address is None:
            return None
        if address in _LOOPBACK_NAMES:
            return AddressDefinition.of(LOOPBACK_ADDRESS, host=address, port=port)

        holder = AddressHelper.parse(address, default_port=port)
        host = holder.address
        if holder.scope_id:
            host = f"{host}%{holder.scope_id}"
        return AddressDefinition.of(
            self._resolver.resolve_one(host), host=holder.address, port=holder.port
        )

    @staticmethod
    def _pick_loopback_address() -> AddressDefinition:
        return AddressDefinition.of(LOOPBACK_ADDRESS)

    @staticmethod
    def _create_address(definition: AddressDefinition, port: int) -> Address:
        inet_address = definition.inet_address
        scope_id = inet_address.scope_id if inet_address.version == 6 else None
        host = host_address(inet_address) if definition.host is None else definition.host
        return Address(host, port, scope_id=scope_id)


def _find_hostname_matching_interface(
    address_domains: Dict[str, Optional[str]], configured: str
) -> Optional[str]:
    hostname = address_domains.get(configured)
    if hostname is not None:
        return hostname
    for address, domain in address_domains.items():
        if matches(address, configured):
            return domain
    return None


def _add_unique(interfaces: List[InterfaceDefinition], interface: InterfaceDefinition) -> None:
    if interface not in interfaces:
        interfaces.append(interface)


def _describe(interfaces: List[InterfaceDefinition]) -> str:
    return "[" + ", ".join(str(interface) for interface in interfaces) + "]"
