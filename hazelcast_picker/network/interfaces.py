"""Enumeration of the host's network interfaces."""

import ipaddress
import socket
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Tuple

import psutil

from hazelcast_picker.exceptions import (
    IllegalArgumentException,
    InterfaceEnumerationException,
)
from hazelcast_picker.logging import get_logger
from hazelcast_picker.network.definitions import IPAddress

_logger = get_logger("network.interfaces")


@dataclass(frozen=True)
class NetworkInterface:
    """A local network interface and the IP addresses assigned to it.

    Attributes:
        name: OS name of the interface, e.g. ``eth0`` or ``eth0:1``.
        addresses: Assigned IPv4 and IPv6 addresses in OS order.
        is_up: Whether the interface is administratively up.
        is_virtual: Whether the interface is an alias/sub-interface.
        is_loopback: Whether the interface is the loopback interface.
    """

    name: str
    addresses: Tuple[IPAddress, ...] = ()
    is_up: bool = True
    is_virtual: bool = False
    is_loopback: bool = False


InterfaceLister = Callable[[], Iterable[NetworkInterface]]


def list_network_interfaces() -> List[NetworkInterface]:
    """List the host's interfaces using psutil.

    Interfaces are returned in the order the OS reports them. Link-layer
    entries are ignored; IPv6 link-local addresses keep their zone index.
    An alias such as ``eth0:1`` is reported as virtual.
    """
    stats = psutil.net_if_stats()
    interfaces = []
    for name, entries in psutil.net_if_addrs().items():
        addresses = []
        for entry in entries:
            if entry.family not in (socket.AF_INET, socket.AF_INET6):
                continue
            try:
                addresses.append(ipaddress.ip_address(entry.address))
            except ValueError:
                _logger.debug("Ignoring unparsable address '%s' on %s", entry.address, name)

        stat = stats.get(name)
        flags = stat.flags.split(",") if stat is not None and stat.flags else []
        is_loopback = "loopback" in flags or (
            bool(addresses) and all(address.is_loopback for address in addresses)
        )
        interfaces.append(
            NetworkInterface(
                name=name,
                addresses=tuple(addresses),
                is_up=stat.isup if stat is not None else False,
                is_virtual=":" in name,
                is_loopback=is_loopback,
            )
        )
    return interfaces


class InterfaceEnumerator:
    """Lists local interfaces and applies the automatic skip policy.

    Args:
        lister: Callable returning the interfaces to consider. Defaults to
            :func:`list_network_interfaces`; tests pass synthetic sets.
    """

    def __init__(self, lister: InterfaceLister = list_network_interfaces):
        self._lister = lister

    def get_interfaces(self) -> List[NetworkInterface]:
        """List the interfaces.

        Raises:
            InterfaceEnumerationException: If the OS refuses to list them.
        """
        try:
            return list(self._lister())
        except (OSError, psutil.Error) as e:
            raise InterfaceEnumerationException(
                f"Cannot list network interfaces: {e}", cause=e
            )

    def should_skip(self, ni: NetworkInterface) -> bool:
        """Check whether an interface is down, virtual or loopback."""
        skip = not ni.is_up or ni.is_virtual or ni.is_loopback
        if skip:
            _logger.debug(
                "Skipping NetworkInterface '%s': isUp=%s, isVirtual=%s, isLoopback=%s",
                ni.name,
                ni.is_up,
                ni.is_virtual,
                ni.is_loopback,
            )
        return skip

    def addresses(self, filter_interfaces: bool = True) -> Iterator[Tuple[NetworkInterface, IPAddress]]:
        """Yield ``(interface, address)`` pairs in enumeration order.

        Args:
            filter_interfaces: Skip interfaces that are down, virtual or
                loopback. Pass False when an explicit pool is configured.
        """
        for ni in self.get_interfaces():
            if filter_interfaces and self.should_skip(ni):
                continue
            for inet_address in ni.addresses:
                yield ni, inet_address

    def fix_scope_id(self, inet_address: IPAddress) -> IPAddress:
        """Attach the zone index to a link-local or site-local IPv6 address.

        The address is looked up on every local interface. Addresses that
        are IPv4, already scoped or not local are returned unchanged, as is
        an address found on no interface.

        Raises:
            IllegalArgumentException: If the address is assigned to more
                than one interface.
        """
        if inet_address.version != 6:
            return inet_address
        if not (inet_address.is_link_local or inet_address.is_site_local):
            return inet_address
        if inet_address.scope_id:
            return inet_address

        found = None
        for ni in self.get_interfaces():
            for candidate in ni.addresses:
                if candidate.version != 6 or candidate.packed != inet_address.packed:
                    continue
                if found is not None:
                    raise IllegalArgumentException(
                        f"This address {inet_address} is bound to more than one network interface!"
                    )
                found = candidate if candidate.scope_id else ipaddress.IPv6Address(f"{candidate}%{ni.name}")
        return found if found is not None else inet_address
