"""Hostname resolution for configured member and interface addresses."""

import ipaddress
import socket
from typing import List

from hazelcast_picker.exceptions import HostnameResolutionException
from hazelcast_picker.logging import get_logger
from hazelcast_picker.network.definitions import IPAddress

_logger = get_logger("network.resolver")


class DomainResolver:
    """Resolves hostnames through the host's name resolution service."""

    def resolve(self, hostname: str) -> List[str]:
        """Resolve a hostname to its IP addresses.

        Every successful resolution is reported, since cluster membership
        that relies on DNS is only as trustworthy as the DNS setup.

        Args:
            hostname: The hostname to resolve.

        Returns:
            Distinct textual IP addresses in resolver order, never empty.

        Raises:
            HostnameResolutionException: If the hostname cannot be resolved.
        """
        try:
            infos = socket.getaddrinfo(hostname, None, socket.AF_UNSPEC, socket.SOCK_STREAM)
        except (socket.gaierror, UnicodeError) as e:
            raise HostnameResolutionException(
                f"Cannot resolve hostname: '{hostname}'", hostname=hostname, cause=e
            )

        addresses = []
        for info in infos:
            address = info[4][0]
            if address not in addresses:
                addresses.append(address)
        if not addresses:
            raise HostnameResolutionException(
                f"Hostname '{hostname}' resolved to no address", hostname=hostname
            )

        _logger.warning(
            "You configured your member address as host name. "
            "Please be aware of that your dns can be spoofed. "
            "Make sure that your dns configurations are correct."
        )
        _logger.info("Resolving domain name '%s' to address(es): %s", hostname, addresses)
        return addresses

    def resolve_one(self, host: str) -> IPAddress:
        """Turn a literal IP or a hostname into a single IP address.

        Literal addresses, including IPv6 with a zone index, are parsed
        without touching DNS; hostnames yield their first resolved address.

        Raises:
            HostnameResolutionException: If the hostname cannot be resolved.
        """
        try:
            return ipaddress.ip_address(host)
        except ValueError:
            pass
        return ipaddress.ip_address(self.resolve(host)[0])
