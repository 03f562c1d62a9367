"""Value types describing configured interfaces and picked addresses."""

import ipaddress
from dataclasses import dataclass, replace
from typing import Optional, Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


def host_address(inet_address: IPAddress) -> str:
    """Textual form of an IP address without its IPv6 zone index."""
    text = str(inet_address)
    return text.split("%", 1)[0]


@dataclass(frozen=True)
class InterfaceDefinition:
    """A configured interface: an IP address or pattern plus optional hostname.

    Attributes:
        address: Literal IP or address pattern such as ``10.0.*.*``.
        host: Hostname this entry was resolved from, if any.
    """

    address: str
    host: Optional[str] = None

    def __str__(self) -> str:
        if self.host is not None:
            return f"{self.host}/{self.address}"
        return self.address


@dataclass(frozen=True)
class ResolvedEndpoint:
    """A concrete IP address with an optional port (0 when unspecified)."""

    inet_address: IPAddress
    port: int = 0


@dataclass(frozen=True)
class AddressDefinition:
    """A candidate member address: an interface plus its resolved endpoint."""

    interface: InterfaceDefinition
    endpoint: ResolvedEndpoint

    @classmethod
    def of(
        cls,
        inet_address: IPAddress,
        host: Optional[str] = None,
        port: int = 0,
    ) -> "AddressDefinition":
        return cls(
            InterfaceDefinition(str(inet_address), host),
            ResolvedEndpoint(inet_address, port),
        )

    @property
    def host(self) -> Optional[str]:
        return self.interface.host

    @property
    def address(self) -> str:
        return self.interface.address

    @property
    def inet_address(self) -> IPAddress:
        return self.endpoint.inet_address

    @property
    def port(self) -> int:
        return self.endpoint.port

    def with_inet_address(self, inet_address: IPAddress) -> "AddressDefinition":
        """Copy of this definition pointing at another IP address."""
        return AddressDefinition(
            replace(self.interface, address=str(inet_address)),
            replace(self.endpoint, inet_address=inet_address),
        )

    def __str__(self) -> str:
        return str(self.interface)
