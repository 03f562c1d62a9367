"""Member address representation and ``host:port`` parsing."""

import re
from typing import List, Optional


_PORT_PATTERN = re.compile(r"^(\d+)(?:-(\d+))?$")
_MAX_PORT = 65535


class Address:
    """A usable network address of a cluster member.

    The host is either a hostname (when the address was picked through a
    configured hostname) or a literal IP without zone index. The zone
    index of an IPv6 link-local address is kept separately in
    :attr:`scope_id`.
    """

    DEFAULT_PORT = 5701

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        scope_id: Optional[str] = None,
    ):
        self._host = host
        self._port = port
        self._scope_id = scope_id

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def scope_id(self) -> Optional[str]:
        return self._scope_id

    @property
    def is_ipv6(self) -> bool:
        return ":" in self._host

    def __str__(self) -> str:
        if self.is_ipv6:
            return f"[{self._host}]:{self._port}"
        return f"{self._host}:{self._port}"

    def __repr__(self) -> str:
        return f"Address({self._host!r}, {self._port})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Address):
            return False
        return self._host == other._host and self._port == other._port

    def __hash__(self) -> int:
        return hash((self._host, self._port))


class AddressHolder:
    """Result of splitting an address string into its host and port.

    Attributes:
        address: Host or literal IP, without brackets or zone index.
        port: Port given in the string, or the default port.
        scope_id: IPv6 zone index, if the string carried one.
    """

    def __init__(self, address: str, port: int, scope_id: Optional[str] = None):
        self.address = address
        self.port = port
        self.scope_id = scope_id

    def __repr__(self) -> str:
        return f"AddressHolder({self.address!r}, {self.port}, scope_id={self.scope_id!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AddressHolder):
            return False
        return (
            self.address == other.address
            and self.port == other.port
            and self.scope_id == other.scope_id
        )


class AddressHelper:
    """Utility class for parsing configured addresses."""

    @staticmethod
    def parse(address_string: str, default_port: int = Address.DEFAULT_PORT) -> AddressHolder:
        """Split an address string into host, port and zone index.

        Accepted forms are ``host``, ``host:port``, ``a.b.c.d:port``,
        ``[ipv6]:port``, ``[ipv6%zone]:port`` and bare IPv6 (``fe80::1%eth0``).
        A port range such as ``5701-5703`` contributes its first port.

        Args:
            address_string: The address to parse.
            default_port: Port used when the string has none or its port is
                outside 0..65535.

        Returns:
            AddressHolder for the string.
        """
        address_string = address_string.strip()
        host = address_string
        port = default_port

        if address_string.startswith("["):
            bracket_end = address_string.find("]")
            if bracket_end > 0:
                host = address_string[1:bracket_end]
                rest = address_string[bracket_end + 1:]
                if rest.startswith(":"):
                    port = AddressHelper._parse_port(rest[1:], default_port)
        elif address_string.count(":") == 1:
            candidate_host, port_str = address_string.rsplit(":", 1)
            if _PORT_PATTERN.match(port_str.strip()):
                host = candidate_host
                port = AddressHelper._parse_port(port_str, default_port)

        scope_id = None
        if "%" in host:
            host, scope_id = host.split("%", 1)
        return AddressHolder(host, port, scope_id)

    @staticmethod
    def _parse_port(port_str: str, default: Optional[int]) -> Optional[int]:
        match = _PORT_PATTERN.match(port_str.strip())
        if match is None:
            return default
        port = int(match.group(1))
        last = int(match.group(2)) if match.group(2) else port
        if port > _MAX_PORT or last > _MAX_PORT:
            return default
        return port

    @staticmethod
    def split_members(members: List[str]) -> List[str]:
        """Split configured member strings into individual entries.

        A single member string may list several addresses separated by
        commas, semicolons or whitespace. Order is preserved and empty
        entries are dropped.
        """
        result = []
        for member in members:
            for entry in re.split(r"[,;\s]+", member or ""):
                if entry:
                    result.append(entry)
        return result
