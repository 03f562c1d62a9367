"""Matching of literal IP addresses against configured address patterns.

Supported pattern forms:

* a literal address, ``10.0.0.5`` or ``fe80::1``
* per-segment wildcards and ranges, ``10.0.*.*``, ``10.3.10.4-18``, ``fe80::*``
* an inclusive whole-address range, ``10.0.0.0-10.0.0.255``
* a CIDR block, ``10.0.0.0/8`` or ``2001:db8::/32``

Matching is purely numeric. No DNS or interface lookups happen here.

Example:
    >>> matches("10.0.3.7", "10.0.*.*")
    True
    >>> matches("10.1.3.7", "10.0.0.0/16")
    False
"""

import ipaddress
import re
from abc import ABC, abstractmethod
from typing import Tuple, Union

from hazelcast_picker.exceptions import IllegalArgumentException
from hazelcast_picker.network.definitions import IPAddress

_IPV4_SEGMENT = re.compile(r"^\d{1,3}$")
_IPV6_SEGMENT = re.compile(r"^[0-9a-fA-F]{1,4}$")

Segment = Tuple[int, int]


def _strip_zone(text: str) -> str:
    return text.split("%", 1)[0]


def _segments(inet_address: IPAddress) -> Tuple[int, ...]:
    packed = inet_address.packed
    if inet_address.version == 4:
        return tuple(packed)
    return tuple(int.from_bytes(packed[i:i + 2], "big") for i in range(0, 16, 2))


class AddressPattern(ABC):
    """A parsed address pattern for one IP version."""

    def __init__(self, version: int):
        self.version = version

    def match(self, inet_address: IPAddress) -> bool:
        if inet_address.version != self.version:
            return False
        return self._match(inet_address)

    @abstractmethod
    def _match(self, inet_address: IPAddress) -> bool:
        pass


class RangePattern(AddressPattern):
    """Inclusive range between two addresses; a literal is a one-address range."""

    def __init__(self, first: IPAddress, last: IPAddress):
        super().__init__(first.version)
        self._first = int(first)
        self._last = int(last)

    def _match(self, inet_address: IPAddress) -> bool:
        return self._first <= int(inet_address) <= self._last


class NetworkPattern(AddressPattern):
    """CIDR block."""

    def __init__(self, network: Union[ipaddress.IPv4Network, ipaddress.IPv6Network]):
        super().__init__(network.version)
        self._network = network

    def _match(self, inet_address: IPAddress) -> bool:
        return inet_address in self._network


class SegmentPattern(AddressPattern):
    """Per-segment ranges; ``*`` covers a whole segment."""

    def __init__(self, version: int, segments: Tuple[Segment, ...]):
        super().__init__(version)
        self._segments = segments

    def _match(self, inet_address: IPAddress) -> bool:
        values = _segments(inet_address)
        return all(low <= value <= high for value, (low, high) in zip(values, self._segments))


def _parse_segment(part: str, syntax, base: int, maximum: int) -> Segment:
    if part == "*":
        return 0, maximum
    bounds = part.split("-", 1)
    if not all(syntax.match(bound) for bound in bounds):
        raise IllegalArgumentException(f"Invalid address segment: '{part}'")
    low = int(bounds[0], base)
    high = int(bounds[-1], base)
    if low > high or high > maximum:
        raise IllegalArgumentException(f"Invalid address segment range: '{part}'")
    return low, high


def _parse_ipv4_segments(text: str) -> Tuple[Segment, ...]:
    parts = text.split(".")
    if len(parts) != 4:
        raise IllegalArgumentException(f"Invalid IPv4 pattern: '{text}'")
    return tuple(_parse_segment(part, _IPV4_SEGMENT, 10, 0xFF) for part in parts)


def _parse_ipv6_segments(text: str) -> Tuple[Segment, ...]:
    if text.count("::") > 1:
        raise IllegalArgumentException(f"Invalid IPv6 pattern: '{text}'")
    if "::" in text:
        left, right = text.split("::")
        left_parts = left.split(":") if left else []
        right_parts = right.split(":") if right else []
        missing = 8 - len(left_parts) - len(right_parts)
        if missing < 1:
            raise IllegalArgumentException(f"Invalid IPv6 pattern: '{text}'")
        parts = left_parts + ["0"] * missing + right_parts
    else:
        parts = text.split(":")
    if len(parts) != 8:
        raise IllegalArgumentException(f"Invalid IPv6 pattern: '{text}'")
    return tuple(_parse_segment(part, _IPV6_SEGMENT, 16, 0xFFFF) for part in parts)


def _try_ip(text: str):
    try:
        return ipaddress.ip_address(_strip_zone(text))
    except ValueError:
        return None


def parse_pattern(pattern: str) -> AddressPattern:
    """Parse a configured address pattern.

    Raises:
        IllegalArgumentException: If the pattern is not a valid address,
            range, wildcard pattern or CIDR block.
    """
    if not isinstance(pattern, str) or not pattern.strip():
        raise IllegalArgumentException(f"Invalid address pattern: {pattern!r}")
    text = pattern.strip()

    if "/" in text:
        try:
            return NetworkPattern(ipaddress.ip_network(text, strict=False))
        except ValueError as e:
            raise IllegalArgumentException(f"Invalid CIDR block: '{text}'", cause=e)

    literal = _try_ip(text)
    if literal is not None:
        return RangePattern(literal, literal)

    if text.count("-") == 1:
        first, last = (_try_ip(side.strip()) for side in text.split("-"))
        if first is not None and last is not None:
            if first.version != last.version or int(first) > int(last):
                raise IllegalArgumentException(f"Invalid address range: '{text}'")
            return RangePattern(first, last)

    text = _strip_zone(text)
    if ":" in text:
        return SegmentPattern(6, _parse_ipv6_segments(text))
    return SegmentPattern(4, _parse_ipv4_segments(text))


def is_ip_address(address: str) -> bool:
    """Check whether a string is a literal IP address or an address pattern."""
    try:
        parse_pattern(address)
        return True
    except IllegalArgumentException:
        return False


def matches(address: Union[str, IPAddress], pattern: str) -> bool:
    """Check whether a literal IP address matches a configured pattern.

    Args:
        address: The candidate address, as text or an ``ipaddress`` object.
            An IPv6 zone index is ignored.
        pattern: The configured pattern.

    Returns:
        True if the address falls within the pattern. Malformed addresses
        and patterns never match.
    """
    if isinstance(address, str):
        candidate = _try_ip(address.strip())
        if candidate is None:
            return False
    else:
        candidate = address
    try:
        return parse_pattern(pattern).match(candidate)
    except IllegalArgumentException:
        return False
