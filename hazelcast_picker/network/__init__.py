"""Network building blocks of the address picker."""

from hazelcast_picker.network.address import Address, AddressHelper, AddressHolder
from hazelcast_picker.network.definitions import (
    AddressDefinition,
    InterfaceDefinition,
    ResolvedEndpoint,
)
from hazelcast_picker.network.interfaces import (
    InterfaceEnumerator,
    NetworkInterface,
    list_network_interfaces,
)
from hazelcast_picker.network.matcher import is_ip_address, matches
from hazelcast_picker.network.resolver import DomainResolver
from hazelcast_picker.network.server_socket import ServerSocketFactory

__all__ = [
    "Address",
    "AddressHelper",
    "AddressHolder",
    "AddressDefinition",
    "InterfaceDefinition",
    "ResolvedEndpoint",
    "InterfaceEnumerator",
    "NetworkInterface",
    "list_network_interfaces",
    "is_ip_address",
    "matches",
    "DomainResolver",
    "ServerSocketFactory",
]
