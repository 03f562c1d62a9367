"""Hazelcast member address picker."""

from hazelcast_picker.config import (
    AddressPickerSettings,
    Config,
    InterfacesConfig,
    JoinConfig,
    NetworkConfig,
    TcpIpConfig,
)
from hazelcast_picker.exceptions import (
    ConfigurationException,
    HazelcastException,
    HostnameResolutionException,
    IllegalArgumentException,
    IllegalStateException,
    InterfaceEnumerationException,
    NoMatchingInterfaceException,
    SocketBindException,
)
from hazelcast_picker.network.address import Address
from hazelcast_picker.picker import AddressPicker, DefaultAddressPicker

__version__ = "0.1.0"

__all__ = [
    "AddressPickerSettings",
    "Config",
    "InterfacesConfig",
    "JoinConfig",
    "NetworkConfig",
    "TcpIpConfig",
    "ConfigurationException",
    "HazelcastException",
    "HostnameResolutionException",
    "IllegalArgumentException",
    "IllegalStateException",
    "InterfaceEnumerationException",
    "NoMatchingInterfaceException",
    "SocketBindException",
    "Address",
    "AddressPicker",
    "DefaultAddressPicker",
]
