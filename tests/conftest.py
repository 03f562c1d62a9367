"""Shared pytest fixtures for address picker tests."""

import ipaddress
import logging

import pytest
from unittest.mock import MagicMock

from hazelcast_picker.config import AddressPickerSettings, Config
from hazelcast_picker.exceptions import HostnameResolutionException
from hazelcast_picker.logging import PICKER_ROOT_LOGGER
from hazelcast_picker.network.interfaces import NetworkInterface
from hazelcast_picker.network.resolver import DomainResolver
from hazelcast_picker.network.server_socket import ServerSocketFactory
from hazelcast_picker.picker import DefaultAddressPicker


@pytest.fixture
def make_interface():
    """Build a synthetic NetworkInterface from textual addresses."""

    def factory(name, *addresses, is_up=True, is_virtual=False, is_loopback=False):
        return NetworkInterface(
            name=name,
            addresses=tuple(ipaddress.ip_address(a) for a in addresses),
            is_up=is_up,
            is_virtual=is_virtual,
            is_loopback=is_loopback,
        )

    return factory


@pytest.fixture
def loopback_interface(make_interface):
    """The loopback interface."""
    return make_interface("lo", "127.0.0.1", "::1", is_loopback=True)


@pytest.fixture
def make_resolver():
    """Build a DomainResolver answering from a fixed hostname table."""

    def factory(hosts=None):
        hosts = hosts or {}
        resolver = DomainResolver()

        def resolve(hostname):
            if hostname not in hosts:
                raise HostnameResolutionException(
                    f"Cannot resolve hostname: '{hostname}'", hostname=hostname
                )
            return list(hosts[hostname])

        resolver.resolve = resolve
        return resolver

    return factory


@pytest.fixture
def socket_factory():
    """A mock ServerSocketFactory whose sockets report the requested port."""
    factory = MagicMock(spec=ServerSocketFactory)

    def open_socket(bind_address, port=0, bind_any=False):
        sock = MagicMock()
        sock.getsockname.return_value = (str(bind_address), port or 5701)
        return sock

    factory.open.side_effect = open_socket
    return factory


@pytest.fixture
def make_picker(socket_factory, make_resolver):
    """Build a DefaultAddressPicker over synthetic interfaces."""

    def factory(network_interfaces=(), settings=None, hosts=None, config=None, **kwargs):
        return DefaultAddressPicker(
            config or Config(),
            settings=settings or AddressPickerSettings(**kwargs),
            interface_lister=lambda: list(network_interfaces),
            resolver=make_resolver(hosts),
            socket_factory=socket_factory,
        )

    return factory


def _picker_logger_names():
    return [
        name
        for name in logging.root.manager.loggerDict
        if name == PICKER_ROOT_LOGGER or name.startswith(PICKER_ROOT_LOGGER + ".")
    ]


@pytest.fixture
def picker_logging():
    """Restore picker logger levels and handlers after the test."""
    root = logging.getLogger(PICKER_ROOT_LOGGER)
    levels = {name: logging.getLogger(name).level for name in _picker_logger_names()}
    handlers = list(root.handlers)
    yield root
    for name in _picker_logger_names():
        logging.getLogger(name).setLevel(levels.get(name, logging.NOTSET))
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
