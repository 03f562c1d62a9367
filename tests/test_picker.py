"""Unit tests for hazelcast_picker.picker module."""

import ipaddress
import logging
import pytest

from hazelcast_picker.config import AddressPickerSettings, Config
from hazelcast_picker.exceptions import (
    HostnameResolutionException,
    IllegalArgumentException,
    IllegalStateException,
    InterfaceEnumerationException,
    NoMatchingInterfaceException,
    SocketBindException,
)
from hazelcast_picker.network.address import Address
from hazelcast_picker.network.definitions import InterfaceDefinition
from hazelcast_picker.picker import DefaultAddressPicker


def picked(picker):
    picker.pick_address()
    return picker.get_bind_address()


def opened_address(socket_factory):
    return socket_factory.open.call_args[0][0]


class TestBindAddressFallback:
    """Tests for the interface scan without any configured pool."""

    def test_picks_non_loopback_address(self, make_picker, make_interface, loopback_interface):
        picker = make_picker([loopback_interface, make_interface("eth0", "10.0.0.4")])
        assert picked(picker) == Address("10.0.0.4", 5701)

    def test_loopback_only_falls_back_to_loopback(self, make_picker, loopback_interface):
        picker = make_picker([loopback_interface])
        assert picked(picker) == Address("127.0.0.1", 5701)

    def test_no_interfaces_falls_back_to_loopback(self, make_picker):
        picker = make_picker([])
        assert picked(picker) == Address("127.0.0.1", 5701)

    def test_skips_down_and_virtual_interfaces(self, make_picker, make_interface):
        picker = make_picker([
            make_interface("eth0", "10.0.0.1", is_up=False),
            make_interface("eth0:1", "10.0.0.2", is_virtual=True),
            make_interface("eth1", "10.0.0.3"),
        ])
        assert picked(picker).host == "10.0.0.3"

    def test_loopback_address_on_regular_interface_is_ignored(self, make_picker, make_interface):
        picker = make_picker([make_interface("eth0", "127.0.0.2", "10.0.0.9")])
        assert picked(picker).host == "10.0.0.9"

    def test_is_deterministic(self, make_picker, make_interface, loopback_interface):
        interfaces = [
            loopback_interface,
            make_interface("eth0", "fe80::1%eth0", "192.168.1.20"),
            make_interface("eth1", "10.0.0.4"),
        ]
        first = make_picker(interfaces)
        second = make_picker(interfaces)
        first.pick_address()
        second.pick_address()
        assert first.get_bind_address() == second.get_bind_address()
        assert first.get_public_address() == second.get_public_address()


class TestLocalAddressOverride:
    """Tests for the hazelcast.local.localAddress override."""

    def test_override_wins_over_interfaces(self, make_picker, make_interface, socket_factory):
        picker = make_picker(
            [make_interface("eth0", "10.0.0.4")],
            local_address="10.9.9.9",
            interfaces_enabled=True,
            interfaces=("10.0.*.*",),
        )
        assert picked(picker) == Address("10.9.9.9", 5701)
        assert opened_address(socket_factory) == ipaddress.ip_address("10.9.9.9")

    @pytest.mark.parametrize("value", ["127.0.0.1", "localhost"])
    def test_loopback_override(self, make_picker, make_interface, socket_factory, value):
        picker = make_picker([make_interface("eth0", "10.0.0.4")], local_address=value)
        assert picked(picker) == Address("127.0.0.1", 5701)
        assert opened_address(socket_factory) == ipaddress.ip_address("127.0.0.1")

    def test_override_hostname_is_resolved(self, make_picker, socket_factory):
        picker = make_picker(
            [], local_address="node1.example.com", hosts={"node1.example.com": ["10.1.1.1"]}
        )
        assert picked(picker) == Address("node1.example.com", 5701)
        assert opened_address(socket_factory) == ipaddress.ip_address("10.1.1.1")

    def test_unresolvable_override_is_fatal(self, make_picker, socket_factory):
        picker = make_picker([], local_address="missing.example.com")
        with pytest.raises(HostnameResolutionException):
            picker.pick_address()
        socket_factory.open.assert_not_called()
        assert picker.get_bind_address() is None

    def test_link_local_override_gets_scope_id(self, make_picker, make_interface, socket_factory):
        picker = make_picker(
            [make_interface("eth0", "fe80::1%eth0", "10.0.0.4")], local_address="fe80::1"
        )
        picker.pick_address()
        assert opened_address(socket_factory) == ipaddress.ip_address("fe80::1%eth0")

    def test_link_local_on_two_interfaces_is_fatal(self, make_picker, make_interface):
        picker = make_picker(
            [make_interface("eth0", "fe80::1%eth0"), make_interface("eth1", "fe80::1%eth1")],
            local_address="fe80::1",
        )
        with pytest.raises(IllegalArgumentException):
            picker.pick_address()


class TestAddressFamilyPreference:
    """Tests for the IPv4/IPv6 tie-break."""

    def test_prefer_ipv4_never_picks_ipv6(self, make_picker, make_interface):
        picker = make_picker(
            [make_interface("eth0", "2001:db8::1", "10.0.0.4")], prefer_ipv4_stack=True
        )
        assert picked(picker).host == "10.0.0.4"

    def test_prefer_ipv4_with_ipv6_only_host_uses_loopback(self, make_picker, make_interface):
        picker = make_picker([make_interface("eth0", "2001:db8::1")], prefer_ipv4_stack=True)
        assert picked(picker).host == "127.0.0.1"

    def test_prefer_ipv6_returns_first_ipv6_immediately(self, make_picker, make_interface):
        picker = make_picker(
            [
                make_interface("ifA", "10.0.0.1"),
                make_interface("ifB", "2001:db8::2", "10.0.0.2"),
            ],
            prefer_ipv6_addresses=True,
        )
        address = picked(picker)
        assert address.host == "2001:db8::2"
        assert str(address) == "[2001:db8::2]:5701"

    def test_prefer_ipv6_falls_back_to_last_ipv4(self, make_picker, make_interface):
        picker = make_picker(
            [make_interface("ifA", "10.0.0.1"), make_interface("ifB", "10.0.0.2")],
            prefer_ipv6_addresses=True,
        )
        assert picked(picker).host == "10.0.0.2"

    def test_no_preference_returns_first_ipv4(self, make_picker, make_interface):
        picker = make_picker(
            [make_interface("ifA", "2001:db8::1"), make_interface("ifB", "10.0.0.2", "10.0.0.3")]
        )
        assert picked(picker).host == "10.0.0.2"

    def test_no_preference_ipv6_only_returns_last_match(self, make_picker, make_interface):
        picker = make_picker(
            [make_interface("ifA", "2001:db8::1"), make_interface("ifB", "2001:db8::2")]
        )
        assert picked(picker).host == "2001:db8::2"

    def test_prefer_ipv4_overrides_prefer_ipv6(self, make_picker, make_interface):
        picker = make_picker(
            [make_interface("eth0", "2001:db8::1", "10.0.0.4")],
            prefer_ipv4_stack=True,
            prefer_ipv6_addresses=True,
        )
        assert picker.settings.prefer_ipv6_addresses is False
        assert picked(picker).host == "10.0.0.4"


class TestInterfaceMatching:
    """Tests for explicitly configured interface patterns."""

    def test_picks_matching_address(self, make_picker, make_interface):
        picker = make_picker(
            [make_interface("eth0", "192.168.1.5"), make_interface("eth1", "10.0.3.4")],
            interfaces_enabled=True,
            interfaces=("10.0.*.*",),
        )
        assert picked(picker).host == "10.0.3.4"

    def test_quoted_false_flag_disables_matching(self, make_picker, make_interface):
        config = Config.from_yaml_string(
            'network:\n  interfaces:\n    enabled: "false"\n    interfaces: ["192.168.50.*"]\n'
        )
        picker = make_picker(
            [make_interface("eth0", "10.0.0.1")],
            config=config,
            settings=AddressPickerSettings.from_config(config, environ={}),
        )
        assert picked(picker).host == "10.0.0.1"

    def test_unsatisfiable_interfaces_is_fatal(self, make_picker, make_interface, socket_factory):
        picker = make_picker(
            [make_interface("eth0", "10.0.0.1")],
            interfaces_enabled=True,
            interfaces=("192.168.50.*",),
        )
        with pytest.raises(NoMatchingInterfaceException) as exc_info:
            picker.pick_address()
        assert "192.168.50.*" in str(exc_info.value)
        assert exc_info.value.interfaces == ["192.168.50.*"]
        socket_factory.open.assert_not_called()
        assert picker.get_bind_address() is None
        assert picker.get_public_address() is None

    def test_pool_does_not_prefilter_interfaces(self, make_picker, make_interface):
        picker = make_picker(
            [make_interface("lo", "127.0.0.5", is_loopback=True)],
            interfaces_enabled=True,
            interfaces=("127.0.0.*",),
        )
        assert picked(picker).host == "127.0.0.5"

    def test_down_interface_matches_configured_pattern(self, make_picker, make_interface):
        picker = make_picker(
            [make_interface("eth0", "10.0.0.8", is_up=False)],
            interfaces_enabled=True,
            interfaces=("10.0.0.8",),
        )
        assert picked(picker).host == "10.0.0.8"

    def test_non_ip_entries_are_dropped(self, make_picker, make_interface, caplog):
        picker = make_picker(
            [make_interface("eth0", "10.0.0.4")],
            interfaces_enabled=True,
            interfaces=("eth0", "10.0.0.0/24"),
        )
        with caplog.at_level(logging.WARNING, logger="hazelcast_picker"):
            assert picked(picker).host == "10.0.0.4"
        assert "'eth0' is not an IP address" in caplog.text

    def test_only_non_ip_entries_is_fatal(self, make_picker, make_interface):
        picker = make_picker(
            [make_interface("eth0", "10.0.0.4")],
            interfaces_enabled=True,
            interfaces=("eth0",),
        )
        with pytest.raises(NoMatchingInterfaceException):
            picker.pick_address()

    def test_literal_loopback_pattern_short_circuits(self, make_picker, make_interface):
        picker = make_picker(
            [make_interface("eth0", "10.0.0.4")],
            interfaces_enabled=True,
            interfaces=("127.0.0.1",),
        )
        assert picked(picker).host == "127.0.0.1"

    def test_pattern_keeps_hostname_of_matching_member(self, make_picker, make_interface):
        picker = make_picker(
            [make_interface("eth0", "10.0.0.7")],
            interfaces_enabled=True,
            interfaces=("10.0.0.*",),
            tcp_ip_enabled=True,
            members=("node1.example.com",),
            hosts={"node1.example.com": ["10.0.0.7"]},
        )
        assert picked(picker) == Address("node1.example.com", 5701)


class TestDiscoveryMemberMatching:
    """Tests for the TCP/IP member list used as the interface pool."""

    def test_picks_member_address(self, make_picker, make_interface):
        picker = make_picker(
            [make_interface("eth0", "192.168.1.1"), make_interface("eth1", "10.0.0.7")],
            tcp_ip_enabled=True,
            members=("10.0.0.7:5702",),
        )
        assert picked(picker).host == "10.0.0.7"

    def test_unmatched_members_is_not_fatal(self, make_picker, make_interface, caplog):
        picker = make_picker(
            [make_interface("eth0", "10.0.0.7")],
            tcp_ip_enabled=True,
            members=("10.0.0.5",),
        )
        with caplog.at_level(logging.WARNING, logger="hazelcast_picker"):
            assert picked(picker).host == "10.0.0.7"
        assert "Could not find a matching address" in caplog.text

    def test_member_hostname_is_kept(self, make_picker, make_interface):
        picker = make_picker(
            [make_interface("eth0", "10.0.0.7")],
            tcp_ip_enabled=True,
            members=("node1.example.com:5701",),
            hosts={"node1.example.com": ["10.0.0.7"]},
        )
        assert picked(picker) == Address("node1.example.com", 5701)

    def test_unresolvable_member_is_dropped(self, make_picker, make_interface, caplog):
        picker = make_picker(
            [make_interface("eth0", "192.168.1.1"), make_interface("eth1", "10.0.0.7")],
            tcp_ip_enabled=True,
            members=("missing.example.com, 10.0.0.7",),
        )
        with caplog.at_level(logging.WARNING, logger="hazelcast_picker"):
            assert picked(picker).host == "10.0.0.7"
        assert "Cannot resolve hostname: 'missing.example.com'" in caplog.text

    def test_loopback_member_short_circuits(self, make_picker, make_interface):
        picker = make_picker(
            [make_interface("eth0", "10.0.0.7")],
            tcp_ip_enabled=True,
            members=("127.0.0.1",),
        )
        assert picked(picker).host == "127.0.0.1"

    def test_member_pool_is_ordered_and_unique(self, make_picker):
        picker = make_picker(
            [],
            tcp_ip_enabled=True,
            members=("10.0.0.2", "node.example.com", "10.0.0.2"),
            hosts={"node.example.com": ["10.0.0.3"]},
        )
        assert picker._get_interfaces() == [
            InterfaceDefinition("10.0.0.2"),
            InterfaceDefinition("10.0.0.3", "node.example.com"),
        ]


class TestPublicAddress:
    """Tests for public address resolution."""

    def test_defaults_to_bind_address(self, make_picker, make_interface):
        picker = make_picker([make_interface("eth0", "10.0.0.4")])
        picker.pick_address()
        assert picker.get_public_address() == picker.get_bind_address()

    def test_override_with_embedded_port(self, make_picker, make_interface):
        picker = make_picker(
            [make_interface("eth0", "10.0.0.4")], public_address="203.0.113.7:9999"
        )
        picker.pick_address()
        assert picker.get_public_address() == Address("203.0.113.7", 9999)
        assert picker.get_bind_address() == Address("10.0.0.4", 5701)

    def test_override_inherits_bind_port(self, make_picker, make_interface):
        picker = make_picker([make_interface("eth0", "10.0.0.4")], public_address="203.0.113.7")
        picker.pick_address()
        assert picker.get_public_address() == Address("203.0.113.7", 5701)

    def test_override_with_out_of_range_port_uses_bind_port(self, make_picker, make_interface):
        picker = make_picker(
            [make_interface("eth0", "10.0.0.4")], public_address="203.0.113.7:70000"
        )
        picker.pick_address()
        assert picker.get_public_address() == Address("203.0.113.7", 5701)

    def test_override_keeps_scope_id(self, make_picker, make_interface):
        picker = make_picker(
            [make_interface("eth0", "10.0.0.4")], public_address="[fe80::1%eth0]:9999"
        )
        picker.pick_address()
        public_address = picker.get_public_address()
        assert public_address == Address("fe80::1", 9999)
        assert public_address.scope_id == "eth0"

    def test_loopback_override(self, make_picker, make_interface):
        picker = make_picker([make_interface("eth0", "10.0.0.4")], public_address="localhost")
        picker.pick_address()
        assert picker.get_public_address() == Address("localhost", 5701)

    def test_hostname_override(self, make_picker, make_interface):
        picker = make_picker(
            [make_interface("eth0", "10.0.0.4")],
            public_address="public.example.com:6000",
            hosts={"public.example.com": ["198.51.100.1"]},
        )
        picker.pick_address()
        assert picker.get_public_address() == Address("public.example.com", 6000)


class TestPickAddressLifecycle:
    """Tests for caching, socket handling and failures."""

    def test_second_call_is_noop(self, make_picker, make_interface, socket_factory):
        picker = make_picker([make_interface("eth0", "10.0.0.4")])
        picker.pick_address()
        first = picker.get_bind_address()
        picker.pick_address()
        assert picker.get_bind_address() is first
        assert socket_factory.open.call_count == 1

    def test_bind_port_comes_from_socket(self, make_picker, make_interface, socket_factory):
        picker = make_picker([make_interface("eth0", "10.0.0.4")])
        socket_factory.open.side_effect = None
        socket_factory.open.return_value.getsockname.return_value = ("10.0.0.4", 49152)
        picker.pick_address()
        assert picker.get_bind_address() == Address("10.0.0.4", 49152)
        assert picker.get_public_address() == Address("10.0.0.4", 49152)

    def test_bind_any_is_passed_to_socket_factory(self, make_picker, make_interface, socket_factory):
        picker = make_picker([make_interface("eth0", "10.0.0.4")], bind_any=False)
        picker.pick_address()
        socket_factory.open.assert_called_once_with(ipaddress.ip_address("10.0.0.4"), 0, False)

    def test_socket_bind_failure_is_fatal(self, make_picker, make_interface, socket_factory):
        socket_factory.open.side_effect = SocketBindException("port in use")
        picker = make_picker([make_interface("eth0", "10.0.0.4")])
        with pytest.raises(SocketBindException):
            picker.pick_address()
        assert picker.get_bind_address() is None

    def test_failure_after_bind_closes_socket(self, make_picker, make_interface, socket_factory):
        socket_factory.open.side_effect = None
        sock = socket_factory.open.return_value
        sock.getsockname.return_value = ("10.0.0.4", 5701)
        picker = make_picker(
            [make_interface("eth0", "10.0.0.4")], public_address="missing.example.com"
        )
        with pytest.raises(HostnameResolutionException):
            picker.pick_address()
        sock.close.assert_called_once()
        assert picker.get_server_socket() is None

    def test_enumeration_failure_is_fatal(self, socket_factory, make_resolver):
        def failing_lister():
            raise OSError("permission denied")

        picker = DefaultAddressPicker(
            Config(),
            settings=AddressPickerSettings(),
            interface_lister=failing_lister,
            resolver=make_resolver(),
            socket_factory=socket_factory,
        )
        with pytest.raises(InterfaceEnumerationException):
            picker.pick_address()
        socket_factory.open.assert_not_called()

    def test_close_releases_socket(self, make_picker, make_interface, socket_factory):
        socket_factory.open.side_effect = None
        sock = socket_factory.open.return_value
        sock.getsockname.return_value = ("10.0.0.4", 5701)
        picker = make_picker([make_interface("eth0", "10.0.0.4")])
        picker.pick_address()
        assert picker.get_server_socket() is sock
        picker.close()
        sock.close.assert_called_once()
        with pytest.raises(IllegalStateException):
            picker.get_server_socket()

    def test_settings_default_to_config(self, make_interface, socket_factory):
        config = Config()
        config.set_property("hazelcast.local.localAddress", "10.2.2.2")
        picker = DefaultAddressPicker(
            config,
            interface_lister=lambda: [make_interface("eth0", "10.0.0.4")],
            socket_factory=socket_factory,
        )
        assert picker.settings.local_address == "10.2.2.2"
        assert picked(picker) == Address("10.2.2.2", 5701)
