#!/usr/bin/env python3
"""Address picking example.

Shows how a member chooses the address it binds to and the address it
advertises to the rest of the cluster.

Topics covered:
- Default scan of local interfaces
- Restricting candidates with interface patterns
- Discovery members as a candidate pool
- Forcing a public address behind NAT
"""

import logging

from hazelcast_picker import Config, DefaultAddressPicker
from hazelcast_picker.logging import configure_logging


def show(title: str, config: Config) -> None:
    print(f"=== {title} ===")
    picker = DefaultAddressPicker(config)
    try:
        picker.pick_address()
        print(f"Bind address:   {picker.get_bind_address()}")
        print(f"Public address: {picker.get_public_address()}")
    finally:
        picker.close()
    print()


def default_scan() -> Config:
    """Pick the first usable non-loopback address of the host."""
    return Config()


def interface_patterns() -> Config:
    """Only bind to a loopback address matching the pattern."""
    config = Config()
    config.network.port = 0
    config.network.interfaces.enabled = True
    config.network.interfaces.add_interface("127.0.0.*")
    return config


def discovery_members() -> Config:
    """Bind to whichever local address appears in the member list."""
    config = Config()
    config.network.port = 0
    config.network.join.tcp_ip.enabled = True
    config.network.join.tcp_ip.add_member("127.0.0.1:5701-5703")
    return config


def behind_nat() -> Config:
    """Advertise a translated address while binding locally."""
    config = Config()
    config.network.port = 0
    config.network.public_address = "203.0.113.10:15701"
    config.set_property("hazelcast.prefer.ipv4.stack", "true")
    return config


def main():
    configure_logging(level=logging.WARNING)

    show("Default scan", default_scan())
    show("Interface patterns", interface_patterns())
    show("Discovery members", discovery_members())
    show("Behind NAT", behind_nat())


if __name__ == "__main__":
    main()
