"""Command line entry point that runs one address resolution.

Usage:
    hazelcast-pick-address [--config FILE] [--verbose | --quiet]
                           [--log-level [COMPONENT=]LEVEL ...]

Log levels are debug, info, warning, error and critical. A bare level
applies to the whole picker; ``network.resolver=debug`` targets one
component.

Exit Codes:
    0 - Addresses picked
    1 - The member could not pick an address
"""

import argparse
import logging
import sys
from typing import List, Optional

from hazelcast_picker.config import Config
from hazelcast_picker.exceptions import HazelcastException
from hazelcast_picker.logging import configure_logging, disable_logging, set_level
from hazelcast_picker.picker import DefaultAddressPicker


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="hazelcast-pick-address",
        description="Pick the bind and public addresses of a Hazelcast member",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="YAML member configuration (default: built-in defaults)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log every step of the resolution",
    )
    verbosity.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Log nothing except components given a --log-level",
    )
    parser.add_argument(
        "--log-level", "-l",
        action="append",
        default=[],
        metavar="[COMPONENT=]LEVEL",
        help="Log level of the picker or of one component; may be repeated",
    )
    return parser.parse_args(argv)


def apply_log_levels(args: argparse.Namespace) -> None:
    """Configure picker logging from the verbosity options.

    Raises:
        ConfigurationException: If a level name is unknown.
    """
    configure_logging(level=logging.DEBUG if args.verbose else logging.WARNING)
    if args.quiet:
        disable_logging()
    for option in args.log_level:
        component, _, level = option.rpartition("=")
        set_level(level, component)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        apply_log_levels(args)
        config = Config.from_yaml(args.config) if args.config else Config()
        picker = DefaultAddressPicker(config)
        picker.pick_address()
    except HazelcastException as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        print(f"Bind address:   {picker.get_bind_address()}")
        print(f"Public address: {picker.get_public_address()}")
    finally:
        picker.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
