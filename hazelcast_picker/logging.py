"""Loggers of the address picker.

Every component logs under the ``hazelcast_picker`` namespace, e.g.
``hazelcast_picker.address_picker`` or ``hazelcast_picker.network.resolver``.
Nothing is printed until :func:`configure_logging` is called, which the
``hazelcast-pick-address`` command does on startup.

Example:
    >>> from hazelcast_picker.logging import configure_logging, set_level
    >>> configure_logging(level=logging.WARNING)
    >>> set_level(logging.DEBUG, "network.interfaces")
"""

import logging
from typing import Optional, Union

from hazelcast_picker.exceptions import ConfigurationException

PICKER_ROOT_LOGGER = "hazelcast_picker"

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

LEVEL_NAMES = ("debug", "info", "warning", "error", "critical")

_handler: Optional[logging.Handler] = None


def get_logger(component: str = "") -> logging.Logger:
    """Get the logger of a picker component, or the picker root logger."""
    if component:
        return logging.getLogger(f"{PICKER_ROOT_LOGGER}.{component}")
    return logging.getLogger(PICKER_ROOT_LOGGER)


def parse_level(level: Union[int, str]) -> int:
    """Turn a level name such as ``"debug"`` into a ``logging`` level.

    Raises:
        ConfigurationException: If the name is not a known level.
    """
    if isinstance(level, int):
        return level
    name = level.strip().lower()
    if name not in LEVEL_NAMES:
        raise ConfigurationException(
            f"Unknown log level '{level}', expected one of: {', '.join(LEVEL_NAMES)}"
        )
    return getattr(logging, name.upper())


def configure_logging(
    level: Union[int, str] = logging.INFO,
    format_string: str = DEFAULT_FORMAT,
    handler: Optional[logging.Handler] = None,
) -> logging.Logger:
    """Send picker logs to a handler.

    The picker installs at most one handler; calling this again replaces
    it. Component levels set with :func:`set_level` are filtered by their
    own loggers, so the handler itself accepts every record.

    Args:
        level: Level of the picker root logger, as a number or a name.
        format_string: Record format.
        handler: Destination; a ``StreamHandler`` on stderr by default.

    Returns:
        The picker root logger.
    """
    global _handler

    root = get_logger()
    root.setLevel(parse_level(level))

    if _handler is not None:
        root.removeHandler(_handler)
    _handler = handler or logging.StreamHandler()
    _handler.setFormatter(logging.Formatter(format_string))
    root.addHandler(_handler)
    return root


def set_level(level: Union[int, str], component: str = "") -> None:
    """Set the level of one component, or of the whole picker."""
    get_logger(component).setLevel(parse_level(level))


def disable_logging() -> None:
    """Silence the picker, except components given their own level."""
    get_logger().setLevel(logging.CRITICAL + 1)
