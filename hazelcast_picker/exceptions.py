"""Address picker exceptions.

This module defines the exception hierarchy raised while a member resolves
its bind and public addresses. All exceptions inherit from
:class:`HazelcastException`.

Example:
    Handling a failed startup::

        from hazelcast_picker.exceptions import (
            HazelcastException,
            NoMatchingInterfaceException,
        )

        try:
            picker.pick_address()
        except NoMatchingInterfaceException as e:
            print(f"Fix the interfaces section: {e}")
        except HazelcastException as e:
            print(f"Member cannot start: {e}")
"""


class HazelcastException(Exception):
    """Base class for all address picker exceptions.

    Args:
        message: The error message describing the exception.
        cause: The underlying exception that caused this error, if any.

    Attributes:
        cause: The underlying cause of this exception, if any.
    """

    def __init__(self, message: str = "", cause: Exception = None):
        super().__init__(message)
        self.cause = cause


class IllegalStateException(HazelcastException):
    """Raised when an operation is invoked on an illegal state.

    Example:
        - Reading the server socket after the picker was closed
    """
    pass


class IllegalArgumentException(HazelcastException):
    """Raised when an illegal or inappropriate argument is passed.

    Example:
        - A malformed address pattern handed to the pattern parser
        - An IPv6 address bound to more than one network interface
    """
    pass


class ConfigurationException(HazelcastException):
    """Raised when there is a configuration error.

    Example:
        - Port outside of 0..65535
        - Unreadable or malformed YAML configuration file
    """
    pass


class NoMatchingInterfaceException(ConfigurationException):
    """Raised when interface matching is enabled but no local address matches.

    The operator explicitly restricted the interfaces a member may bind to
    and none of the host's addresses qualified, so the member cannot start.

    Args:
        message: The error message.
        interfaces: The configured interface patterns that were tried.
    """

    def __init__(self, message: str, interfaces=None):
        super().__init__(message)
        self._interfaces = list(interfaces or [])

    @property
    def interfaces(self):
        """Get the interface patterns that failed to match."""
        return self._interfaces


class HostnameResolutionException(HazelcastException):
    """Raised when a hostname cannot be resolved to an IP address.

    Args:
        message: The error message.
        hostname: The hostname that failed to resolve.
        cause: The underlying resolver error, if any.
    """

    def __init__(self, message: str, hostname: str = None, cause: Exception = None):
        super().__init__(message, cause)
        self._hostname = hostname

    @property
    def hostname(self) -> str:
        """Get the hostname that could not be resolved."""
        return self._hostname


class InterfaceEnumerationException(HazelcastException):
    """Raised when the host's network interfaces cannot be listed."""
    pass


class SocketBindException(HazelcastException):
    """Raised when the server socket cannot be opened or bound.

    Example:
        - Configured port already in use and auto-increment disabled
        - Bind address not assigned to any local interface
    """
    pass
