"""Opening the member's listening server socket."""

import socket
from typing import Optional

from hazelcast_picker.exceptions import ConfigurationException, SocketBindException
from hazelcast_picker.logging import get_logger
from hazelcast_picker.network.definitions import IPAddress, host_address

_logger = get_logger("network.server_socket")

DEFAULT_PORT = 5701
DEFAULT_PORT_COUNT = 100
DEFAULT_BACKLOG = 100


class ServerSocketFactory:
    """Opens a listening TCP socket, searching consecutive ports if allowed.

    Args:
        port: Port used when the picked address carries none. 0 asks the
            OS for an ephemeral port.
        port_auto_increment: Try the following ports when the first is taken.
        port_count: Number of ports tried when auto-increment is on.
        reuse_address: Set ``SO_REUSEADDR`` on the socket.
        backlog: Listen backlog.
    """

    def __init__(
        self,
        port: int = DEFAULT_PORT,
        port_auto_increment: bool = True,
        port_count: int = DEFAULT_PORT_COUNT,
        reuse_address: bool = True,
        backlog: int = DEFAULT_BACKLOG,
    ):
        if port < 0 or port > 65535:
            raise ConfigurationException(f"port must be between 0 and 65535, got {port}")
        if port_count < 1:
            raise ConfigurationException("port_count must be at least 1")
        self._port = port
        self._port_auto_increment = port_auto_increment
        self._port_count = port_count
        self._reuse_address = reuse_address
        self._backlog = backlog

    @property
    def port(self) -> int:
        return self._port

    @property
    def port_auto_increment(self) -> bool:
        return self._port_auto_increment

    @property
    def port_count(self) -> int:
        return self._port_count

    @property
    def reuse_address(self) -> bool:
        return self._reuse_address

    def open(self, bind_address: IPAddress, port: int = 0, bind_any: bool = False) -> socket.socket:
        """Open a socket listening on the given address.

        Args:
            bind_address: The picked bind address.
            port: The picked port; 0 falls back to the configured port.
            bind_any: Listen on the wildcard address of the same family
                instead of ``bind_address``.

        Returns:
            The listening socket. Its actual port is ``getsockname()[1]``.

        Raises:
            SocketBindException: If no port in the search range can be bound.
        """
        initial_port = port if port > 0 else self._port
        if initial_port == 0:
            _logger.info("No explicit port is given, system will pick up an ephemeral port.")
        trial_count = self._port_count if initial_port > 0 and self._port_auto_increment else 1

        family = socket.AF_INET6 if bind_address.version == 6 else socket.AF_INET
        scope_id = None
        if bind_any:
            host = "::" if family == socket.AF_INET6 else "0.0.0.0"
        else:
            host = host_address(bind_address)
            if family == socket.AF_INET6:
                scope_id = bind_address.scope_id

        last_error: Optional[OSError] = None
        for offset in range(trial_count):
            candidate_port = initial_port + offset if initial_port > 0 else 0
            if candidate_port > 65535:
                break
            sock = socket.socket(family, socket.SOCK_STREAM)
            try:
                if self._reuse_address:
                    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
                sock.bind(self._sockaddr(family, host, candidate_port, scope_id))
                sock.listen(self._backlog)
            except OSError as e:
                sock.close()
                last_error = e
                _logger.debug("Cannot bind to %s:%d: %s", host, candidate_port, e)
                continue
            _logger.debug("Bound server socket to %s:%d", host, sock.getsockname()[1])
            return sock

        if trial_count > 1:
            ports = f"{initial_port}-{initial_port + trial_count - 1}"
        else:
            ports = str(initial_port)
        message = (
            f"Cannot bind to a given address: {host_address(bind_address)}, port(s): {ports}. "
            "Hazelcast cannot start."
        )
        if initial_port > 0 and not self._port_auto_increment:
            message += " Config-specified port is already in use and auto-increment is disabled."
        raise SocketBindException(message, cause=last_error)

    @staticmethod
    def _sockaddr(family: int, host: str, port: int, scope_id: Optional[str] = None):
        if family == socket.AF_INET6:
            scope_index = 0
            if scope_id:
                scope_index = int(scope_id) if scope_id.isdigit() else socket.if_nametoindex(scope_id)
            return host, port, 0, scope_index
        return host, port
