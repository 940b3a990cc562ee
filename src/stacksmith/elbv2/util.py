"""Protocol and port defaulting."""

from stacksmith.ec2.ports import MAX_PORT
from stacksmith.elbv2.enums import ApplicationProtocol
from stacksmith.errors import ConfigurationError

#: Well-known ports of application protocols.
DEFAULT_PORTS = {
    ApplicationProtocol.HTTP: 80,
    ApplicationProtocol.HTTPS: 443,
}


def determine_protocol_and_port(protocol: ApplicationProtocol | None,
                                port: int | None) -> tuple[ApplicationProtocol, int]:
    """Complete a protocol/port pair from whichever half is known.

    Ports 80 and 443 imply HTTP and HTTPS; the protocols imply those
    ports in turn. Any other port requires an explicit protocol.

    Args:
        protocol: Requested protocol, if any.
        port: Requested port, if any.

    Returns:
        A `(protocol, port)` pair.

    Raises:
        ConfigurationError: If neither half is given, the port is out of
            range, or the protocol can not be inferred from the port.
    """
    if port is not None and not 1 <= port <= MAX_PORT:
        raise ConfigurationError(f'Port {port} is out of range, use 1 to {MAX_PORT}')

    if protocol is None and port is None:
        raise ConfigurationError('Supply at least one of port or protocol')

    if protocol is None:
        for candidate, default_port in DEFAULT_PORTS.items():
            if default_port == port:
                return candidate, port
        raise ConfigurationError(f'Can not determine protocol for port {port}, supply a protocol')

    if port is None:
        return protocol, DEFAULT_PORTS[protocol]

    return protocol, port
