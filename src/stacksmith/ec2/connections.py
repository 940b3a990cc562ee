"""Declarative network reachability between resources.

Every connectable resource exposes a `Connections` object bound to its
security group and an optional default port range. Two resources agree
on reachability through `allow_to`: the initiating side gets an egress
rule and the peer gets an ingress rule, both carrying the same
description. Neither side needs to know the other's internals, and the
group ids involved stay tokens until synthesis, so resources can be
wired in any declaration order.
"""

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from stacksmith.ec2.peers import any_ipv4
from stacksmith.errors import AmbiguousPortError

if TYPE_CHECKING:
    from stacksmith.ec2.ports import PortRange
    from stacksmith.ec2.security_group import SecurityGroupMixin
    from stacksmith.values import RuntimeValue


@runtime_checkable
class Connectable(Protocol):
    """Anything whose network reachability is governed by `Connections`."""

    @property
    def connections(self) -> 'Connections':
        """Network rules of this resource."""
        ...  # pragma: no cover


class Connections:
    """Network rule set of a single resource.

    A `Connections` object is itself connectable, so two rule sets can be
    wired directly.
    """

    def __init__(self, *, security_group: 'SecurityGroupMixin',
                 default_port_range: 'PortRange | None' = None) -> None:
        """Initialize a rule set.

        Args:
            security_group: Security group the rules are recorded on.
            default_port_range: Port range peers connect to by default.
        """
        self.security_group = security_group
        self.default_port_range = default_port_range

    @property
    def connections(self) -> 'Connections':
        """This rule set."""
        return self

    @property
    def security_group_id(self) -> 'RuntimeValue':
        """Identifier of the underlying group; possibly a token."""
        return self.security_group.security_group_id

    def negotiate_port_range(self, other: Connectable,
                             port_range: 'PortRange | None' = None) -> 'PortRange':
        """Determine the port range of a rule towards a peer.

        Preference order: the explicit range, the peer's default range,
        this side's default range.

        Args:
            other: Peer resource.
            port_range: Explicitly requested range.

        Returns:
            The effective port range.

        Raises:
            AmbiguousPortError: If no range can be determined.
        """
        if port_range is not None:
            return port_range

        if (peer_default := other.connections.default_port_range) is not None:
            return peer_default

        if self.default_port_range is not None:
            return self.default_port_range

        raise AmbiguousPortError.at(
            'Can not determine port range: pass one explicitly '
            'or declare a default port range on either side',
            self.security_group.path,
        )

    def allow_to(self, other: Connectable, port_range: 'PortRange | None' = None,
                 description: str = '') -> None:
        """Allow this resource to connect to a peer.

        Adds an egress rule to this side's group and an ingress rule to
        the peer's group.

        Args:
            other: Peer resource.
            port_range: Port range; negotiated if omitted.
            description: Description attached to both rules.

        Raises:
            AmbiguousPortError: If no port range can be determined.
        """
        effective = self.negotiate_port_range(other, port_range)
        peer_group = other.connections.security_group

        peer_group.add_ingress_rule(self.security_group, effective, description)
        self.security_group.add_egress_rule(peer_group, effective, description)

    def allow_from(self, other: Connectable, port_range: 'PortRange | None' = None,
                   description: str = '') -> None:
        """Allow a peer to connect to this resource.

        Mirror of `allow_to`, authored from the receiving side.
        """
        other.connections.allow_to(self, port_range, description)

    def allow_default_port_from(self, other: Connectable, description: str = '') -> None:
        """Allow a peer to connect to this resource's default port.

        Raises:
            AmbiguousPortError: If this side declares no default port range.
        """
        if self.default_port_range is None:
            raise AmbiguousPortError.at(
                'Can not allow the default port: no default port range declared',
                self.security_group.path,
            )

        self.allow_from(other, self.default_port_range, description)

    def allow_default_port_to(self, other: Connectable, description: str = '') -> None:
        """Allow this resource to connect to a peer's default port.

        Raises:
            AmbiguousPortError: If the peer declares no default port range.
        """
        if (peer_default := other.connections.default_port_range) is None:
            raise AmbiguousPortError.at(
                'Can not allow the default port: peer declares no default port range',
                self.security_group.path,
            )

        self.allow_to(other, peer_default, description)

    def allow_from_anywhere(self, port_range: 'PortRange | None' = None,
                            description: str = '') -> None:
        """Allow any IPv4 address to connect to this resource.

        Raises:
            AmbiguousPortError: If no range is given and no default is declared.
        """
        effective = port_range if port_range is not None else self.default_port_range
        if effective is None:
            raise AmbiguousPortError.at(
                'Can not determine port range: pass one explicitly '
                'or declare a default port range',
                self.security_group.path,
            )

        self.security_group.add_ingress_rule(any_ipv4(), effective, description)
