"""Security groups.

A security group accumulates ingress and egress rules. Rules are never
retracted and an identical rule (same peer and port range) is recorded
only once. Rule peers are rendered lazily, so a rule can reference a
security group whose id is still a token.

A constructed security group renders its rules inline. An imported
security group (referenced by id) can not be edited in place, so every
rule becomes a standalone rule resource attached under it.
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, NamedTuple

from stacksmith.construct import Construct
from stacksmith.names import PATH_SEPARATOR
from stacksmith.resources import Resource
from stacksmith.tokens import Token

if TYPE_CHECKING:
    from stacksmith.ec2.peers import Peer
    from stacksmith.ec2.ports import PortRange
    from stacksmith.ec2.vpc import VpcLike
    from stacksmith.values import RuntimeValue

INGRESS_TYPE = 'AWS::EC2::SecurityGroupIngress'
EGRESS_TYPE = 'AWS::EC2::SecurityGroupEgress'

logger = logging.getLogger(__name__)


class SecurityGroupRule(NamedTuple):
    """Rule recorded on a security group."""

    peer: 'Peer'
    port_range: 'PortRange'
    description: str

    def same_as(self, peer: 'Peer', port_range: 'PortRange') -> bool:
        """Check whether this rule covers the given peer and port range."""
        return self.peer_key == _peer_key(peer) and self.port_range == port_range

    @property
    def peer_key(self) -> Any:  # noqa: ANN401
        """Comparison key of the peer."""
        return _peer_key(self.peer)


def _peer_key(peer: 'Peer') -> Any:  # noqa: ANN401
    """Identity for constructs, value for address ranges."""
    if isinstance(peer, Construct):
        return id(peer)
    return peer


class SecurityGroupMixin(ABC):
    """Peer behaviour and rule bookkeeping shared by security groups."""

    path: str
    unique_id: str

    _ingress_rules: list[SecurityGroupRule]
    _egress_rules: list[SecurityGroupRule]

    @property
    @abstractmethod
    def security_group_id(self) -> 'RuntimeValue':
        """Identifier of the group; a token for constructed groups."""

    @property
    def peer_id(self) -> str:
        """Stable identifier of the group as a rule peer."""
        return self.unique_id

    @property
    def ingress_rules(self) -> list[SecurityGroupRule]:
        """Recorded ingress rules."""
        return list(self._ingress_rules)

    @property
    def egress_rules(self) -> list[SecurityGroupRule]:
        """Recorded egress rules."""
        return list(self._egress_rules)

    def to_ingress_rule_json(self) -> dict[str, Any]:
        """Render the source fields of an ingress rule."""
        return {'SourceSecurityGroupId': self.security_group_id}

    def to_egress_rule_json(self) -> dict[str, Any]:
        """Render the destination fields of an egress rule."""
        return {'DestinationSecurityGroupId': self.security_group_id}

    def add_ingress_rule(self, peer: 'Peer', port_range: 'PortRange',
                         description: str = '') -> bool:
        """Allow traffic from a peer.

        Args:
            peer: Source of the traffic.
            port_range: Allowed protocol and ports.
            description: Description attached to the rule.

        Returns:
            False if an identical rule was already recorded.
        """
        return self._add_rule(self._ingress_rules, 'ingress', peer, port_range, description)

    def add_egress_rule(self, peer: 'Peer', port_range: 'PortRange',
                        description: str = '') -> bool:
        """Allow traffic to a peer.

        Args:
            peer: Destination of the traffic.
            port_range: Allowed protocol and ports.
            description: Description attached to the rule.

        Returns:
            False if an identical rule was already recorded.
        """
        return self._add_rule(self._egress_rules, 'egress', peer, port_range, description)

    def _add_rule(self, rules: list[SecurityGroupRule], direction: str,
                  peer: 'Peer', port_range: 'PortRange', description: str) -> bool:
        """Record a rule unless an identical one exists."""
        self.check_mutable(f'add {direction} rules')  # type: ignore[attr-defined]

        if any(rule.same_as(peer, port_range) for rule in rules):
            return False

        rule = SecurityGroupRule(peer, port_range, description)
        rules.append(rule)
        self._on_rule_added(direction, rule)

        logger.debug('Added %s rule %s:%s to %r', direction, peer.peer_id, port_range, self.path)

        return True

    def _on_rule_added(self, direction: str, rule: SecurityGroupRule) -> None:
        """Hook called after a rule is recorded."""


class SecurityGroup(SecurityGroupMixin, Resource):
    """Security group declared in this tree.

    Rules are rendered inline through lazy tokens, so rules added after
    the group's declaration still end up in the template.
    """

    def __init__(self, scope: Construct, id: str, *,  # noqa: A002
                 vpc: 'VpcLike',
                 description: str | None = None) -> None:
        """Initialize a security group.

        Args:
            scope: Parent construct.
            id: Identifier unique among the scope's children.
            vpc: Network the group belongs to.
            description: Group description, defaults to the construct path.
        """
        super().__init__(scope, id, resource_type='AWS::EC2::SecurityGroup')

        self.vpc = vpc
        self.description = description

        self._ingress_rules = []
        self._egress_rules = []

    @property
    def security_group_id(self) -> Token:
        """Token for the `GroupId` attribute."""
        return self.get_att('GroupId')

    def render_properties(self) -> dict[str, 'RuntimeValue']:
        """Render group properties with lazily rendered rules."""
        return {
            'GroupDescription': self.description or self.path,
            'VpcId': self.vpc.vpc_id,
            'SecurityGroupIngress': Token(
                lambda: [_inline_rule(rule, ingress=True) for rule in self._ingress_rules],
                display_name=f'{self.path}.SecurityGroupIngress',
            ),
            'SecurityGroupEgress': Token(
                lambda: [_inline_rule(rule, ingress=False) for rule in self._egress_rules],
                display_name=f'{self.path}.SecurityGroupEgress',
            ),
        }


class ImportedSecurityGroup(SecurityGroupMixin, Construct):
    """Reference to a security group defined outside this tree.

    Every rule added to it is emitted as a standalone rule resource.
    """

    def __init__(self, scope: Construct, id: str, *,  # noqa: A002
                 security_group_id: 'RuntimeValue') -> None:
        """Initialize a security group reference.

        Args:
            scope: Parent construct.
            id: Identifier unique among the scope's children.
            security_group_id: Identifier of the existing group; may be a token.
        """
        super().__init__(scope, id)

        self._security_group_id = security_group_id

        self._ingress_rules = []
        self._egress_rules = []

    @property
    def security_group_id(self) -> 'RuntimeValue':
        """Identifier of the referenced group."""
        return self._security_group_id

    def _on_rule_added(self, direction: str, rule: SecurityGroupRule) -> None:
        """Emit the rule as a standalone resource."""
        ingress = direction == 'ingress'
        prefix = 'from' if ingress else 'to'
        rule_id = f'{prefix} {rule.peer.peer_id}:{rule.port_range}'.replace(PATH_SEPARATOR, '_')

        Resource(
            self,
            rule_id,
            resource_type=INGRESS_TYPE if ingress else EGRESS_TYPE,
            properties={
                'GroupId': self.security_group_id,
                **_inline_rule(rule, ingress=ingress),
            },
        )


def _inline_rule(rule: SecurityGroupRule, *, ingress: bool) -> dict[str, 'RuntimeValue']:
    """Render a rule as a security group rule entry."""
    peer_json = rule.peer.to_ingress_rule_json() if ingress else rule.peer.to_egress_rule_json()

    rendered: dict[str, RuntimeValue] = {
        **peer_json,
        **rule.port_range.to_rule_json(),
    }
    if rule.description:
        rendered['Description'] = rule.description

    return rendered
