"""Application listeners.

A listener accepts connections on one port of a load balancer and
routes requests either to its default target groups or, through
conditional rules, to other target groups. Routing declarations are
checked in two stages: the shape of a single declaration (a condition
always comes with a priority, and vice versa) fails immediately, while
listener-wide rules (certificates present, a default route exists,
priorities unique) are reported by `validate`.

The imported variant references a listener defined elsewhere. It can
receive new rules and certificates but its default routes are closed.
"""

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import TYPE_CHECKING, Any

from stacksmith.construct import Construct
from stacksmith.ec2.connections import Connections
from stacksmith.ec2.ports import TcpPort
from stacksmith.ec2.security_group import ImportedSecurityGroup
from stacksmith.elbv2.enums import ApplicationProtocol
from stacksmith.elbv2.listener_certificate import ApplicationListenerCertificate
from stacksmith.elbv2.listener_rule import ApplicationListenerRule, forward_actions
from stacksmith.elbv2.props import (
    AddApplicationTargetGroupsProps,
    AddApplicationTargetsProps,
    coerce_props,
)
from stacksmith.elbv2.target_group import ApplicationTargetGroup
from stacksmith.elbv2.util import determine_protocol_and_port
from stacksmith.errors import InvalidRuleError, UnsupportedOperationError
from stacksmith.resources import Resource
from stacksmith.tokens import Token

if TYPE_CHECKING:
    from collections.abc import Iterable

if TYPE_CHECKING:
    from stacksmith.ec2.connections import Connectable
    from stacksmith.ec2.ports import PortRange
    from stacksmith.elbv2.enums import SslPolicy
    from stacksmith.elbv2.load_balancer import ApplicationLoadBalancerBase
    from stacksmith.elbv2.props import AddRuleProps
    from stacksmith.elbv2.target_group import ApplicationTargetGroupBase
    from stacksmith.values import RuntimeValue

#: Description of rules opened from a listener to its targets.
TARGET_RULE_DESCRIPTION = 'Load balancer to target'

logger = logging.getLogger(__name__)


class ApplicationListenerBase(Construct, ABC):
    """Routing behaviour shared by constructed and imported listeners."""

    connections: Connections

    def __init__(self, scope: Construct, id: str, **kwargs: Any) -> None:  # noqa: A002, ANN401
        """Initialize listener routing state.

        Args:
            scope: Parent construct.
            id: Identifier unique among the scope's children.
            kwargs: Passed on to the next initializer.
        """
        super().__init__(scope, id, **kwargs)

        self._rules: list[ApplicationListenerRule] = []

    @property
    @abstractmethod
    def listener_arn(self) -> 'RuntimeValue':
        """Identifier of the listener; a token when constructed."""

    @property
    def rules(self) -> list[ApplicationListenerRule]:
        """Conditional rules, in declaration order."""
        return list(self._rules)

    def register_rule(self, rule: ApplicationListenerRule) -> None:
        """Record a rule created for this listener.

        Called by the rule itself on creation.
        """
        self.check_mutable('add rules')

        self._rules.append(rule)
        logger.debug('Registered rule %r with priority %s', rule.path, rule.priority)

    def register_connectable(self, connectable: 'Connectable',
                             port_range: 'PortRange') -> None:
        """Open the network path from this listener to a target.

        Called by target groups for every connectable target.
        """
        self.connections.allow_to(connectable, port_range, TARGET_RULE_DESCRIPTION)

    def add_target_groups(self, id: str,  # noqa: A002
                          props: AddApplicationTargetGroupsProps | None = None,
                          **fields: Any) -> None:  # noqa: ANN401
        """Route requests to target groups.

        With a priority and at least one condition, a new rule is created.
        Without either, the target groups become default routes.

        Args:
            id: Identifier of the created rule.
            props: Routing declaration; alternatively pass its fields as
                keywords.

        Raises:
            InvalidRuleError: If only one of condition and priority is set.
            UnsupportedOperationError: If default routes can not be added.
        """
        props = coerce_props(AddApplicationTargetGroupsProps, props, fields)
        self._check_rule(props)

        if props.priority is None:
            self._add_default_target_groups(props.target_groups)
            return

        ApplicationListenerRule(
            self,
            self._rule_id(id),
            listener=self,
            priority=props.priority,
            host_header=props.host_header,
            path_pattern=props.path_pattern,
            target_groups=props.target_groups,
        )

    def validate(self) -> list[str]:
        """Report rule priorities used more than once."""
        usages: defaultdict[int, list[str]] = defaultdict(list)
        for rule in self._rules:
            usages[rule.priority].append(rule.id)

        return [
            f'Priority {priority} is used by more than one rule: {", ".join(ids)}'
            for priority, ids in sorted(usages.items())
            if len(ids) > 1
        ]

    def _check_rule(self, props: 'AddRuleProps') -> None:
        """Check that a condition and a priority are set together."""
        if props.has_condition != props.has_priority:
            raise InvalidRuleError.at(
                "Setting 'path_pattern' or 'host_header' also requires 'priority', and vice versa",
                self.path,
                element={
                    'priority': props.priority,
                    'host_header': props.host_header,
                    'path_pattern': props.path_pattern,
                },
            )

    def _rule_id(self, id: str) -> str:  # noqa: A002
        """Id of the rule created by `add_target_groups`."""
        return id

    @abstractmethod
    def _add_default_target_groups(self, target_groups: 'Iterable[ApplicationTargetGroupBase]') -> None:
        """Add default routes."""


class ApplicationListener(ApplicationListenerBase, Resource):
    """Listener declared in this tree."""

    def __init__(self, scope: Construct, id: str, *,  # noqa: A002, PLR0913
                 load_balancer: 'ApplicationLoadBalancerBase',
                 protocol: ApplicationProtocol | None = None,
                 port: int | None = None,
                 certificate_arns: 'Iterable[RuntimeValue]' = (),
                 ssl_policy: 'SslPolicy | None' = None,
                 default_target_groups: 'Iterable[ApplicationTargetGroupBase]' = ()) -> None:
        """Initialize a listener.

        Args:
            scope: Parent construct.
            id: Identifier unique among the scope's children.
            load_balancer: Load balancer accepting the connections.
            protocol: Protocol of the listener.
            port: Port of the listener.
            certificate_arns: Certificates of a secure listener.
            ssl_policy: TLS negotiation policy of a secure listener.
            default_target_groups: Target groups receiving unmatched requests.

        Raises:
            ConfigurationError: If neither port nor protocol is given.
        """
        resolved_protocol, resolved_port = determine_protocol_and_port(protocol, port)
        default_port_range = TcpPort(port=resolved_port)

        super().__init__(scope, id, resource_type='AWS::ElasticLoadBalancingV2::Listener')

        self.load_balancer = load_balancer
        self.protocol = resolved_protocol
        self.port = resolved_port
        self.ssl_policy = ssl_policy

        self._certificate_arns: list[RuntimeValue] = list(certificate_arns)
        self._default_target_groups: list[ApplicationTargetGroupBase] = []

        # Rules go to the load balancer's group, with this listener's port.
        self.connections = Connections(
            security_group=load_balancer.connections.security_group,
            default_port_range=default_port_range,
        )

        self._add_default_target_groups(default_target_groups)

    @property
    def listener_arn(self) -> Token:
        """Token for the listener identifier."""
        return self.ref

    @property
    def certificate_arns(self) -> list['RuntimeValue']:
        """Certificates added so far."""
        return list(self._certificate_arns)

    @property
    def default_target_groups(self) -> list['ApplicationTargetGroupBase']:
        """Target groups receiving unmatched requests."""
        return list(self._default_target_groups)

    def add_certificate_arns(self, *arns: 'RuntimeValue') -> None:
        """Add certificates to this listener; duplicates are kept."""
        self.check_mutable('add certificates')

        self._certificate_arns.extend(arns)

    def add_targets(self, id: str,  # noqa: A002
                    props: AddApplicationTargetsProps | None = None,
                    **fields: Any) -> ApplicationTargetGroup:  # noqa: ANN401
        """Route requests to new targets.

        Wraps the targets in a new target group (`<id>Group`) and routes
        to it as `add_target_groups` does.

        Args:
            id: Base identifier of the created constructs.
            props: Targets and routing declaration; alternatively pass
                its fields as keywords.

        Returns:
            The created target group.

        Raises:
            InvalidRuleError: If only one of condition and priority is set.
            UnsupportedOperationError: If the load balancer is imported.
        """
        props = coerce_props(AddApplicationTargetsProps, props, fields)

        if self.load_balancer.is_imported:
            raise UnsupportedOperationError.at(
                'Can only call add_targets() when using a constructed load balancer; '
                'construct a target group and use add_target_groups()',
                self.path,
            )

        self._check_rule(props)

        target_group = ApplicationTargetGroup(
            self,
            f'{id}Group',
            vpc=self.load_balancer.vpc,
            **props.target_group_options(),
        )
        self.add_target_groups(id, target_groups=[target_group], **props.rule_options())

        return target_group

    def validate(self) -> list[str]:
        """Check certificates, default routes and rule priorities."""
        messages = super().validate()

        if self.protocol == ApplicationProtocol.HTTPS and not self._certificate_arns:
            messages.append('HTTPS Listener needs at least one certificate (call add_certificate_arns)')
        if not self._default_target_groups:
            messages.append('Listener needs at least one default target group (call add_target_groups)')

        return messages

    def render_properties(self) -> dict[str, 'RuntimeValue']:
        """Render listener properties."""
        properties: dict[str, RuntimeValue] = {
            'LoadBalancerArn': self.load_balancer.load_balancer_arn,
            'Protocol': self.protocol.value,
            'Port': self.port,
            'DefaultActions': Token(
                lambda: forward_actions(self._default_target_groups),
                display_name=f'{self.path}.DefaultActions',
            ),
        }

        if self._certificate_arns:
            properties['Certificates'] = Token(
                lambda: [{'CertificateArn': arn} for arn in self._certificate_arns],
                display_name=f'{self.path}.Certificates',
            )
        if self.ssl_policy is not None:
            properties['SslPolicy'] = self.ssl_policy.value

        return properties

    def _rule_id(self, id: str) -> str:  # noqa: A002
        """Rules of a constructed listener are suffixed with `Rule`."""
        return f'{id}Rule'

    def _add_default_target_groups(self, target_groups: 'Iterable[ApplicationTargetGroupBase]') -> None:
        """Add default routes and attach this listener to the groups."""
        self.check_mutable('add default target groups')

        for target_group in target_groups:
            self._default_target_groups.append(target_group)
            target_group.register_listener(self)


class ImportedApplicationListener(ApplicationListenerBase):
    """Reference to a listener defined outside this tree."""

    def __init__(self, scope: Construct, id: str, *,  # noqa: A002
                 listener_arn: 'RuntimeValue',
                 security_group_id: 'RuntimeValue',
                 default_port: int | None = None) -> None:
        """Initialize a listener reference.

        Args:
            scope: Parent construct.
            id: Identifier unique among the scope's children.
            listener_arn: Identifier of the existing listener.
            security_group_id: Security group of its load balancer.
            default_port: Listener port, used as the default port range.
        """
        default_port_range = TcpPort(port=default_port) if default_port is not None else None

        super().__init__(scope, id)

        self._listener_arn = listener_arn
        self._certificate_count = 0

        self.connections = Connections(
            security_group=ImportedSecurityGroup(self, 'SecurityGroup', security_group_id=security_group_id),
            default_port_range=default_port_range,
        )

    @property
    def listener_arn(self) -> 'RuntimeValue':
        """Identifier of the referenced listener."""
        return self._listener_arn

    def add_certificate_arns(self, *arns: 'RuntimeValue') -> ApplicationListenerCertificate:
        """Attach certificates through a listener certificate resource.

        Returns:
            The created certificate resource.
        """
        certificate = ApplicationListenerCertificate(
            self,
            f'Certificates{self._certificate_count + 1}',
            listener_arn=self._listener_arn,
            certificate_arns=arns,
        )
        self._certificate_count += 1

        return certificate

    def add_targets(self, id: str,  # noqa: A002
                    props: AddApplicationTargetsProps | None = None,
                    **fields: Any) -> ApplicationTargetGroup:  # noqa: ANN401, ARG002
        """Not supported for imported listeners.

        Raises:
            UnsupportedOperationError: Always.
        """
        raise UnsupportedOperationError.at(
            'Can only call add_targets() when using a constructed listener; '
            'construct a target group and use add_target_groups()',
            self.path,
        )

    def _add_default_target_groups(self, target_groups: 'Iterable[ApplicationTargetGroupBase]') -> None:
        """Default routes of an imported listener are closed."""
        raise UnsupportedOperationError.at(
            'Can not add default target groups to an imported listener',
            self.path,
        )
