"""Application target groups.

A target group collects targets and is attached to listeners either as a
default target group or through a conditional rule. Attachment is a
command exchange: the listener calls `register_listener` on the group,
and the group forwards every connectable registered with it (now or
later) to the listener, which opens the network path to it.
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Protocol

from stacksmith.construct import Construct
from stacksmith.ec2.ports import TcpPort
from stacksmith.elbv2.util import determine_protocol_and_port
from stacksmith.errors import ConfigurationError
from stacksmith.resources import Resource
from stacksmith.tokens import Token

if TYPE_CHECKING:
    from collections.abc import Iterable

if TYPE_CHECKING:
    from stacksmith.ec2.connections import Connectable
    from stacksmith.ec2.ports import PortRange
    from stacksmith.ec2.vpc import VpcLike
    from stacksmith.elbv2.enums import ApplicationProtocol, TargetType
    from stacksmith.elbv2.props import HealthCheck
    from stacksmith.elbv2.targets import ApplicationLoadBalancerTarget, LoadBalancerTargetProps
    from stacksmith.values import RuntimeValue

logger = logging.getLogger(__name__)


class ListenerLike(Protocol):
    """Listener side of the target group registration exchange."""

    def register_connectable(self, connectable: 'Connectable',
                             port_range: 'PortRange') -> None:
        """Open the network path from the listener to a connectable."""
        ...  # pragma: no cover


class ApplicationTargetGroupBase(Construct, ABC):
    """Operations shared by constructed and imported target groups."""

    _listeners: list[ListenerLike]

    @property
    @abstractmethod
    def target_group_arn(self) -> 'RuntimeValue':
        """Identifier of the target group; a token when constructed."""

    @property
    def listeners(self) -> list[ListenerLike]:
        """Listeners this group is attached to, in registration order."""
        return list(self._listeners)

    def register_listener(self, listener: ListenerLike) -> bool:
        """Record that a listener forwards requests to this group.

        Registering the same listener again has no effect.

        Args:
            listener: Listener attaching this group.

        Returns:
            False if the listener was already registered.
        """
        if any(existing is listener for existing in self._listeners):
            return False

        self._listeners.append(listener)
        logger.debug('Registered listener with target group %r', self.path)

        return True


class ApplicationTargetGroup(ApplicationTargetGroupBase, Resource):
    """Target group declared in this tree."""

    def __init__(self, scope: Construct, id: str, *,  # noqa: A002, PLR0913
                 vpc: 'VpcLike',
                 port: int | None = None,
                 protocol: 'ApplicationProtocol | None' = None,
                 targets: 'Iterable[ApplicationLoadBalancerTarget]' = (),
                 target_group_name: str | None = None,
                 deregistration_delay_sec: int | None = None,
                 slow_start_sec: int | None = None,
                 stickiness_cookie_duration_sec: int | None = None,
                 health_check: 'HealthCheck | None' = None) -> None:
        """Initialize a target group.

        Args:
            scope: Parent construct.
            id: Identifier unique among the scope's children.
            vpc: Network the targets live in.
            port: Port targets receive traffic on.
            protocol: Protocol targets receive traffic with.
            targets: Initial targets.
            target_group_name: Physical name; generated if omitted.
            deregistration_delay_sec: Draining time of removed targets.
            slow_start_sec: Ramp-up time of new targets.
            stickiness_cookie_duration_sec: Enables stickiness when set.
            health_check: Health check configuration.

        Raises:
            ConfigurationError: If neither port nor protocol is given, or
                targets of different types are mixed.
        """
        resolved_protocol, resolved_port = determine_protocol_and_port(protocol, port)
        default_port_range = TcpPort(port=resolved_port)

        super().__init__(scope, id, resource_type='AWS::ElasticLoadBalancingV2::TargetGroup')

        self.vpc = vpc
        self.protocol = resolved_protocol
        self.port = resolved_port
        self.target_group_name = target_group_name
        self.deregistration_delay_sec = deregistration_delay_sec
        self.slow_start_sec = slow_start_sec
        self.stickiness_cookie_duration_sec = stickiness_cookie_duration_sec
        self.health_check = health_check

        self.default_port_range = default_port_range

        self._listeners = []
        self._connectables: list[tuple[Connectable, PortRange]] = []
        self._targets_json: list[dict[str, Any]] = []
        self._target_type: TargetType | None = None

        self.add_target(*targets)

    @property
    def target_group_arn(self) -> Token:
        """Token for the target group identifier."""
        return self.ref

    @property
    def target_group_full_name(self) -> Token:
        """Token for the full name used in metrics."""
        return self.get_att('TargetGroupFullName')

    @property
    def target_type(self) -> 'TargetType | None':
        """Type of the plain targets added so far."""
        return self._target_type

    @property
    def warnings(self) -> list[str]:
        """Recorded warnings plus attachment diagnostics."""
        warnings = super().warnings
        if not self._listeners:
            warnings.append('Target group is not attached to any listener')
        return warnings

    def add_target(self, *targets: 'ApplicationLoadBalancerTarget') -> None:
        """Add targets to this group.

        Raises:
            ConfigurationError: If targets of different types are mixed.
            UnsupportedOperationError: If the group is locked.
        """
        self.check_mutable('add targets')

        for target in targets:
            self._add_target_props(target.attach_to_application_target_group(self))

    def _add_target_props(self, props: 'LoadBalancerTargetProps') -> None:
        """Record the outcome of attaching a target."""
        if props.target_type is not None:
            if self._target_type is not None and self._target_type != props.target_type:
                raise ConfigurationError.at(
                    f'Already have targets of type {self._target_type.value!r}, '
                    f'can not add a target of type {props.target_type.value!r}',
                    self.path,
                )
            self._target_type = props.target_type

        if props.target_json is not None:
            self._targets_json.append(props.target_json)

    def register_connectable(self, connectable: 'Connectable',
                             port_range: 'PortRange | None' = None) -> None:
        """Record a connectable target and open it to every listener.

        Listeners registered later receive it on registration.

        Args:
            connectable: Target whose network rules must admit the listeners.
            port_range: Port range to open; the group port if omitted.
        """
        effective = port_range if port_range is not None else self.default_port_range

        for existing, existing_range in self._connectables:
            if existing is connectable and existing_range == effective:
                return

        self._connectables.append((connectable, effective))
        for listener in self._listeners:
            listener.register_connectable(connectable, effective)

    def register_listener(self, listener: ListenerLike) -> bool:
        """Record a listener and open every known connectable to it."""
        if not super().register_listener(listener):
            return False

        for connectable, port_range in self._connectables:
            listener.register_connectable(connectable, port_range)

        return True

    def render_properties(self) -> dict[str, 'RuntimeValue']:
        """Render target group properties."""
        properties: dict[str, RuntimeValue] = {
            'Port': self.port,
            'Protocol': self.protocol.value,
            'VpcId': self.vpc.vpc_id,
            'Targets': Token(
                lambda: list(self._targets_json),
                display_name=f'{self.path}.Targets',
            ),
        }

        if self.target_group_name is not None:
            properties['Name'] = self.target_group_name
        if self._target_type is not None:
            properties['TargetType'] = self._target_type.value
        if attributes := self._render_attributes():
            properties['TargetGroupAttributes'] = attributes
        if self.health_check is not None:
            properties.update(self.health_check.to_properties())

        return properties

    def _render_attributes(self) -> list[dict[str, str]]:
        """Render target group attributes as key/value pairs."""
        attributes: dict[str, str] = {}

        if self.deregistration_delay_sec is not None:
            attributes['deregistration_delay.timeout_seconds'] = str(self.deregistration_delay_sec)
        if self.slow_start_sec is not None:
            attributes['slow_start.duration_seconds'] = str(self.slow_start_sec)
        if self.stickiness_cookie_duration_sec is not None:
            attributes['stickiness.enabled'] = 'true'
            attributes['stickiness.type'] = 'lb_cookie'
            attributes['stickiness.lb_cookie.duration_seconds'] = str(
                self.stickiness_cookie_duration_sec,
            )

        return [
            {'Key': key, 'Value': value}
            for key, value in attributes.items()
        ]


class ImportedApplicationTargetGroup(ApplicationTargetGroupBase):
    """Reference to a target group defined outside this tree.

    Listener registration is recorded but has no further effect, since
    the referenced group's targets are not known.
    """

    def __init__(self, scope: Construct, id: str, *,  # noqa: A002
                 target_group_arn: 'RuntimeValue') -> None:
        """Initialize a target group reference.

        Args:
            scope: Parent construct.
            id: Identifier unique among the scope's children.
            target_group_arn: Identifier of the existing group.
        """
        super().__init__(scope, id)

        self._target_group_arn = target_group_arn
        self._listeners = []

    @property
    def target_group_arn(self) -> 'RuntimeValue':
        """Identifier of the referenced group."""
        return self._target_group_arn
