"""Load balancing targets.

A target is attached to a target group once. Plain targets (instances
and IP addresses) describe themselves through target JSON that ends up
in the target group's properties. Self-registering targets are
connectable resources that instead register their connections with the
target group, which forwards them to every listener it is attached to.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from pydantic import Field

from stacksmith.elbv2.enums import TargetType
from stacksmith.models import SchemaModel

if TYPE_CHECKING:
    from stacksmith.ec2.connections import Connections
    from stacksmith.ec2.ports import PortRange
    from stacksmith.elbv2.target_group import ApplicationTargetGroup


class LoadBalancerTargetProps(SchemaModel):
    """Result of attaching a target to a target group."""

    target_type: TargetType | None = Field(
        default=None,
        title='Target type',
        description=(
            'How the target is addressed. '
            'Self-registering targets leave it unset.'
        ),
    )

    target_json: dict[str, Any] | None = Field(
        default=None,
        title='Target description',
        description='Entry added to the target group `Targets` list, if any.',
    )


class ApplicationLoadBalancerTarget(ABC):
    """Base of anything that can be added to an application target group."""

    @abstractmethod
    def attach_to_application_target_group(
            self, target_group: 'ApplicationTargetGroup') -> LoadBalancerTargetProps:
        """Register this target with a target group.

        Called exactly once per target group, when the target is added.

        Args:
            target_group: Group the target is added to.

        Returns:
            How the target group should refer to this target.
        """


class InstanceTarget(ApplicationLoadBalancerTarget, SchemaModel):
    """Target addressed by instance id."""

    instance_id: Any = Field(
        title='Instance id',
        description='Identifier of the instance; may be a token.',
    )

    port: int | None = Field(
        default=None,
        ge=1,
        le=65535,
        title='Port',
        description='Port override; defaults to the target group port.',
    )

    def attach_to_application_target_group(
            self, target_group: 'ApplicationTargetGroup') -> LoadBalancerTargetProps:
        """Register this instance with a target group."""
        target_json: dict[str, Any] = {'Id': self.instance_id}
        if self.port is not None:
            target_json['Port'] = self.port

        return LoadBalancerTargetProps(
            target_type=TargetType.INSTANCE,
            target_json=target_json,
        )


class IpTarget(ApplicationLoadBalancerTarget, SchemaModel):
    """Target addressed by IP address."""

    ip_address: str = Field(
        title='IP address',
        examples=['10.0.1.20'],
    )

    port: int | None = Field(
        default=None,
        ge=1,
        le=65535,
        title='Port',
        description='Port override; defaults to the target group port.',
    )

    availability_zone: str | None = Field(
        default=None,
        title='Availability zone',
        description='Zone of the address, or `all` for addresses outside the network.',
    )

    def attach_to_application_target_group(
            self, target_group: 'ApplicationTargetGroup') -> LoadBalancerTargetProps:
        """Register this address with a target group."""
        target_json: dict[str, Any] = {'Id': self.ip_address}
        if self.port is not None:
            target_json['Port'] = self.port
        if self.availability_zone is not None:
            target_json['AvailabilityZone'] = self.availability_zone

        return LoadBalancerTargetProps(
            target_type=TargetType.IP,
            target_json=target_json,
        )


class SelfRegisteringTarget(ApplicationLoadBalancerTarget):
    """Connectable target that registers its own network rules.

    Wraps the connections of a resource that manages its own membership
    (for example a group of instances that joins the target group on
    launch). Attaching it only opens the network path between every
    listener of the target group and the resource.
    """

    def __init__(self, connections: 'Connections', *,
                 port_range: 'PortRange | None' = None) -> None:
        """Initialize a self-registering target.

        Args:
            connections: Network rules of the target resource.
            port_range: Port range listeners connect to; defaults to the
                target group port.
        """
        self._connections = connections
        self.port_range = port_range

    @property
    def connections(self) -> 'Connections':
        """Network rules of the target resource."""
        return self._connections

    def attach_to_application_target_group(
            self, target_group: 'ApplicationTargetGroup') -> LoadBalancerTargetProps:
        """Register this target's connections with a target group."""
        target_group.register_connectable(self, self.port_range)

        return LoadBalancerTargetProps()
