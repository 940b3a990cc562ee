"""Application load balancers.

Whether a load balancer is constructed in this tree or imported by
reference is decided when it is created and exposed as `is_imported`.
Listeners consult that flag instead of probing for a network, which
only constructed load balancers have.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

from stacksmith.construct import Construct
from stacksmith.ec2.connections import Connections
from stacksmith.ec2.security_group import ImportedSecurityGroup, SecurityGroup
from stacksmith.elbv2.listener import ApplicationListener
from stacksmith.resources import Resource
from stacksmith.tokens import Token

if TYPE_CHECKING:
    from stacksmith.ec2.security_group import SecurityGroupMixin
    from stacksmith.ec2.vpc import VpcLike
    from stacksmith.values import RuntimeValue


class ApplicationLoadBalancerBase(ABC):
    """Attributes shared by constructed and imported load balancers."""

    #: Discriminates load balancers referenced by identifier.
    is_imported: ClassVar[bool]

    connections: Connections
    vpc: 'VpcLike | None'

    @property
    @abstractmethod
    def load_balancer_arn(self) -> 'RuntimeValue':
        """Identifier of the load balancer; a token when constructed."""


class ApplicationLoadBalancer(ApplicationLoadBalancerBase, Resource):
    """Load balancer declared in this tree."""

    is_imported = False

    def __init__(self, scope: Construct, id: str, *,  # noqa: A002, PLR0913
                 vpc: 'VpcLike',
                 internet_facing: bool = False,
                 security_group: 'SecurityGroupMixin | None' = None,
                 load_balancer_name: str | None = None,
                 idle_timeout_sec: int | None = None) -> None:
        """Initialize a load balancer.

        Args:
            scope: Parent construct.
            id: Identifier unique among the scope's children.
            vpc: Network the load balancer is placed in.
            internet_facing: Whether the load balancer has a public address.
            security_group: Security group to use; a new one is created
                as a child if omitted.
            load_balancer_name: Physical name; generated if omitted.
            idle_timeout_sec: Connection idle timeout.
        """
        super().__init__(scope, id, resource_type='AWS::ElasticLoadBalancingV2::LoadBalancer')

        self.vpc = vpc
        self.internet_facing = internet_facing
        self.load_balancer_name = load_balancer_name
        self.idle_timeout_sec = idle_timeout_sec

        if security_group is None:
            security_group = SecurityGroup(
                self,
                'SecurityGroup',
                vpc=vpc,
                description=f'Automatically created security group for {self.path}',
            )

        self.security_group = security_group
        self.connections = Connections(security_group=security_group)

    @property
    def load_balancer_arn(self) -> Token:
        """Token for the load balancer identifier."""
        return self.ref

    @property
    def dns_name(self) -> Token:
        """Token for the DNS name of the load balancer."""
        return self.get_att('DNSName')

    @property
    def full_name(self) -> Token:
        """Token for the full name used in metrics."""
        return self.get_att('LoadBalancerFullName')

    def add_listener(self, id: str, **kwargs: Any) -> ApplicationListener:  # noqa: A002, ANN401
        """Add a listener to this load balancer.

        Args:
            id: Identifier of the listener.
            kwargs: Listener options, see `ApplicationListener`.

        Returns:
            The created listener.
        """
        return ApplicationListener(self, id, load_balancer=self, **kwargs)

    def render_properties(self) -> dict[str, 'RuntimeValue']:
        """Render load balancer properties."""
        properties: dict[str, RuntimeValue] = {
            'Type': 'application',
            'Scheme': 'internet-facing' if self.internet_facing else 'internal',
            'SecurityGroups': [self.security_group.security_group_id],
        }

        if self.load_balancer_name is not None:
            properties['Name'] = self.load_balancer_name
        if self.idle_timeout_sec is not None:
            properties['LoadBalancerAttributes'] = [
                {'Key': 'idle_timeout.timeout_seconds', 'Value': str(self.idle_timeout_sec)},
            ]

        return properties


class ImportedApplicationLoadBalancer(ApplicationLoadBalancerBase, Construct):
    """Reference to a load balancer defined outside this tree.

    Listeners can be added, but targets must be wrapped in target groups
    by the caller since the network is unknown.
    """

    is_imported = True

    def __init__(self, scope: Construct, id: str, *,  # noqa: A002
                 load_balancer_arn: 'RuntimeValue',
                 security_group_id: 'RuntimeValue') -> None:
        """Initialize a load balancer reference.

        Args:
            scope: Parent construct.
            id: Identifier unique among the scope's children.
            load_balancer_arn: Identifier of the existing load balancer.
            security_group_id: Identifier of its security group.
        """
        super().__init__(scope, id)

        self.vpc = None

        self._load_balancer_arn = load_balancer_arn

        self.security_group = ImportedSecurityGroup(self, 'SecurityGroup', security_group_id=security_group_id)
        self.connections = Connections(security_group=self.security_group)

    @property
    def load_balancer_arn(self) -> 'RuntimeValue':
        """Identifier of the referenced load balancer."""
        return self._load_balancer_arn

    def add_listener(self, id: str, **kwargs: Any) -> ApplicationListener:  # noqa: A002, ANN401
        """Add a listener to the referenced load balancer.

        Returns:
            The created listener.
        """
        return ApplicationListener(self, id, load_balancer=self, **kwargs)
