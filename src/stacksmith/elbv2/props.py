"""Property bags of listener and target group operations.

Every bag is an immutable model validated on creation. Field level
constraints (ranges, non-empty target lists) are enforced by the model;
the pairing between conditions and priority is a routing rule and is
checked by the listener, which raises `InvalidRuleError`.
"""

from typing import TYPE_CHECKING, Any

from pydantic import Field

from stacksmith.elbv2.enums import ApplicationProtocol  # noqa: TC001
from stacksmith.elbv2.target_group import ApplicationTargetGroupBase  # noqa: TC001
from stacksmith.elbv2.targets import ApplicationLoadBalancerTarget  # noqa: TC001
from stacksmith.models import SchemaModel

if TYPE_CHECKING:
    from collections.abc import Mapping


class AddRuleProps(SchemaModel):
    """Conditions and priority of a routing rule.

    Without priority, target groups are added as defaults and must not
    have conditions.
    """

    priority: int | None = Field(
        default=None,
        ge=1,
        le=50000,
        title='Rule priority',
        description=(
            'Priority of the rule. The matching rule with the lowest priority '
            'handles a request. Must be unique among rules of a listener.'
        ),
    )

    host_header: str | None = Field(
        default=None,
        min_length=1,
        title='Host header condition',
        description='Rule applies if the requested host matches. Requires priority.',
        examples=['example.com', '*.example.com'],
    )

    path_pattern: str | None = Field(
        default=None,
        min_length=1,
        title='Path pattern condition',
        description='Rule applies if the requested path matches. Requires priority.',
        examples=['/api/*'],
    )

    @property
    def has_condition(self) -> bool:
        """True if a host header or path pattern condition is set."""
        return self.host_header is not None or self.path_pattern is not None

    @property
    def has_priority(self) -> bool:
        """True if a priority is set."""
        return self.priority is not None


class AddApplicationTargetGroupsProps(AddRuleProps):
    """Target groups to forward matching requests to."""

    target_groups: list[ApplicationTargetGroupBase] = Field(
        min_length=1,
        title='Target groups',
        description='Target groups receiving the requests.',
    )


class HealthCheck(SchemaModel):
    """Health check configuration of a target group."""

    path: str | None = Field(
        default=None,
        title='Health check path',
        examples=['/health'],
    )

    port: str | None = Field(
        default=None,
        title='Health check port',
        description='Port number or `traffic-port`.',
    )

    protocol: ApplicationProtocol | None = Field(
        default=None,
        title='Health check protocol',
    )

    interval_sec: int | None = Field(
        default=None,
        ge=5,
        le=300,
        title='Interval between checks, in seconds',
    )

    timeout_sec: int | None = Field(
        default=None,
        ge=2,
        le=120,
        title='Check timeout, in seconds',
    )

    healthy_threshold_count: int | None = Field(
        default=None,
        ge=2,
        le=10,
        title='Consecutive successes before a target is healthy',
    )

    unhealthy_threshold_count: int | None = Field(
        default=None,
        ge=2,
        le=10,
        title='Consecutive failures before a target is unhealthy',
    )

    healthy_http_codes: str | None = Field(
        default=None,
        title='Success codes',
        examples=['200', '200-299'],
    )

    def to_properties(self) -> dict[str, Any]:
        """Render the health check properties of a target group."""
        properties: dict[str, Any] = {}

        if self.path is not None:
            properties['HealthCheckPath'] = self.path
        if self.port is not None:
            properties['HealthCheckPort'] = self.port
        if self.protocol is not None:
            properties['HealthCheckProtocol'] = self.protocol.value
        if self.interval_sec is not None:
            properties['HealthCheckIntervalSeconds'] = self.interval_sec
        if self.timeout_sec is not None:
            properties['HealthCheckTimeoutSeconds'] = self.timeout_sec
        if self.healthy_threshold_count is not None:
            properties['HealthyThresholdCount'] = self.healthy_threshold_count
        if self.unhealthy_threshold_count is not None:
            properties['UnhealthyThresholdCount'] = self.unhealthy_threshold_count
        if self.healthy_http_codes is not None:
            properties['Matcher'] = {'HttpCode': self.healthy_http_codes}

        return properties


class AddApplicationTargetsProps(AddRuleProps):
    """Targets to wrap in a new target group and forward requests to."""

    protocol: ApplicationProtocol | None = Field(
        default=None,
        title='Target group protocol',
        description='Determined from the port if omitted.',
    )

    port: int | None = Field(
        default=None,
        ge=1,
        le=65535,
        title='Target group port',
        description='Determined from the protocol if omitted.',
    )

    targets: list[ApplicationLoadBalancerTarget] = Field(
        default_factory=list,
        title='Targets',
        description=(
            'Instances, IP addresses, or self-registering targets. '
            'Plain targets of one group must all be of the same type.'
        ),
    )

    target_group_name: str | None = Field(
        default=None,
        max_length=32,
        pattern=r'^[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?$',
        title='Target group name',
        description='Generated if omitted.',
    )

    deregistration_delay_sec: int | None = Field(
        default=None,
        ge=0,
        le=3600,
        title='Deregistration delay, in seconds',
    )

    slow_start_sec: int | None = Field(
        default=None,
        ge=30,
        le=900,
        title='Slow start duration, in seconds',
    )

    stickiness_cookie_duration_sec: int | None = Field(
        default=None,
        ge=1,
        le=604800,
        title='Stickiness cookie duration, in seconds',
        description='Enables load balancer stickiness when set.',
    )

    health_check: HealthCheck | None = Field(
        default=None,
        title='Health check',
    )

    def target_group_options(self) -> dict[str, Any]:
        """Keyword arguments for the target group built from these props."""
        return {
            'protocol': self.protocol,
            'port': self.port,
            'targets': list(self.targets),
            'target_group_name': self.target_group_name,
            'deregistration_delay_sec': self.deregistration_delay_sec,
            'slow_start_sec': self.slow_start_sec,
            'stickiness_cookie_duration_sec': self.stickiness_cookie_duration_sec,
            'health_check': self.health_check,
        }

    def rule_options(self) -> dict[str, Any]:
        """Keyword arguments for the rule forwarding to the new group."""
        return {
            'priority': self.priority,
            'host_header': self.host_header,
            'path_pattern': self.path_pattern,
        }


def coerce_props[T: SchemaModel](model: type[T], props: T | None,
                                 fields: 'Mapping[str, Any]') -> T:
    """Accept either a ready property bag or its fields as keywords.

    Args:
        model: Property bag class.
        props: Ready property bag, if given.
        fields: Keyword fields, if given.

    Returns:
        A validated property bag.

    Raises:
        TypeError: If both a bag and keyword fields are given.
        pydantic.ValidationError: If the fields are invalid.
    """
    if props is not None:
        if fields:
            raise TypeError('Pass either a props object or keyword fields, not both')
        return props

    return model.model_validate(dict(fields))
