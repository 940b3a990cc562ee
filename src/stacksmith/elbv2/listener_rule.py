"""Conditional routing rules of application listeners."""

from typing import TYPE_CHECKING

from stacksmith.resources import Resource
from stacksmith.tokens import Token

if TYPE_CHECKING:
    from collections.abc import Iterable

if TYPE_CHECKING:
    from stacksmith.construct import Construct
    from stacksmith.elbv2.listener import ApplicationListenerBase
    from stacksmith.elbv2.target_group import ApplicationTargetGroupBase
    from stacksmith.values import RuntimeValue


class ApplicationListenerRule(Resource):
    """Rule forwarding matching requests to target groups.

    A rule registers itself with its listener on creation and attaches
    the listener to every target group it forwards to.
    """

    def __init__(self, scope: 'Construct', id: str, *,  # noqa: A002
                 listener: 'ApplicationListenerBase',
                 priority: int,
                 host_header: str | None = None,
                 path_pattern: str | None = None,
                 target_groups: 'Iterable[ApplicationTargetGroupBase]' = ()) -> None:
        """Initialize a listener rule.

        Args:
            scope: Parent construct.
            id: Identifier unique among the scope's children.
            listener: Listener the rule belongs to.
            priority: Rule priority, unique within the listener.
            host_header: Host header condition.
            path_pattern: Path pattern condition.
            target_groups: Target groups to forward to.
        """
        super().__init__(scope, id, resource_type='AWS::ElasticLoadBalancingV2::ListenerRule')

        self.listener = listener
        self.priority = priority
        self.host_header = host_header
        self.path_pattern = path_pattern

        self._target_groups: list[ApplicationTargetGroupBase] = []

        listener.register_rule(self)
        for target_group in target_groups:
            self.add_target_group(target_group)

    @property
    def target_groups(self) -> list['ApplicationTargetGroupBase']:
        """Target groups requests are forwarded to."""
        return list(self._target_groups)

    @property
    def conditions(self) -> list[dict[str, 'RuntimeValue']]:
        """Rendered rule conditions."""
        conditions: list[dict[str, RuntimeValue]] = []

        if self.host_header is not None:
            conditions.append({'Field': 'host-header', 'Values': [self.host_header]})
        if self.path_pattern is not None:
            conditions.append({'Field': 'path-pattern', 'Values': [self.path_pattern]})

        return conditions

    def add_target_group(self, target_group: 'ApplicationTargetGroupBase') -> None:
        """Forward matching requests to one more target group."""
        self.check_mutable('add target groups')

        self._target_groups.append(target_group)
        target_group.register_listener(self.listener)

    def validate(self) -> list[str]:
        """Check that the rule can match and forward requests."""
        messages = []

        if not self.conditions:
            messages.append('Listener rule needs at least one condition')
        if not self._target_groups:
            messages.append('Listener rule needs at least one action (call add_target_group)')

        return messages

    def render_properties(self) -> dict[str, 'RuntimeValue']:
        """Render rule properties."""
        return {
            'ListenerArn': self.listener.listener_arn,
            'Priority': self.priority,
            'Conditions': self.conditions,
            'Actions': Token(
                lambda: forward_actions(self._target_groups),
                display_name=f'{self.path}.Actions',
            ),
        }


def forward_actions(target_groups: 'Iterable[ApplicationTargetGroupBase]') -> list[dict[str, 'RuntimeValue']]:
    """Render forward actions to target groups, in order."""
    return [
        {'TargetGroupArn': target_group.target_group_arn, 'Type': 'forward'}
        for target_group in target_groups
    ]
