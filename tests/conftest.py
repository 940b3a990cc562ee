"""Tests configurations and fixtures."""

from os import environ
from typing import TYPE_CHECKING

import pytest

from stacksmith.ec2 import Vpc
from stacksmith.elbv2 import ApplicationLoadBalancer, ApplicationTargetGroup, InstanceTarget
from stacksmith.models import SynthSettings
from stacksmith.resources import Stack

if TYPE_CHECKING:
    from collections.abc import Callable

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


@pytest.fixture(autouse=True)
def clean_environment(mocker: 'MockerFixture') -> None:
    """Isolate synthesis settings from the calling environment.

    Removes every `STACKSMITH_*` variable for the duration of a test so
    that settings resolved by `synthesize` only depend on defaults and
    on variables a test sets itself.
    """
    mocker.patch.dict(environ, {
        name: value
        for name, value in environ.items()
        if not name.startswith('STACKSMITH_')
    }, clear=True)


@pytest.fixture
def settings() -> SynthSettings:
    """Provide explicit default synthesis settings."""
    return SynthSettings()


@pytest.fixture
def stack() -> Stack:
    """Provide an empty stack as a fresh tree root."""
    return Stack()


@pytest.fixture
def vpc(stack: Stack) -> Vpc:
    """Provide a network declared in the stack."""
    return Vpc(stack, 'Vpc')


@pytest.fixture
def load_balancer(stack: Stack, vpc: Vpc) -> ApplicationLoadBalancer:
    """Provide a constructed load balancer with its own security group."""
    return ApplicationLoadBalancer(stack, 'LB', vpc=vpc)


@pytest.fixture
def make_target_group(stack: Stack, vpc: Vpc) -> 'Callable[..., ApplicationTargetGroup]':
    """Provide a factory of instance target groups.

    The returned callable creates a target group in the stack with the
    given id, listening on HTTP port 80 unless overridden, and holding
    a single instance target.
    """
    def make(id: str, **kwargs) -> ApplicationTargetGroup:  # noqa: A002, ANN003
        """Create a target group.

        Args:
            id: Identifier of the target group.
            kwargs: Target group options overriding the defaults.

        Returns:
            The created target group.
        """
        options = {
            'port': 80,
            'targets': [InstanceTarget(instance_id=f'i-{id.lower()}')],
            **kwargs,
        }

        return ApplicationTargetGroup(stack, id, vpc=vpc, **options)

    return make
