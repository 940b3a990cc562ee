"""Tests for target groups and targets."""

from typing import TYPE_CHECKING

import pytest

from stacksmith.ec2 import Connections, SecurityGroup, TcpPort, TcpPortRange
from stacksmith.elbv2 import (
    ApplicationLoadBalancer,
    ApplicationLoadBalancerTarget,
    ApplicationProtocol,
    ApplicationTargetGroup,
    HealthCheck,
    ImportedApplicationTargetGroup,
    InstanceTarget,
    IpTarget,
    SelfRegisteringTarget,
    TargetType,
)
from stacksmith.errors import ConfigurationError, SynthWarning, UnsupportedOperationError
from stacksmith.tree import synthesize

if TYPE_CHECKING:
    from collections.abc import Callable

if TYPE_CHECKING:
    from pytest_mock import MockerFixture

    from stacksmith.ec2 import Vpc
    from stacksmith.resources import Stack


def test_instance_targets(stack: 'Stack', load_balancer: ApplicationLoadBalancer,
                          make_target_group: 'Callable[..., ApplicationTargetGroup]') -> None:
    """Render instance targets into the target group."""
    target_group = make_target_group('Web', targets=[
        InstanceTarget(instance_id='i-1'),
        InstanceTarget(instance_id='i-2', port=8080),
    ])
    load_balancer.add_listener('Listener', port=80, default_target_groups=[target_group])

    resource = synthesize(stack)['Resources']['Web']

    assert resource == {
        'Type': 'AWS::ElasticLoadBalancingV2::TargetGroup',
        'Properties': {
            'Port': 80,
            'Protocol': 'HTTP',
            'VpcId': {'Ref': 'Vpc'},
            'Targets': [{'Id': 'i-1'}, {'Id': 'i-2', 'Port': 8080}],
            'TargetType': 'instance',
        },
    }


def test_ip_targets(make_target_group: 'Callable[..., ApplicationTargetGroup]') -> None:
    """Address targets by IP."""
    target_group = make_target_group('Web', targets=[
        IpTarget(ip_address='10.0.1.20', availability_zone='all'),
    ])

    assert target_group.target_type == TargetType.IP


def test_mixed_target_types(make_target_group: 'Callable[..., ApplicationTargetGroup]') -> None:
    """Refuse targets of different types in one group."""
    target_group = make_target_group('Web')

    with pytest.raises(ConfigurationError, match=r"^Already have targets of type 'instance', can not add a target of type 'ip'"):
        target_group.add_target(IpTarget(ip_address='10.0.1.20'))


def test_target_group_attributes(stack: 'Stack', vpc: 'Vpc', load_balancer: ApplicationLoadBalancer) -> None:
    """Render attributes and health check settings."""
    target_group = ApplicationTargetGroup(
        stack,
        'Web',
        vpc=vpc,
        protocol=ApplicationProtocol.HTTPS,
        target_group_name='web-servers',
        deregistration_delay_sec=30,
        slow_start_sec=60,
        stickiness_cookie_duration_sec=3600,
        health_check=HealthCheck(path='/health', interval_sec=30, healthy_http_codes='200-299'),
    )
    load_balancer.add_listener('Listener', port=80, default_target_groups=[target_group])

    properties = synthesize(stack)['Resources']['Web']['Properties']

    assert properties == {
        'Port': 443,
        'Protocol': 'HTTPS',
        'VpcId': {'Ref': 'Vpc'},
        'Targets': [],
        'Name': 'web-servers',
        'TargetGroupAttributes': [
            {'Key': 'deregistration_delay.timeout_seconds', 'Value': '30'},
            {'Key': 'slow_start.duration_seconds', 'Value': '60'},
            {'Key': 'stickiness.enabled', 'Value': 'true'},
            {'Key': 'stickiness.type', 'Value': 'lb_cookie'},
            {'Key': 'stickiness.lb_cookie.duration_seconds', 'Value': '3600'},
        ],
        'HealthCheckPath': '/health',
        'HealthCheckIntervalSeconds': 30,
        'Matcher': {'HttpCode': '200-299'},
    }


def test_register_listener_idempotent(load_balancer: ApplicationLoadBalancer,
                                      make_target_group: 'Callable[..., ApplicationTargetGroup]') -> None:
    """Record a listener once."""
    target_group = make_target_group('Web')
    listener = load_balancer.add_listener('Listener', port=80, default_target_groups=[target_group])

    assert not target_group.register_listener(listener)
    assert target_group.listeners == [listener]


def test_unattached_target_group_warning(stack: 'Stack',
                                         make_target_group: 'Callable[..., ApplicationTargetGroup]') -> None:
    """Warn about target groups no listener forwards to."""
    target_group = make_target_group('Web')

    assert target_group.warnings == ['Target group is not attached to any listener']

    with pytest.warns(SynthWarning, match=r'^\[Stack/Web\] Target group is not attached to any listener$'):
        synthesize(stack)


@pytest.mark.parametrize('target_first', (
    pytest.param(True, id='target before listener'),
    pytest.param(False, id='listener before target'),
))
def test_self_registering_target(vpc: 'Vpc', stack: 'Stack', load_balancer: ApplicationLoadBalancer,
                                 target_first: bool) -> None:
    """Open listeners to connectable targets in either order."""
    instances = SecurityGroup(stack, 'Instances', vpc=vpc)
    target = SelfRegisteringTarget(Connections(security_group=instances))
    target_group = ApplicationTargetGroup(stack, 'Web', vpc=vpc, port=8080, protocol=ApplicationProtocol.HTTP)
    listener = load_balancer.add_listener('Listener', port=80)

    if target_first:
        target_group.add_target(target)
        listener.add_target_groups('Web', target_groups=[target_group])
    else:
        listener.add_target_groups('Web', target_groups=[target_group])
        target_group.add_target(target)

    [ingress] = instances.ingress_rules
    [egress] = load_balancer.security_group.egress_rules

    assert ingress.peer is load_balancer.security_group
    assert ingress.port_range == TcpPort(port=8080)
    assert ingress.description == 'Load balancer to target'
    assert egress.peer is instances
    assert egress.port_range == TcpPort(port=8080)
    assert target_group.target_type is None

    properties = synthesize(stack)['Resources']['Web']['Properties']

    assert properties['Targets'] == []
    assert 'TargetType' not in properties


def test_self_registering_target_port_range(vpc: 'Vpc', stack: 'Stack', load_balancer: ApplicationLoadBalancer) -> None:
    """Open an explicit port range to a connectable target."""
    instances = SecurityGroup(stack, 'Instances', vpc=vpc)
    target = SelfRegisteringTarget(
        Connections(security_group=instances),
        port_range=TcpPortRange(start=8000, end=8010),
    )
    target_group = ApplicationTargetGroup(stack, 'Web', vpc=vpc, port=80, targets=[target])
    load_balancer.add_listener('Listener', port=80, default_target_groups=[target_group])

    assert [rule.port_range for rule in instances.ingress_rules] == [TcpPortRange(start=8000, end=8010)]


def test_connectable_forwarded_to_every_listener(vpc: 'Vpc', stack: 'Stack',
                                                 load_balancer: ApplicationLoadBalancer,
                                                 mocker: 'MockerFixture') -> None:
    """Forward a connectable to every listener exactly once."""
    instances = SecurityGroup(stack, 'Instances', vpc=vpc)
    target = SelfRegisteringTarget(Connections(security_group=instances))
    target_group = ApplicationTargetGroup(stack, 'Web', vpc=vpc, port=80)

    first = load_balancer.add_listener('Http', port=80, default_target_groups=[target_group])
    second = load_balancer.add_listener('Alt', protocol=ApplicationProtocol.HTTP, port=8080)

    first_spy = mocker.spy(first, 'register_connectable')
    second_spy = mocker.spy(second, 'register_connectable')

    target_group.add_target(target)
    second.add_target_groups('Web', target_groups=[target_group])
    target_group.register_connectable(target)

    first_spy.assert_called_once_with(target, TcpPort(port=80))
    second_spy.assert_called_once_with(target, TcpPort(port=80))


def test_imported_target_group(stack: 'Stack', load_balancer: ApplicationLoadBalancer) -> None:
    """Route to target groups referenced by identifier."""
    target_group = ImportedApplicationTargetGroup(stack, 'Shared', target_group_arn='arn:tg/shared')
    listener = load_balancer.add_listener('Listener', port=80, default_target_groups=[target_group])

    assert target_group.listeners == [listener]

    properties = synthesize(stack)['Resources'][listener.logical_id]['Properties']

    assert properties['DefaultActions'] == [{'TargetGroupArn': 'arn:tg/shared', 'Type': 'forward'}]


def test_add_target_after_synthesis(stack: 'Stack', load_balancer: ApplicationLoadBalancer,
                                    make_target_group: 'Callable[..., ApplicationTargetGroup]') -> None:
    """Refuse new targets once synthesized."""
    target_group = make_target_group('Web')
    load_balancer.add_listener('Listener', port=80, default_target_groups=[target_group])
    synthesize(stack)

    with pytest.raises(UnsupportedOperationError, match=r'^Can not add targets after synthesis'):
        target_group.add_target(InstanceTarget(instance_id='i-late'))


@pytest.mark.parametrize('port', (
    pytest.param(0, id='zero'),
    pytest.param(70000, id='too large'),
))
def test_target_group_port_out_of_range(stack: 'Stack', vpc: 'Vpc', port: int) -> None:
    """Reject invalid ports before the group joins the tree."""
    with pytest.raises(ConfigurationError, match=rf'^Port {port} is out of range, use 1 to 65535'):
        ApplicationTargetGroup(stack, 'Web', vpc=vpc, port=port, protocol=ApplicationProtocol.HTTP)

    assert stack.try_find_child('Web') is None

    resources = synthesize(stack)['Resources']

    assert list(resources) == [vpc.logical_id]


def test_target_without_attach_hook() -> None:
    """Require targets to implement the attach hook."""

    class Incomplete(ApplicationLoadBalancerTarget):
        pass

    with pytest.raises(TypeError, match=r"^Can't instantiate abstract class Incomplete"):
        Incomplete()
