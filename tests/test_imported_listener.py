"""Tests for imported listeners."""

from typing import TYPE_CHECKING

import pydantic
import pytest

from stacksmith.construct import Construct
from stacksmith.ec2 import Connections, SecurityGroup, TcpPort
from stacksmith.elbv2 import (
    ApplicationListenerCertificate,
    ApplicationListenerRule,
    ImportedApplicationListener,
    InstanceTarget,
    SelfRegisteringTarget,
)
from stacksmith.errors import DuplicateNameError, InvalidRuleError, UnsupportedOperationError
from stacksmith.tree import synthesize

if TYPE_CHECKING:
    from collections.abc import Callable

if TYPE_CHECKING:
    from stacksmith.ec2 import Vpc
    from stacksmith.elbv2 import ApplicationTargetGroup
    from stacksmith.resources import Stack


@pytest.fixture
def listener(stack: 'Stack') -> ImportedApplicationListener:
    """Provide a listener imported by reference."""
    return ImportedApplicationListener(
        stack,
        'Imported',
        listener_arn='arn:aws:elasticloadbalancing:listener/app/1',
        security_group_id='sg-0123',
    )


def test_add_targets(listener: ImportedApplicationListener) -> None:
    """Refuse to create target groups on imported listeners."""
    with pytest.raises(UnsupportedOperationError, match=r'^Can only call add_targets\(\) when using a constructed listener'):
        listener.add_targets('Web', port=80, targets=[InstanceTarget(instance_id='i-1')])


def test_add_default_target_groups(listener: ImportedApplicationListener,
                                   make_target_group: 'Callable[..., ApplicationTargetGroup]') -> None:
    """Refuse default routes on imported listeners."""
    target_group = make_target_group('Web')

    with pytest.raises(UnsupportedOperationError, match=r'^Can not add default target groups to an imported listener'):
        listener.add_target_groups('Web', target_groups=[target_group])

    assert target_group.listeners == []


@pytest.mark.parametrize('fields', (
    pytest.param({'priority': 10}, id='priority without condition'),
    pytest.param({'path_pattern': '/api/*'}, id='condition without priority'),
))
def test_rule_shape(listener: ImportedApplicationListener,
                    make_target_group: 'Callable[..., ApplicationTargetGroup]',
                    fields: dict) -> None:
    """Require conditions and priority together on imported listeners."""
    with pytest.raises(InvalidRuleError, match=r"^Setting 'path_pattern' or 'host_header' also requires 'priority'"):
        listener.add_target_groups('Web', target_groups=[make_target_group('Web')], **fields)


def test_conditional_rule(stack: 'Stack', listener: ImportedApplicationListener,
                          make_target_group: 'Callable[..., ApplicationTargetGroup]') -> None:
    """Add rules to imported listeners under the given id."""
    target_group = make_target_group('Api')

    listener.add_target_groups('Api', priority=10, path_pattern='/api/*', target_groups=[target_group])

    rule = listener.find_child('Api')

    assert isinstance(rule, ApplicationListenerRule)
    assert listener.rules == [rule]
    assert target_group.listeners == [listener]

    properties = synthesize(stack)['Resources'][rule.logical_id]['Properties']

    assert properties['ListenerArn'] == 'arn:aws:elasticloadbalancing:listener/app/1'
    assert properties['Actions'] == [{'TargetGroupArn': {'Ref': 'Api'}, 'Type': 'forward'}]


def test_add_certificate_arns(stack: 'Stack', listener: ImportedApplicationListener) -> None:
    """Attach certificates through certificate resources."""
    first = listener.add_certificate_arns('arn:cert/1', 'arn:cert/2')
    second = listener.add_certificate_arns('arn:cert/3')

    assert isinstance(first, ApplicationListenerCertificate)
    assert [first.id, second.id] == ['Certificates1', 'Certificates2']

    resources = synthesize(stack)['Resources']

    assert resources[first.logical_id] == {
        'Type': 'AWS::ElasticLoadBalancingV2::ListenerCertificate',
        'Properties': {
            'ListenerArn': 'arn:aws:elasticloadbalancing:listener/app/1',
            'Certificates': [
                {'CertificateArn': 'arn:cert/1'},
                {'CertificateArn': 'arn:cert/2'},
            ],
        },
    }


def test_add_certificate_arns_name_taken(listener: ImportedApplicationListener) -> None:
    """Keep certificate numbering stable when a name is taken."""
    Construct(listener, 'Certificates1')

    for _ in range(2):
        with pytest.raises(DuplicateNameError, match=r"^There is already a construct with id 'Certificates1'"):
            listener.add_certificate_arns('arn:cert/1')

    assert [child.id for child in listener.children] == ['SecurityGroup', 'Certificates1']


def test_default_port_out_of_range(stack: 'Stack') -> None:
    """Reject an invalid default port before the listener joins the tree."""
    with pytest.raises(pydantic.ValidationError):
        ImportedApplicationListener(
            stack,
            'Other',
            listener_arn='arn:aws:elasticloadbalancing:listener/app/2',
            security_group_id='sg-0456',
            default_port=70000,
        )

    assert stack.try_find_child('Other') is None


def test_register_connectable(stack: 'Stack', vpc: 'Vpc', listener: ImportedApplicationListener,
                              make_target_group: 'Callable[..., ApplicationTargetGroup]') -> None:
    """Open imported listeners to targets through rule resources."""
    instances = SecurityGroup(stack, 'Instances', vpc=vpc)
    target_group = make_target_group('Api', targets=[
        SelfRegisteringTarget(Connections(security_group=instances)),
    ])

    listener.add_target_groups('Api', priority=10, host_header='api.example.com', target_groups=[target_group])

    [egress] = listener.connections.security_group.egress_rules
    [ingress] = instances.ingress_rules

    assert egress.peer is instances
    assert egress.port_range == TcpPort(port=80)
    assert egress.description == 'Load balancer to target'
    assert ingress.peer is listener.connections.security_group

    rule_resource = listener.find_child('SecurityGroup').find_child('to Instances:80')
    resources = synthesize(stack)['Resources']

    assert resources[rule_resource.logical_id]['Properties'] == {
        'GroupId': 'sg-0123',
        'DestinationSecurityGroupId': {'Fn::GetAtt': ['Instances', 'GroupId']},
        'IpProtocol': 'tcp',
        'FromPort': 80,
        'ToPort': 80,
        'Description': 'Load balancer to target',
    }
