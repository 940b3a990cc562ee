"""Application load balancing constructs.

Listeners route requests to target groups either by default or through
prioritized rules matching host headers and path patterns. Target
groups forward connectable targets to every listener they are attached
to, so the required security group rules appear regardless of the
order in which listeners, groups and targets are declared.
"""

from .enums import ApplicationProtocol, SslPolicy, TargetType
from .listener import ApplicationListener, ApplicationListenerBase, ImportedApplicationListener
from .listener_certificate import ApplicationListenerCertificate
from .listener_rule import ApplicationListenerRule
from .load_balancer import (
    ApplicationLoadBalancer,
    ApplicationLoadBalancerBase,
    ImportedApplicationLoadBalancer,
)
from .props import AddApplicationTargetGroupsProps, AddApplicationTargetsProps, AddRuleProps, HealthCheck
from .target_group import (
    ApplicationTargetGroup,
    ApplicationTargetGroupBase,
    ImportedApplicationTargetGroup,
)
from .targets import (
    ApplicationLoadBalancerTarget,
    InstanceTarget,
    IpTarget,
    LoadBalancerTargetProps,
    SelfRegisteringTarget,
)
from .util import determine_protocol_and_port

__all__ = (
    'AddApplicationTargetGroupsProps',
    'AddApplicationTargetsProps',
    'AddRuleProps',
    'ApplicationListener',
    'ApplicationListenerBase',
    'ApplicationListenerCertificate',
    'ApplicationListenerRule',
    'ApplicationLoadBalancer',
    'ApplicationLoadBalancerBase',
    'ApplicationLoadBalancerTarget',
    'ApplicationProtocol',
    'ApplicationTargetGroup',
    'ApplicationTargetGroupBase',
    'HealthCheck',
    'ImportedApplicationListener',
    'ImportedApplicationLoadBalancer',
    'ImportedApplicationTargetGroup',
    'InstanceTarget',
    'IpTarget',
    'LoadBalancerTargetProps',
    'SelfRegisteringTarget',
    'SslPolicy',
    'TargetType',
    'determine_protocol_and_port',
)
