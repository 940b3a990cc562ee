"""Network primitives: security groups, port ranges, and connections.

The `Connections` abstraction lets two resources negotiate network
reachability without either knowing the other's security group ahead
of time. Rules reference group ids through tokens resolved at synthesis.
"""

from .connections import Connectable, Connections
from .peers import CidrIPv4, Peer, any_ipv4
from .ports import AllTraffic, PortRange, TcpAllPorts, TcpPort, TcpPortRange
from .security_group import ImportedSecurityGroup, SecurityGroup, SecurityGroupRule
from .vpc import ImportedVpc, Vpc, VpcLike

__all__ = (
    'AllTraffic',
    'CidrIPv4',
    'Connectable',
    'Connections',
    'ImportedSecurityGroup',
    'ImportedVpc',
    'Peer',
    'PortRange',
    'SecurityGroup',
    'SecurityGroupRule',
    'TcpAllPorts',
    'TcpPort',
    'TcpPortRange',
    'Vpc',
    'VpcLike',
    'any_ipv4',
)
