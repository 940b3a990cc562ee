"""Enumerations of the load balancing domain."""

from enum import StrEnum


class ApplicationProtocol(StrEnum):
    """Protocols of application listeners and target groups."""

    HTTP = 'HTTP'
    HTTPS = 'HTTPS'


class SslPolicy(StrEnum):
    """Predefined TLS negotiation policies of secure listeners."""

    RECOMMENDED = 'ELBSecurityPolicy-2016-08'
    TLS12 = 'ELBSecurityPolicy-TLS-1-2-2017-01'
    TLS12_EXT = 'ELBSecurityPolicy-TLS-1-2-Ext-2018-06'
    TLS11 = 'ELBSecurityPolicy-TLS-1-1-2017-01'
    FORWARD_SECRECY = 'ELBSecurityPolicy-FS-2018-06'
    LEGACY = 'ELBSecurityPolicy-TLS-1-0-2015-04'


class TargetType(StrEnum):
    """How targets of a target group are addressed."""

    INSTANCE = 'instance'
    IP = 'ip'
