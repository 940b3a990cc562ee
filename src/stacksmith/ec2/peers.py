"""Rule peers other than security groups.

A peer is the other side of a security group rule. Security groups are
peers themselves; this module adds address-range peers.
"""

from ipaddress import IPv4Network
from typing import Any, Protocol, Self, runtime_checkable

from pydantic import Field, model_validator

from stacksmith.models import SchemaModel


@runtime_checkable
class Peer(Protocol):
    """Anything that can be the other side of a security group rule."""

    @property
    def peer_id(self) -> str:
        """Stable identifier of the peer, used to name rule resources."""
        ...  # pragma: no cover

    def to_ingress_rule_json(self) -> dict[str, Any]:
        """Render the source fields of an ingress rule."""
        ...  # pragma: no cover

    def to_egress_rule_json(self) -> dict[str, Any]:
        """Render the destination fields of an egress rule."""
        ...  # pragma: no cover


class CidrIPv4(SchemaModel):
    """An IPv4 address range."""

    cidr: str = Field(
        pattern=r'^\d{1,3}(\.\d{1,3}){3}/\d{1,2}$',
        title='CIDR block',
        examples=['10.0.0.0/16'],
    )

    @model_validator(mode='after')
    def check_network(self) -> Self:
        """Check that the block is a valid IPv4 network.

        Host bits may be set; `10.0.0.1/16` denotes `10.0.0.0/16`.

        Raises:
            ValueError: If an octet or the prefix length is out of range.
        """
        IPv4Network(self.cidr, strict=False)

        return self

    @property
    def peer_id(self) -> str:
        """Stable identifier of the peer."""
        return self.cidr

    def to_ingress_rule_json(self) -> dict[str, Any]:
        """Render the source fields of an ingress rule."""
        return {'CidrIp': self.cidr}

    def to_egress_rule_json(self) -> dict[str, Any]:
        """Render the destination fields of an egress rule."""
        return {'CidrIp': self.cidr}


def any_ipv4() -> CidrIPv4:
    """Peer matching every IPv4 address."""
    return CidrIPv4(cidr='0.0.0.0/0')
