"""Port range definitions for security group rules.

Port ranges are immutable models that render to the protocol and port
fields of a security group rule. Their string form is stable and used
to derive identifiers of standalone rule resources.
"""

from abc import abstractmethod
from typing import Any, Self

from pydantic import Field, model_validator

from stacksmith.models import SchemaModel

MIN_PORT = 0
MAX_PORT = 65535


class PortRange(SchemaModel):
    """Base class of port ranges."""

    @abstractmethod
    def to_rule_json(self) -> dict[str, Any]:
        """Render the protocol and port fields of a rule."""

    @abstractmethod
    def __str__(self) -> str:
        """Stable human-readable description of the range."""


class TcpPort(PortRange):
    """A single TCP port."""

    port: int = Field(
        ge=MIN_PORT,
        le=MAX_PORT,
        title='Port',
        description='TCP port number.',
    )

    def to_rule_json(self) -> dict[str, Any]:
        """Render the protocol and port fields of a rule."""
        return {
            'IpProtocol': 'tcp',
            'FromPort': self.port,
            'ToPort': self.port,
        }

    def __str__(self) -> str:
        """Stable human-readable description of the range."""
        return str(self.port)


class TcpPortRange(PortRange):
    """An inclusive range of TCP ports."""

    start: int = Field(
        ge=MIN_PORT,
        le=MAX_PORT,
        title='First port',
    )

    end: int = Field(
        ge=MIN_PORT,
        le=MAX_PORT,
        title='Last port',
    )

    @model_validator(mode='after')
    def check_order(self) -> Self:
        """Check that the range is not reversed.

        Raises:
            ValueError: If `start` is greater than `end`.
        """
        if self.start > self.end:
            raise ValueError('start port must not be greater than end port')

        return self

    def to_rule_json(self) -> dict[str, Any]:
        """Render the protocol and port fields of a rule."""
        return {
            'IpProtocol': 'tcp',
            'FromPort': self.start,
            'ToPort': self.end,
        }

    def __str__(self) -> str:
        """Stable human-readable description of the range."""
        return f'{self.start}-{self.end}'


class TcpAllPorts(PortRange):
    """Every TCP port."""

    def to_rule_json(self) -> dict[str, Any]:
        """Render the protocol and port fields of a rule."""
        return {
            'IpProtocol': 'tcp',
            'FromPort': MIN_PORT,
            'ToPort': MAX_PORT,
        }

    def __str__(self) -> str:
        """Stable human-readable description of the range."""
        return 'ALL PORTS'


class AllTraffic(PortRange):
    """Every protocol and port."""

    def to_rule_json(self) -> dict[str, Any]:
        """Render the protocol and port fields of a rule."""
        return {
            'IpProtocol': '-1',
        }

    def __str__(self) -> str:
        """Stable human-readable description of the range."""
        return 'ALL TRAFFIC'
