"""Networks hosting security groups and target groups."""

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from stacksmith.construct import Construct
from stacksmith.resources import Resource

if TYPE_CHECKING:
    from stacksmith.tokens import Token
    from stacksmith.values import RuntimeValue


@runtime_checkable
class VpcLike(Protocol):
    """Anything exposing a network identifier."""

    @property
    def vpc_id(self) -> 'RuntimeValue':
        """Identifier of the network; may be a token."""
        ...  # pragma: no cover


class Vpc(Resource):
    """Network declared in this tree."""

    def __init__(self, scope: Construct, id: str, *,  # noqa: A002
                 cidr: str = '10.0.0.0/16') -> None:
        """Initialize a network.

        Args:
            scope: Parent construct.
            id: Identifier unique among the scope's children.
            cidr: Address range of the network.
        """
        super().__init__(scope, id, resource_type='AWS::EC2::VPC', properties={
            'CidrBlock': cidr,
            'EnableDnsHostnames': True,
            'EnableDnsSupport': True,
        })

        self.cidr = cidr

    @property
    def vpc_id(self) -> 'Token':
        """Token for the network identifier."""
        return self.ref


class ImportedVpc(Construct):
    """Reference to a network defined outside this tree."""

    def __init__(self, scope: Construct, id: str, *,  # noqa: A002
                 vpc_id: 'RuntimeValue') -> None:
        super().__init__(scope, id)

        self._vpc_id = vpc_id

    @property
    def vpc_id(self) -> 'RuntimeValue':
        """Identifier of the referenced network."""
        return self._vpc_id
