"""Additional certificates of existing listeners."""

from typing import TYPE_CHECKING

from stacksmith.resources import Resource

if TYPE_CHECKING:
    from collections.abc import Iterable

if TYPE_CHECKING:
    from stacksmith.construct import Construct
    from stacksmith.values import RuntimeValue


class ApplicationListenerCertificate(Resource):
    """Certificates added to a listener outside its own declaration."""

    def __init__(self, scope: 'Construct', id: str, *,  # noqa: A002
                 listener_arn: 'RuntimeValue',
                 certificate_arns: 'Iterable[RuntimeValue]') -> None:
        """Initialize a listener certificate resource.

        Args:
            scope: Parent construct.
            id: Identifier unique among the scope's children.
            listener_arn: Identifier of the listener.
            certificate_arns: Certificates to add.
        """
        super().__init__(scope, id, resource_type='AWS::ElasticLoadBalancingV2::ListenerCertificate')

        self.listener_arn = listener_arn
        self.certificate_arns = list(certificate_arns)

    def render_properties(self) -> dict[str, 'RuntimeValue']:
        """Render certificate properties."""
        return {
            'ListenerArn': self.listener_arn,
            'Certificates': [
                {'CertificateArn': arn}
                for arn in self.certificate_arns
            ],
        }
