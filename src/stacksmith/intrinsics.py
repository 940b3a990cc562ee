"""Tokens for template intrinsic functions.

Attributes of resources that do not exist yet (an ARN, a generated id)
are represented as tokens that resolve to intrinsic references into the
emitted template. The logical id of the referenced resource is read at
resolution time, so late overrides are honoured.
"""

from typing import TYPE_CHECKING

from stacksmith.tokens import Token

if TYPE_CHECKING:
    from stacksmith.resources import Resource
    from stacksmith.values import RuntimeValue


class Ref(Token):
    """Reference to a resource's primary identifier (`Ref`)."""

    def __init__(self, resource: 'Resource') -> None:
        """Initialize a reference token.

        Args:
            resource: Referenced resource.
        """
        self.resource = resource

        super().__init__(
            lambda: {'Ref': resource.logical_id},
            display_name=f'{resource.path}.Ref',
        )


class GetAtt(Token):
    """Reference to a named resource attribute (`Fn::GetAtt`)."""

    def __init__(self, resource: 'Resource', attribute: str) -> None:
        """Initialize an attribute token.

        Args:
            resource: Referenced resource.
            attribute: Attribute name, for example `GroupId`.
        """
        self.resource = resource
        self.attribute = attribute

        super().__init__(
            lambda: {'Fn::GetAtt': [resource.logical_id, attribute]},
            display_name=f'{resource.path}.{attribute}',
        )


def join(delimiter: str, parts: 'list[RuntimeValue]') -> Token:
    """Concatenate (possibly deferred) parts (`Fn::Join`).

    When every part resolves to a plain string the join is folded into a
    single string instead of emitting an intrinsic function.

    Args:
        delimiter: Separator inserted between parts.
        parts: Values to concatenate.

    Returns:
        A token resolving to the joined value.
    """
    def fold(resolved: list['RuntimeValue']) -> 'RuntimeValue':
        if all(isinstance(part, str) for part in resolved):
            return delimiter.join(resolved)
        return {'Fn::Join': [delimiter, resolved]}

    return Token.from_value(list(parts), display_name='Join.parts').map(fold, display_name='Join')
