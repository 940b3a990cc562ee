"""Template elements: stacks, resources, and outputs.

Resources are the leaves of the construct tree that contribute to the
emitted template. Each one produces a template fragment that may still
contain tokens; the tree synthesis pass merges and resolves fragments.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from stacksmith.construct import Construct
from stacksmith.errors import ConfigurationError
from stacksmith.intrinsics import GetAtt, Ref
from stacksmith.names import CONSTRUCT_ID_PATTERN
from stacksmith.tokens import Token

if TYPE_CHECKING:
    from collections.abc import Mapping

if TYPE_CHECKING:
    from stacksmith.values import RuntimeValue

#: Template fragment: a mapping of template sections to entries.
type TemplateFragment = dict[str, dict[str, Any]]


class Stack(Construct):
    """Root of a construct tree synthesized into a single template."""

    def __init__(self, scope: Construct | None = None, id: str = 'Stack') -> None:  # noqa: A002
        """Initialize a stack.

        Args:
            scope: Optional parent scope, usually `None`.
            id: Stack identifier.
        """
        super().__init__(scope, id)

    @staticmethod
    def of(construct: Construct) -> 'Stack':
        """Return the closest stack enclosing a construct.

        Raises:
            ValueError: If the construct is not inside a stack.
        """
        node: Construct | None = construct
        while node is not None:
            if isinstance(node, Stack):
                return node
            node = node.scope

        raise ValueError(f'{construct!r} is not defined within a stack')


class TemplateElement(Construct, ABC):
    """Construct that contributes a fragment to the emitted template.

    Subclasses implement `produce_template_fragment`. The fragment may
    contain tokens; it is resolved by the synthesis pass.
    """

    _logical_id_override: str | None = None

    @property
    def logical_id(self) -> str:
        """Identifier of the element in the template."""
        return self._logical_id_override or self.unique_id

    def override_logical_id(self, value: str) -> None:
        """Replace the generated logical id.

        Raises:
            ConfigurationError: If the id is not alphanumeric.
            UnsupportedOperationError: If the construct is locked.
        """
        self.check_mutable('override the logical id')

        if not value.isalnum() or not CONSTRUCT_ID_PATTERN.match(value):
            raise ConfigurationError.at(f'Invalid logical id {value!r}', self.path)

        self._logical_id_override = value

    @abstractmethod
    def produce_template_fragment(self) -> TemplateFragment:
        """Produce the template fragment of this element."""


class Resource(TemplateElement):
    """Leaf resource of a given type.

    The base class emits the properties given at construction. Typed
    resources override `render_properties` to derive them from their
    own state, usually through lazy tokens.
    """

    def __init__(self, scope: Construct, id: str, *,  # noqa: A002
                 resource_type: str,
                 properties: 'Mapping[str, RuntimeValue] | None' = None) -> None:
        """Initialize a resource.

        Args:
            scope: Parent construct.
            id: Identifier unique among the scope's children.
            resource_type: Template resource type, e.g.
                `AWS::ElasticLoadBalancingV2::Listener`.
            properties: Optional static properties.
        """
        super().__init__(scope, id)

        self.resource_type = resource_type

        self._properties: dict[str, RuntimeValue] = dict(properties or {})
        self._depends_on: list[Resource] = []

    @property
    def ref(self) -> Token:
        """Token for the primary identifier of this resource."""
        return Ref(self)

    def get_att(self, attribute: str) -> Token:
        """Token for a named attribute of this resource."""
        return GetAtt(self, attribute)

    def add_depends_on(self, *resources: 'Resource') -> None:
        """Declare explicit creation-order dependencies."""
        self.check_mutable('add dependencies')

        for resource in resources:
            if resource not in self._depends_on:
                self._depends_on.append(resource)

    def render_properties(self) -> 'dict[str, RuntimeValue]':
        """Render resource properties; may contain tokens."""
        return dict(self._properties)

    def produce_template_fragment(self) -> TemplateFragment:
        """Produce the `Resources` fragment of this resource."""
        entry: dict[str, RuntimeValue] = {'Type': self.resource_type}

        if properties := self.render_properties():
            entry['Properties'] = properties

        if self._depends_on:
            entry['DependsOn'] = Token(
                lambda: sorted(resource.logical_id for resource in self._depends_on),
                display_name=f'{self.path}.DependsOn',
            )

        return {'Resources': {self.logical_id: entry}}


class Output(TemplateElement):
    """Template output exposing a (possibly deferred) value."""

    def __init__(self, scope: Construct, id: str, *,  # noqa: A002
                 value: 'RuntimeValue',
                 description: str | None = None,
                 export_name: str | None = None) -> None:
        """Initialize an output.

        Args:
            scope: Parent construct.
            id: Identifier unique among the scope's children.
            value: Output value, usually a token.
            description: Optional description.
            export_name: Optional cross-stack export name.
        """
        super().__init__(scope, id)

        self.value = value
        self.description = description
        self.export_name = export_name

    def produce_template_fragment(self) -> TemplateFragment:
        """Produce the `Outputs` fragment of this output."""
        entry: dict[str, RuntimeValue] = {'Value': self.value}

        if self.description is not None:
            entry['Description'] = self.description
        if self.export_name is not None:
            entry['Export'] = {'Name': self.export_name}

        return {'Outputs': {self.logical_id: entry}}
