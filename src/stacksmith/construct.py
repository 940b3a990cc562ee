"""Construct nodes.

A construct is a single named node in the declaration tree. It owns its
children in insertion order, exposes a path-based identity, and can
report its own validation messages and warnings.

Children are attached by passing the parent scope to the constructor,
which enforces that ids are unique among siblings at attach time rather
than at validation time.
"""

import logging
from typing import TYPE_CHECKING, NamedTuple

from stacksmith.errors import ConfigurationError, DuplicateNameError, UnsupportedOperationError
from stacksmith.names import CONSTRUCT_ID_PATTERN, PATH_SEPARATOR, logical_id

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)


class ValidationMessage(NamedTuple):
    """Validation message attributed to a construct path."""

    #: Path of the construct that produced the message.
    path: str
    #: Human-readable message.
    message: str


class Construct:
    """Named node in the construct tree.

    Attributes:
        id: Identifier of the construct, unique among its siblings.
    """

    def __init__(self, scope: 'Construct | None', id: str) -> None:  # noqa: A002
        """Initialize a construct and attach it to its scope.

        Args:
            scope: Parent construct, or `None` for a tree root.
            id: Identifier unique among the scope's children.

        Raises:
            ConfigurationError: If the id is empty or contains `/`.
            DuplicateNameError: If the scope already has a child named `id`.
            UnsupportedOperationError: If the scope is locked.
        """
        self.id = id

        self._scope: Construct | None = None
        self._children: dict[str, Construct] = {}
        self._warnings: list[str] = []
        self._locked = False

        if scope is None:
            _check_id(id)
        else:
            attach_child(scope, id, self)

    def __repr__(self) -> str:
        """String representation."""
        return f'<{type(self).__name__} {self.path!r}>'

    @property
    def scope(self) -> 'Construct | None':
        """Parent construct, `None` for a root."""
        return self._scope

    @property
    def root(self) -> 'Construct':
        """Root of the tree this construct belongs to."""
        node = self
        while node._scope is not None:
            node = node._scope
        return node

    @property
    def children(self) -> list['Construct']:
        """Direct children in insertion order."""
        return list(self._children.values())

    @property
    def path_components(self) -> tuple[str, ...]:
        """Ids from the tree root down to this construct."""
        return path(self)

    @property
    def path(self) -> str:
        """Separator-joined construct path."""
        return PATH_SEPARATOR.join(self.path_components)

    @property
    def unique_id(self) -> str:
        """Deterministic template-safe id derived from the path.

        The root component (the stack) is not part of the id.
        """
        components = self.path_components
        return logical_id(components[1:] or components)

    @property
    def warnings(self) -> list[str]:
        """Warnings recorded on this construct."""
        return list(self._warnings)

    @property
    def locked(self) -> bool:
        """True once the tree has been synthesized."""
        return self._locked

    def find_child(self, id: str) -> 'Construct':  # noqa: A002
        """Return a direct child by id.

        Raises:
            KeyError: If there is no such child.
        """
        return self._children[id]

    def try_find_child(self, id: str) -> 'Construct | None':  # noqa: A002
        """Return a direct child by id, or `None`."""
        return self._children.get(id)

    def find_all(self) -> 'Iterator[Construct]':
        """Iterate this construct and all descendants depth-first.

        Nodes are yielded in pre-order, children in insertion order.
        """
        yield self
        for child in self._children.values():
            yield from child.find_all()

    def validate(self) -> list[str]:
        """Validate this construct.

        Subclasses override this to report domain-rule violations. The
        messages are accumulated by the tree validation pass; this method
        must not raise for business-rule failures.

        Returns:
            Messages describing problems with this construct.
        """
        return []

    def add_warning(self, message: str) -> None:
        """Record a non-fatal diagnostic on this construct."""
        self._warnings.append(message)

    def lock(self) -> None:
        """Lock this construct and every descendant against mutation."""
        for node in self.find_all():
            node._locked = True

    def check_mutable(self, operation: str) -> None:
        """Fail if this construct has been locked by synthesis.

        Args:
            operation: Name of the attempted operation for the message.

        Raises:
            UnsupportedOperationError: If the construct is locked.
        """
        if self._locked:
            raise UnsupportedOperationError.at(
                f'Can not {operation} after synthesis',
                self.path,
            )


def _check_id(id: str) -> None:  # noqa: A002
    """Validate a construct id."""
    if not isinstance(id, str) or not CONSTRUCT_ID_PATTERN.match(id):
        raise ConfigurationError(f'Invalid construct id {id!r}')


def attach_child(parent: Construct, name: str, child: Construct) -> None:
    """Attach a construct under a parent.

    Args:
        parent: Construct that will own the child.
        name: Id of the child, unique among the parent's children.
        child: Construct to attach.

    Raises:
        ConfigurationError: If the name is not a valid construct id.
        DuplicateNameError: If the parent already has a child named `name`.
        UnsupportedOperationError: If the child already has a parent or
            the parent is locked.
    """
    _check_id(name)

    if child._scope is not None:
        raise UnsupportedOperationError.at(
            f'Construct is already attached to {child._scope.path!r}',
            child.path,
        )

    parent.check_mutable('add children')

    if name in parent._children:
        raise DuplicateNameError.at(
            f'There is already a construct with id {name!r}',
            parent.path,
        )

    child.id = name
    child._scope = parent
    parent._children[name] = child

    logger.debug('Attached %r under %r', name, parent.path)


def path(node: Construct) -> tuple[str, ...]:
    """Return the ids from the tree root down to a construct.

    Args:
        node: Any construct.

    Returns:
        Tuple of construct ids, root first.
    """
    components: list[str] = []

    current: Construct | None = node
    while current is not None:
        components.append(current.id)
        current = current._scope

    return tuple(reversed(components))
