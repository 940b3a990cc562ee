"""Token resolution engine.

This module walks an arbitrary value (scalar, sequence, or mapping) and
replaces every embedded token with its resolved value, recursing into
the resolver output as well. The result is a plain structured value with
no tokens left.

Resolution is pure and deterministic: mapping order is preserved,
tuples become lists and unordered collections become sorted lists, so
resolving the same input twice yields identical output.
"""

import logging
from typing import TYPE_CHECKING, Any, overload

from stacksmith.errors import CyclicResolutionError
from stacksmith.tokens import Token
from stacksmith.values import MAPPINGS, SCALARS, SEQUENCES, UNORDERED, normalize_key

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

if TYPE_CHECKING:
    from stacksmith.values import RuntimeValue, Value

#: Default limit for nested resolution, overridable through settings.
DEFAULT_MAX_DEPTH = 256

logger = logging.getLogger(__name__)


class Resolver:
    """Single resolution pass over one or more values.

    A resolver owns the visiting set used for cycle detection and a
    cache of already resolved tokens keyed by token identity. Both are
    private to the instance, so independent passes never share state.

    Within a pass every token is produced at most once, which makes
    repeated references to the same token resolve to the same value.
    """

    def __init__(self, *, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        """Initialize a resolution pass.

        Args:
            max_depth: Maximum nesting of containers and tokens before
                resolution is aborted.
        """
        self.max_depth = max_depth

        self._visiting: set[int] = set()
        self._cache: dict[int, Value] = {}
        self._pinned: list[Token] = []
        self._keys: list[str] = []

    @property
    def key_path(self) -> str:
        """Dotted path of the value currently being resolved."""
        return '.'.join(self._keys)

    @overload
    def resolve(self, value: 'Mapping[str, RuntimeValue]') -> 'Mapping[str, Value]':
        ...  # pragma: no cover

    @overload
    def resolve(self, value: 'Sequence[RuntimeValue]') -> 'Sequence[Value]':
        ...  # pragma: no cover

    @overload
    def resolve(self, value: 'RuntimeValue') -> 'Value':
        ...  # pragma: no cover

    def resolve(self, value: Any) -> Any:
        """Resolve a value into a token-free structure.

        Args:
            value: Any runtime value, possibly containing tokens.

        Returns:
            The fully resolved value.

        Raises:
            CyclicResolutionError: If a token output revisits the token
                itself or nesting exceeds `max_depth`.
            TypeError: If the value contains an unsupported type or a
                non-string mapping key.
            Any exception raised by token resolvers.
        """
        return self._resolve(value, 0)

    def _resolve(self, value: 'RuntimeValue', depth: int) -> 'Value':
        """Recursive worker for `resolve`."""
        if depth > self.max_depth:
            raise CyclicResolutionError(
                f'Resolution exceeded the maximum depth of {self.max_depth}',
                key_path=self.key_path,
            )

        if value is None or isinstance(value, SCALARS):
            return value

        if isinstance(value, Token):
            return self._resolve_token(value, depth)

        if isinstance(value, MAPPINGS):
            return self._resolve_mapping(value, depth)

        if isinstance(value, SEQUENCES):
            return [
                self._resolve_item(str(index), item, depth)
                for index, item in enumerate(value)
            ]

        if isinstance(value, UNORDERED):
            items = [self._resolve(item, depth + 1) for item in value]
            return sorted(items, key=str)

        raise TypeError(f'{value!r} has unsupported type')

    def _resolve_item(self, key: str, value: 'RuntimeValue', depth: int) -> 'Value':
        """Resolve a container item while tracking its key path."""
        self._keys.append(key)
        try:
            return self._resolve(value, depth + 1)
        finally:
            self._keys.pop()

    def _resolve_mapping(self, value: 'Mapping[Any, RuntimeValue]', depth: int) -> 'Value':
        """Resolve every value of a mapping, preserving key order."""
        return {
            normalize_key(key): self._resolve_item(key, item, depth)
            for key, item in value.items()
        }

    def _resolve_token(self, token: Token, depth: int) -> 'Value':
        """Resolve a single token, detecting cycles by identity."""
        key = id(token)
        if key in self._cache:
            return self._cache[key]

        if key in self._visiting:
            raise CyclicResolutionError(
                f'Cyclic reference detected while resolving {token!r}',
                key_path=self.key_path,
            )

        self._visiting.add(key)
        try:
            if source := token.source:
                upstream, mapper = source
                produced = mapper(self._resolve(upstream, depth + 1))
            else:
                produced = token.produce()

            resolved = self._resolve(produced, depth + 1)
        finally:
            self._visiting.discard(key)

        logger.debug('Resolved %r at %r', token, self.key_path)

        # Keep tokens alive for the pass so their ids are not reused.
        self._pinned.append(token)
        self._cache[key] = resolved

        return resolved


def resolve(value: Any, *, max_depth: int = DEFAULT_MAX_DEPTH) -> Any:  # noqa: ANN401
    """Resolve a value using a fresh resolution pass.

    Args:
        value: Any runtime value, possibly containing tokens.
        max_depth: Maximum nesting before resolution is aborted.

    Returns:
        A fully resolved value without tokens.

    Raises:
        CyclicResolutionError: On self-referencing tokens.
        TypeError: On unsupported value types.
    """
    return Resolver(max_depth=max_depth).resolve(value)
