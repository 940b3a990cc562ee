"""Deferred values (tokens).

A token is an opaque placeholder for a value that is not known until
synthesis time, for example the ARN of a resource that has not been
emitted yet or the list of certificates a listener will end up with.

Tokens come in two variants: a pending token wraps a resolver callable
that is invoked by the resolution engine, and a resolved token simply
carries a value captured at creation time. Either way a token is never
mutated after creation, and it never compares equal to the plain value
it resolves to.
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import Self

if TYPE_CHECKING:
    from stacksmith.values import RuntimeValue

#: Resolver callable wrapped by a pending token. It receives no
#: arguments and may return a structure containing further tokens.
type TokenResolver = Callable[[], RuntimeValue]

#: Mapper applied to the fully resolved value of another token.
type TokenMapper = Callable[[Any], RuntimeValue]


class Token:
    """Opaque placeholder for a value known only at resolution time.

    Tokens are compared and hashed by identity. The resolution engine
    keys its cycle detection and per-pass cache on that identity.
    """

    __slots__ = ('_display_name', '_resolved', '_resolver', '_source', '_value')

    def __init__(self, resolver: 'TokenResolver', *,
                 display_name: str | None = None) -> None:
        """Initialize a pending token.

        Args:
            resolver: Callable producing the token value.
            display_name: Optional human-readable label used in `repr`.

        Raises:
            TypeError: If the resolver is not callable.
        """
        if not callable(resolver):
            raise TypeError(f'Token resolver must be callable, got {resolver!r}')

        self._resolver: TokenResolver | None = resolver
        self._source: tuple[Token, TokenMapper] | None = None
        self._value: RuntimeValue = None
        self._resolved = False
        self._display_name = display_name

    @classmethod
    def from_value(cls, value: 'RuntimeValue', *,
                   display_name: str | None = None) -> 'Self':
        """Create an already-resolved token.

        Args:
            value: The value the token stands for. May itself contain
                tokens, which are resolved as usual.
            display_name: Optional human-readable label.

        Returns:
            A token in the resolved state.
        """
        token = cls.__new__(cls)
        token._resolver = None
        token._source = None
        token._value = value
        token._resolved = True
        token._display_name = display_name

        return token

    @property
    def display_name(self) -> str:
        """Human-readable token label."""
        return self._display_name or f'Token#{id(self):x}'

    @property
    def is_resolved(self) -> bool:
        """True for tokens created with a fixed value."""
        return self._resolved

    @property
    def source(self) -> 'tuple[Token, TokenMapper] | None':
        """Upstream token and mapper for tokens created via `map`."""
        return self._source

    def produce(self) -> 'RuntimeValue':
        """Produce the raw (possibly token-bearing) value.

        This does not resolve nested tokens; that is the job of the
        resolution engine. Tokens created by `map` must be produced by
        the engine, which supplies the resolved upstream value.

        Returns:
            The captured value or the resolver output.

        Raises:
            TypeError: If the token was derived with `map`.
        """
        if self._resolved:
            return self._value

        if self._resolver is None:
            raise TypeError(f'{self!r} is derived and must be produced by a resolver')

        return self._resolver()

    def map(self, mapper: 'TokenMapper', *,
            display_name: str | None = None) -> 'Token':
        """Derive a token from the resolved value of this one.

        Args:
            mapper: Callable applied to the fully resolved value.
            display_name: Optional label for the derived token.

        Returns:
            A new pending token.
        """
        token = Token.__new__(Token)
        token._resolver = None
        token._source = (self, mapper)
        token._value = None
        token._resolved = False
        token._display_name = display_name or f'{self.display_name}.map'

        return token

    def __repr__(self) -> str:
        """String representation."""
        return f'{type(self).__name__}({self.display_name})'


def is_token(value: 'RuntimeValue') -> bool:
    """Check whether a value is a token."""
    return isinstance(value, Token)


def lazy(resolver: 'TokenResolver', *, display_name: str | None = None) -> Token:
    """Create a pending token from a resolver callable.

    Args:
        resolver: Callable producing the deferred value.
        display_name: Optional human-readable label.

    Returns:
        A pending token.
    """
    return Token(resolver, display_name=display_name)
