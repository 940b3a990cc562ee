"""Tests for tokens."""

import pytest

from stacksmith.resolution import resolve
from stacksmith.tokens import Token, is_token, lazy


def test_pending_token_produce() -> None:
    """Produce the value of a pending token on demand."""
    calls = []

    def resolver() -> int:
        calls.append(1)
        return 42

    token = Token(resolver, display_name='answer')

    assert not token.is_resolved
    assert calls == []
    assert token.produce() == 42
    assert calls == [1]


def test_resolved_token_produce() -> None:
    """Return the captured value of a resolved token."""
    token = Token.from_value({'key': 'value'})

    assert token.is_resolved
    assert token.produce() == {'key': 'value'}


def test_non_callable_resolver() -> None:
    """Reject resolvers that can not be called."""
    with pytest.raises(TypeError, match=r'^Token resolver must be callable'):
        Token(42)  # type: ignore[arg-type]


@pytest.mark.parametrize('value', (
    pytest.param('value', id='str'),
    pytest.param(42, id='int'),
    pytest.param(None, id='none'),
    pytest.param({'key': 'value'}, id='mapping'),
))
def test_token_never_equals_value(value: object) -> None:
    """Compare tokens by identity, never by the value they stand for."""
    token = Token.from_value(value)

    assert token != value
    assert token == token  # noqa: PLR0124
    assert token != Token.from_value(value)


def test_token_hashable_by_identity() -> None:
    """Use tokens as set members and mapping keys."""
    first = lazy(lambda: 1)
    second = lazy(lambda: 1)

    assert len({first, second, first}) == 2


def test_token_repr_display_name() -> None:
    """Show the display name in the representation."""
    assert repr(Token.from_value(1, display_name='Listener.Port')) == 'Token(Listener.Port)'


def test_token_default_display_name() -> None:
    """Derive a display name from the token identity."""
    token = lazy(lambda: 1)

    assert token.display_name == f'Token#{id(token):x}'


@pytest.mark.parametrize('value, expected', (
    pytest.param(lazy(lambda: 1), True, id='pending token'),
    pytest.param(Token.from_value(1), True, id='resolved token'),
    pytest.param(1, False, id='plain value'),
    pytest.param([lazy(lambda: 1)], False, id='list of tokens'),
))
def test_is_token(value: object, expected: bool) -> None:
    """Detect tokens without inspecting containers."""
    assert is_token(value) is expected


def test_mapped_token_resolution() -> None:
    """Apply the mapper to the resolved upstream value."""
    upstream = lazy(lambda: {'Ref': lazy(lambda: 'Bucket')})
    mapped = upstream.map(lambda value: value['Ref'].lower())

    assert mapped.source is not None
    assert mapped.source[0] is upstream
    assert resolve(mapped) == 'bucket'


def test_mapped_token_produce() -> None:
    """Refuse to produce derived tokens outside of a resolver."""
    mapped = Token.from_value(1).map(str)

    with pytest.raises(TypeError, match=r'is derived and must be produced by a resolver$'):
        mapped.produce()
