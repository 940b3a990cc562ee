"""Tests for logical id generation."""

import pytest

from stacksmith.names import HASH_LENGTH, logical_id


def test_single_component() -> None:
    """Use a single component verbatim."""
    assert logical_id(['LoadBalancer']) == 'LoadBalancer'


def test_single_component_sanitized() -> None:
    """Drop characters that are not alphanumeric."""
    assert logical_id(['from 10.0.0.0_16:80']) == 'from100001680'


def test_hidden_components() -> None:
    """Hide `Resource` and `Default` from the readable part."""
    generated = logical_id(['Service', 'Resource'])

    assert generated.startswith('Service')
    assert len(generated) == len('Service') + HASH_LENGTH


def test_hash_distinguishes_paths() -> None:
    """Keep ids of similar paths distinct."""
    assert logical_id(['A', 'BC']) != logical_id(['AB', 'C'])
    assert logical_id(['Service', 'Resource']) != logical_id(['Service', 'Default'])


def test_deterministic() -> None:
    """Generate the same id for the same path."""
    assert logical_id(('LB', 'Listener')) == logical_id(['LB', 'Listener'])


def test_hash_is_upper_hex() -> None:
    """Append an upper-case hexadecimal digest."""
    digest = logical_id(['LB', 'Listener'])[-HASH_LENGTH:]

    assert digest == digest.upper()
    int(digest, 16)


def test_empty_path() -> None:
    """Refuse to generate an id for an empty path."""
    with pytest.raises(ValueError, match=r'^Can not generate a logical id for an empty path$'):
        logical_id([])
