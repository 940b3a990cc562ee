"""Tests for error formatting."""

from stacksmith.construct import ValidationMessage
from stacksmith.errors import (
    ConfigurationError,
    CyclicResolutionError,
    InvalidRuleError,
    SynthError,
    ValidationError,
)
from stacksmith.tokens import lazy


def test_plain_error_message() -> None:
    """Render an error without context as its message."""
    assert str(SynthError('Something went wrong')) == 'Something went wrong'


def test_located_error_message() -> None:
    """Render the construct path below the message."""
    error = ConfigurationError.at('Bad port', 'Stack/LB/Listener')

    assert error.message == 'Bad port'
    assert str(error).splitlines() == [
        'Bad port',
        '    at construct "Stack/LB/Listener"',
    ]


def test_error_snippet() -> None:
    """Render the offending element as a YAML snippet."""
    error = InvalidRuleError.at('Bad rule', 'Stack/Listener', element={
        'priority': 10,
        'host_header': None,
        'target': lazy(lambda: 'arn'),
    })

    lines = str(error).splitlines()

    assert lines[0] == 'Bad rule'
    assert lines[1] == '    at construct "Stack/Listener"'
    assert '        priority: 10' in lines
    assert '        host_header: null' in lines
    assert any(line.startswith('        target: ') and '<runtime object>' in line for line in lines)


def test_cyclic_error_key_path() -> None:
    """Keep the key path on cyclic resolution errors."""
    error = CyclicResolutionError('Cycle', key_path='Resources.Listener')

    assert error.key_path == 'Resources.Listener'
    assert str(error).splitlines()[1] == '    at key "Resources.Listener"'


def test_validation_error_lists_every_message() -> None:
    """Aggregate every validation message with its path."""
    error = ValidationError([
        ValidationMessage('Stack/A', 'first problem'),
        ValidationMessage('Stack/B', 'second problem'),
    ])

    assert error.message == 'Validation failed with 2 errors'
    assert len(error.messages) == 2
    assert str(error).splitlines() == [
        'Validation failed with 2 errors',
        '    [Stack/A] first problem',
        '    [Stack/B] second problem',
    ]


def test_validation_error_single_message() -> None:
    """Use the singular form for one message."""
    error = ValidationError([ValidationMessage('Stack/A', 'problem')])

    assert error.message == 'Validation failed with 1 error'
