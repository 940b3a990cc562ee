"""Construct identifiers and logical id generation.

This module defines the identifier rules for constructs and the
deterministic algorithm that turns a construct path into the logical id
of a resource in the emitted template.

Logical ids only depend on the construct path, so the same declaration
always produces the same ids across runs.
"""

from hashlib import md5
from re import ASCII
from re import compile as regexp
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

#: Separator between construct ids in a path.
PATH_SEPARATOR = '/'

#: Construct ids are non-empty and must not contain the path separator.
CONSTRUCT_ID_PATTERN = regexp(r'^[^/]+$')

#: Characters kept in the human-readable part of a logical id.
_LOGICAL_ID_UNSAFE = regexp(r'[^A-Za-z0-9]', flags=ASCII)

#: Path components hidden from the human-readable part of a logical id.
HIDDEN_COMPONENTS = frozenset(('Resource', 'Default'))

#: Number of digest characters appended to a logical id.
HASH_LENGTH = 8


def logical_id(components: 'Sequence[str]') -> str:
    """Generate a logical id from construct path components.

    A single component is used verbatim (sanitized). Longer paths combine
    the sanitized components with a short hash of the full path so that
    distinct paths never collapse to the same id.

    Args:
        components: Path components below the stack.

    Returns:
        A template-safe logical id.

    Raises:
        ValueError: If no components are given.
    """
    if not components:
        raise ValueError('Can not generate a logical id for an empty path')

    if len(components) == 1:
        return _LOGICAL_ID_UNSAFE.sub('', components[0])

    human = ''.join(
        _LOGICAL_ID_UNSAFE.sub('', component)
        for component in components
        if component not in HIDDEN_COMPONENTS
    )
    digest = md5(PATH_SEPARATOR.join(components).encode(), usedforsecurity=False)

    return f'{human}{digest.hexdigest()[:HASH_LENGTH].upper()}'
