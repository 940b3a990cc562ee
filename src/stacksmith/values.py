"""Core type definitions for template values.

This module defines the type system shared by the resolution engine and
the error formatter. It distinguishes between fully resolved template
values and runtime values that may still embed tokens.
"""

from collections.abc import Mapping, Sequence
from typing import Any

#: Scalars are fully resolved, atomic values that may appear
#: in an emitted template as-is.
type Scalar = str | int | float | bool

#: A value is considered resolved if it contains no tokens and can
#: be safely serialized by an external template writer.
type Value = Scalar | Sequence['Value'] | Mapping[str, 'Value'] | None

#: A runtime value is any Python object handed to the resolver,
#: possibly containing tokens at arbitrary depth.
type RuntimeValue = Any

MAPPINGS = (dict, Mapping)
SCALARS = (str, int, float, bool)
SEQUENCES = (list, tuple)
UNORDERED = (set, frozenset)


def normalize_key(value: RuntimeValue) -> str:
    """Validate and normalize a mapping key.

    Args:
        value: Candidate mapping key.

    Returns:
        The validated key as a string.

    Raises:
        TypeError: If the provided key is not a string.
    """
    if not isinstance(value, str):
        raise TypeError(f'Can not use {value!r} as mapping key')

    return value
