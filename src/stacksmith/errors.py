"""Core exception hierarchy.

This module defines the base error and warning types used across the
library to report structural declaration mistakes, accumulated validation
failures, and token resolution problems in a structured way.

Structural errors (naming, rule shape, unsupported operations) are raised
at the call that caused them. Validation errors are accumulated over the
whole construct tree and reported once.
"""

from os import linesep
from typing import TYPE_CHECKING, Any, TypedDict

from yaml import dump

from stacksmith.values import MAPPINGS, SCALARS, SEQUENCES

if TYPE_CHECKING:
    from collections.abc import Sequence
    from typing import Self

if TYPE_CHECKING:
    from stacksmith.construct import ValidationMessage

SNIPPET_ELLIPSIS = f' ...{linesep}'
SNIPPET_INDENT = 2

FORMAT_REPLACER = '<runtime object>'
FORMAT_INDENT = 4


class ErrorContext(TypedDict, total=False):
    """Container describing contextual information for error formatting.

    All fields are optional; the formatter adapts output based on
    provided values.
    """

    #: Path of the construct the error belongs to.
    path: str | None

    #: Dotted key path inside the value being resolved.
    key_path: str | None

    #: Underlying exception that triggered formatting.
    error: Exception | None

    #: Offending element (a property bag or a template fragment).
    element: Any


class ErrorFormatter:
    """Utility class for formatting library errors.

    Produces human-readable error messages with an optional construct
    location and a YAML snippet of the offending element.
    """

    @classmethod
    def format(cls, message: str, context: ErrorContext | None = None) -> str:
        """Format an error message using contextual information.

        Args:
            message: Base human-readable error message.
            context: Optional error context with location and data.

        Returns:
            A fully formatted error message suitable for display.
        """
        if not context:
            return message

        location = cls.get_location_string(context, indent=FORMAT_INDENT)
        snippet = cls.get_snippet_string(context, indent=FORMAT_INDENT * 2)
        if not location and not snippet:
            return message

        return f'{message}{linesep}{location}{snippet}'.rstrip()

    @classmethod
    def get_location_string(cls, context: ErrorContext, *,
                            indent: str | int | None = None) -> str:
        """Format construct and key location information.

        Args:
            context: Error context containing location metadata.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted location string, or an empty string if the
            context carries no location.
        """
        indent = cls._ensure_indent(indent)

        message = ''
        if path := context.get('path'):
            message += f'{indent}at construct "{path}"{linesep}'
        if key_path := context.get('key_path'):
            message += f'{indent}at key "{key_path}"{linesep}'

        return message

    @classmethod
    def get_snippet_string(cls, context: ErrorContext, *,
                           indent: str | int | None = None) -> str:
        """Generate a formatted snippet illustrating the error context.

        Args:
            context: Error context containing the offending element.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted multi-line snippet string, or an empty string
            if no snippet data is available.
        """
        indent = cls._ensure_indent(indent)

        if (element := context.get('element')) is None:
            return ''

        snippet = f'{indent}{SNIPPET_ELLIPSIS}'
        snippet += cls._make_yaml(element, indent)
        snippet += linesep

        return snippet

    @classmethod
    def _filter_unsafe(cls, value: Any) -> Any:  # noqa: ANN401
        """Recursively sanitize values for safe YAML serialization.

        Non-scalar and non-container objects (tokens included) are
        replaced with a placeholder.

        Args:
            value: Arbitrary value to sanitize.

        Returns:
            A YAML-safe representation of the value.
        """
        if value is None or isinstance(value, SCALARS):
            return value

        if isinstance(value, MAPPINGS):
            return {
                str(key): cls._filter_unsafe(item)
                for key, item in value.items()
            }

        if isinstance(value, SEQUENCES):
            return [
                cls._filter_unsafe(item)
                for item in value
            ]

        return FORMAT_REPLACER

    @classmethod
    def _make_yaml(cls, value: Any, indent: str = '') -> str:  # noqa: ANN401
        """Serialize a value to a YAML-formatted string.

        Args:
            value: Arbitrary value to serialize.
            indent: Optional indentation prefix.

        Returns:
            A YAML-formatted string representation of the value.
        """
        data = dump(
            cls._filter_unsafe(value),
            indent=SNIPPET_INDENT,
            sort_keys=False,
        )

        return cls._make_indent(data, indent)

    @staticmethod
    def _make_indent(value: str, indent: str) -> str:
        """Apply indentation to a multi-line string.

        Empty or whitespace-only lines are omitted.
        """
        if not indent:
            return value

        return linesep.join(
            f'{indent}{line}'
            for line in value.splitlines()
            if line.strip()
        )

    @staticmethod
    def _ensure_indent(indent: str | int | None = None) -> str:
        """Normalize indentation input."""
        if isinstance(indent, int) and indent > 0:
            return ' ' * indent

        if isinstance(indent, str):
            return indent

        return ''


class SynthWarning(UserWarning):
    """Warning emitted for non-fatal construct diagnostics.

    Raised through `warnings.warn` during synthesis for every warning
    recorded on a construct, unless warnings are promoted to errors.
    """


class SynthError(Exception, ErrorFormatter):
    """Base exception for all stacksmith errors.

    All custom exceptions raised by the library inherit from this
    class to allow unified error handling by callers.
    """

    def __init__(self, message: str, *,
                 context: ErrorContext | None = None) -> None:
        """Initialize an error.

        Args:
            message: Human-readable error description.
            context: Error context with location and offending data.
        """
        self.message = message
        self.context = context

        super().__init__(message)

    def __str__(self) -> str:
        """String representation."""
        return self.format(self.message, self.context)

    @classmethod
    def at(cls, message: str, path: str, *,
           element: Any = None) -> 'Self':  # noqa: ANN401
        """Create an error located at a construct path.

        Args:
            message: Human-readable error message.
            path: Path of the construct associated with the error.
            element: Optional offending element rendered as a snippet.

        Returns:
            An initialized error instance with location context.
        """
        return cls(message, context=ErrorContext(path=path, element=element))


class DuplicateNameError(SynthError):
    """Error raised when an identifier is already taken.

    Raised when attaching a child whose id collides with a sibling, and
    when two resources end up with the same logical id in a template.
    """


class InvalidRuleError(SynthError):
    """Error raised for a malformed routing rule declaration.

    A condition (host header or path pattern) always requires a priority,
    and a priority always requires a condition.
    """


class AmbiguousPortError(SynthError):
    """Error raised when no port range can be negotiated for a rule.

    Neither an explicit port range was supplied nor does either side
    of the connection declare a default port range.
    """


class UnsupportedOperationError(SynthError):
    """Error raised when an operation is structurally impossible.

    Typically signals a programming error: imported (reference-only)
    resources cannot be extended the way constructed ones can, and locked
    (already synthesized) constructs cannot be modified.
    """


class ConfigurationError(SynthError):
    """Error raised when resource properties are inconsistent.

    Detected at construction time, for example when neither a port nor
    a protocol is given to a listener or target group.
    """


class CyclicResolutionError(SynthError):
    """Error raised when a token's resolution revisits itself.

    Also raised when resolution nesting exceeds the configured depth,
    which guards against unbounded chains of distinct tokens.
    """

    def __init__(self, message: str, *, key_path: str | None = None) -> None:
        """Initialize a cyclic resolution error.

        Args:
            message: Human-readable error description.
            key_path: Dotted key path at which the cycle was detected.
        """
        self.key_path = key_path

        super().__init__(message, context=ErrorContext(key_path=key_path))


class ValidationError(SynthError):
    """Aggregate error raised when a construct tree fails validation.

    Carries every message produced by the whole-tree validation pass,
    never only the first one.
    """

    def __init__(self, messages: 'Sequence[ValidationMessage]') -> None:
        """Initialize a validation error.

        Args:
            messages: All `(path, message)` entries collected from the tree.
        """
        self.messages = list(messages)

        count = len(self.messages)
        summary = f'Validation failed with {count} error{"" if count == 1 else "s"}'

        super().__init__(summary)

    def __str__(self) -> str:
        """String representation listing every offending path."""
        indent = ' ' * FORMAT_INDENT
        lines = [
            f'{indent}[{path}] {message}'
            for path, message in self.messages
        ]

        return linesep.join((self.message, *lines))
