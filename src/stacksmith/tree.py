"""Whole-tree validation and synthesis.

Validation collects the messages of every construct in one depth-first,
insertion-order pass and never stops at the first problem. Synthesis
refuses to run on an invalid tree; otherwise it walks the tree in the
same order, merges the fragments of every template element, and resolves
the merged template in a single resolution pass.
"""

import logging
from typing import TYPE_CHECKING, Any
from warnings import warn

from stacksmith.construct import ValidationMessage, attach_child, path
from stacksmith.errors import DuplicateNameError, SynthWarning, ValidationError
from stacksmith.models import SynthSettings
from stacksmith.resolution import Resolver
from stacksmith.resources import TemplateElement

if TYPE_CHECKING:
    from stacksmith.construct import Construct
    from stacksmith.resources import TemplateFragment

__all__ = (
    'attach_child',
    'path',
    'synthesize',
    'validate_tree',
)

#: Order of sections in the emitted template.
SECTIONS = ('AWSTemplateFormatVersion', 'Description', 'Resources', 'Outputs')

logger = logging.getLogger(__name__)


def validate_tree(root: 'Construct', *,
                  warnings_as_errors: bool = False) -> list[ValidationMessage]:
    """Validate every construct of a tree.

    Args:
        root: Root of the tree (or subtree) to validate.
        warnings_as_errors: Also report recorded warnings as messages.

    Returns:
        All messages, each attributed to its construct path, in
        depth-first pre-order with children in insertion order.
    """
    messages: list[ValidationMessage] = []

    for node in root.find_all():
        node_path = node.path
        messages.extend(
            ValidationMessage(node_path, message)
            for message in node.validate()
        )
        if warnings_as_errors:
            messages.extend(
                ValidationMessage(node_path, message)
                for message in node.warnings
            )

    logger.debug('Validated %r: %d message(s)', root.path, len(messages))

    return messages


def merge_fragment(template: dict[str, Any], fragment: 'TemplateFragment',
                   element: TemplateElement) -> None:
    """Merge a template fragment into a template in place.

    Args:
        template: Template being assembled.
        fragment: Fragment produced by a template element.
        element: Element that produced the fragment.

    Raises:
        DuplicateNameError: If an entry already exists in a section.
    """
    for section, entries in fragment.items():
        target = template.setdefault(section, {})
        for key, entry in entries.items():
            if key in target:
                raise DuplicateNameError.at(
                    f'Duplicate logical id {key!r} in section {section!r}',
                    element.path,
                )
            target[key] = entry


def synthesize(root: 'Construct', settings: SynthSettings | None = None) -> dict[str, Any]:
    """Validate and synthesize a construct tree into a template.

    Args:
        root: Root of the tree, usually a `Stack`.
        settings: Synthesis settings; read from the environment if omitted.

    Returns:
        A fully resolved template mapping without tokens.

    Raises:
        ValidationError: If any construct reports a validation message.
        DuplicateNameError: If two elements share a logical id.
        CyclicResolutionError: If token resolution does not terminate.
    """
    if settings is None:
        settings = SynthSettings()

    if messages := validate_tree(root, warnings_as_errors=settings.warnings_as_errors):
        raise ValidationError(messages)

    template: dict[str, Any] = {
        'AWSTemplateFormatVersion': settings.template_format_version,
    }
    if settings.description is not None:
        template['Description'] = settings.description

    for node in root.find_all():
        if not settings.warnings_as_errors:
            for message in node.warnings:
                warn(f'[{node.path}] {message}', category=SynthWarning, stacklevel=2)

        if isinstance(node, TemplateElement):
            merge_fragment(template, node.produce_template_fragment(), node)

    resolver = Resolver(max_depth=settings.max_resolve_depth)
    resolved = resolver.resolve({
        section: template[section]
        for section in SECTIONS
        if section in template
    })

    root.lock()

    logger.debug('Synthesized %r with %d resource(s)', root.path,
                 len(resolved.get('Resources', {})))

    return resolved
