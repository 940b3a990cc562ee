"""Base Pydantic models for property bags and settings.

This module defines the foundational model classes used for every
declarative property bag (rule props, health checks, port ranges) and
for runtime settings resolved from the environment.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

#: Largest accepted resolution depth; also the default.
MAX_RESOLVE_DEPTH = 256


class SchemaModel(BaseModel):
    """Base immutable model for declarative property bags.

    Design principles enforced by this model:
        - Immutability: a property bag cannot be modified after creation,
          so constructs that captured it see the same values at synthesis.
        - Strict schema validation: unknown or extra fields are rejected
          to avoid silent errors caused by typos.

    Arbitrary types are allowed so that bags can carry tokens and
    references to other constructs.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        extra='forbid',
    )


class SettingsModel(BaseSettings):
    """Base immutable model for runtime settings.

    Design principles enforced by this model:
        - Immutability: resolved settings cannot be modified after creation.
        - Tolerant schema handling: unknown or extra fields are ignored,
          so unrelated environment variables never break resolution.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
    )


class SynthSettings(SettingsModel):
    """Settings applied to a synthesis pass.

    Values are read from `STACKSMITH_*` environment variables unless
    passed explicitly.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
        env_prefix='STACKSMITH_',
    )

    template_format_version: str = Field(
        default='2010-09-09',
        title='Template format version',
        description='Value of the `AWSTemplateFormatVersion` section.',
    )

    description: str | None = Field(
        default=None,
        title='Template description',
        description='Optional `Description` section of the emitted template.',
    )

    max_resolve_depth: int = Field(
        default=MAX_RESOLVE_DEPTH,
        gt=0,
        le=MAX_RESOLVE_DEPTH,
        title='Maximum resolution depth',
        description=(
            'Maximum nesting of containers and tokens while resolving. '
            'Exceeding it aborts synthesis with a cyclic resolution error.'
        ),
    )

    warnings_as_errors: bool = Field(
        default=False,
        title='Treat warnings as errors',
        description=(
            'Report construct warnings as validation messages instead of '
            'emitting them as warnings.'
        ),
    )
