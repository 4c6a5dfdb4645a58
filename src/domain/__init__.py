"""Domain layer: errors, constants and schemas."""

from .errors import ErrorCodes, PipelineError, http_status_for
from .schemas import (
    ArtifactType,
    CleanupPolicy,
    GeneratedArtifact,
    ImageField,
    Template,
    TemplateFormat,
)

__all__ = [
    "ErrorCodes",
    "PipelineError",
    "http_status_for",
    "ArtifactType",
    "CleanupPolicy",
    "GeneratedArtifact",
    "ImageField",
    "Template",
    "TemplateFormat",
]
