"""Core domain types shared across all tcplan modules."""

from tcplan.core.errors import (
    ImageLoadError,
    MergeError,
    RenderError,
    RuleTableError,
    TCPlanError,
    ValidationError,
)
from tcplan.core.types import (
    AdvanceWarning,
    BatchItemResult,
    BatchSummary,
    PlanArtifactSet,
    ProjectInput,
    RenderingRecord,
    SpacingRequirements,
    ValidationResult,
)

__all__ = [
    "AdvanceWarning",
    "BatchItemResult",
    "BatchSummary",
    "ImageLoadError",
    "MergeError",
    "PlanArtifactSet",
    "ProjectInput",
    "RenderError",
    "RenderingRecord",
    "RuleTableError",
    "SpacingRequirements",
    "TCPlanError",
    "ValidationError",
    "ValidationResult",
]
