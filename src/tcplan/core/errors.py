"""Error taxonomy for plan generation.

Validation and render failures propagate to the caller of
``PlanGenerator.generate``. Merge and image-load failures are recovered
inside the pipeline and only ever show up as a degraded result.
"""

from pathlib import Path


class TCPlanError(Exception):
    """Base class for all tcplan errors."""


class RuleTableError(TCPlanError):
    """The rule table source is missing or structurally inconsistent."""


class ValidationError(TCPlanError):
    """Project input was rejected before any rendering took place."""

    def __init__(self, errors: list[str] | tuple[str, ...]):
        self.errors = tuple(errors)
        super().__init__(f"Validation failed: {', '.join(self.errors)}")


class RenderError(TCPlanError):
    """A single page failed to render. Fatal for the current plan."""

    def __init__(self, page: int, label: str, reason: str = ""):
        self.page = page
        self.label = label
        message = f"Failed to render page {page} ({label})"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class MergeError(TCPlanError):
    """Combining page PDFs failed. Recovered by omitting the combined file."""


class ImageLoadError(TCPlanError):
    """The satellite image for page 1 could not be read."""

    def __init__(self, path: str | Path, reason: str):
        self.path = Path(path)
        super().__init__(f"{reason} ({self.path})")
