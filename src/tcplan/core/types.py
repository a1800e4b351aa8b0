"""Domain types for the tcplan traffic control plan generator.

All shared dataclasses and type definitions live here to prevent
circular imports and establish a single source of truth for the
domain model. Every other module imports from here.
"""

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping


# ---------------------------------------------------------------------------
# Project input: untrusted caller attributes
# ---------------------------------------------------------------------------

# camelCase wire name → ProjectInput attribute. Wire names are what callers
# send, what the rule table's required_fields refer to, and what validation
# messages mention.
PROJECT_FIELDS: dict[str, str] = {
    "projectName": "project_name",
    "siteLocation": "site_location",
    "speedLimit": "speed_limit",
    "workZoneLength": "work_zone_length",
    "roadType": "road_type",
    "estimatedDurationHours": "estimated_duration_hours",
    "indexNumber": "index_number",
    "issueDate": "issue_date",
    "expirationDate": "expiration_date",
    "satelliteImagePath": "satellite_image_path",
    "certificateNumber": "certificate_number",
    "instructorName": "instructor_name",
    "fyYear": "fy_year",
    "sheetNumber": "sheet_number",
    "lastRevision": "last_revision",
    "contractNumber": "contract_number",
    "contractor": "contractor",
    "workDescription": "work_description",
    "laneClosureType": "lane_closure_type",
    "trafficControlMethod": "traffic_control_method",
    "workHours": "work_hours",
    "workZoneType": "work_zone_type",
}


@dataclass
class ProjectInput:
    """Raw project attributes as supplied by a caller.

    Nothing here is trusted until the validator has seen it: numeric
    fields may hold strings, dates may be malformed. ``extra`` keeps any
    keys the intake layer did not recognise so templates can still use them.
    """

    project_name: Any = None
    site_location: Any = None
    speed_limit: Any = None         # mph
    work_zone_length: Any = None    # feet
    road_type: Any = None           # arterial | interstate | limited_access
    estimated_duration_hours: Any = None
    index_number: Any = None        # e.g., "102-603"
    issue_date: Any = None          # MM/DD/YYYY
    expiration_date: Any = None     # MM/DD/YYYY
    satellite_image_path: Any = None

    # Descriptive fields: printed on the plan, never calculated with
    certificate_number: Any = None
    instructor_name: Any = None
    fy_year: Any = None
    sheet_number: Any = None
    last_revision: Any = None
    contract_number: Any = None
    contractor: Any = None
    work_description: Any = None
    lane_closure_type: Any = None
    traffic_control_method: Any = None
    work_hours: Any = None
    work_zone_type: Any = None

    extra: dict[str, Any] = field(default_factory=dict)

    def get(self, wire_name: str) -> Any:
        """Look up a value by its camelCase wire name (falls back to ``extra``)."""
        attr = PROJECT_FIELDS.get(wire_name)
        if attr is not None:
            return getattr(self, attr)
        return self.extra.get(wire_name)


def is_absent(value: Any) -> bool:
    """True for None, blank strings and empty collections. Zero is present."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one project. Warnings never block generation."""

    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @classmethod
    def from_messages(cls, errors, warnings=()) -> "ValidationResult":
        errors = tuple(errors)
        return cls(is_valid=not errors, errors=errors, warnings=tuple(warnings))

    def with_warning(self, warning: str) -> "ValidationResult":
        return ValidationResult(
            is_valid=self.is_valid,
            errors=self.errors,
            warnings=self.warnings + (warning,),
        )


# ---------------------------------------------------------------------------
# Rule table pieces
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DeviceSpacing:
    """Channelizing device spacing in feet for one speed."""

    cones: float
    barricades: float


@dataclass(frozen=True)
class PlanType:
    """Standard plan metadata for an index number."""

    index_number: str
    name: str
    description: str = ""
    sheets: int = 1
    work_zone_type: str = ""


@dataclass(frozen=True)
class ValidationPolicy:
    required_fields: tuple[str, ...]
    speed_limit_range: tuple[float, float]
    work_zone_length_range: tuple[float, float]


# ---------------------------------------------------------------------------
# Derived quantities
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SpacingRequirements:
    """Derived spacing and length requirements, all in feet."""

    cone_spacing: float
    barricade_spacing: float
    taper_length: float
    buffer_length: float
    sign_spacing: float


@dataclass(frozen=True)
class AdvanceWarning:
    """Distance upstream of the work zone to the first warning sign (feet)."""

    urban: float
    rural: float


@dataclass(frozen=True)
class DeviceSpacingRow:
    speed: int
    cones: float
    barricades: float


@dataclass(frozen=True)
class LengthRow:
    speed: int
    length: float


# ---------------------------------------------------------------------------
# Rendering record: the sole input to page templates
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RenderingRecord:
    """Fully assembled, immutable data for one plan.

    Built by ``tcplan.pipeline.assembler.assemble_record``; every field is
    filled from input, a rule-table default, or a calculation.
    """

    # Input, falling back to rule-table defaults
    project_name: str
    site_location: str
    speed_limit: float
    work_zone_length: float
    road_type: str
    estimated_duration_hours: float
    index_number: str
    issue_date: str
    expiration_date: str
    certificate_number: str
    instructor_name: str
    fy_year: str
    sheet_number: str
    last_revision: str
    contract_number: str
    contractor: str
    work_description: str
    lane_closure_type: str
    traffic_control_method: str
    work_hours: str
    work_zone_type: str
    satellite_image_path: str | None

    # Computed at assembly time
    timestamp: str       # YYYY-MM-DD HH:MM:SS
    current_date: str    # MM/DD/YY

    # Calculator outputs
    spacing: SpacingRequirements
    advance_warning: AdvanceWarning
    requires_rumble_strips: bool
    queue_length: float

    # Table projections, ascending by speed
    device_spacing_table: tuple[DeviceSpacingRow, ...]
    taper_length_table: tuple[LengthRow, ...]
    buffer_length_table: tuple[LengthRow, ...]

    # Rule-table lookups
    plan_type: PlanType | None = None
    required_signs: tuple[str, ...] = ()

    extra: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


# ---------------------------------------------------------------------------
# Pipeline outputs
# ---------------------------------------------------------------------------

@dataclass
class PlanArtifactSet:
    """Files produced for one plan. ``combined`` is None when the merge failed."""

    page1: Path | None
    page2: Path
    page3: Path
    combined: Path | None
    validation: ValidationResult

    @property
    def pages(self) -> list[Path]:
        return [p for p in (self.page1, self.page2, self.page3) if p is not None]


@dataclass
class BatchItemResult:
    """One entry per batch input, in input order."""

    success: bool
    project_name: str | None
    artifacts: PlanArtifactSet | None = None
    error: str | None = None
    errors: list[str] = field(default_factory=list)


@dataclass
class BatchSummary:
    total: int
    successful: int
    failed: int


@dataclass
class ValidationSummaryEntry:
    index: int
    project_name: str | None
    messages: list[str] = field(default_factory=list)


@dataclass
class ValidationSummary:
    """Validation-only pass over many projects."""

    valid: list[ValidationSummaryEntry] = field(default_factory=list)
    invalid: list[ValidationSummaryEntry] = field(default_factory=list)
    warnings: list[ValidationSummaryEntry] = field(default_factory=list)
