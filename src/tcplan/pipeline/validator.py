"""Project input validation against the rule table's policy.

Produces blocking errors and non-blocking warnings; never raises for a
malformed value, it reports it instead. The certificate-expiry warning is
relative to "now", so callers that need deterministic results pass ``now``.
"""

import math
import re
from datetime import date, datetime, time

from tcplan.core.types import ProjectInput, ValidationResult, is_absent
from tcplan.observability.tracing import trace
from tcplan.rules import RuleTable, get_rules

DATE_FORMAT = "%m/%d/%Y"
_DATE_PATTERN = re.compile(r"^\d{2}/\d{2}/\d{4}$")
_INDEX_NUMBER_PATTERN = re.compile(r"^\d{3}-\d{3}$")


def is_valid_index_number(index_number: str) -> bool:
    """Standard plan index numbers look like 102-603."""
    return isinstance(index_number, str) and bool(_INDEX_NUMBER_PATTERN.fullmatch(index_number))


def parse_plan_date(value) -> date | None:
    """Parse a strict MM/DD/YYYY string. Returns None if it doesn't fit."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not _DATE_PATTERN.match(text):
        return None
    try:
        return datetime.strptime(text, DATE_FORMAT).date()
    except ValueError:
        return None


def as_number(value) -> float | None:
    """Numeric value of an int, float or numeric string; None otherwise."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _fmt(bound: float) -> str:
    return f"{bound:g}"


@trace(name="validate_project", span_type="PARSER")
def validate_project(
    project: ProjectInput,
    rules: RuleTable | None = None,
    now: datetime | None = None,
) -> ValidationResult:
    """Check a project against required fields, ranges, dates and index format."""
    rules = rules or get_rules()
    policy = rules.policy
    errors: list[str] = []
    warnings: list[str] = []

    # ── Required fields ──
    for name in policy.required_fields:
        if is_absent(project.get(name)):
            errors.append(f"Missing required field: {name}")

    # ── Speed limit range ──
    if not is_absent(project.speed_limit):
        speed = as_number(project.speed_limit)
        min_speed, max_speed = policy.speed_limit_range
        if speed is None:
            errors.append("Speed limit must be a number")
        elif speed < min_speed or speed > max_speed:
            errors.append(f"Speed limit must be between {_fmt(min_speed)} and {_fmt(max_speed)} mph")

    # ── Work zone length range ──
    if not is_absent(project.work_zone_length):
        length = as_number(project.work_zone_length)
        min_length, max_length = policy.work_zone_length_range
        if length is None:
            errors.append("Work zone length must be a number")
        elif length < min_length or length > max_length:
            errors.append(
                f"Work zone length must be between {_fmt(min_length)} and {_fmt(max_length)} feet"
            )

    # ── Certificate dates ──
    issue = expiration = None
    if not is_absent(project.issue_date):
        issue = parse_plan_date(project.issue_date)
        if issue is None:
            errors.append("Issue date must be in MM/DD/YYYY format")
    if not is_absent(project.expiration_date):
        expiration = parse_plan_date(project.expiration_date)
        if expiration is None:
            errors.append("Expiration date must be in MM/DD/YYYY format")

    if issue is not None and expiration is not None:
        if expiration < issue:
            errors.append("Expiration date must be after issue date")
        # expiration date counts from midnight
        if datetime.combine(expiration, time.min) < (now or datetime.now()):
            warnings.append("Certificate appears to be expired")

    # ── Index number ──
    if not is_absent(project.index_number) and not is_valid_index_number(project.index_number):
        errors.append("Index number must be in format XXX-XXX (e.g., 102-603)")

    return ValidationResult.from_messages(errors, warnings)
