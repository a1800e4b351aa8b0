"""Rendering record assembly: input + rule-table defaults + calculations.

Every RenderingRecord field is listed explicitly below with where its value
comes from, instead of layering dicts on top of each other:

  input-or-default  the caller's value when present, else
                    ``rules.default_values[<wireName>]``, else a hard fallback
  computed          timestamp / current date at assembly time
  calculator        spacing, advance warning, rumble strips, queue length
  projection        device spacing / taper / buffer tables sorted by speed

Does not validate. Run ``validate_project`` first and only assemble valid input.
"""

from datetime import datetime
from types import MappingProxyType
from typing import Any

from tcplan.core.types import ProjectInput, RenderingRecord, is_absent
from tcplan.observability.tracing import trace
from tcplan.pipeline import calculator
from tcplan.pipeline.validator import as_number
from tcplan.rules import RuleTable, get_rules

DEFAULT_ROAD_TYPE = "arterial"
DEFAULT_DURATION_HOURS = 8

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
CURRENT_DATE_FORMAT = "%m/%d/%y"


def _pick(project: ProjectInput, wire_name: str, rules: RuleTable, fallback: Any = "") -> Any:
    """Input value if present, else the rule-table default, else ``fallback``."""
    value = project.get(wire_name)
    if not is_absent(value):
        return value
    default = rules.default_values.get(wire_name)
    if not is_absent(default):
        return default
    return fallback


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _number(value: Any, fallback: float = 0) -> float:
    """Numeric form of a validated value; integral numbers come back as int."""
    number = as_number(value)
    if number is None:
        return fallback
    return int(number) if number.is_integer() else number


@trace(name="assemble_record", span_type="TOOL")
def assemble_record(
    project: ProjectInput,
    rules: RuleTable | None = None,
    now: datetime | None = None,
) -> RenderingRecord:
    """Build the immutable rendering record for one plan."""
    rules = rules or get_rules()
    now = now or datetime.now()

    # ── Calculation inputs ──
    speed_limit = _number(_pick(project, "speedLimit", rules))
    work_zone_length = _number(_pick(project, "workZoneLength", rules))
    road_type = _text(_pick(project, "roadType", rules, DEFAULT_ROAD_TYPE))
    duration = _number(
        _pick(project, "estimatedDurationHours", rules, DEFAULT_DURATION_HOURS),
        DEFAULT_DURATION_HOURS,
    )
    index_number = _text(_pick(project, "indexNumber", rules))

    plan_type = calculator.plan_type_config(index_number, rules)

    # Explicit work zone type wins; otherwise the plan type's own
    work_zone_type = _text(_pick(project, "workZoneType", rules))
    if not work_zone_type and plan_type:
        work_zone_type = plan_type.work_zone_type

    image_path = _pick(project, "satelliteImagePath", rules, None)

    return RenderingRecord(
        # input-or-default
        project_name=_text(_pick(project, "projectName", rules)),
        site_location=_text(_pick(project, "siteLocation", rules)),
        speed_limit=speed_limit,
        work_zone_length=work_zone_length,
        road_type=road_type,
        estimated_duration_hours=duration,
        index_number=index_number,
        issue_date=_text(_pick(project, "issueDate", rules)),
        expiration_date=_text(_pick(project, "expirationDate", rules)),
        certificate_number=_text(_pick(project, "certificateNumber", rules)),
        instructor_name=_text(_pick(project, "instructorName", rules)),
        fy_year=_text(_pick(project, "fyYear", rules)),
        sheet_number=_text(_pick(project, "sheetNumber", rules)),
        last_revision=_text(_pick(project, "lastRevision", rules)),
        contract_number=_text(_pick(project, "contractNumber", rules)),
        contractor=_text(_pick(project, "contractor", rules)),
        work_description=_text(_pick(project, "workDescription", rules)),
        lane_closure_type=_text(_pick(project, "laneClosureType", rules)),
        traffic_control_method=_text(_pick(project, "trafficControlMethod", rules)),
        work_hours=_text(_pick(project, "workHours", rules)),
        work_zone_type=work_zone_type,
        satellite_image_path=_text(image_path) or None,
        # computed
        timestamp=now.strftime(TIMESTAMP_FORMAT),
        current_date=now.strftime(CURRENT_DATE_FORMAT),
        # calculator
        spacing=calculator.spacing_requirements(speed_limit, road_type, rules),
        advance_warning=calculator.advance_warning_distances(speed_limit),
        requires_rumble_strips=calculator.requires_rumble_strips(speed_limit, duration),
        queue_length=calculator.queue_length(work_zone_length, speed_limit),
        # projection
        device_spacing_table=calculator.device_spacing_table(rules),
        taper_length_table=calculator.taper_length_table(rules),
        buffer_length_table=calculator.buffer_length_table(rules),
        # lookups
        plan_type=plan_type,
        required_signs=calculator.required_signs(work_zone_type, rules),
        extra=MappingProxyType(dict(project.extra)),
    )
