"""Deterministic work-zone geometry calculator.

Pure functions: no I/O. Takes a speed limit, road classification,
duration and work-zone length, and returns the derived spacing, taper,
buffer, advance-warning and queue quantities from the rule table.

Every lookup has a named fallback used when the speed is not tabulated,
so these functions never fail on numeric input. Range checks are the
validator's job.
"""

from tcplan.core.types import (
    AdvanceWarning,
    DeviceSpacingRow,
    LengthRow,
    PlanType,
    SpacingRequirements,
)
from tcplan.rules import RuleTable, get_rules

# Fallbacks for speeds missing from the rule table (feet)
DEFAULT_CONE_SPACING = 40
DEFAULT_BARRICADE_SPACING = 75
DEFAULT_TAPER_LENGTH = 250
DEFAULT_BUFFER_LENGTH = 250

LIMITED_ACCESS_ROAD_TYPES = {"limited_access", "interstate"}
ARTERIAL_HIGH_SPEED_MPH = 45

# MUTCD Table 6C-1: advance warning sign spacing (feet)
ADVANCE_WARNING_DISTANCES: dict[int, AdvanceWarning] = {
    25: AdvanceWarning(urban=100, rural=100),
    30: AdvanceWarning(urban=100, rural=200),
    35: AdvanceWarning(urban=200, rural=350),
    40: AdvanceWarning(urban=200, rural=500),
    45: AdvanceWarning(urban=300, rural=700),
    50: AdvanceWarning(urban=350, rural=850),
    55: AdvanceWarning(urban=400, rural=1000),
    60: AdvanceWarning(urban=450, rural=1200),
    65: AdvanceWarning(urban=500, rural=1400),
    70: AdvanceWarning(urban=550, rural=1600),
}
DEFAULT_ADVANCE_WARNING = AdvanceWarning(urban=200, rural=500)

RUMBLE_STRIP_MIN_SPEED = 55
RUMBLE_STRIP_MIN_DURATION_HOURS = 1

# Queue storage estimate
MIN_QUEUE_LENGTH = 300          # ft, policy floor
QUEUE_FRACTION_OF_WORK_ZONE = 0.1
QUEUE_BASELINE_SPEED = 35       # mph


def speed_key(speed_limit: float) -> int | None:
    """Table key for a speed: the int value for integral speeds, else None.

    35 and 35.0 both map to 35; 35.5 is never tabulated.
    """
    if isinstance(speed_limit, bool):
        return None
    try:
        value = float(speed_limit)
    except (TypeError, ValueError):
        return None
    if not value.is_integer():
        return None
    return int(value)


def spacing_values(speed_limit: float, rules: RuleTable | None = None) -> dict:
    """Raw table hits for a speed: None for each table that lacks it."""
    rules = rules or get_rules()
    key = speed_key(speed_limit)
    return {
        "device_spacing": rules.device_spacing.get(key),
        "taper_length": rules.taper_lengths.get(key),
        "buffer_length": rules.buffer_lengths.get(key),
    }


def sign_spacing(speed_limit: float, road_type: str, rules: RuleTable | None = None) -> float:
    """Advance sign spacing by road classification and speed."""
    rules = rules or get_rules()
    if road_type in LIMITED_ACCESS_ROAD_TYPES:
        return rules.sign_spacing["limited_access"]
    if speed_limit >= ARTERIAL_HIGH_SPEED_MPH:
        return rules.sign_spacing["arterial_45"]
    return rules.sign_spacing["arterial_40"]


def spacing_requirements(
    speed_limit: float,
    road_type: str = "arterial",
    rules: RuleTable | None = None,
) -> SpacingRequirements:
    """Device spacing, taper, buffer and sign spacing for a work zone."""
    rules = rules or get_rules()
    key = speed_key(speed_limit)

    device = rules.device_spacing.get(key)
    return SpacingRequirements(
        cone_spacing=device.cones if device else DEFAULT_CONE_SPACING,
        barricade_spacing=device.barricades if device else DEFAULT_BARRICADE_SPACING,
        taper_length=rules.taper_lengths.get(key, DEFAULT_TAPER_LENGTH),
        buffer_length=rules.buffer_lengths.get(key, DEFAULT_BUFFER_LENGTH),
        sign_spacing=sign_spacing(speed_limit, road_type, rules),
    )


def advance_warning_distances(speed_limit: float) -> AdvanceWarning:
    """Exact-match lookup in the MUTCD table: no interpolation."""
    return ADVANCE_WARNING_DISTANCES.get(speed_key(speed_limit), DEFAULT_ADVANCE_WARNING)


def requires_rumble_strips(speed_limit: float, duration_hours: float) -> bool:
    """Temporary rumble strips for high-speed work lasting over an hour."""
    return speed_limit >= RUMBLE_STRIP_MIN_SPEED and duration_hours > RUMBLE_STRIP_MIN_DURATION_HOURS


def queue_length(work_zone_length: float, speed_limit: float) -> float:
    """Queue storage length upstream of the work zone (feet).

    10% of the work-zone length scaled by speed relative to 35 mph,
    never less than the 300 ft policy floor.
    """
    base_queue = work_zone_length * QUEUE_FRACTION_OF_WORK_ZONE
    speed_factor = speed_limit / QUEUE_BASELINE_SPEED
    return max(MIN_QUEUE_LENGTH, base_queue * speed_factor)


# ---------------------------------------------------------------------------
# Rule-table lookups and projections for presentation
# ---------------------------------------------------------------------------

def plan_type_config(index_number: str, rules: RuleTable | None = None) -> PlanType | None:
    rules = rules or get_rules()
    return rules.plan_types.get(index_number)


def required_signs(work_zone_type: str, rules: RuleTable | None = None) -> tuple[str, ...]:
    rules = rules or get_rules()
    return rules.work_zone_types.get(work_zone_type, ())


def device_spacing_table(rules: RuleTable | None = None) -> tuple[DeviceSpacingRow, ...]:
    rules = rules or get_rules()
    return tuple(
        DeviceSpacingRow(speed=speed, cones=s.cones, barricades=s.barricades)
        for speed, s in sorted(rules.device_spacing.items())
    )


def taper_length_table(rules: RuleTable | None = None) -> tuple[LengthRow, ...]:
    rules = rules or get_rules()
    return tuple(LengthRow(speed=s, length=v) for s, v in sorted(rules.taper_lengths.items()))


def buffer_length_table(rules: RuleTable | None = None) -> tuple[LengthRow, ...]:
    rules = rules or get_rules()
    return tuple(LengthRow(speed=s, length=v) for s, v in sorted(rules.buffer_lengths.items()))
