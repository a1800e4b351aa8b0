"""Rule table: device spacing, taper/buffer lengths, sign spacing and policy.

The JSON source keys speeds by string ("35"); those keys are converted to
``int`` once here so lookups elsewhere never deal with stringified numbers.
The resulting ``RuleTable`` is frozen and its mappings are read-only.

Loaded once per process through ``get_rules()``; tests build tables
directly with ``parse_rules()``.
"""

import json
import logging
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from tcplan.core.errors import RuleTableError
from tcplan.core.types import DeviceSpacing, PlanType, ValidationPolicy

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Source format (camelCase JSON)
# ---------------------------------------------------------------------------

class _DeviceSpacingSource(BaseModel):
    cones: float = Field(gt=0)
    barricades: float = Field(gt=0)


class _WorkZoneTypeSource(BaseModel):
    required_signs: list[str] = Field(default_factory=list, alias="requiredSigns")


class _PlanTypeSource(BaseModel):
    name: str
    description: str = ""
    sheets: int = 1
    work_zone_type: str = Field(default="", alias="workZoneType")


class _PolicySource(BaseModel):
    required_fields: list[str]
    speed_limit_range: tuple[float, float]
    work_zone_length_range: tuple[float, float]


class RuleTableSource(BaseModel):
    """Pydantic model of the rule table JSON document."""

    device_spacing: dict[str, _DeviceSpacingSource] = Field(alias="deviceSpacing")
    taper_lengths: dict[str, float] = Field(alias="taperLengths")
    buffer_lengths: dict[str, float] = Field(alias="bufferLengths")
    sign_spacing: dict[str, float] = Field(alias="signSpacing")
    work_zone_types: dict[str, _WorkZoneTypeSource] = Field(default_factory=dict, alias="workZoneTypes")
    plan_types: dict[str, _PlanTypeSource] = Field(default_factory=dict, alias="planTypes")
    validation: _PolicySource
    default_values: dict[str, Any] = Field(default_factory=dict, alias="defaultValues")


SIGN_SPACING_KEYS = ("arterial_40", "arterial_45", "limited_access")


# ---------------------------------------------------------------------------
# Runtime table
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RuleTable:
    """Immutable domain rules, keyed by integer speed (mph)."""

    device_spacing: Mapping[int, DeviceSpacing]
    taper_lengths: Mapping[int, float]
    buffer_lengths: Mapping[int, float]
    sign_spacing: Mapping[str, float]
    work_zone_types: Mapping[str, tuple[str, ...]]
    plan_types: Mapping[str, PlanType]
    policy: ValidationPolicy
    default_values: Mapping[str, Any]

    @property
    def speeds(self) -> tuple[int, ...]:
        """Canonical tabulated speeds, ascending."""
        return tuple(sorted(self.device_spacing))


def _speed_keys(table: dict[str, Any], name: str) -> dict[int, Any]:
    converted = {}
    for key, value in table.items():
        try:
            converted[int(key)] = value
        except ValueError:
            raise RuleTableError(f"{name}: speed key {key!r} is not an integer") from None
    return converted


def parse_rules(data: dict[str, Any]) -> RuleTable:
    """Build a RuleTable from the decoded JSON document.

    Raises:
        RuleTableError: a section is missing or malformed, the speed tables
            disagree on which speeds they cover, or a sign spacing key is missing.
    """
    try:
        source = RuleTableSource.model_validate(data)
    except PydanticValidationError as e:
        raise RuleTableError(f"Invalid rule table: {e}") from e

    device = _speed_keys(source.device_spacing, "deviceSpacing")
    taper = _speed_keys(source.taper_lengths, "taperLengths")
    buffer = _speed_keys(source.buffer_lengths, "bufferLengths")

    if not (set(device) == set(taper) == set(buffer)):
        raise RuleTableError(
            "deviceSpacing, taperLengths and bufferLengths must cover the same speeds: "
            f"{sorted(device)} / {sorted(taper)} / {sorted(buffer)}"
        )

    missing = [k for k in SIGN_SPACING_KEYS if k not in source.sign_spacing]
    if missing:
        raise RuleTableError(f"signSpacing is missing keys: {missing}")

    lo, hi = source.validation.speed_limit_range
    if lo > hi:
        raise RuleTableError(f"speed_limit_range is inverted: [{lo}, {hi}]")
    lo, hi = source.validation.work_zone_length_range
    if lo > hi:
        raise RuleTableError(f"work_zone_length_range is inverted: [{lo}, {hi}]")

    return RuleTable(
        device_spacing=MappingProxyType({
            speed: DeviceSpacing(cones=s.cones, barricades=s.barricades)
            for speed, s in device.items()
        }),
        taper_lengths=MappingProxyType(dict(taper)),
        buffer_lengths=MappingProxyType(dict(buffer)),
        sign_spacing=MappingProxyType(dict(source.sign_spacing)),
        work_zone_types=MappingProxyType({
            name: tuple(wz.required_signs) for name, wz in source.work_zone_types.items()
        }),
        plan_types=MappingProxyType({
            code: PlanType(
                index_number=code,
                name=p.name,
                description=p.description,
                sheets=p.sheets,
                work_zone_type=p.work_zone_type,
            )
            for code, p in source.plan_types.items()
        }),
        policy=ValidationPolicy(
            required_fields=tuple(source.validation.required_fields),
            speed_limit_range=tuple(source.validation.speed_limit_range),
            work_zone_length_range=tuple(source.validation.work_zone_length_range),
        ),
        default_values=MappingProxyType(dict(source.default_values)),
    )


def load_rules(path: str | Path | None = None) -> RuleTable:
    """Read and parse a rule table file. ``None`` loads the bundled copy."""
    if path is None:
        text = resources.files("tcplan.data").joinpath("rules.json").read_text(encoding="utf-8")
        origin = "bundled rules.json"
    else:
        path = Path(path)
        if not path.exists():
            raise RuleTableError(f"Rule table not found: {path}")
        text = path.read_text(encoding="utf-8")
        origin = str(path)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise RuleTableError(f"Rule table is not valid JSON ({origin}): {e}") from e

    rules = parse_rules(data)
    logger.info(
        "Loaded rule table from %s: %d speeds, %d plan types",
        origin, len(rules.speeds), len(rules.plan_types),
    )
    return rules


_rules: RuleTable | None = None


def get_rules() -> RuleTable:
    """Process-wide rule table (lazy, loaded from ``settings.rules_path``)."""
    global _rules
    if _rules is None:
        from tcplan.config import settings

        _rules = load_rules(settings.rules_path)
    return _rules


def clear_rules_cache() -> None:
    global _rules
    _rules = None
