"""Project intake: JSON files and foreign records → ``ProjectInput``.

Nothing here validates. Values are passed through as-is so the validator
can report on exactly what the caller sent.
"""

import json
import logging
from pathlib import Path
from typing import Any, Mapping

from tcplan.core.types import PROJECT_FIELDS, ProjectInput, is_absent

logger = logging.getLogger(__name__)

# Foreign record key(s) → wire name, with the fallback used when absent.
# The first present key in each tuple wins.
EXTERNAL_FIELD_MAP: dict[str, tuple[tuple[str, ...], Any]] = {
    "projectName": (("name", "title"), None),
    "siteLocation": (("location", "site"), None),
    "speedLimit": (("speed",), 35),
    "workZoneLength": (("length",), 1000),
    "indexNumber": (("fdotIndex",), "102-603"),
    "roadType": (("roadClassification",), "arterial"),
    "estimatedDurationHours": (("duration",), 8),
    "contractNumber": (("contract",), None),
    "contractor": (("contractorName",), None),
    "workDescription": (("description",), None),
    "laneClosureType": (("closureType",), "Right Lane"),
    "trafficControlMethod": (("controlMethod",), "Flagger"),
    "workHours": (("schedule",), "7:00 AM - 5:00 PM"),
}


def project_from_dict(data: Mapping[str, Any]) -> ProjectInput:
    """Build a ``ProjectInput`` from a camelCase wire dict. Unknown keys go to ``extra``."""
    if not isinstance(data, Mapping):
        raise TypeError(f"Project must be a JSON object, got {type(data).__name__}")

    known: dict[str, Any] = {}
    extra: dict[str, Any] = {}
    for key, value in data.items():
        attr = PROJECT_FIELDS.get(key)
        if attr is not None:
            known[attr] = value
        else:
            extra[key] = value
    return ProjectInput(**known, extra=extra)


def convert_external_record(record: Mapping[str, Any]) -> dict[str, Any]:
    """Map a project record from another system onto the wire format."""
    converted: dict[str, Any] = {}
    for wire_name, (source_keys, fallback) in EXTERNAL_FIELD_MAP.items():
        value = fallback
        for key in source_keys:
            if not is_absent(record.get(key)):
                value = record[key]
                break
        if value is not None:
            converted[wire_name] = value
    return converted


def load_projects(path: str | Path) -> list[ProjectInput]:
    """Read one project object, or a list of them, from a JSON file."""
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    items = data if isinstance(data, list) else [data]
    projects = [project_from_dict(item) for item in items]
    logger.info("Loaded %d project(s) from %s", len(projects), path.name)
    return projects
