from __future__ import annotations

from typing import Any, Dict, Optional

from models.hcp_profile import HcpProfile
from utils.number_parsing import parse_list, parse_years


# snake_case attribute -> camelCase wire name, derived from the model
FIELD_ALIASES: Dict[str, str] = {
    name: (info.alias or name)
    for name, info in HcpProfile.model_fields.items()
}
WIRE_NAMES = frozenset(FIELD_ALIASES.values())

LIST_FIELDS = frozenset({"secondarySkills", "languagesSpoken", "certifications"})
INT_FIELDS = frozenset({"experienceYears"})
NULLABLE_TEXT_FIELDS = frozenset({"profilePhotoUrl", "internalStatus"})


def wire_name(name: str) -> str:
    """Accept either spelling of a field name and return the camelCase one."""
    return FIELD_ALIASES.get(name, name)


def coerce_field(name: str, raw: Any) -> Any:
    """Convert one form/import value to the type the record stores.

    Text inputs arrive as strings: experience becomes an int, list fields are
    split on commas, blank photo URL or status becomes None.
    """
    key = wire_name(name)
    if key in INT_FIELDS:
        parsed: Optional[int] = parse_years(raw)
        # Leave unparsable input as-is so validation reports it
        return raw if parsed is None else parsed
    if key in LIST_FIELDS:
        return parse_list(raw)
    if isinstance(raw, str):
        value = raw.strip()
        if key in NULLABLE_TEXT_FIELDS and not value:
            return None
        return value
    return raw


def map_to_profile_fields(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Map a loosely-typed row (snake_case or camelCase keys) to camelCase fields."""
    mapped: Dict[str, Any] = {}
    for name, value in raw.items():
        mapped[wire_name(str(name))] = coerce_field(str(name), value)
    return mapped
