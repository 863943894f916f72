"""
Field mappings between local profiles and the Airtable sync base.

Both builders take the JSON snapshot stored on (or rebuilt for) an outbox
task and return Airtable ``fields``. ``External ID`` carries our primary key
and is the merge key for upserts.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional

EXTERNAL_ID_FIELD = "External ID"

MENTOR_FIELD_MAP: Dict[str, str] = {
    "name": "Name",
    "headline": "Headline",
    "company": "Company",
    "industry": "Industry",
    "stage": "Stage",
    "timezone": "Timezone",
    "expertise": "Expertise",
    "email": "Email",
    "active": "Active",
    "rating": "Rating",
    "utilization": "Utilization",
    "last_synced": "Last Synced",
}

MENTEE_FIELD_MAP: Dict[str, str] = {
    "name": "Name",
    "email": "Email",
    "goals": "Goals",
    "industry": "Industry",
    "stage": "Stage",
}


def _split_industries(value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        items = [str(item).strip() for item in value]
    else:
        items = [part.strip() for part in str(value).split(",")]
    cleaned = [item for item in items if item]
    return cleaned or None


def map_mentor_fields(snapshot: Mapping[str, Any]) -> Dict[str, Any]:
    """Map a mentor sync snapshot to Airtable fields, skipping empty values."""
    fields: Dict[str, Any] = {}
    for key in (
        "name",
        "headline",
        "company",
        "timezone",
        "email",
        "rating",
        "utilization",
        "last_synced",
    ):
        value = snapshot.get(key)
        if value is not None and value != "":
            fields[MENTOR_FIELD_MAP[key]] = value

    industries = _split_industries(snapshot.get("industry"))
    if industries:
        fields[MENTOR_FIELD_MAP["industry"]] = industries

    # Stage is a single-choice column
    if snapshot.get("stage"):
        fields[MENTOR_FIELD_MAP["stage"]] = snapshot["stage"]

    expertise = [tag for tag in snapshot.get("expertise") or [] if tag]
    if expertise:
        fields[MENTOR_FIELD_MAP["expertise"]] = list(expertise)

    if snapshot.get("active") is not None:
        fields[MENTOR_FIELD_MAP["active"]] = bool(snapshot["active"])
    return fields


def map_mentee_fields(snapshot: Mapping[str, Any]) -> Dict[str, Any]:
    """Map a mentee sync snapshot to Airtable fields, skipping empty values."""
    return {
        column: snapshot[key]
        for key, column in MENTEE_FIELD_MAP.items()
        if snapshot.get(key) not in (None, "")
    }


FIELD_BUILDERS: Dict[str, Callable[[Mapping[str, Any]], Dict[str, Any]]] = {
    "mentor": map_mentor_fields,
    "mentee": map_mentee_fields,
}


def build_fields(entity_type: str, snapshot: Mapping[str, Any]) -> Dict[str, Any]:
    """Return Airtable fields for ``entity_type``; unknown types raise ValueError."""
    try:
        builder = FIELD_BUILDERS[entity_type]
    except KeyError:
        raise ValueError(f"Unsupported entity type: {entity_type}") from None
    return builder(snapshot)
