"""
Field values are stored and transported as strings; their meaning comes from
the owning field's type. Values are normalized on write so every stored value
is interpretable for its type.
"""
from datetime import date
from typing import Optional

from contractflow.enums import FieldType
from contractflow.exceptions import ValidationError

CHECKBOX_TRUE = "true"
CHECKBOX_FALSE = "false"


def default_value(field_type: FieldType) -> str:
    """Initial slot value for a freshly instantiated contract."""
    if field_type == FieldType.CHECKBOX:
        return CHECKBOX_FALSE
    return ""


def normalize_value(field_type: FieldType, raw: Optional[str], label: str = "") -> str:
    """Validate raw against field_type and return the canonical stored string."""
    if raw is None:
        return default_value(field_type)
    if not isinstance(raw, str):
        raise ValidationError(
            f"Value for field '{label}' must be a string",
            details={"field": label, "type": FieldType(field_type).value},
        )

    if field_type == FieldType.CHECKBOX:
        value = raw.strip().lower() or CHECKBOX_FALSE
        if value not in (CHECKBOX_TRUE, CHECKBOX_FALSE):
            raise ValidationError(
                f"Checkbox field '{label}' accepts only 'true' or 'false'",
                details={"field": label, "value": raw},
            )
        return value

    if field_type == FieldType.DATE:
        value = raw.strip()
        if not value:
            return ""
        try:
            return date.fromisoformat(value).isoformat()
        except ValueError:
            raise ValidationError(
                f"Date field '{label}' must be an ISO date (YYYY-MM-DD)",
                details={"field": label, "value": raw},
            )

    # text / signature: free text
    return raw
