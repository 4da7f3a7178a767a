import enum


class FieldType(str, enum.Enum):
    TEXT = "text"
    DATE = "date"
    SIGNATURE = "signature"
    CHECKBOX = "checkbox"


class ContractStatus(str, enum.Enum):
    CREATED = "created"
    APPROVED = "approved"
    SENT = "sent"
    SIGNED = "signed"
    LOCKED = "locked"
    REVOKED = "revoked"


def enum_values(enum_cls) -> list:
    """Persist enum values (lowercase wire form) rather than member names."""
    return [member.value for member in enum_cls]
