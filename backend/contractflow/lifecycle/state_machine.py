"""
Single source of truth for contract status order and valid transitions.
Every status change and every field-value edit is authorized here.

    created --approve--> approved --send--> sent --sign--> signed --lock--> locked
      |                      |                |
      +---------revoke-------+-------revoke---+

locked and revoked are terminal; signed cannot be revoked. Nothing here
raises: callers turn a False into a typed error.
"""
from __future__ import annotations

from typing import Any, Dict, List, NamedTuple, Tuple

from contractflow.enums import ContractStatus

# Canonical status order (initial state first)
STATUS_ORDER: List[ContractStatus] = [
    ContractStatus.CREATED,
    ContractStatus.APPROVED,
    ContractStatus.SENT,
    ContractStatus.SIGNED,
    ContractStatus.LOCKED,
    ContractStatus.REVOKED,
]

INITIAL_STATUS = ContractStatus.CREATED

# Valid next status(es) from each status. No self-loops, nothing targets CREATED.
VALID_TRANSITIONS: Dict[ContractStatus, Tuple[ContractStatus, ...]] = {
    ContractStatus.CREATED: (ContractStatus.APPROVED, ContractStatus.REVOKED),
    ContractStatus.APPROVED: (ContractStatus.SENT, ContractStatus.REVOKED),
    ContractStatus.SENT: (ContractStatus.SIGNED, ContractStatus.REVOKED),
    ContractStatus.SIGNED: (ContractStatus.LOCKED,),
    ContractStatus.LOCKED: (),
    ContractStatus.REVOKED: (),
}

TERMINAL_STATUSES = frozenset({ContractStatus.LOCKED, ContractStatus.REVOKED})
EDITABLE_STATUSES = frozenset({ContractStatus.CREATED})


class TransitionConfig(NamedTuple):
    label: str
    variant: str  # primary | success | warning | danger


TRANSITION_CONFIG: Dict[ContractStatus, TransitionConfig] = {
    ContractStatus.APPROVED: TransitionConfig("Approve", "primary"),
    ContractStatus.SENT: TransitionConfig("Send", "primary"),
    ContractStatus.SIGNED: TransitionConfig("Sign", "success"),
    ContractStatus.LOCKED: TransitionConfig("Lock", "warning"),
    ContractStatus.REVOKED: TransitionConfig("Revoke", "danger"),
}

STATUS_CONFIG: Dict[ContractStatus, Dict[str, str]] = {
    ContractStatus.CREATED: {"label": "Created", "color": "blue"},
    ContractStatus.APPROVED: {"label": "Approved", "color": "yellow"},
    ContractStatus.SENT: {"label": "Sent", "color": "purple"},
    ContractStatus.SIGNED: {"label": "Signed", "color": "green"},
    ContractStatus.LOCKED: {"label": "Locked", "color": "gray"},
    ContractStatus.REVOKED: {"label": "Revoked", "color": "red"},
}


def _coerce(status: Any):
    """Accept enum members or their string values; unknown input maps to None."""
    if isinstance(status, ContractStatus):
        return status
    try:
        return ContractStatus(status)
    except ValueError:
        return None


def get_allowed_transitions(status: ContractStatus) -> Tuple[ContractStatus, ...]:
    """Return the statuses reachable in one step from status (table order)."""
    return VALID_TRANSITIONS.get(_coerce(status), ())


def is_valid_transition(from_status: ContractStatus, to_status: ContractStatus) -> bool:
    """Check if transition from_status -> to_status is allowed."""
    target = _coerce(to_status)
    if target is None:
        return False
    return target in get_allowed_transitions(from_status)


def is_terminal_state(status: ContractStatus) -> bool:
    return _coerce(status) in TERMINAL_STATUSES


def is_editable(status: ContractStatus) -> bool:
    """Field values may change only while CREATED (approved/sent are frozen but not terminal)."""
    return _coerce(status) in EDITABLE_STATUSES


def get_transition_config(target_status: ContractStatus) -> TransitionConfig:
    """Action label and severity variant for moving into target_status."""
    target = _coerce(target_status)
    if target in TRANSITION_CONFIG:
        return TRANSITION_CONFIG[target]
    raw = target.value if target is not None else str(target_status)
    return TransitionConfig(raw, "primary")


def describe_lifecycle() -> Dict[str, Any]:
    """Serializable view of the whole status graph for clients."""
    statuses = []
    for status in STATUS_ORDER:
        statuses.append({
            "status": status.value,
            "label": STATUS_CONFIG[status]["label"],
            "color": STATUS_CONFIG[status]["color"],
            "is_terminal": is_terminal_state(status),
            "is_editable": is_editable(status),
            "transitions": [
                {"target": target.value, **get_transition_config(target)._asdict()}
                for target in get_allowed_transitions(status)
            ],
        })
    return {"initial_status": INITIAL_STATUS.value, "statuses": statuses}
