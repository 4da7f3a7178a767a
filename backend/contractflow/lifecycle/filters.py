"""
Coarse status filters used to narrow contract listings.
"""
from typing import Dict, Optional, Tuple

from contractflow.enums import ContractStatus
from contractflow.lifecycle.state_machine import STATUS_ORDER

DEFAULT_FILTER = "all"

STATUS_FILTERS: Dict[str, Tuple[ContractStatus, ...]] = {
    "all": tuple(STATUS_ORDER),
    "active": (ContractStatus.CREATED, ContractStatus.APPROVED, ContractStatus.SENT),
    "pending": (ContractStatus.CREATED, ContractStatus.APPROVED),
    "signed": (ContractStatus.SIGNED, ContractStatus.LOCKED),
}


def resolve_filter(name: Optional[str]) -> Tuple[ContractStatus, ...]:
    """Map a filter name to its statuses. Unknown or missing names mean "all"."""
    key = (name or DEFAULT_FILTER).strip().lower()
    return STATUS_FILTERS.get(key, STATUS_FILTERS[DEFAULT_FILTER])
