"""Status workflows for prescriptions, purchases, sales and parties.

Each kind of record declares its states and the moves allowed from each
one. A state with no outgoing moves is terminal.
"""
from typing import Dict, List

PRESCRIPTION = "prescription"
PURCHASE = "purchase"
SALE = "sale"
CUSTOMER = "customer"
SUPPLIER = "supplier"

TRANSITIONS: Dict[str, Dict[str, List[str]]] = {
    PRESCRIPTION: {
        "Pending": ["Partially Filled", "Filled", "Cancelled"],
        "Partially Filled": ["Filled", "Cancelled"],
        "Filled": [],
        "Cancelled": [],
    },
    PURCHASE: {
        "Pending": ["Partial", "Delivered", "Cancelled"],
        "Partial": ["Delivered", "Cancelled"],
        "Delivered": [],
        "Cancelled": [],
    },
    SALE: {
        "Pending": ["Completed", "Refunded"],
        "Completed": ["Refunded"],
        "Refunded": [],
    },
    CUSTOMER: {
        "Active": ["Inactive"],
        "Inactive": ["Active"],
    },
    SUPPLIER: {
        "Active": ["Inactive"],
        "Inactive": ["Active"],
    },
}


class InvalidTransition(ValueError):
    """Raised when a status change is not allowed by the workflow."""


def statuses(kind: str) -> List[str]:
    if kind not in TRANSITIONS:
        raise InvalidTransition(f"Unknown workflow: {kind}")
    return list(TRANSITIONS[kind])


def allowed_transitions(kind: str, status: str) -> List[str]:
    states = TRANSITIONS.get(kind)
    if states is None:
        raise InvalidTransition(f"Unknown workflow: {kind}")
    if status not in states:
        raise InvalidTransition(f"Unknown {kind} status: {status}")
    return list(states[status])


def is_terminal(kind: str, status: str) -> bool:
    return not allowed_transitions(kind, status)


def transition(kind: str, current: str, new: str) -> str:
    """Validate a status change and return the new status."""
    allowed = allowed_transitions(kind, current)
    if new not in allowed:
        raise InvalidTransition(
            f"Cannot change {kind} status from {current} to {new}"
        )
    return new
