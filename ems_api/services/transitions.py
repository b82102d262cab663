# ems_api/services/transitions.py
"""Allowed status transitions for leave requests and payroll records."""
from ems_api.common.errors import APIError

LEAVE_TRANSITIONS = {
    "pending": frozenset({"approved", "rejected"}),
    "approved": frozenset(),
    "rejected": frozenset(),
}

PAYROLL_TRANSITIONS = {
    "draft": frozenset({"approved"}),
    "approved": frozenset({"paid"}),
    "paid": frozenset(),
}

MACHINES = {
    "leave": LEAVE_TRANSITIONS,
    "payroll": PAYROLL_TRANSITIONS,
}


class InvalidTransition(APIError):
    def __init__(self, kind, current, target):
        super().__init__(
            "INVALID_TRANSITION",
            f"Cannot move {kind} from '{current}' to '{target}'",
            status_code=409,
            payload={"kind": kind, "from": current, "to": target,
                     "allowed": sorted(allowed_targets(kind, current))},
        )
        self.kind = kind
        self.current = current
        self.target = target


def allowed_targets(kind, current):
    return MACHINES[kind].get(current, frozenset())


def can_transition(kind, current, target) -> bool:
    return target in allowed_targets(kind, current)


def validate_transition(kind, current, target):
    if kind not in MACHINES:
        raise ValueError(f"unknown state machine {kind!r}")
    if not can_transition(kind, current, target):
        raise InvalidTransition(kind, current, target)
    return target
