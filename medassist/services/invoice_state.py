"""Invoice lifecycle transitions: draft -> unpaid -> paid, with cancellation from draft/unpaid."""

from __future__ import annotations

from medassist.core.exceptions import StateConflictError
from medassist.models.enums import InvoiceStatus


class InvalidTransitionError(StateConflictError):
    """Raised when a disallowed status transition is attempted."""


class StateMachine:
    """Simple in-memory state machine over string-valued states."""

    def __init__(self, transitions: dict[str, set[str]]) -> None:
        self._transitions = transitions

    def can_transition(self, current: str, target: str) -> bool:
        return target in self._transitions.get(current, set())

    def assert_transition(self, current: str, target: str) -> None:
        if not self.can_transition(current=current, target=target):
            raise InvalidTransitionError(f"Transition not allowed: {current} -> {target}")


INVOICE_TRANSITIONS: dict[str, set[str]] = {
    InvoiceStatus.DRAFT.value: {InvoiceStatus.UNPAID.value, InvoiceStatus.PAID.value, InvoiceStatus.CANCELLED.value},
    InvoiceStatus.UNPAID.value: {InvoiceStatus.PAID.value, InvoiceStatus.CANCELLED.value},
    InvoiceStatus.PAID.value: set(),
    InvoiceStatus.CANCELLED.value: set(),
}

invoice_state_machine = StateMachine(INVOICE_TRANSITIONS)

EDITABLE_STATUSES = frozenset({InvoiceStatus.DRAFT, InvoiceStatus.UNPAID})
SENDABLE_STATUSES = frozenset({InvoiceStatus.DRAFT, InvoiceStatus.UNPAID})


def _status(value: InvoiceStatus | str) -> InvoiceStatus:
    return InvoiceStatus(value)


def transition(current: InvoiceStatus | str, target: InvoiceStatus | str) -> InvoiceStatus:
    """Validate a transition and return the target status."""
    invoice_state_machine.assert_transition(_status(current).value, _status(target).value)
    return _status(target)


def ensure_editable(status: InvoiceStatus | str) -> None:
    """Paid and cancelled invoices have frozen line items and totals."""
    if _status(status) not in EDITABLE_STATUSES:
        raise StateConflictError(f"Invoice is {_status(status).value} and can no longer be edited.")


def ensure_sendable(status: InvoiceStatus | str) -> None:
    if _status(status) not in SENDABLE_STATUSES:
        raise StateConflictError(f"Invoice is {_status(status).value} and can no longer be sent.")
