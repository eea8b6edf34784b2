"""Lending metrics for the Campus Library API."""

import logfire

reservation_transitions = logfire.metric_counter(
    "library.reservations.transitions",
    description="Reservation status changes by source and target status",
)

fines_charged = logfire.metric_histogram(
    "library.fines.charged",
    unit="currency_units",
    description="Fines charged when late books are returned",
)


def record_transition(current: str, requested: str) -> None:
    """Count one committed reservation status change."""
    reservation_transitions.add(1, {"from": current, "to": requested})


def record_fine(amount: int) -> None:
    """Record a fine charged on return."""
    if amount > 0:
        fines_charged.record(amount)
