"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.  Transition errors carry the statuses and
role involved so the client can render a specific message.
"""

from __future__ import annotations

from typing import Optional


class OrderNotFound(Exception):
    """The requested order does not exist."""


class CustomerNotFound(Exception):
    """The customer referenced by the order does not exist."""


class ProductNotFound(Exception):
    """A product referenced by an order item does not exist."""


class InvalidTransition(Exception):
    """The (from, to) pair is not an edge of the status graph (HTTP 400)."""

    def __init__(self, from_status: Optional[str], to_status: Optional[str]) -> None:
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f"Invalid status transition: {from_status} -> {to_status}.")


class Forbidden(Exception):
    """The actor's role may not move orders into the target status (HTTP 403)."""

    def __init__(self, role: Optional[str], to_status: Optional[str]) -> None:
        self.role = role
        self.to_status = to_status
        super().__init__(
            f"Role {role} is not allowed to change order status to {to_status}."
        )


class NotCancellable(Exception):
    """The order's current status excludes it from cancellation (HTTP 400)."""

    def __init__(self, status: Optional[str], reason: str) -> None:
        self.status = status
        self.reason = reason
        super().__init__(reason)


class StaleTransition(Exception):
    """The order changed status between the caller's read and the write (HTTP 409).

    Safe to retry after re-reading the order.
    """

    def __init__(self, expected_status: Optional[str], actual_status: Optional[str]) -> None:
        self.expected_status = expected_status
        self.actual_status = actual_status
        super().__init__(
            f"Order status is {actual_status}, expected {expected_status}."
        )


class TransactionRequired(Exception):
    """A status write was attempted outside a caller-owned atomic block."""
