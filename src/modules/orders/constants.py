"""Order status registry.

Static definition of the order lifecycle: the status set, the human
description of each status and the directed transition graph.

    draft      -> processing, cancelled
    processing -> completed, cancelled
    completed  -> (terminal)
    cancelled  -> (terminal)

Everything here is constant data plus pure functions.  Status values read
from the database may predate a registry change, so the helpers never raise
on unknown input: ``available_transitions`` returns an empty set and
``status_description`` echoes the raw value.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Optional

from django.db import models
from django.utils.translation import gettext
from django.utils.translation import gettext_lazy as _


class OrderStatus(models.TextChoices):
    DRAFT = "draft", _("Draft")
    PROCESSING = "processing", _("Processing")
    COMPLETED = "completed", _("Completed")
    CANCELLED = "cancelled", _("Cancelled")


VALID_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    OrderStatus.DRAFT: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATES: FrozenSet[str] = frozenset(
    status for status, targets in VALID_TRANSITIONS.items() if not targets
)

# Cancellation eligibility is read off the graph so the two never drift apart.
CANCELLABLE_STATES: FrozenSet[str] = frozenset(
    status
    for status, targets in VALID_TRANSITIONS.items()
    if OrderStatus.CANCELLED in targets
)

ORDER_NUMBER_MAX_RETRIES = 5

SYSTEM_OPERATOR = "system"


def available_transitions(status: Optional[str]) -> FrozenSet[str]:
    """Return the statuses reachable from *status* in one step."""
    return VALID_TRANSITIONS.get(status, frozenset())


def status_description(status: Optional[str]) -> str:
    """Return the display label for *status*.

    Unknown values are passed through unchanged; ``None`` (a flow record
    without a source status) renders as an empty string.
    """
    if status is None:
        return ""
    try:
        return str(OrderStatus(status).label)
    except ValueError:
        return str(status)


def status_change_description(from_status: Optional[str], to_status: str) -> str:
    """Human sentence recorded in the order history for a transition."""
    return gettext("order status changed from %(from)s to %(to)s") % {
        "from": status_description(from_status),
        "to": status_description(to_status),
    }
