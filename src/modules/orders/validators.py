"""Transition validator.

Decides whether a requested status change may proceed:

- ``is_valid_transition`` checks the edge against the status registry.
- ``has_permission`` checks the actor's role against ``ROLE_PERMISSIONS``
  (role -> statuses it may move an order *into*).

Both functions are read-only and never raise; callers turn ``False`` into
the appropriate domain error.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Optional, Union

from django.db import models
from django.utils.translation import gettext_lazy as _

from modules.orders.constants import OrderStatus, available_transitions


class Role(models.TextChoices):
    ADMIN = "admin", _("Administrator")


ROLE_PERMISSIONS: Dict[Role, FrozenSet[str]] = {
    Role.ADMIN: frozenset(OrderStatus.values),
}


def parse_role(role: Union[Role, str, None]) -> Optional[Role]:
    """Return the ``Role`` for *role*, or ``None`` if it is not defined."""
    if isinstance(role, Role):
        return role
    try:
        return Role(role)
    except ValueError:
        return None


def is_valid_transition(from_status: Optional[str], to_status: Optional[str]) -> bool:
    return to_status in available_transitions(from_status)


def has_permission(role: Union[Role, str, None], to_status: Optional[str]) -> bool:
    parsed = parse_role(role)
    if parsed is None:
        return False
    return to_status in ROLE_PERMISSIONS.get(parsed, frozenset())
