"""Order repository interface.

Extends ``IRepository[Order]`` with the methods required by the Order
aggregate: atomic creation with items, the compare-and-swap status write
and the two append-only audit trails (status flows and order history).

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderHistory, OrderStatusFlow


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The aggregate includes OrderItem children plus OrderStatusFlow and
    OrderHistory records.  Write methods never open their own transaction
    boundary for the status change; the caller owns it.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create a draft order with its items.

        ``data`` must include ``customer_id`` and ``items`` (list of dicts
        with ``product``, ``quantity``, ``unit_price``, ``unit``,
        ``remark``), and optionally ``remark`` and ``created_by``.
        """

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def get_status(self, id: UUID) -> Optional[str]:
        """Read the persisted status of an order, ``None`` if it does not exist."""

    @abstractmethod
    def update_status(self, id: UUID, from_status: str, to_status: str) -> bool:
        """Set ``status`` to *to_status* only if it is still *from_status*.

        Returns ``True`` when exactly one row was updated.
        """

    @abstractmethod
    def add_status_flow(
        self,
        order_id: UUID,
        from_status: Optional[str],
        to_status: str,
        operator: str,
        remark: str = "",
    ) -> OrderStatusFlow:
        """Append a flow record for an executed transition."""

    @abstractmethod
    def add_history(
        self,
        order_id: UUID,
        action: str,
        description: str,
        operator: str,
        changes: Optional[Dict[str, Any]] = None,
    ) -> OrderHistory:
        """Append an entry to the order timeline."""

    @abstractmethod
    def list_status_flows(self, order_id: UUID) -> List[OrderStatusFlow]:
        """Flow records of an order, oldest first."""

    @abstractmethod
    def list_history(self, order_id: UUID) -> List[OrderHistory]:
        """Timeline entries of an order, oldest first."""
