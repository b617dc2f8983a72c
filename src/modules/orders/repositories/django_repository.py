"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.

The status write is a compare-and-swap (``UPDATE ... WHERE status = :from``)
so a transition computed from a stale read touches no row instead of
silently overwriting a concurrent change.  Audit writes are plain inserts
that join whatever transaction the caller has open.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from modules.orders.models import Order, OrderHistory, OrderItem, OrderStatusFlow
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically and compute its total."""
        order = Order(
            customer_id=data["customer_id"],
            remark=data.get("remark", ""),
            created_by=data.get("created_by", ""),
        )
        order.save()

        total = Decimal("0.00")
        items = data.get("items", [])
        for item_data in items:
            item = OrderItem(
                order=order,
                product=item_data["product"],
                quantity=item_data["quantity"],
                unit_price=item_data["unit_price"],
                unit=item_data.get("unit") or "",
                remark=item_data.get("remark", ""),
            )
            item.save()
            total += item.total_price

        order.total_amount = total
        order.save(update_fields=["total_amount"])

        logger.info("order.persisted", order_id=str(order.id), item_count=len(items))
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with its customer and items eager-loaded.

        Returns ``None`` for non-existent or malformed IDs.
        """
        try:
            return (
                Order.objects.select_related("customer")
                .prefetch_related("items")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """List orders with optional ORM look-ups (``status``, ``customer_id``...)."""
        queryset = Order.objects.select_related("customer")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def get_for_update(self, id: str) -> Optional[Order]:
        try:
            return Order.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_status(self, id: UUID) -> Optional[str]:
        try:
            return Order.objects.filter(id=id).values_list("status", flat=True).first()
        except (ValueError, ValidationError):
            return None

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        entity.save()
        logger.info("order.saved", order_id=str(entity.id))
        return entity

    # ------------------------------------------------------------------
    # Status write + audit trails
    # ------------------------------------------------------------------

    def update_status(self, id: UUID, from_status: str, to_status: str) -> bool:
        updated = Order.objects.filter(id=id, status=from_status).update(
            status=to_status, updated_at=timezone.now()
        )
        return updated == 1

    def add_status_flow(
        self,
        order_id: UUID,
        from_status: Optional[str],
        to_status: str,
        operator: str,
        remark: str = "",
    ) -> OrderStatusFlow:
        flow = OrderStatusFlow(
            order_id=order_id,
            from_status=from_status,
            to_status=to_status,
            operator=operator,
            remark=remark or "",
        )
        flow.save()
        logger.info(
            "order.flow_recorded",
            order_id=str(order_id),
            from_status=from_status,
            to_status=to_status,
        )
        return flow

    def add_history(
        self,
        order_id: UUID,
        action: str,
        description: str,
        operator: str,
        changes: Optional[Dict[str, Any]] = None,
    ) -> OrderHistory:
        history = OrderHistory(
            order_id=order_id,
            action=action,
            description=description,
            operator=operator,
            changes=changes,
        )
        history.save()
        logger.info("order.history_added", order_id=str(order_id), action=action)
        return history

    def list_status_flows(self, order_id: UUID) -> List[OrderStatusFlow]:
        return list(
            OrderStatusFlow.objects.filter(order_id=order_id).order_by(
                "created_at", "id"
            )
        )

    def list_history(self, order_id: UUID) -> List[OrderHistory]:
        return list(
            OrderHistory.objects.filter(order_id=order_id).order_by("created_at", "id")
        )
