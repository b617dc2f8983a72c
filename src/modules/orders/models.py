"""Order, OrderItem, OrderStatusFlow and OrderHistory models.

Business rules implemented:
- Orders start in ``draft``; ``status`` is only written by
  ``OrderStatusService.transition_status`` (compare-and-swap update).
- Every accepted transition appends exactly one ``OrderStatusFlow`` and one
  ``OrderHistory`` row in the same transaction as the status write.
- Flow and history rows are append-only (``AppendOnlyModel``).
- Order number auto-generated as a human-readable identifier.
- Customer FK uses PROTECT to preserve order history.
- OrderItem snapshots product name, unit and price at creation time.
- OrderItem ``total_price`` is always ``quantity * unit_price``.
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Any

import structlog
from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from modules.core.models import AppendOnlyModel, BaseModel
from modules.orders.constants import (
    ORDER_NUMBER_MAX_RETRIES,
    OrderStatus,
    available_transitions,
)

logger = structlog.get_logger(__name__)

CENTS = Decimal("0.01")


class HistoryAction(models.TextChoices):
    CREATED = "created", _("Created")
    STATUS_CHANGED = "status_changed", _("Status changed")


class Order(BaseModel):
    """Order aggregate root.

    ``order_number`` is a human-readable identifier auto-generated on first
    save (format: ``YYYYMMDDNNNN``).  The UUIDv7 ``id`` is used for all
    internal references and API lookups.
    """

    order_number: models.CharField = models.CharField(
        max_length=20, unique=True, editable=False
    )
    customer: models.ForeignKey = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    status: models.CharField = models.CharField(
        max_length=50,
        choices=OrderStatus.choices,
        default=OrderStatus.DRAFT,
    )
    total_amount: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    remark: models.TextField = models.TextField(blank=True, default="")
    created_by: models.CharField = models.CharField(
        max_length=50, blank=True, default=""
    )

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(fields=["created_by"], name="orders_created_by_idx"),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return not available_transitions(self.status)

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in available_transitions(self.status)

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        """Generate a human-readable order number: ``YYYYMMDD`` + 4 digits."""
        now = timezone.localtime()
        return f"{now:%Y%m%d}{secrets.randbelow(10000):04d}"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            for _attempt in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = self.generate_order_number()
                if not Order.objects.filter(order_number=candidate).exists():
                    self.order_number = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate unique order_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(BaseModel):
    """Line item linking an Order to a Product.

    ``product_name``, ``unit`` and ``unit_price`` are snapshots taken when
    the order is created.  ``total_price`` is recalculated on every save.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product: models.ForeignKey = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    product_name: models.CharField = models.CharField(max_length=100)
    unit: models.CharField = models.CharField(max_length=20)
    quantity: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    unit_price: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    total_price: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        editable=False,
    )
    remark: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name="order_items_quantity_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity <= 0:
            raise ValidationError({"quantity": "Quantity must be greater than zero."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.product_name:
            self.product_name = self.product.name
        if not self.unit:
            self.unit = self.product.unit
        self.total_price = (Decimal(self.quantity) * Decimal(self.unit_price)).quantize(
            CENTS
        )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity} ({self.total_price})"


class OrderStatusFlow(AppendOnlyModel):
    """One row per accepted status transition.

    ``from_status`` is nullable for a lifecycle that starts without a source
    status; every transition executed by the service sets it.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_flows",
    )
    from_status: models.CharField = models.CharField(  # noqa: DJ01
        max_length=50,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    to_status: models.CharField = models.CharField(
        max_length=50,
        choices=OrderStatus.choices,
    )
    operator: models.CharField = models.CharField(max_length=50)
    remark: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_flows"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(
                fields=["order", "created_at"],
                name="osf_order_created_idx",
            ),
            models.Index(fields=["to_status"], name="osf_to_status_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} : {self.from_status} -> {self.to_status}"


class OrderHistory(AppendOnlyModel):
    """Order timeline shared by every order event (creation, status changes).

    ``changes`` holds the structured payload of the event; for
    ``status_changed`` it is ``{fromStatus, toStatus, role, timestamp}``.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="histories",
    )
    action: models.CharField = models.CharField(
        max_length=50,
        choices=HistoryAction.choices,
    )
    description: models.CharField = models.CharField(
        max_length=200, blank=True, default=""
    )
    operator: models.CharField = models.CharField(
        max_length=50, blank=True, default=""
    )
    changes: models.JSONField = models.JSONField(
        null=True, blank=True, encoder=DjangoJSONEncoder
    )

    class Meta:
        db_table = "order_histories"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(
                fields=["order", "created_at"],
                name="oh_order_created_idx",
            ),
            models.Index(fields=["action"], name="oh_action_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} : {self.action}"
