"""Customer and per-customer custom pricing models.

- ``Customer`` is referenced by orders (PROTECT keeps order history intact).
- ``CustomerPrice`` overrides a product's ``global_price`` for one customer;
  at most one override exists per (customer, product) pair.
- ``phone`` is masked in ``__str__`` (and by the log processor).
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel


class Customer(BaseModel):
    name = models.CharField(max_length=50)
    phone = models.CharField(max_length=20, blank=True, default="")

    class Meta:
        db_table = "customers"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["name"], name="customers_name_idx"),
            models.Index(fields=["phone"], name="customers_phone_idx"),
        ]

    def __str__(self) -> str:
        suffix = self.phone[-4:] if self.phone else "????"
        return f"{self.name} (***{suffix})"


class CustomerPrice(BaseModel):
    """Custom unit price negotiated with a customer for a product."""

    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.CASCADE,
        related_name="prices",
    )
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.CASCADE,
        related_name="customer_prices",
    )
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )

    class Meta:
        db_table = "customer_prices"
        constraints = [
            models.UniqueConstraint(
                fields=["customer", "product"],
                name="customer_prices_customer_product_uniq",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.customer_id} / {self.product_id}: {self.price}"
