"""Product catalog model.

``global_price`` is the default unit price; ``CustomerPrice`` rows may
override it per customer.  Order items snapshot ``name``, ``unit`` and the
resolved price at creation time, so later catalog edits never rewrite an
existing order.
"""

from __future__ import annotations

from decimal import Decimal

import structlog

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)

DEFAULT_UNIT = "个"


class Product(BaseModel):
    name = models.CharField(max_length=100)
    global_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    unit = models.CharField(max_length=20, default=DEFAULT_UNIT)

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["name"], name="products_name_idx"),
        ]

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        if self.name:
            self.name = self.name.strip()
        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "product_created",
                product_id=str(self.id),
                name=self.name,
            )

    def __str__(self) -> str:
        return f"{self.name} ({self.unit})"
