"""Django ORM implementation of the Customer repository.

Look-ups follow the Null Object pattern: missing or malformed IDs return
``None`` and the Service Layer decides which domain error to raise.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.customers.models import Customer, CustomerPrice
from modules.customers.repositories.interfaces import ICustomerRepository

logger = structlog.get_logger(__name__)


class CustomerDjangoRepository(ICustomerRepository):
    """Concrete Customer repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Customer]:
        try:
            return Customer.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Customer]:
        queryset = Customer.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Customer) -> Customer:
        is_new = entity._state.adding
        entity.save()
        logger.info("customer.saved", customer_id=str(entity.id), is_new=is_new)
        return entity

    def get_custom_price(
        self, customer_id: str, product_id: str
    ) -> Optional[CustomerPrice]:
        try:
            return CustomerPrice.objects.filter(
                customer_id=customer_id, product_id=product_id
            ).first()
        except (ValueError, ValidationError):
            return None
