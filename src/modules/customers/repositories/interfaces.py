"""Customer repository interface.

Extends ``IRepository[Customer]`` with the custom-price look-up used when
pricing order lines.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.customers.models import Customer, CustomerPrice


class ICustomerRepository(IRepository["Customer"]):
    """Repository contract for the Customer aggregate."""

    @abstractmethod
    def get_custom_price(
        self, customer_id: str, product_id: str
    ) -> Optional[CustomerPrice]:
        """Return the customer's price override for a product, if any."""
