"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``CreateOrderItemDTO`` / ``CreateOrderDTO``: order creation input.
- ``TransitionResultDTO``: outcome of an executed status transition.
- ``StatusFlowDTO``: a flow record decorated with status descriptions.
- ``OrderHistoryDTO``: an entry of the broader order timeline.
- ``CancellationCheckDTO``: cancellation eligibility and its reason.
- ``StatusOptionDTO`` / ``StatusInfoDTO``: current status and next steps.
- ``UnitPriceDTO``: resolved price of a product for a customer.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from modules.orders.constants import status_description

if TYPE_CHECKING:
    from modules.orders.models import OrderHistory, OrderStatusFlow


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderItemDTO(BaseModel):
    """Immutable DTO for a single line in an order creation request.

    ``unit_price`` is optional: when omitted the Service Layer resolves it
    from the customer's custom price, falling back to the product's global
    price.  ``unit`` defaults to the product's unit.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: Decimal
    unit_price: Optional[Decimal] = None
    unit: Optional[str] = None
    remark: str = ""

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Quantity must be greater than zero.")
        return v

    @field_validator("unit_price")
    @classmethod
    def unit_price_must_not_be_negative(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v < 0:
            raise ValueError("Unit price cannot be negative.")
        return v


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - ``items`` must contain at least one item.
    - The same product may appear only once.
    """

    model_config = ConfigDict(frozen=True)

    customer_id: UUID
    items: List[CreateOrderItemDTO]
    remark: str = ""

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    @model_validator(mode="after")
    def no_duplicate_products(self):
        product_ids = [item.product_id for item in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValueError("Duplicate product IDs are not allowed in the same order.")
        return self


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class TransitionResultDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    from_status: str
    to_status: str
    description: str


class StatusFlowDTO(BaseModel):
    """Flow record as displayed: raw statuses plus their current descriptions.

    Descriptions are computed from the status registry at read time, never
    stored, so old records follow registry label changes.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID
    from_status: Optional[str]
    to_status: str
    from_status_desc: str
    to_status_desc: str
    operator: str
    remark: str
    created_at: datetime

    @classmethod
    def from_entity(cls, flow: OrderStatusFlow) -> StatusFlowDTO:
        return cls(
            id=flow.id,
            from_status=flow.from_status,
            to_status=flow.to_status,
            from_status_desc=status_description(flow.from_status),
            to_status_desc=status_description(flow.to_status),
            operator=flow.operator,
            remark=flow.remark,
            created_at=flow.created_at,
        )


class OrderHistoryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    action: str
    description: str
    operator: str
    changes: Optional[Dict[str, Any]]
    created_at: datetime

    @classmethod
    def from_entity(cls, history: OrderHistory) -> OrderHistoryDTO:
        return cls(
            id=history.id,
            action=history.action,
            description=history.description,
            operator=history.operator,
            changes=history.changes,
            created_at=history.created_at,
        )


class CancellationCheckDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    can_cancel: bool
    reason: str


class StatusOptionDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str
    description: str

    @classmethod
    def for_status(cls, status: str) -> StatusOptionDTO:
        return cls(status=status, description=status_description(status))


class StatusInfoDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: UUID
    status: str
    status_desc: str
    is_terminal: bool
    available_transitions: List[StatusOptionDTO]
    cancellation: CancellationCheckDTO


class UnitPriceDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    price: Decimal
    is_custom: bool
