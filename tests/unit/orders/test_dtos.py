"""Unit tests for Order DTOs (Pydantic v2)."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.orders.dtos import (
    CreateOrderDTO,
    CreateOrderItemDTO,
    StatusFlowDTO,
    StatusOptionDTO,
    TransitionResultDTO,
)
from modules.orders.models import OrderStatusFlow

pytestmark = pytest.mark.unit


class TestCreateOrderItemDTO:
    def test_valid(self):
        dto = CreateOrderItemDTO(product_id=uuid4(), quantity=Decimal("1.5"))
        assert dto.unit_price is None
        assert dto.unit is None
        assert dto.remark == ""

    @pytest.mark.parametrize("quantity", [Decimal("0"), Decimal("-1")])
    def test_quantity_must_be_positive(self, quantity):
        with pytest.raises(ValidationError, match="greater than zero"):
            CreateOrderItemDTO(product_id=uuid4(), quantity=quantity)

    def test_negative_unit_price(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            CreateOrderItemDTO(
                product_id=uuid4(), quantity=Decimal("1"), unit_price=Decimal("-0.01")
            )

    def test_frozen(self):
        dto = CreateOrderItemDTO(product_id=uuid4(), quantity=Decimal("1"))
        with pytest.raises(ValidationError):
            dto.quantity = Decimal("2")


class TestCreateOrderDTO:
    def test_items_required(self):
        with pytest.raises(ValidationError, match="at least one item"):
            CreateOrderDTO(customer_id=uuid4(), items=[])

    def test_duplicate_products_rejected(self):
        product_id = uuid4()
        with pytest.raises(ValidationError, match="Duplicate product"):
            CreateOrderDTO(
                customer_id=uuid4(),
                items=[
                    CreateOrderItemDTO(product_id=product_id, quantity=Decimal("1")),
                    CreateOrderItemDTO(product_id=product_id, quantity=Decimal("2")),
                ],
            )


class TestOutputDTOs:
    def test_status_option(self):
        option = StatusOptionDTO.for_status("completed")
        assert option.model_dump() == {"status": "completed", "description": "Completed"}

    def test_transition_result_dump(self):
        result = TransitionResultDTO(
            from_status="draft", to_status="processing", description="x"
        )
        assert result.model_dump(mode="json") == {
            "from_status": "draft",
            "to_status": "processing",
            "description": "x",
        }

    def test_status_flow_from_entity(self, make_order):
        flow = OrderStatusFlow.objects.create(
            order=make_order(),
            from_status="processing",
            to_status="completed",
            operator="alice",
            remark="done",
        )

        dto = StatusFlowDTO.from_entity(flow)

        assert dto.id == flow.id
        assert dto.from_status_desc == "Processing"
        assert dto.to_status_desc == "Completed"
        assert dto.operator == "alice"
        assert dto.remark == "done"
