"""Unit tests for the cancellation policy."""

from __future__ import annotations

import pytest

from modules.orders.constants import CANCELLABLE_STATES, OrderStatus, available_transitions
from modules.orders.exceptions import Forbidden, NotCancellable
from modules.orders.models import OrderStatusFlow
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderStatusService

pytestmark = pytest.mark.unit


@pytest.fixture()
def status_service():
    return OrderStatusService(OrderDjangoRepository())


class TestCanCancel:
    @pytest.mark.parametrize("status", ["draft", "processing"])
    def test_open_orders_can_be_cancelled(self, status_service, make_order, status):
        check = status_service.can_cancel(make_order(status))
        assert check.can_cancel is True

    @pytest.mark.parametrize("status", ["completed", "cancelled"])
    def test_closed_orders_cannot_be_cancelled(
        self, status_service, make_order, status
    ):
        check = status_service.can_cancel(make_order(status))
        assert check.can_cancel is False
        assert check.reason

    def test_reason_names_the_status(self, status_service, make_order):
        check = status_service.can_cancel(make_order("completed"))
        assert "Completed" in check.reason

    @pytest.mark.parametrize("status", OrderStatus.values)
    def test_agrees_with_transition_graph(self, status_service, make_order, status):
        check = status_service.can_cancel(make_order(status))
        assert check.can_cancel is (OrderStatus.CANCELLED in available_transitions(status))
        assert check.can_cancel is (status in CANCELLABLE_STATES)


class TestCancel:
    def test_cancels_draft_with_default_remark(self, status_service, make_order):
        order = make_order()

        result = status_service.cancel(order, operator="alice", role="admin")

        order.refresh_from_db()
        assert order.status == OrderStatus.CANCELLED
        assert result.to_status == "cancelled"
        flow = OrderStatusFlow.objects.get(order=order)
        assert flow.remark == "order cancelled"

    def test_keeps_supplied_remark(self, status_service, make_order):
        order = make_order("processing")

        status_service.cancel(order, "alice", "admin", remark="customer changed mind")

        flow = OrderStatusFlow.objects.get(order=order)
        assert flow.from_status == "processing"
        assert flow.remark == "customer changed mind"

    @pytest.mark.parametrize("status", ["completed", "cancelled"])
    def test_closed_order_raises(self, status_service, make_order, status):
        order = make_order(status)

        with pytest.raises(NotCancellable) as exc_info:
            status_service.cancel(order, "alice", "admin")

        assert exc_info.value.status == status
        assert exc_info.value.reason
        order.refresh_from_db()
        assert order.status == status
        assert not OrderStatusFlow.objects.filter(order=order).exists()

    def test_role_is_still_checked(self, status_service, make_order):
        order = make_order()

        with pytest.raises(Forbidden):
            status_service.cancel(order, "mallory", "guest")

        order.refresh_from_db()
        assert order.status == OrderStatus.DRAFT
