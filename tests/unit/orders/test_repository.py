"""Unit tests for OrderDjangoRepository.

Covers:
- Aggregate creation (Order + OrderItems) with computed total.
- Compare-and-swap status update.
- Audit record writes and chronological reads.
- Edge cases (invalid UUIDs, non-existent orders).
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.orders.constants import OrderStatus
from modules.orders.models import HistoryAction, Order
from modules.orders.repositories import IOrderRepository, OrderDjangoRepository

pytestmark = pytest.mark.unit


@pytest.fixture()
def repo():
    return OrderDjangoRepository()


def test_implements_interface(repo):
    assert isinstance(repo, IOrderRepository)


class TestCreate:
    def test_creates_order_with_items_and_total(self, repo, customer, product):
        order = repo.create(
            {
                "customer_id": customer.id,
                "items": [
                    {
                        "product": product,
                        "quantity": Decimal("3"),
                        "unit_price": Decimal("10.00"),
                    }
                ],
                "created_by": "alice",
            }
        )

        order.refresh_from_db()
        assert order.status == OrderStatus.DRAFT
        assert order.total_amount == Decimal("30.00")
        assert order.items.count() == 1
        assert order.items.get().unit == "bag"


class TestReads:
    def test_get_by_id(self, repo, make_order):
        order = make_order()
        assert repo.get_by_id(str(order.id)) == order

    @pytest.mark.parametrize("bad_id", ["not-a-uuid", str(uuid4())])
    def test_get_by_id_missing(self, repo, bad_id):
        assert repo.get_by_id(bad_id) is None

    def test_get_for_update(self, repo, make_order):
        order = make_order()
        assert repo.get_for_update(str(order.id)) == order
        assert repo.get_for_update("garbage") is None

    def test_get_status(self, repo, make_order):
        order = make_order("processing")
        assert repo.get_status(order.id) == "processing"
        assert repo.get_status(uuid4()) is None


class TestUpdateStatus:
    def test_swaps_when_status_matches(self, repo, make_order):
        order = make_order()

        assert repo.update_status(order.id, "draft", "processing") is True
        assert Order.objects.get(id=order.id).status == "processing"

    def test_refuses_when_status_differs(self, repo, make_order):
        order = make_order("completed")

        assert repo.update_status(order.id, "draft", "processing") is False
        assert Order.objects.get(id=order.id).status == "completed"

    def test_bumps_updated_at(self, repo, make_order):
        order = make_order()
        before = order.updated_at

        repo.update_status(order.id, "draft", "processing")

        order.refresh_from_db()
        assert order.updated_at >= before


class TestAuditRecords:
    def test_flows_listed_oldest_first(self, repo, make_order):
        order = make_order()
        repo.add_status_flow(order.id, "draft", "processing", "a")
        repo.add_status_flow(order.id, "processing", "completed", "b", remark="done")

        flows = repo.list_status_flows(order.id)

        assert [f.to_status for f in flows] == ["processing", "completed"]
        assert flows[1].remark == "done"

    def test_history_listed_oldest_first(self, repo, make_order):
        order = make_order()
        repo.add_history(order.id, HistoryAction.CREATED, "order created", "a")
        repo.add_history(
            order.id,
            HistoryAction.STATUS_CHANGED,
            "changed",
            "b",
            changes={"fromStatus": "draft", "toStatus": "processing"},
        )

        history = repo.list_history(order.id)

        assert [h.action for h in history] == ["created", "status_changed"]
        assert history[0].changes is None
        assert history[1].changes["toStatus"] == "processing"
