"""Order service layer (Use Cases).

Two services live here:

``OrderStatusService``
    The status-transition executor, the flow-history reader and the
    cancellation policy.  It never begins or commits a transaction: every
    write method must be called inside a caller-owned
    ``transaction.atomic()`` block so the transition can be composed with
    other writes under one all-or-nothing boundary.

``OrderService``
    The application service used by the API.  Each command defines the
    unit-of-work boundary (``@transaction.atomic``), loads the order with a
    row lock and delegates the status change to ``OrderStatusService``.

Rules enforced:
- Transitions must be edges of the status graph (``InvalidTransition``).
- The actor's role must grant the target status (``Forbidden``).
- Only draft/processing orders can be cancelled (``NotCancellable``).
- The status write is a compare-and-swap on the status the caller read
  (``StaleTransition``).
- Every accepted transition writes status + flow record + history record
  atomically.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union
from uuid import UUID

import structlog
from django.conf import settings
from django.db import transaction
from django.utils import timezone
from django.utils.translation import gettext

from modules.orders.constants import (
    CANCELLABLE_STATES,
    SYSTEM_OPERATOR,
    OrderStatus,
    available_transitions,
    status_change_description,
    status_description,
)
from modules.orders.dtos import (
    CancellationCheckDTO,
    OrderHistoryDTO,
    StatusFlowDTO,
    StatusInfoDTO,
    StatusOptionDTO,
    TransitionResultDTO,
    UnitPriceDTO,
)
from modules.orders.exceptions import (
    CustomerNotFound,
    Forbidden,
    InvalidTransition,
    NotCancellable,
    OrderNotFound,
    ProductNotFound,
    StaleTransition,
    TransactionRequired,
)
from modules.orders.models import HistoryAction
from modules.orders.validators import Role, has_permission, is_valid_transition

if TYPE_CHECKING:
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.orders.dtos import CreateOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.models import Product
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)

RoleLike = Union[Role, str, None]


def _role_value(role: RoleLike) -> Optional[str]:
    return role.value if isinstance(role, Role) else role


class OrderStatusService:
    """Status transition executor, history reader and cancellation policy."""

    def __init__(self, order_repository: IOrderRepository) -> None:
        self._order_repo = order_repository

    # ------------------------------------------------------------------
    # Executor
    # ------------------------------------------------------------------

    def transition_status(
        self,
        order_id: UUID,
        from_status: str,
        to_status: str,
        operator: str,
        role: RoleLike,
        remark: str = "",
    ) -> TransitionResultDTO:
        """Move an order from *from_status* to *to_status*.

        Re-validates the edge and the role even if the caller already did,
        then writes the status, a flow record and a history record.  Any
        exception leaves the caller's transaction to roll all three back.

        Raises:
            TransactionRequired: called outside ``transaction.atomic()``.
            InvalidTransition: the edge does not exist.
            Forbidden: the role may not move orders into *to_status*.
            OrderNotFound: the order does not exist.
            StaleTransition: the persisted status is no longer *from_status*.
        """
        if not transaction.get_connection().in_atomic_block:
            raise TransactionRequired(
                "transition_status must run inside transaction.atomic()."
            )

        role_value = _role_value(role)
        log = logger.bind(
            order_id=str(order_id),
            from_status=from_status,
            to_status=to_status,
            role=role_value,
        )

        if not is_valid_transition(from_status, to_status):
            log.warning("order.invalid_transition")
            raise InvalidTransition(from_status, to_status)

        if not has_permission(role, to_status):
            log.warning("order.transition_forbidden")
            raise Forbidden(role_value, to_status)

        if not self._order_repo.update_status(order_id, from_status, to_status):
            current = self._order_repo.get_status(order_id)
            if current is None:
                raise OrderNotFound(f"Order {order_id} not found.")
            log.warning("order.stale_transition", actual_status=current)
            raise StaleTransition(from_status, current)

        self._order_repo.add_status_flow(
            order_id=order_id,
            from_status=from_status,
            to_status=to_status,
            operator=operator,
            remark=remark,
        )

        description = status_change_description(from_status, to_status)
        self._order_repo.add_history(
            order_id=order_id,
            action=HistoryAction.STATUS_CHANGED,
            description=description,
            operator=operator,
            changes={
                "fromStatus": from_status,
                "toStatus": to_status,
                "role": role_value,
                "timestamp": timezone.now().isoformat(),
            },
        )

        log.info("order.status_transitioned", operator=operator)
        return TransitionResultDTO(
            from_status=from_status,
            to_status=to_status,
            description=description,
        )

    # ------------------------------------------------------------------
    # History reader
    # ------------------------------------------------------------------

    def flow_history(self, order_id: UUID) -> List[StatusFlowDTO]:
        """Flow records of an order, oldest first, with status descriptions."""
        return [
            StatusFlowDTO.from_entity(flow)
            for flow in self._order_repo.list_status_flows(order_id)
        ]

    # ------------------------------------------------------------------
    # Cancellation policy
    # ------------------------------------------------------------------

    def can_cancel(self, order: Order) -> CancellationCheckDTO:
        if order.status not in CANCELLABLE_STATES:
            return CancellationCheckDTO(
                can_cancel=False,
                reason=gettext("Order is %(status)s and cannot be cancelled")
                % {"status": status_description(order.status)},
            )
        return CancellationCheckDTO(
            can_cancel=True, reason=gettext("order can be cancelled")
        )

    def cancel(
        self,
        order: Order,
        operator: str,
        role: RoleLike,
        remark: str = "",
    ) -> TransitionResultDTO:
        """Cancel an eligible order through the regular executor.

        Raises:
            NotCancellable: the order's status is not cancellable.
            plus everything ``transition_status`` raises.
        """
        check = self.can_cancel(order)
        if not check.can_cancel:
            logger.warning(
                "order.cancel_not_allowed",
                order_id=str(order.id),
                status=order.status,
            )
            raise NotCancellable(order.status, check.reason)

        return self.transition_status(
            order_id=order.id,
            from_status=order.status,
            to_status=OrderStatus.CANCELLED,
            operator=operator,
            role=role,
            remark=remark or gettext("order cancelled"),
        )


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        customer_repository: ICustomerRepository,
        product_repository: IProductRepository,
    ) -> None:
        self._order_repo = order_repository
        self._customer_repo = customer_repository
        self._product_repo = product_repository
        self._status = OrderStatusService(order_repository)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(
        self, dto: CreateOrderDTO, operator: str = SYSTEM_OPERATOR
    ) -> Order:
        """Create a draft order and record its ``created`` history entry.

        Each line is priced with, in order of precedence: the explicit
        ``unit_price`` of the request, the customer's custom price, the
        product's global price.

        Raises:
            CustomerNotFound: customer does not exist.
            ProductNotFound: a product does not exist.
        """
        log = logger.bind(customer_id=str(dto.customer_id))
        log.info("order.creation_started")

        customer = self._customer_repo.get_by_id(str(dto.customer_id))
        if not customer:
            raise CustomerNotFound(f"Customer {dto.customer_id} not found.")

        products = self._product_repo.get_many(str(i.product_id) for i in dto.items)

        repo_items = []
        for item_dto in dto.items:
            product = products.get(str(item_dto.product_id))
            if product is None:
                raise ProductNotFound(f"Product {item_dto.product_id} not found.")

            unit_price = item_dto.unit_price
            if unit_price is None:
                unit_price = self._resolve_price(customer.id, product).price

            repo_items.append(
                {
                    "product": product,
                    "quantity": item_dto.quantity,
                    "unit_price": unit_price,
                    "unit": item_dto.unit or product.unit,
                    "remark": item_dto.remark,
                }
            )

        order = self._order_repo.create(
            {
                "customer_id": customer.id,
                "items": repo_items,
                "remark": dto.remark,
                "created_by": operator,
            }
        )

        self._order_repo.add_history(
            order_id=order.id,
            action=HistoryAction.CREATED,
            description=gettext("order created"),
            operator=operator,
            changes={
                "items": [
                    {
                        "productId": str(item["product"].id),
                        "quantity": str(item["quantity"]),
                        "unitPrice": str(item["unit_price"]),
                        "unit": item["unit"],
                    }
                    for item in repo_items
                ],
                "totalAmount": str(order.total_amount),
            },
        )

        log.info("order.created", order_id=str(order.id))
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def request_transition(
        self,
        order_id: UUID,
        to_status: str,
        operator: str,
        role: RoleLike = None,
        remark: str = "",
    ) -> TransitionResultDTO:
        """Transition an order from its current (locked) status to *to_status*."""
        order = self._load_for_update(order_id)
        return self._status.transition_status(
            order_id=order.id,
            from_status=order.status,
            to_status=to_status,
            operator=operator,
            role=self._default_role(role),
            remark=remark,
        )

    @transaction.atomic
    def request_cancellation(
        self,
        order_id: UUID,
        operator: str,
        role: RoleLike = None,
        remark: str = "",
    ) -> TransitionResultDTO:
        """Cancel an order, defaulting the remark to "order cancelled"."""
        order = self._load_for_update(order_id)
        result = self._status.cancel(
            order,
            operator=operator,
            role=self._default_role(role),
            remark=remark,
        )
        logger.info("order.cancelled", order_id=str(order.id), operator=operator)
        return result

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        return self._order_repo.list(filters)

    def get_status_flow_history(self, order_id: str) -> List[StatusFlowDTO]:
        order = self.get_order(order_id)
        return self._status.flow_history(order.id)

    def get_order_history(self, order_id: str) -> List[OrderHistoryDTO]:
        order = self.get_order(order_id)
        return [
            OrderHistoryDTO.from_entity(entry)
            for entry in self._order_repo.list_history(order.id)
        ]

    def get_status_info(self, order_id: str) -> StatusInfoDTO:
        order = self.get_order(order_id)
        return StatusInfoDTO(
            order_id=order.id,
            status=order.status,
            status_desc=status_description(order.status),
            is_terminal=order.is_terminal,
            available_transitions=[
                StatusOptionDTO.for_status(target)
                for target in OrderStatus.values
                if target in available_transitions(order.status)
            ],
            cancellation=self._status.can_cancel(order),
        )

    def resolve_unit_price(self, customer_id: str, product_id: str) -> UnitPriceDTO:
        """Price of a product for a customer (custom price, else global price).

        Raises:
            ProductNotFound: the product does not exist.
        """
        product = self._product_repo.get_by_id(product_id)
        if not product:
            raise ProductNotFound(f"Product {product_id} not found.")
        return self._resolve_price(customer_id, product)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve_price(self, customer_id: Any, product: Product) -> UnitPriceDTO:
        custom = self._customer_repo.get_custom_price(str(customer_id), str(product.id))
        if custom is not None:
            return UnitPriceDTO(price=custom.price, is_custom=True)
        return UnitPriceDTO(price=Decimal(product.global_price), is_custom=False)

    def _load_for_update(self, order_id: UUID) -> Order:
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    @staticmethod
    def _default_role(role: RoleLike) -> RoleLike:
        return role or getattr(settings, "ORDER_DEFAULT_ROLE", Role.ADMIN)
