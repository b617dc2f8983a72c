"""Order API views.

Exposes ``OrderService`` via HTTP using a DRF ViewSet.
Domain exceptions are caught and translated into HTTP status codes:
an illegal transition is a 400, a role without permission is a 403, a
concurrent status change is a 409.  The view never swallows generic
exceptions.
"""

from __future__ import annotations

from typing import Any, Dict

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.orders.constants import SYSTEM_OPERATOR, available_transitions
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO, StatusOptionDTO
from modules.orders.exceptions import (
    CustomerNotFound,
    Forbidden,
    InvalidTransition,
    NotCancellable,
    OrderNotFound,
    ProductNotFound,
    StaleTransition,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CancelOrderSerializer,
    CreateOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    TransitionStatusSerializer,
    UnitPriceQuerySerializer,
)
from modules.orders.services import OrderService
from modules.products.repositories.django_repository import ProductDjangoRepository

ORDER_NOT_FOUND = {"detail": "Order not found."}


def _operator(request: Request) -> str:
    """Identity recorded on audit rows: gateway header, else the JWT user."""
    header = request.headers.get("X-Operator")
    if header:
        return header
    username = getattr(request.user, "get_username", None)
    return (username() if callable(username) else "") or SYSTEM_OPERATOR


def _transition_error(exc: Exception) -> Response:
    """Map a transition failure to its HTTP response."""
    if isinstance(exc, InvalidTransition):
        body: Dict[str, Any] = {
            "detail": str(exc),
            "current_status": exc.from_status,
            "target_status": exc.to_status,
            "available_transitions": [
                StatusOptionDTO.for_status(s).model_dump()
                for s in sorted(available_transitions(exc.from_status))
            ],
        }
        return Response(body, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, NotCancellable):
        return Response(
            {"detail": exc.reason, "current_status": exc.status},
            status=status.HTTP_400_BAD_REQUEST,
        )
    if isinstance(exc, Forbidden):
        return Response(
            {"detail": str(exc), "role": exc.role, "target_status": exc.to_status},
            status=status.HTTP_403_FORBIDDEN,
        )
    if isinstance(exc, StaleTransition):
        return Response(
            {
                "detail": str(exc),
                "expected_status": exc.expected_status,
                "current_status": exc.actual_status,
            },
            status=status.HTTP_409_CONFLICT,
        )
    return Response(ORDER_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)


TRANSITION_ERRORS = (
    InvalidTransition,
    NotCancellable,
    Forbidden,
    StaleTransition,
    OrderNotFound,
)


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer, and status only changes through the
    ``status`` and ``cancel`` actions.
    """

    queryset = Order.objects.all()
    filterset_class = OrderFilter
    search_fields = ["order_number", "customer__name"]
    ordering_fields = ["created_at", "total_amount", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            customer_repository=CustomerDjangoRepository(),
            product_repository=ProductDjangoRepository(),
        )

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)

        data = create_serializer.validated_data
        try:
            dto = CreateOrderDTO(
                customer_id=data["customer_id"],
                items=[
                    CreateOrderItemDTO(
                        product_id=item["product_id"],
                        quantity=item["quantity"],
                        unit_price=item.get("unit_price"),
                        unit=item.get("unit") or None,
                        remark=item.get("remark", ""),
                    )
                    for item in data["items"]
                ],
                remark=data.get("remark", ""),
            )
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            order = self._service.create_order(dto, operator=_operator(request))
        except CustomerNotFound:
            return Response(
                {"detail": "Customer not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except ProductNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)

        out = OrderSerializer(order)
        return Response(out.data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def get_queryset(self):
        return Order.objects.select_related("customer")

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/ (filtered, ordered and paginated)"""
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/  (``?include_history=true`` adds the timeline)"""
        try:
            order = self._service.get_order(pk)
        except OrderNotFound:
            return Response(ORDER_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)

        data = dict(OrderSerializer(order).data)
        if request.query_params.get("include_history") == "true":
            data["histories"] = [
                entry.model_dump(mode="json")
                for entry in self._service.get_order_history(pk)
            ]
        return Response(data)

    # ------------------------------------------------------------------
    # Status lifecycle
    # ------------------------------------------------------------------

    @action(detail=True, methods=["put", "patch"], url_path="status")
    def transition(self, request: Request, pk: str | None = None) -> Response:
        """PUT|PATCH /api/v1/orders/{pk}/status/"""
        serializer = TransitionStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            result = self._service.request_transition(
                order_id=pk,
                to_status=data["status"],
                operator=_operator(request),
                role=data.get("role") or None,
                remark=data.get("remark", ""),
            )
        except TRANSITION_ERRORS as exc:
            return _transition_error(exc)

        return Response(result.model_dump(mode="json"))

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/"""
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            result = self._service.request_cancellation(
                order_id=pk,
                operator=_operator(request),
                role=data.get("role") or None,
                remark=data.get("remark", ""),
            )
        except TRANSITION_ERRORS as exc:
            return _transition_error(exc)

        return Response(result.model_dump(mode="json"))

    @action(detail=True, methods=["get"], url_path="status-flows")
    def status_flows(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/status-flows/"""
        try:
            flows = self._service.get_status_flow_history(pk)
        except OrderNotFound:
            return Response(ORDER_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response([flow.model_dump(mode="json") for flow in flows])

    @action(detail=True, methods=["get"], url_path="status-info")
    def status_info(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/status-info/"""
        try:
            info = self._service.get_status_info(pk)
        except OrderNotFound:
            return Response(ORDER_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(info.model_dump(mode="json"))

    # ------------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------------

    @action(detail=False, methods=["get"], url_path="price")
    def price(self, request: Request) -> Response:
        """GET /api/v1/orders/price/?customer_id=...&product_id=..."""
        query = UnitPriceQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        try:
            price = self._service.resolve_unit_price(
                str(query.validated_data["customer_id"]),
                str(query.validated_data["product_id"]),
            )
        except ProductNotFound:
            return Response(
                {"detail": "Product not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(price.model_dump(mode="json"))
