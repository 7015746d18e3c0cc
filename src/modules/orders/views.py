"""Order API views.

Exposes ``OrderService`` over HTTP using a DRF ViewSet.  Domain
exceptions are caught and translated into HTTP status codes; the view
never swallows generic exceptions.
"""

from __future__ import annotations

from uuid import UUID

from django.conf import settings
from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.offers.repositories.django_repository import OfferDjangoRepository
from modules.orders.dtos import PlaceOrderDTO, ShippingAddressDTO
from modules.orders.exceptions import (
    CartChanged,
    CustomerNotFound,
    EmptyOrder,
    InactiveCustomer,
    InsufficientStock,
    InvalidCompletionCode,
    InvalidOrderStatus,
    OrderNotFound,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CancelOrderSerializer,
    CompleteOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    PlaceOrderSerializer,
    StatusUpdateSerializer,
    SupportNoteSerializer,
)
from modules.orders.services import OrderService
from modules.pricing.dtos import CartItemDTO
from modules.pricing.exceptions import InvalidCartLine
from modules.pricing.services import PricingService
from modules.products.repositories.django_repository import ProductDjangoRepository


def _not_found() -> Response:
    return Response({"detail": "Order not found."}, status=status.HTTP_404_NOT_FOUND)


def _invalid_id() -> Response:
    return Response(
        {"detail": "Invalid order ID format."},
        status=status.HTTP_400_BAD_REQUEST,
    )


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Does **not** extend ``ModelViewSet``: all ORM access goes through the
    service/repository layer.
    """

    queryset = Order.objects.all()
    filterset_class = OrderFilter
    search_fields = ["order_number", "customer__name", "shipping_name"]
    ordering_fields = ["created_at", "total_amount", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        product_repository = ProductDjangoRepository()
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            customer_repository=CustomerDjangoRepository(),
            product_repository=product_repository,
            pricing_service=PricingService(
                product_repository=product_repository,
                offer_repository=OfferDjangoRepository(),
            ),
        )

    def get_throttles(self) -> list[BaseThrottle]:
        """Scope throttling per action."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Supports idempotency via the ``Idempotency-Key`` header.
        """
        create_serializer = PlaceOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)

        data = create_serializer.validated_data
        try:
            dto = PlaceOrderDTO(
                customer_id=data["customer_id"],
                items=[
                    CartItemDTO(
                        product_id=item["product_id"],
                        quantity=item["quantity"],
                        offer_key=item.get("offer_key") or None,
                    )
                    for item in data["items"]
                ],
                shipping=ShippingAddressDTO(**data["shipping"]),
                notes=data.get("notes", ""),
                idempotency_key=request.headers.get("Idempotency-Key"),
            )
        except PydanticValidationError as exc:
            return Response(
                {"detail": exc.errors(include_url=False, include_context=False)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            order = self._service.place_order(dto)
        except CustomerNotFound:
            return Response(
                {"detail": "Customer not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except InactiveCustomer:
            return Response(
                {"detail": "Customer is inactive."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except (EmptyOrder, InvalidCartLine) as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except CartChanged as exc:
            return Response(
                {
                    "detail": str(exc),
                    "dropped": [line.model_dump(mode="json") for line in exc.dropped],
                },
                status=status.HTTP_409_CONFLICT,
            )
        except InsufficientStock as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_409_CONFLICT,
            )

        out = OrderSerializer(order)
        return Response(out.data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def get_queryset(self):
        return self._service.list_orders()

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering is handled by ``OrderFilter``, ordering by
        ``OrderingFilter``.  Results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        if pk is None:
            return _not_found()
        try:
            order = self._service.get_order(pk)
        except OrderNotFound:
            return _not_found()
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Status Update
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Cancellation and completion have dedicated endpoints.
        """
        if pk is None:
            return _not_found()
        serializer = StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = self._service.update_status(
                order_id=UUID(pk),
                new_status=serializer.validated_data["status"],
                notes=serializer.validated_data["notes"],
            )
        except ValueError:
            return _invalid_id()
        except OrderNotFound:
            return _not_found()
        except InvalidOrderStatus as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Dedicated actions
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/

        Cancels an order and releases reserved stock.
        """
        if pk is None:
            return _not_found()
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = self._service.cancel_order(
                order_id=UUID(pk),
                notes=serializer.validated_data["notes"],
            )
        except ValueError:
            return _invalid_id()
        except OrderNotFound:
            return _not_found()
        except InvalidOrderStatus as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="completion-code")
    def completion_code(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/completion-code/

        The code itself is only echoed back when ``DEBUG`` is on.
        """
        if pk is None:
            return _not_found()
        try:
            order, code = self._service.issue_completion_code(UUID(pk))
        except ValueError:
            return _invalid_id()
        except OrderNotFound:
            return _not_found()
        except InvalidOrderStatus as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        payload = {"expires_at": order.completion_code_expires_at}
        if settings.DEBUG:
            payload["code"] = code
        return Response(payload, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def complete(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/complete/"""
        if pk is None:
            return _not_found()
        serializer = CompleteOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = self._service.complete_order(
                UUID(pk), serializer.validated_data["code"]
            )
        except ValueError:
            return _invalid_id()
        except OrderNotFound:
            return _not_found()
        except (InvalidOrderStatus, InvalidCompletionCode) as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def notes(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/notes/"""
        if pk is None:
            return _not_found()
        serializer = SupportNoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = self._service.add_support_note(
                UUID(pk), serializer.validated_data["notes"]
            )
        except ValueError:
            return _invalid_id()
        except OrderNotFound:
            return _not_found()
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)
