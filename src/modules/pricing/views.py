"""Checkout API views.

Public endpoints: prices are quoted before login, so these views use
``AllowAny`` and are rate-limited through the ``checkout_quote`` scope.
Domain exceptions are translated into HTTP responses here; data-integrity
and configuration failures propagate as server errors.
"""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.offers.repositories.django_repository import OfferDjangoRepository
from modules.pricing.dtos import CartItemDTO, DeliveryCheckDTO, QuoteRequestDTO
from modules.pricing.exceptions import InvalidCartLine
from modules.pricing.serializers import (
    DeliveryEligibilitySerializer,
    QuoteRequestSerializer,
)
from modules.pricing.services import PricingService
from modules.products.repositories.django_repository import ProductDjangoRepository


class CheckoutViewSet(ViewSet):
    permission_classes = [AllowAny]
    throttle_scope = "checkout_quote"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = PricingService(
            product_repository=ProductDjangoRepository(),
            offer_repository=OfferDjangoRepository(),
        )

    @action(detail=False, methods=["post"])
    def quote(self, request: Request) -> Response:
        """POST /api/v1/checkout/quote/"""
        serializer = QuoteRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            dto = QuoteRequestDTO(
                items=[
                    CartItemDTO(
                        product_id=item["product_id"],
                        quantity=item["quantity"],
                        offer_key=item.get("offer_key") or None,
                    )
                    for item in data["items"]
                ],
                state=data.get("state", ""),
                country=data.get("country", ""),
            )
            summary = self._service.quote(dto)
        except PydanticValidationError as exc:
            return Response(
                {"detail": exc.errors(include_url=False, include_context=False)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except InvalidCartLine as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(summary.model_dump(mode="json"))

    @action(detail=False, methods=["post"], url_path="delivery-eligibility")
    def delivery_eligibility(self, request: Request) -> Response:
        """POST /api/v1/checkout/delivery-eligibility/"""
        serializer = DeliveryEligibilitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        dto = DeliveryCheckDTO(state=data["state"], product_ids=data["product_ids"])
        result = self._service.check_delivery(dto)
        return Response(
            {
                "state": dto.state,
                "results": [
                    {"id": product_id, "deliverable": deliverable}
                    for product_id, deliverable in result.items()
                ],
            }
        )
