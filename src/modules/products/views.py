"""Public catalog endpoints.

GET /api/v1/products/       paginated, filterable listing of sellable products
GET /api/v1/products/{id}/  one product with its quantity cap and origin state

Products are maintained through the admin and ``seed_data``; nothing here
writes.
"""

from __future__ import annotations

import structlog
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ReadOnlyModelViewSet

from modules.products.exceptions import ProductNotFound
from modules.products.filters import ProductFilter
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.serializers import ProductSerializer
from modules.products.services import ProductService

logger = structlog.get_logger(__name__)


class ProductViewSet(ReadOnlyModelViewSet):
    permission_classes = [AllowAny]
    serializer_class = ProductSerializer
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    filterset_class = ProductFilter
    search_fields = ["name", "sku", "brand", "category", "subcategory"]
    ordering_fields = ["name", "price", "stock_quantity", "created_at"]
    ordering = ["-created_at", "-id"]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ProductService(repository=ProductDjangoRepository())

    def get_queryset(self):
        return self._service.list_products()

    @extend_schema(
        parameters=[
            OpenApiParameter(
                "ships_to",
                str,
                description="Only products deliverable to this state code.",
            )
        ]
    )
    def list(self, request: Request, *args, **kwargs) -> Response:
        return super().list(request, *args, **kwargs)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        try:
            product = self._service.get_product(pk)
        except ProductNotFound as exc:
            logger.info("product.not_found", product_id=pk)
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        return Response(self.get_serializer(product).data)
