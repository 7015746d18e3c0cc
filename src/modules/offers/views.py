"""Offer API views.

Lists the offers a buyer may attach to cart lines.  Inactive and expired
offers are never exposed.
"""

from __future__ import annotations

from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.offers.repositories.django_repository import OfferDjangoRepository
from modules.offers.serializers import OfferSerializer


class OfferViewSet(ViewSet):
    permission_classes = [AllowAny]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._repo = OfferDjangoRepository()

    def list(self, request: Request) -> Response:
        """GET /api/v1/offers/"""
        serializer = OfferSerializer(self._repo.list_active(), many=True)
        return Response({"results": serializer.data})
