"""Django ORM implementation of the Offer repository."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from django.db.models import Q, QuerySet
from django.utils import timezone

from modules.offers.models import Offer
from modules.offers.repositories.interfaces import IOfferRepository


class OfferDjangoRepository(IOfferRepository):
    """Concrete Offer repository backed by Django ORM."""

    @staticmethod
    def _available(now: Optional[datetime]) -> QuerySet:
        now = now or timezone.now()
        return Offer.objects.filter(active=True).filter(
            Q(expires_at__isnull=True) | Q(expires_at__gt=now)
        )

    def get_active_by_key(
        self, key: str, now: Optional[datetime] = None
    ) -> Optional[Offer]:
        if not key:
            return None
        return self._available(now).filter(key=key.strip()).first()

    def list_active(self, now: Optional[datetime] = None) -> List[Offer]:
        return list(self._available(now))
