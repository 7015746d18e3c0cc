"""Offer repository interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from modules.offers.models import Offer


class IOfferRepository(ABC):
    """Read-only contract for the offer catalog.

    Implementations never return inactive or expired offers.
    """

    @abstractmethod
    def get_active_by_key(
        self, key: str, now: Optional[datetime] = None
    ) -> Optional[Offer]:
        """Retrieve an available offer by key, or ``None``."""

    @abstractmethod
    def list_active(self, now: Optional[datetime] = None) -> List[Offer]:
        """List available offers in display order."""
