"""Pricing service layer (checkout dry-run).

Loads authoritative product snapshots and offers through injected
repositories and hands them to the pure ``price_cart`` engine.  Nothing
the client sends about prices, taxes or offer terms is trusted: the
request carries product ids, quantities, offer keys and a destination.

The same ``price`` entry point is re-used by the order service with
snapshots built from locked rows, so a confirmed order is priced exactly
like its quote.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence

import structlog
from django.conf import settings

from modules.pricing.constants import DEFAULT_COUNTRY, DeliveryFeeMode
from modules.pricing.dtos import (
    CartItemDTO,
    CartLine,
    DeliveryFeeConfig,
    OrderSummary,
    ProductSnapshot,
    normalize_region,
)
from modules.pricing.eligibility import eligibility_for_ids
from modules.pricing.engine import price_cart

if TYPE_CHECKING:
    from modules.offers.repositories.interfaces import IOfferRepository
    from modules.pricing.dtos import DeliveryCheckDTO, QuoteRequestDTO
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


def delivery_fee_config_from_settings() -> Optional[DeliveryFeeConfig]:
    """Build the delivery fee rules from Django settings.

    Returns ``None`` when ``DELIVERY_FEE_FLAT`` is not configured; the
    engine then refuses to price.
    """
    flat_fee = getattr(settings, "DELIVERY_FEE_FLAT", None)
    if flat_fee in (None, ""):
        return None
    threshold = getattr(settings, "DELIVERY_FREE_THRESHOLD", None)
    return DeliveryFeeConfig(
        flat_fee=Decimal(str(flat_fee)),
        free_delivery_threshold=(
            Decimal(str(threshold)) if threshold not in (None, "") else None
        ),
        mode=getattr(settings, "DELIVERY_FEE_MODE", DeliveryFeeMode.FLAT),
    )


class PricingService:
    """Application service for cart pricing and delivery checks.

    Receives repositories via constructor injection (DIP).  ``fee_config``
    overrides the settings-derived delivery fee rules.
    """

    def __init__(
        self,
        product_repository: IProductRepository,
        offer_repository: IOfferRepository,
        fee_config: Optional[DeliveryFeeConfig] = None,
    ) -> None:
        self._product_repo = product_repository
        self._offer_repo = offer_repository
        self._fee_config = fee_config

    @property
    def fee_config(self) -> Optional[DeliveryFeeConfig]:
        if self._fee_config is not None:
            return self._fee_config
        return delivery_fee_config_from_settings()

    def build_cart_lines(self, items: Sequence[CartItemDTO]) -> List[CartLine]:
        """Attach authoritative offers to client items.

        Unknown, inactive and expired offer keys are ignored so a stale
        cart still prices; the line simply carries no offer.
        """
        lines = []
        for item in items:
            applied = None
            if item.offer_key:
                offer = self._offer_repo.get_active_by_key(item.offer_key)
                if offer is None:
                    logger.warning(
                        "pricing.offer_ignored",
                        product_id=item.product_id,
                        offer_key=item.offer_key,
                    )
                else:
                    applied = offer.as_applied_offer()
            lines.append(
                CartLine(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    applied_offer=applied,
                )
            )
        return lines

    def price(
        self,
        items: Sequence[CartItemDTO],
        snapshots: Sequence[ProductSnapshot],
        state: str,
        country: str = DEFAULT_COUNTRY,
    ) -> OrderSummary:
        """Price ``items`` against already-loaded ``snapshots``.

        Raises:
            InvalidCartLine: a line is malformed or repeats a product.
            InvalidProductData: a snapshot fails integrity checks.
            ConfigurationMissing: no delivery fee rules are configured.
        """
        return price_cart(
            self.build_cart_lines(items),
            snapshots,
            normalize_region(state),
            normalize_region(country) or DEFAULT_COUNTRY,
            self.fee_config,
        )

    def quote(self, dto: QuoteRequestDTO) -> OrderSummary:
        """Dry-run pricing of a cart.  Nothing is reserved or persisted."""
        snapshots = self._product_repo.get_snapshots(
            [item.product_id for item in dto.items]
        )
        summary = self.price(dto.items, snapshots, dto.state, dto.country)
        logger.info(
            "pricing.quote_computed",
            state=dto.state,
            country=dto.country,
            lines=len(dto.items),
            priced=len(summary.items),
            dropped=len(summary.dropped),
            total=str(summary.total),
        )
        return summary

    def check_delivery(self, dto: DeliveryCheckDTO) -> Dict[str, bool]:
        """Deliverability of each requested product to ``dto.state``."""
        snapshots = self._product_repo.get_snapshots(dto.product_ids)
        result = eligibility_for_ids(dto.state, dto.product_ids, snapshots)
        logger.info(
            "pricing.delivery_checked",
            state=dto.state,
            requested=len(dto.product_ids),
            deliverable=sum(result.values()),
        )
        return result
