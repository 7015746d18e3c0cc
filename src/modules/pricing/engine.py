"""Order pricing engine.

Pure function of ``(cart lines, product snapshots, destination, delivery
fee config) -> OrderSummary``.  No I/O, no shared state: the same inputs
always produce the same summary, so concurrent dry-runs are safe and the
order service re-runs it at confirmation instead of trusting a
client-echoed total.

Pipeline:
1. Validate lines, snapshots and configuration (fail fast).
2. Normalise the cart: drop missing and undeliverable products, clamp
   quantities by price tier, cap at stock, drop zero-stock lines.
3. Price each line and apply its single attached offer.
4. Compute GST and split it into CGST+SGST (intra-state) or IGST.
5. Add the delivery fee and assemble the summary.

Amounts accumulate as full-precision ``Decimal`` and are rounded once,
when the summary is built.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from modules.pricing.constants import (
    DEFAULT_COUNTRY,
    DOMESTIC_COUNTRIES,
    FIRST_PARTY_SHIPMENT,
    MAX_GST_PERCENT,
    MONEY_QUANTUM,
    VOLUMETRIC_DEPTH_CM,
    VOLUMETRIC_DIVISOR,
    WEIGHT_QUANTUM,
    DeliveryFeeMode,
    DropReason,
)
from modules.pricing.dtos import (
    CartLine,
    DeliveryFeeConfig,
    DroppedLine,
    OrderSummary,
    ProductSnapshot,
    SummaryItem,
    TaxBreakdown,
)
from modules.pricing.eligibility import check_eligibility
from modules.pricing.exceptions import (
    ConfigurationMissing,
    InvalidCartLine,
    InvalidProductData,
)
from modules.pricing.offers import offer_discount
from modules.pricing.quantity import clamp_quantity

ZERO = Decimal("0")
TWO = Decimal("2")
HUNDRED = Decimal("100")


def _money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class _PricedLine:
    product: ProductSnapshot
    requested_quantity: int
    quantity: int
    line_subtotal: Decimal
    discount: Decimal
    offer_key: Optional[str]
    gst_amount: Decimal
    intra_state: bool

    @property
    def adjusted_subtotal(self) -> Decimal:
        return self.line_subtotal - self.discount

    def to_item(self) -> SummaryItem:
        gst = _money(self.gst_amount)
        if self.intra_state:
            cgst = _money(self.gst_amount / TWO)
            sgst = gst - cgst
            igst = ZERO
        else:
            cgst = sgst = ZERO
            igst = gst
        return SummaryItem(
            product_id=self.product.id,
            name=self.product.name,
            requested_quantity=self.requested_quantity,
            quantity=self.quantity,
            unit_price=_money(self.product.price),
            line_subtotal=_money(self.line_subtotal),
            discount=_money(self.discount),
            adjusted_subtotal=_money(self.adjusted_subtotal),
            offer_key=self.offer_key,
            gst_percent=self.product.gst_percent,
            gst_amount=gst,
            cgst=_money(cgst),
            sgst=_money(sgst),
            igst=_money(igst),
            stock=self.product.stock,
        )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _validate_lines(lines: Sequence[CartLine]) -> None:
    seen: set[str] = set()
    for line in lines:
        if not line.product_id:
            raise InvalidCartLine("Cart line is missing a product reference.")
        if line.quantity <= 0:
            raise InvalidCartLine(
                f"Quantity for product {line.product_id} must be at least 1."
            )
        if line.product_id in seen:
            raise InvalidCartLine(
                f"Product {line.product_id} appears more than once in the cart."
            )
        seen.add(line.product_id)


def _index_products(products: Iterable[ProductSnapshot]) -> Dict[str, ProductSnapshot]:
    catalog: Dict[str, ProductSnapshot] = {}
    for product in products:
        if product.price < 0:
            raise InvalidProductData(f"Product {product.id} has a negative price.")
        if product.stock < 0:
            raise InvalidProductData(f"Product {product.id} has negative stock.")
        if not ZERO <= product.gst_percent <= MAX_GST_PERCENT:
            raise InvalidProductData(
                f"Product {product.id} has GST rate {product.gst_percent} "
                "outside 0-100."
            )
        catalog[product.id] = product
    return catalog


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def is_domestic(destination_country: str) -> bool:
    """Whether the destination falls under the GST regime."""
    country = (destination_country or DEFAULT_COUNTRY).strip().upper()
    return country in DOMESTIC_COUNTRIES


def is_intra_state(
    destination_state: str, destination_country: str, product: ProductSnapshot
) -> bool:
    """CGST+SGST applies only to a known, matching domestic state.

    An unknown destination or origin state falls through to IGST, which
    never under-collects.
    """
    return (
        is_domestic(destination_country)
        and bool(destination_state)
        and bool(product.seller_state)
        and destination_state == product.seller_state
    )


def delivery_fee(
    priced: Sequence[_PricedLine], subtotal: Decimal, config: DeliveryFeeConfig
) -> Decimal:
    if not priced:
        return ZERO
    threshold = config.free_delivery_threshold
    if threshold is not None and subtotal >= threshold:
        return ZERO
    if config.mode == DeliveryFeeMode.PER_SELLER:
        shipments = {
            FIRST_PARTY_SHIPMENT
            if line.product.is_admin_product or not line.product.seller_id
            else line.product.seller_id
            for line in priced
        }
        return config.flat_fee * len(shipments)
    return config.flat_fee


def chargeable_weight(priced: Sequence[_PricedLine]) -> Decimal:
    """Greater of actual and volumetric weight across the cart, in kg."""
    actual = ZERO
    volumetric = ZERO
    for line in priced:
        product = line.product
        actual += product.weight_kg * line.quantity
        unit_volumetric = (
            product.height_cm * product.width_cm * VOLUMETRIC_DEPTH_CM
        ) / VOLUMETRIC_DIVISOR
        volumetric += unit_volumetric * line.quantity
    return max(actual, volumetric).quantize(WEIGHT_QUANTUM, rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


def _price_line(
    line: CartLine,
    product: ProductSnapshot,
    quantity: int,
    destination_state: str,
    destination_country: str,
) -> _PricedLine:
    line_subtotal = product.price * quantity
    offer = line.applied_offer
    discount = offer_discount(offer, product, quantity, line_subtotal)
    adjusted = line_subtotal - discount
    return _PricedLine(
        product=product,
        requested_quantity=line.quantity,
        quantity=quantity,
        line_subtotal=line_subtotal,
        discount=discount,
        offer_key=(offer.key or offer.name) if offer is not None and discount else None,
        gst_amount=adjusted * product.gst_percent / HUNDRED,
        intra_state=is_intra_state(destination_state, destination_country, product),
    )


def _assemble(
    priced: Sequence[_PricedLine],
    dropped: List[DroppedLine],
    config: DeliveryFeeConfig,
) -> OrderSummary:
    subtotal_raw = sum((line.adjusted_subtotal for line in priced), ZERO)
    discount_raw = sum((line.discount for line in priced), ZERO)
    tax_raw = sum((line.gst_amount for line in priced), ZERO)
    intra_raw = sum((line.gst_amount for line in priced if line.intra_state), ZERO)

    subtotal = _money(subtotal_raw)
    tax = _money(tax_raw)
    intra = _money(intra_raw)
    cgst = _money(intra_raw / TWO)
    fee = _money(delivery_fee(priced, subtotal_raw, config))

    return OrderSummary(
        subtotal=subtotal,
        discount=_money(discount_raw),
        tax=tax,
        tax_breakdown=TaxBreakdown(cgst=cgst, sgst=intra - cgst, igst=tax - intra),
        delivery_fee=fee,
        total=subtotal + tax + fee,
        chargeable_weight_kg=chargeable_weight(priced),
        items=[line.to_item() for line in priced],
        dropped=dropped,
    )


def price_cart(
    lines: Sequence[CartLine],
    products: Iterable[ProductSnapshot],
    destination_state: str,
    destination_country: str,
    fee_config: Optional[DeliveryFeeConfig],
) -> OrderSummary:
    """Price a cart against authoritative product snapshots.

    Lines whose product is missing, undeliverable or out of stock are
    excluded from every total and listed in ``OrderSummary.dropped``.  An
    empty normalised cart yields an all-zero summary; callers decide
    whether that blocks checkout.

    Raises:
        ConfigurationMissing: ``fee_config`` is ``None``.
        InvalidCartLine: a line lacks a product, has a non-positive
            quantity, or repeats a product.
        InvalidProductData: a snapshot has a negative price or stock, or a
            GST rate outside 0-100.
    """
    if fee_config is None:
        raise ConfigurationMissing("Delivery fee configuration is required.")
    _validate_lines(lines)
    catalog = _index_products(products)
    deliverable = check_eligibility(destination_state, catalog.values())

    priced: List[_PricedLine] = []
    dropped: List[DroppedLine] = []
    for line in lines:
        product = catalog.get(line.product_id)
        if product is None:
            dropped.append(
                DroppedLine(
                    product_id=line.product_id,
                    reason=DropReason.PRODUCT_NOT_FOUND.value,
                )
            )
            continue
        if not deliverable[product.id]:
            dropped.append(
                DroppedLine(
                    product_id=line.product_id,
                    reason=DropReason.NOT_DELIVERABLE.value,
                )
            )
            continue

        quantity = min(clamp_quantity(line.quantity, product.price), product.stock)
        if quantity <= 0:
            dropped.append(
                DroppedLine(
                    product_id=line.product_id,
                    reason=DropReason.OUT_OF_STOCK.value,
                )
            )
            continue

        priced.append(
            _price_line(line, product, quantity, destination_state, destination_country)
        )

    return _assemble(priced, dropped, fee_config)
