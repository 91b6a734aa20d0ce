# tienda/services/pricing_service.py
"""
Order total composition.

Every surface that shows a total (confirmation message, persisted order,
invoices) goes through `recompute_total` with the same RoundingPolicy, so
the number can only differ if the stored inputs differ.
"""

import enum
import logging
from decimal import Decimal, ROUND_FLOOR
from typing import Optional

from domain.models import (
    DeliveryDestination,
    LimaDestination,
    PricingResult,
)
from services.delivery_fee_service import FeeSettings, resolve_delivery_fee
from utils.formatting import round_money
from utils.geo import STORE_ORIGIN, estimate_route_km, is_valid_point

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


class RoundingPolicy(enum.Enum):
    # Standard two-decimal rounding, half up
    HALF_UP_CENT = "half_up_cent"
    # Truncate to one decimal, then show two (old order-detail view)
    FLOOR_TENTH = "floor_tenth"

    @classmethod
    def parse(cls, value: Optional[str]) -> "RoundingPolicy":
        if not value:
            return cls.HALF_UP_CENT
        try:
            return cls(value.strip().lower())
        except ValueError:
            logger.warning("Unknown rounding policy %r, using %s", value, cls.HALF_UP_CENT.value)
            return cls.HALF_UP_CENT


def apply_rounding(amount: Decimal, policy: RoundingPolicy) -> Decimal:
    if policy is RoundingPolicy.FLOOR_TENTH:
        tenth = amount.quantize(Decimal("0.1"), rounding=ROUND_FLOOR)
        return tenth.quantize(Decimal("0.01"))
    return round_money(amount)


def discount_amount_for(subtotal: Decimal, discount_percent: Decimal) -> Decimal:
    return round_money(subtotal * discount_percent / HUNDRED)


def recompute_total(
        subtotal: Decimal,
        discount_percent: Decimal,
        delivery_fee: Decimal,
        policy: RoundingPolicy = RoundingPolicy.HALF_UP_CENT,
) -> Decimal:
    """
    total = round(subtotal - round2(subtotal * pct / 100) + delivery_fee)

    Used by the composer and by every surface that rebuilds a total from
    stored fields.
    """
    discount_amount = discount_amount_for(subtotal, discount_percent)
    return apply_rounding(subtotal - discount_amount + delivery_fee, policy)


def compose_order_total(
        subtotal: Decimal,
        discount_percent: Decimal,
        region: str,
        fee_settings: FeeSettings,
        distance_km: Optional[float] = None,
        raw_fee: Optional[Decimal] = None,
        policy: RoundingPolicy = RoundingPolicy.HALF_UP_CENT,
) -> PricingResult:
    """
    Combine subtotal, coupon percent and delivery into one PricingResult.

    The free-delivery threshold is checked against the discounted subtotal.
    Inputs are assumed validated; this never raises for valid arguments.
    """
    # the stored subtotal is the rounded one; derive everything from it
    subtotal = round_money(subtotal)
    discount_amount = discount_amount_for(subtotal, discount_percent)
    discounted_subtotal = subtotal - discount_amount

    quote = resolve_delivery_fee(
        region,
        discounted_subtotal,
        fee_settings,
        distance_km=distance_km,
        raw_fee=raw_fee,
    )
    total = recompute_total(subtotal, discount_percent, round_money(quote.fee), policy)

    return PricingResult(
        subtotal=subtotal,
        discount_percent=discount_percent,
        discount_amount=discount_amount,
        delivery_fee=round_money(quote.fee),
        total=total,
        delivery_quote=quote,
    )


def distance_for_destination(destination: DeliveryDestination) -> Optional[float]:
    """Route distance for a Lima pin; None when there is nothing to measure."""
    if not isinstance(destination, LimaDestination):
        return None
    if not is_valid_point(destination.location):
        return None
    return estimate_route_km(destination.location, origin=STORE_ORIGIN)


def price_destination(
        subtotal: Decimal,
        discount_percent: Decimal,
        destination: DeliveryDestination,
        fee_settings: FeeSettings,
        policy: RoundingPolicy = RoundingPolicy.HALF_UP_CENT,
) -> PricingResult:
    distance_km = distance_for_destination(destination)
    if distance_km is not None:
        logger.info("Route distance to destination: %.2f km", distance_km)
    return compose_order_total(
        subtotal,
        discount_percent,
        destination.region,
        fee_settings,
        distance_km=distance_km,
        policy=policy,
    )
