# tienda/services/delivery_fee_service.py

import logging
import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_CEILING
from typing import Dict, Optional

from domain.models import DeliveryQuote, LIMA_METROPOLITANA, PROVINCIA
from utils.formatting import format_amount, to_decimal

logger = logging.getLogger(__name__)

DEFAULT_MIN_FEE = Decimal("10")
DEFAULT_MAX_FEE = Decimal("15")
FREE_DELIVERY_THRESHOLD = Decimal("150")
PER_KM_MULTIPLIER = Decimal("1.2")


@dataclass(frozen=True)
class FeeSettings:
    min_fee: Decimal = DEFAULT_MIN_FEE
    max_fee: Decimal = DEFAULT_MAX_FEE
    free_threshold: Decimal = FREE_DELIVERY_THRESHOLD
    per_km_multiplier: Decimal = PER_KM_MULTIPLIER

    def __post_init__(self):
        if self.min_fee < 0 or self.max_fee < self.min_fee:
            raise ValueError(
                f"invalid fee bounds: min={self.min_fee} max={self.max_fee}"
            )

    @classmethod
    def from_settings(cls, settings: Dict[str, str]) -> "FeeSettings":
        """
        Build from the remote key/value settings. Missing, empty or zero
        values fall back to the defaults, like the storefront did.
        """
        min_fee = _setting_decimal(settings, "minimoDelivery", DEFAULT_MIN_FEE)
        max_fee = _setting_decimal(settings, "maximoDelivery", DEFAULT_MAX_FEE)
        if max_fee < min_fee:
            logger.warning(
                "maximoDelivery (%s) below minimoDelivery (%s), using defaults",
                max_fee,
                min_fee,
            )
            return cls()
        return cls(min_fee=min_fee, max_fee=max_fee)

    @property
    def advisory_range(self) -> str:
        return f"{format_amount(self.min_fee)} - {format_amount(self.max_fee)}"


def _setting_decimal(settings: Dict[str, str], key: str, default: Decimal) -> Decimal:
    raw = (settings or {}).get(key)
    try:
        value = to_decimal(raw)
    except ArithmeticError:
        value = None
    if value is None or not value.is_finite():
        logger.warning("Setting %s=%r is not a number, using %s", key, raw, default)
        return default
    return value if value > 0 else default


def raw_fee_for_distance(distance_km: float, multiplier: Decimal = PER_KM_MULTIPLIER) -> Decimal:
    """
    Courier fee before clamping: distance rounded up to 0.1 km, inflated by
    the per-km multiplier, then rounded up to a whole sol.
    """
    if distance_km is None or math.isnan(distance_km) or distance_km < 0:
        raise ValueError(f"distance must be a non-negative number, got {distance_km!r}")
    tenths = Decimal(str(distance_km)) * 10
    rounded_km = tenths.to_integral_value(rounding=ROUND_CEILING) / 10
    return (rounded_km * multiplier).to_integral_value(rounding=ROUND_CEILING)


def clamp_fee(raw_fee: Decimal, settings: FeeSettings) -> Decimal:
    return min(max(raw_fee, settings.min_fee), settings.max_fee)


def resolve_delivery_fee(
        region: str,
        discounted_subtotal: Decimal,
        settings: FeeSettings,
        distance_km: Optional[float] = None,
        raw_fee: Optional[Decimal] = None,
) -> DeliveryQuote:
    """
    Map a region + distance (or an already computed raw fee) to a quote.

    Lima Metropolitana:
      - discounted subtotal above the free threshold -> 0, pin not needed
      - no distance and no raw fee -> 0 and not available (no pin yet)
      - otherwise the raw fee clamped to [min_fee, max_fee]

    Provincia: the agency charges on pickup, nothing is added to the total.
    """
    if region == PROVINCIA:
        return DeliveryQuote(
            region=PROVINCIA,
            fee=Decimal("0"),
            paid_at_agency=True,
            advisory_range=settings.advisory_range,
        )

    if region != LIMA_METROPOLITANA:
        raise ValueError(f"unknown region: {region!r}")

    if discounted_subtotal > settings.free_threshold:
        return DeliveryQuote(region=LIMA_METROPOLITANA, fee=Decimal("0"))

    if raw_fee is None:
        if distance_km is None:
            return DeliveryQuote(region=LIMA_METROPOLITANA, fee=Decimal("0"), available=False)
        raw_fee = raw_fee_for_distance(distance_km, settings.per_km_multiplier)

    fee = clamp_fee(raw_fee, settings)
    logger.debug("Delivery fee raw=%s clamped=%s", raw_fee, fee)
    return DeliveryQuote(region=LIMA_METROPOLITANA, fee=fee)
