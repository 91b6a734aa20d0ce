# tienda/services/coupon_service.py

import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from domain.models import Coupon
from utils.formatting import to_decimal

logger = logging.getLogger(__name__)


def _normalize(code: Optional[str]) -> str:
    return (code or "").strip().lower()


class CouponRegistry:
    """
    Lookup table of coupons keyed by lower-cased code.

    Visibility does not gate applicability: a hidden coupon still applies
    when the customer types it.
    """

    def __init__(self, coupons: Iterable[Coupon] = ()):
        self._coupons: List[Coupon] = []
        self._by_code: Dict[str, Coupon] = {}
        for coupon in coupons:
            key = _normalize(coupon.code)
            if not key:
                continue
            if key in self._by_code:
                logger.warning('Duplicate coupon code "%s", keeping the first one', coupon.code)
                continue
            self._by_code[key] = coupon
            self._coupons.append(coupon)

    @classmethod
    def from_config(cls, cupones: Iterable[dict]) -> "CouponRegistry":
        """
        Build from the `cupones` list of the config payload:
          {"codigoCupon": str, "descuento": number, "mostrarCupon": bool, ...}
        Rows with an out-of-range percent are skipped.
        """
        coupons = []
        for row in cupones or []:
            try:
                percent = to_decimal(row.get("descuento"))
            except ArithmeticError:
                percent = None
            if percent is None or not percent.is_finite():
                logger.warning("Skipping coupon %r: invalid descuento", row.get("codigoCupon"))
                continue
            if not 0 <= percent <= 100:
                logger.warning("Skipping coupon %r: descuento %s out of range", row.get("codigoCupon"), percent)
                continue
            coupons.append(
                Coupon(
                    code=str(row.get("codigoCupon") or ""),
                    discount_percent=percent,
                    is_visible=bool(row.get("mostrarCupon", False)),
                )
            )
        return cls(coupons)

    def __len__(self) -> int:
        return len(self._coupons)

    def find(self, code: Optional[str]) -> Optional[Coupon]:
        return self._by_code.get(_normalize(code))

    def resolve(self, code: Optional[str]) -> Decimal:
        """Discount percent for `code`, 0 when nothing matches."""
        coupon = self.find(code)
        if coupon is None:
            if _normalize(code):
                logger.info('Coupon "%s" not found, no discount', code)
            return Decimal("0")
        return coupon.discount_percent

    def active_coupon(self) -> Optional[Coupon]:
        """The coupon the storefront advertises: first visible one."""
        return next((c for c in self._coupons if c.is_visible), None)
