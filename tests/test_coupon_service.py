from decimal import Decimal

import pytest

from domain.models import Coupon
from services.coupon_service import CouponRegistry


class TestResolve:
    @pytest.mark.parametrize("code", ["VERANO15", "verano15", "  Verano15 "])
    def test_case_insensitive_and_trimmed(self, registry, code):
        assert registry.resolve(code) == Decimal("15")

    @pytest.mark.parametrize("code", ["", None, "NOEXISTE"])
    def test_no_match_is_zero(self, registry, code):
        assert registry.resolve(code) == 0

    def test_hidden_coupon_still_applies(self, registry):
        assert registry.resolve("secreto10") == Decimal("10")


class TestRegistry:
    def test_duplicates_keep_first(self):
        registry = CouponRegistry(
            [
                Coupon(code="PROMO", discount_percent=Decimal("5")),
                Coupon(code="promo", discount_percent=Decimal("50")),
            ]
        )
        assert len(registry) == 1
        assert registry.resolve("PROMO") == Decimal("5")

    def test_from_config_skips_bad_rows(self):
        registry = CouponRegistry.from_config(
            [
                {"codigoCupon": "OK", "descuento": 20, "mostrarCupon": True},
                {"codigoCupon": "TOOMUCH", "descuento": 150},
                {"codigoCupon": "NEG", "descuento": -5},
                {"codigoCupon": "TEXT", "descuento": "diez"},
                {"codigoCupon": "NAN", "descuento": "NaN"},
                {"codigoCupon": "INF", "descuento": "Infinity"},
                {"codigoCupon": "", "descuento": 10},
            ]
        )
        assert len(registry) == 1
        assert registry.find("ok").discount_percent == Decimal("20")

    def test_active_coupon_is_first_visible(self, registry):
        assert registry.active_coupon().code == "VERANO15"

    def test_no_visible_coupon(self):
        registry = CouponRegistry.from_config([{"codigoCupon": "X", "descuento": 5, "mostrarCupon": False}])
        assert registry.active_coupon() is None

    def test_empty_registry(self):
        registry = CouponRegistry.from_config(None)
        assert len(registry) == 0
        assert registry.resolve("VERANO15") == 0
