from decimal import Decimal

import pytest

from domain.models import LIMA_METROPOLITANA, PROVINCIA
from services.delivery_fee_service import (
    FeeSettings,
    clamp_fee,
    raw_fee_for_distance,
    resolve_delivery_fee,
)


class TestRawFee:
    @pytest.mark.parametrize(
        "distance,expected",
        [
            (0.0, Decimal("0")),
            (5.0, Decimal("6")),       # 5.0 * 1.2 = 6
            (5.01, Decimal("7")),      # 5.1 * 1.2 = 6.12 -> 7
            (8.33, Decimal("11")),     # 8.4 * 1.2 = 10.08 -> 11
            (10.0, Decimal("12")),
        ],
    )
    def test_rounds_distance_then_fee_up(self, distance, expected):
        assert raw_fee_for_distance(distance) == expected

    @pytest.mark.parametrize("distance", [-1.0, float("nan"), None])
    def test_rejects_invalid_distance(self, distance):
        with pytest.raises(ValueError):
            raw_fee_for_distance(distance)


class TestClamp:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            (Decimal("3"), Decimal("10")),
            (Decimal("12"), Decimal("12")),
            (Decimal("40"), Decimal("15")),
        ],
    )
    def test_clamped_to_bounds(self, raw, expected, fee_settings):
        assert clamp_fee(raw, fee_settings) == expected


class TestResolveDeliveryFee:
    def test_lima_with_distance(self, fee_settings):
        quote = resolve_delivery_fee(LIMA_METROPOLITANA, Decimal("100"), fee_settings, distance_km=10.0)
        assert quote.fee == Decimal("12")
        assert quote.available
        assert not quote.paid_at_agency

    def test_lima_with_raw_fee(self, fee_settings):
        quote = resolve_delivery_fee(LIMA_METROPOLITANA, Decimal("100"), fee_settings, raw_fee=Decimal("30"))
        assert quote.fee == Decimal("15")

    def test_free_above_threshold(self, fee_settings):
        quote = resolve_delivery_fee(LIMA_METROPOLITANA, Decimal("150.01"), fee_settings, distance_km=10.0)
        assert quote.fee == 0
        assert quote.available

    def test_threshold_is_strict(self, fee_settings):
        quote = resolve_delivery_fee(LIMA_METROPOLITANA, Decimal("150"), fee_settings, distance_km=10.0)
        assert quote.fee == Decimal("12")

    def test_free_delivery_needs_no_pin(self, fee_settings):
        quote = resolve_delivery_fee(LIMA_METROPOLITANA, Decimal("200"), fee_settings)
        assert quote.fee == 0
        assert quote.available

    def test_lima_without_pin_is_unavailable(self, fee_settings):
        quote = resolve_delivery_fee(LIMA_METROPOLITANA, Decimal("50"), fee_settings)
        assert quote.fee == 0
        assert not quote.available

    def test_provincia_paid_at_agency(self, fee_settings):
        quote = resolve_delivery_fee(PROVINCIA, Decimal("50"), fee_settings, distance_km=500.0)
        assert quote.fee == 0
        assert quote.paid_at_agency
        assert quote.advisory_range == "10.00 - 15.00"

    def test_unknown_region(self, fee_settings):
        with pytest.raises(ValueError):
            resolve_delivery_fee("callao", Decimal("50"), fee_settings)


class TestFeeSettings:
    def test_defaults(self):
        settings = FeeSettings()
        assert settings.min_fee == Decimal("10")
        assert settings.max_fee == Decimal("15")

    def test_max_below_min_rejected(self):
        with pytest.raises(ValueError):
            FeeSettings(min_fee=Decimal("20"), max_fee=Decimal("10"))

    def test_from_settings(self):
        settings = FeeSettings.from_settings({"minimoDelivery": "7", "maximoDelivery": "20"})
        assert settings.min_fee == Decimal("7")
        assert settings.max_fee == Decimal("20")
        assert settings.advisory_range == "7.00 - 20.00"

    @pytest.mark.parametrize(
        "raw",
        [
            {},
            {"minimoDelivery": "0", "maximoDelivery": ""},
            {"minimoDelivery": "abc", "maximoDelivery": "xyz"},
            {"minimoDelivery": "NaN", "maximoDelivery": "Infinity"},
            {"minimoDelivery": "30", "maximoDelivery": "20"},
        ],
    )
    def test_from_settings_falls_back(self, raw):
        assert FeeSettings.from_settings(raw) == FeeSettings()
