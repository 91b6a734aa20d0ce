from decimal import Decimal

import pytest

from domain.models import LIMA_METROPOLITANA, PROVINCIA, CartLine, LimaDestination, ProvinciaDestination
from utils.formatting import format_amount, format_percent, format_soles, round_money, to_decimal


class TestDestinations:
    def test_regions(self, provincia):
        assert LimaDestination(address="x").region == LIMA_METROPOLITANA
        assert provincia.region == PROVINCIA

    @pytest.mark.parametrize(
        "agency,dni,phone",
        [
            ("", "12345678", "987654321"),
            ("Shalom", "1234567", "987654321"),
            ("Shalom", "12345678", "98765"),
        ],
    )
    def test_provincia_requires_contact_fields(self, agency, dni, phone):
        with pytest.raises(ValueError):
            ProvinciaDestination(address="Cusco", agency=agency, dni=dni, phone=phone)

    def test_line_total(self):
        assert CartLine(1, "Polo", Decimal("39.90"), 3).line_total == Decimal("119.70")


class TestFormatting:
    @pytest.mark.parametrize(
        "amount,expected",
        [
            (Decimal("2.345"), Decimal("2.35")),
            (Decimal("2.344"), Decimal("2.34")),
            (Decimal("-2.345"), Decimal("-2.35")),
        ],
    )
    def test_round_money_half_up(self, amount, expected):
        assert round_money(amount) == expected

    def test_to_decimal(self):
        assert to_decimal(None) == 0
        assert to_decimal("") == 0
        assert to_decimal(0.1) == Decimal("0.1")
        assert to_decimal("12.50") == Decimal("12.50")

    def test_amounts(self):
        assert format_amount(Decimal("1234.5")) == "1,234.50"
        assert format_soles(Decimal("0")) == "S/ 0.00"

    @pytest.mark.parametrize("pct,expected", [(Decimal("15.00"), "15"), (Decimal("12.5"), "12.5"), (10, "10")])
    def test_percent(self, pct, expected):
        assert format_percent(pct) == expected
