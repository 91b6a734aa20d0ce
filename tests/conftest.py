from decimal import Decimal

import pytest

from domain.models import CartLine, Customer, GeoPoint, LimaDestination, Order, OrderLine, ProvinciaDestination
from services.coupon_service import CouponRegistry
from services.delivery_fee_service import FeeSettings


@pytest.fixture
def fee_settings():
    return FeeSettings()


@pytest.fixture
def registry():
    return CouponRegistry.from_config(
        [
            {"codigoCupon": "VERANO15", "descuento": 15, "mostrarCupon": True},
            {"codigoCupon": "SECRETO10", "descuento": "10", "mostrarCupon": False},
        ]
    )


@pytest.fixture
def customer():
    return Customer(name="Ana Torres", email="ana@example.com")


@pytest.fixture
def lines():
    return [
        CartLine(product_id=1, name="Polo básico", unit_price=Decimal("40"), quantity=2, size_label="M"),
        CartLine(product_id=2, name="Gorra", unit_price=Decimal("20"), quantity=1),
    ]


@pytest.fixture
def lima_pin():
    # a few km from the store
    return LimaDestination(address="Av. Universitaria 1234", location=GeoPoint(lat=-12.03, lng=-77.06))


@pytest.fixture
def provincia():
    return ProvinciaDestination(address="Arequipa", agency="Shalom", dni="12345678", phone="987654321")


@pytest.fixture
def make_order():
    def _make(**overrides):
        fields = dict(
            order_id=42,
            client_name="Ana Torres",
            location_to_send="lima_metropolitana",
            address="Av. Universitaria 1234",
            total_price=Decimal("100"),
            delivery_cost=Decimal("10"),
            discount=Decimal("15"),
            total_products=3,
            lines=[
                OrderLine(1, "Polo básico", 2, Decimal("40"), Decimal("80"), "M"),
                OrderLine(2, "Gorra", 1, Decimal("20"), Decimal("20")),
            ],
            created_at="2025-03-01T15:00:00Z",
        )
        fields.update(overrides)
        return Order(**fields)

    return _make
