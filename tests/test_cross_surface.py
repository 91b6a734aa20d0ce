"""The confirmation message, the stored order and the invoices show one total."""

import io
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from docx import Document

from domain.models import Coupon, GeoPoint, LimaDestination
from services.checkout_service import CheckoutSession
from services.coupon_service import CouponRegistry
from services.doc_service import generate_invoice_doc
from services.invoice_service import invoice_docx_bytes, invoice_totals
from services.order_service import order_from_row, order_total, payload_total
from services.pricing_service import RoundingPolicy
from utils.formatting import format_soles, round_money


def insert_echo(payload):
    row = dict(payload, id=99, status="pendiente", createdAt="2025-03-01T15:00:00Z")
    row["orderItems"] = payload["products"]
    return True, "Orden creada", row


@pytest.mark.parametrize("policy", [RoundingPolicy.HALF_UP_CENT, RoundingPolicy.FLOOR_TENTH])
@pytest.mark.parametrize(
    "items,coupon",
    [
        ([("33.33", 3)], "VERANO15"),
        ([("49.99", 1), ("12.45", 2)], "secreto10"),
        ([("80", 2)], ""),
    ],
)
def test_every_surface_agrees(customer, registry, fee_settings, policy, items, coupon):
    session = CheckoutSession(customer, registry, fee_settings, policy)
    for product_id, (price, qty) in enumerate(items, start=1):
        session.cart.add(product_id, f"Producto {product_id}", price, qty)
    session.apply_coupon(coupon)
    session.set_destination(LimaDestination(address="Av. Arequipa 2000", location=GeoPoint(-12.09, -77.03)))

    pricing = session.price()
    message = session.confirmation_message()
    payload = session.order_payload()
    ok, _, order = session.submit(insert_echo)
    assert ok

    stored = order_from_row(insert_echo(payload)[2])
    assert stored.discount == pricing.discount_percent

    assert f"✅TOTAL: {format_soles(pricing.total)}" in message
    assert payload_total(payload, policy) == pricing.total
    assert order_total(order, policy) == pricing.total
    assert invoice_totals(order, policy).total == pricing.total

    doc = Document(io.BytesIO(invoice_docx_bytes(order, policy)))
    cells = [[c.text for c in row.cells] for table in doc.tables for row in table.rows]
    assert ["TOTAL:", format_soles(pricing.total)] in cells

    docs, drive = MagicMock(), MagicMock()
    drive.files().copy().execute.return_value = {"id": "d"}
    docs.documents().get().execute.return_value = {"body": {"content": []}}
    generate_invoice_doc(docs, drive, "t", "f", order, policy)
    requests_sent = docs.documents().batchUpdate.call_args_list[0].kwargs["body"]["requests"]
    total_text = next(
        r["replaceAllText"]["replaceText"]
        for r in requests_sent
        if r["replaceAllText"]["containsText"]["text"] == "{{total}}"
    )
    assert total_text == format_soles(pricing.total)


def test_provincia_persists_zero_delivery(customer, registry, fee_settings, provincia):
    session = CheckoutSession(customer, registry, fee_settings)
    session.cart.add(1, "Polo", "60", 1)
    session.set_destination(provincia)
    ok, _, order = session.submit(insert_echo)
    assert ok
    assert order.delivery_cost == 0
    assert order.agency == "Shalom"
    assert order_total(order) == Decimal("60.00")


def test_sub_cent_prices_agree(customer, fee_settings):
    registry = CouponRegistry([Coupon(code="MITAD", discount_percent=Decimal("50"))])
    session = CheckoutSession(customer, registry, fee_settings)
    session.cart.add(1, "Llavero", "10.005", 1)
    session.apply_coupon("MITAD")
    session.set_destination(LimaDestination(address="Av. Arequipa 2000", location=GeoPoint(-12.09, -77.03)))

    pricing = session.price()
    payload = session.order_payload()
    ok, _, order = session.submit(insert_echo)
    assert ok

    assert pricing.subtotal == Decimal("10.01")
    assert pricing.total == round_money(pricing.subtotal - pricing.discount_amount + pricing.delivery_fee)
    assert payload_total(payload) == pricing.total
    assert order_total(order) == pricing.total
    assert invoice_totals(order).total == pricing.total
