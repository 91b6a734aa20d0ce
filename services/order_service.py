# tienda/services/order_service.py

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from domain.models import (
    CartLine,
    Customer,
    DeliveryDestination,
    GeoPoint,
    LimaDestination,
    Order,
    OrderLine,
    PricingResult,
    ProvinciaDestination,
)
from services.pricing_service import RoundingPolicy, recompute_total
from utils.formatting import to_decimal

logger = logging.getLogger(__name__)


def _money(value: Decimal) -> float:
    # JSON columns are numeric; 2 decimals survive a float round-trip
    return float(to_decimal(value))


def build_order_payload(
        customer: Customer,
        client_name: str,
        destination: DeliveryDestination,
        lines: List[CartLine],
        pricing: PricingResult,
) -> Dict[str, Any]:
    """
    Build the order submission payload.

    `discount` is the coupon percent and `deliveryCost` the resolved fee;
    the total itself is not stored, readers rebuild it from
    totalPrice/deliveryCost/discount.
    """
    payload: Dict[str, Any] = {
        "clientName": client_name,
        "email": customer.email,
        "locationToSend": destination.region,
        "address": destination.address,
        "agencia": "",
        "dni": "",
        "clientPhone": "",
        "getlocation": {"lat": 0, "lng": 0},
        "products": [
            {
                "productoId": line.product_id,
                "quantity": line.quantity,
                "unitPrice": _money(line.unit_price),
                "totalPrice": _money(line.line_total),
            }
            for line in lines
        ],
        "totalPrice": _money(pricing.subtotal),
        "totalProducts": sum(line.quantity for line in lines),
        "discount": _money(pricing.discount_percent),
        "deliveryCost": _money(pricing.delivery_fee),
    }

    if isinstance(destination, ProvinciaDestination):
        payload["agencia"] = destination.agency
        payload["dni"] = destination.dni
        payload["clientPhone"] = destination.phone
    elif isinstance(destination, LimaDestination) and destination.location is not None:
        payload["getlocation"] = {"lat": destination.location.lat, "lng": destination.location.lng}

    return payload


def order_from_row(row: Dict[str, Any]) -> Order:
    """
    Build an Order from a stored row. Expected shape:
      {
        "id": int,
        "clientName": str,
        "locationToSend": str,
        "address": str,
        "totalPrice": number | str,
        "deliveryCost": number | str | None,
        "discount": number | str | None,
        "totalProducts": int,
        "orderItems": [
          {"productoId": int, "quantity": int, "unitPrice": ..., "totalPrice": ...,
           "producto": {"name": str, "price": ...}},
        ],
        ...
      }
    """
    lines: List[OrderLine] = []
    for item in row.get("orderItems") or []:
        producto = item.get("producto") or {}
        unit_price = to_decimal(item.get("unitPrice", producto.get("price")))
        quantity = int(item.get("quantity") or 0)
        lines.append(
            OrderLine(
                product_id=int(item.get("productoId") or producto.get("id") or 0),
                name=producto.get("name", ""),
                quantity=quantity,
                unit_price=unit_price,
                total_price=to_decimal(item.get("totalPrice", unit_price * quantity)),
                size_label=item.get("size") or None,
            )
        )

    location = None
    raw_location = row.get("getlocation") or {}
    if raw_location.get("lat") or raw_location.get("lng"):
        location = GeoPoint(lat=float(raw_location["lat"]), lng=float(raw_location["lng"]))

    return Order(
        order_id=row.get("id"),
        client_name=row.get("clientName", ""),
        location_to_send=row.get("locationToSend", ""),
        address=row.get("address", ""),
        total_price=to_decimal(row.get("totalPrice")),
        delivery_cost=to_decimal(row.get("deliveryCost")),
        discount=to_decimal(row.get("discount")),
        total_products=int(row.get("totalProducts") or sum(ln.quantity for ln in lines)),
        lines=lines,
        email=row.get("email"),
        agency=row.get("agencia") or None,
        dni=row.get("dni") or None,
        client_phone=row.get("clientPhone") or None,
        location=location,
        created_at=row.get("createdAt"),
        status=row.get("status") or "pendiente",
    )


def order_total(order: Order, policy: RoundingPolicy = RoundingPolicy.HALF_UP_CENT) -> Decimal:
    """Total derived from the stored subtotal, delivery cost and percent."""
    return recompute_total(order.total_price, order.discount, order.delivery_cost, policy)


def payload_total(payload: Dict[str, Any], policy: RoundingPolicy = RoundingPolicy.HALF_UP_CENT) -> Decimal:
    return recompute_total(
        to_decimal(payload.get("totalPrice")),
        to_decimal(payload.get("discount")),
        to_decimal(payload.get("deliveryCost")),
        policy,
    )


def submit_order(payload: Dict[str, Any], insert_fn) -> tuple[bool, str, Optional[Order]]:
    """
    Persist the payload through `insert_fn` (data_integrator.insert_order).
    Returns (ok, message, order); failures are retryable.
    """
    ok, msg, row = insert_fn(payload)
    if not ok:
        logger.error("Order submission failed: %s", msg)
        return False, msg, None

    order = order_from_row(row) if row else None
    logger.info("Order %s created", order.order_id if order else "?")
    return True, msg, order
