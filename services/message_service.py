# tienda/services/message_service.py

from typing import List
from urllib.parse import quote

from domain.models import (
    CartLine,
    DeliveryDestination,
    PricingResult,
    ProvinciaDestination,
)
from utils.formatting import format_percent, format_soles
from utils.geo import is_valid_point


def _client_block(client_name: str, destination: DeliveryDestination) -> str:
    lines = [f"🙍🏻Cliente: {client_name}."]
    if isinstance(destination, ProvinciaDestination):
        lines += [
            f"🪪DNI: {destination.dni}.",
            f"📞Teléfono: {destination.phone}.",
            f"📍Departamento/Provincia: {destination.address}.",
            f"🚌Agencia: {destination.agency}.",
        ]
    else:
        lines.append(f"📍Dirección: {destination.address}.")
    return "\n".join(lines)


def _product_block(lines: List[CartLine]) -> str:
    parts = []
    for line in lines:
        size_info = f"\n↕️Talla: {line.size_label}." if line.size_label else ""
        parts.append(
            f"📌Producto: {line.name}.\n"
            f"#️⃣Cantidad: {line.quantity}.{size_info}\n"
            f"💲Precio: {format_soles(line.unit_price)}.\n"
        )
    return "\n".join(parts)


def _delivery_line(pricing: PricingResult) -> str:
    quote = pricing.delivery_quote
    if quote.paid_at_agency:
        return f"🏍️Recargo de agencia: Recargo según agencia (S/ {quote.advisory_range})"
    return f"🚚Delivery: {format_soles(pricing.delivery_fee)}"


def compose_confirmation_message(
        client_name: str,
        destination: DeliveryDestination,
        lines: List[CartLine],
        pricing: PricingResult,
) -> str:
    """
    Plain-text order summary sent to the support chat.
    The total printed here is `pricing.total`, nothing is recomputed.
    """
    blocks = [
        _client_block(client_name, destination),
        _product_block(lines),
        _delivery_line(pricing),
    ]

    if pricing.discount_percent > 0:
        blocks.append(
            f"🏷️Descuento: {format_percent(pricing.discount_percent)}% "
            f"(-{format_soles(pricing.discount_amount)})"
        )
    blocks.append(f"💰Subtotal: {format_soles(pricing.subtotal)}")
    blocks.append(f"✅TOTAL: {format_soles(pricing.total)}")

    location = getattr(destination, "location", None)
    if is_valid_point(location):
        blocks.append(
            f"📍Ubicación: http://maps.google.com/?q={location.lat},{location.lng}&z=17&hl=es"
        )

    return "\n".join(blocks) + "\n"


def build_whatsapp_link(phone: str, message: str, country_code: str = "51") -> str:
    digits = "".join(ch for ch in str(phone) if ch.isdigit())
    return f"https://wa.me/+{country_code}{digits}?text={quote(message, safe='')}"
