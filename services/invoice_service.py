# tienda/services/invoice_service.py

import io
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import List, Optional

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt

from domain.models import Order
from services.pricing_service import RoundingPolicy, discount_amount_for, recompute_total
from utils.docx_helpers import add_table_row, set_cell_text
from utils.formatting import format_percent, format_soles

logger = logging.getLogger(__name__)

SHOP_INFO = [
    "TU EMPRESA S.A.C.",
    "RUC: 20123456789",
    "Dirección: Av. Principal 123, Lima",
    "Teléfono: (01) 234-5678",
]
FOOTER_LINES = [
    "Gracias por su compra",
    "Este documento es un comprobante de pedido",
    "Para consultas contactar a: contacto@tuempresa.com",
]


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    delivery: Decimal
    discount_percent: Decimal
    discount_amount: Decimal
    total: Decimal


def invoice_totals(order: Order, policy: RoundingPolicy = RoundingPolicy.HALF_UP_CENT) -> InvoiceTotals:
    """
    Rebuild the totals from the stored subtotal, delivery cost and discount
    percent. There is no stored total to read.
    """
    return InvoiceTotals(
        subtotal=order.total_price,
        delivery=order.delivery_cost,
        discount_percent=order.discount,
        discount_amount=discount_amount_for(order.total_price, order.discount),
        total=recompute_total(order.total_price, order.discount, order.delivery_cost, policy),
    )


def totals_rows(totals: InvoiceTotals) -> List[List[str]]:
    """[label, amount] rows shared by both invoice formats."""
    rows = [["SUBTOTAL:", format_soles(totals.subtotal)]]
    if totals.delivery > 0:
        rows.append(["ENVÍO:", format_soles(totals.delivery)])
    if totals.discount_percent > 0:
        rows.append(
            [f"DESCUENTO ({format_percent(totals.discount_percent)}%):", f"-{format_soles(totals.discount_amount)}"]
        )
    rows.append(["TOTAL:", format_soles(totals.total)])
    return rows


def _format_date(created_at: Optional[str]) -> str:
    if not created_at:
        return datetime.now().strftime("%d/%m/%Y")
    try:
        return datetime.fromisoformat(created_at.replace("Z", "+00:00")).strftime("%d/%m/%Y")
    except ValueError:
        return created_at


def customer_rows(order: Order) -> List[str]:
    rows = [
        f"Pedido #: {order.order_id}",
        f"Fecha: {_format_date(order.created_at)}",
        f"Cliente: {order.client_name}",
    ]
    if order.dni:
        rows.append(f"DNI: {order.dni}")
    if order.client_phone:
        rows.append(f"Teléfono: {order.client_phone}")
    if order.address:
        rows.append(f"Dirección: {order.address}")
    if order.agency:
        rows.append(f"Agencia: {order.agency}")
    return rows


def build_invoice_document(order: Order, policy: RoundingPolicy = RoundingPolicy.HALF_UP_CENT) -> Document:
    doc = Document()

    title = doc.add_heading("COMPROBANTE DE PEDIDO", level=1)
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER

    for line in SHOP_INFO:
        p = doc.add_paragraph(line)
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        p.runs[0].font.size = Pt(9)

    for line in customer_rows(order):
        doc.add_paragraph(line)

    # Products
    items = doc.add_table(rows=1, cols=4)
    items.style = "Table Grid"
    for cell, header in zip(items.rows[0].cells, ["Producto", "Precio", "Cant.", "Total"]):
        set_cell_text(cell, header, bold=True)

    for line in order.lines:
        name = f"{line.name} ({line.size_label})" if line.size_label else line.name
        add_table_row(
            items,
            [name, format_soles(line.unit_price), str(line.quantity), format_soles(line.total_price)],
        )

    doc.add_paragraph()

    # Totals
    totals = doc.add_table(rows=0, cols=2)
    rows = totals_rows(invoice_totals(order, policy))
    for i, row in enumerate(rows):
        add_table_row(totals, row, bold=(i == len(rows) - 1))

    for line in FOOTER_LINES:
        p = doc.add_paragraph(line)
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        p.runs[0].font.size = Pt(8)

    return doc


def invoice_filename(order: Order) -> str:
    return f"pedido-{order.order_id}.docx"


def create_invoice_docx(
        order: Order,
        output_dir: Path,
        policy: RoundingPolicy = RoundingPolicy.HALF_UP_CENT,
) -> str:
    """
    Write the invoice to `output_dir` and return the absolute path.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / invoice_filename(order)

    build_invoice_document(order, policy).save(str(output_path))
    logger.info("Invoice for order %s written to %s", order.order_id, output_path)
    return str(output_path.resolve())


def invoice_docx_bytes(order: Order, policy: RoundingPolicy = RoundingPolicy.HALF_UP_CENT) -> bytes:
    """In-memory variant for download buttons."""
    buf = io.BytesIO()
    build_invoice_document(order, policy).save(buf)
    return buf.getvalue()

