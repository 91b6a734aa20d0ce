# tienda/services/cart_service.py

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from domain.models import CartLine
from utils.formatting import format_soles, to_decimal


@dataclass
class CartItemDisplay:
    """
    One row of the cart as shown to the customer.
    """
    index: int  # 1-based
    name: str
    size: str
    quantity: int
    unit_price_display: str
    line_total: Decimal
    line_total_display: str


@dataclass
class CartSummary:
    subtotal: Decimal
    total_products: int
    items: List[CartItemDisplay]


class Cart:
    """
    The live cart of one checkout session. Lines are replaced, never edited
    in place; repeated (product, size) pairs are merged.
    """

    def __init__(self):
        self._lines: List[CartLine] = []

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines)

    def is_empty(self) -> bool:
        return not self._lines

    def add(
            self,
            product_id: int,
            name: str,
            unit_price,
            quantity: int = 1,
            size_label: Optional[str] = None,
    ) -> CartLine:
        _check_quantity(quantity)
        price = to_decimal(unit_price)
        if price < 0:
            raise ValueError(f"unit price must not be negative, got {price}")

        for i, line in enumerate(self._lines):
            if line.product_id == product_id and line.size_label == size_label:
                merged = CartLine(
                    product_id=product_id,
                    name=line.name,
                    unit_price=line.unit_price,
                    quantity=line.quantity + quantity,
                    size_label=size_label,
                )
                self._lines[i] = merged
                return merged

        line = CartLine(
            product_id=product_id,
            name=name,
            unit_price=price,
            quantity=quantity,
            size_label=size_label,
        )
        self._lines.append(line)
        return line

    def set_quantity(self, product_id: int, quantity: int, size_label: Optional[str] = None) -> None:
        _check_quantity(quantity)
        for i, line in enumerate(self._lines):
            if line.product_id == product_id and line.size_label == size_label:
                self._lines[i] = CartLine(
                    product_id=line.product_id,
                    name=line.name,
                    unit_price=line.unit_price,
                    quantity=quantity,
                    size_label=line.size_label,
                )
                return
        raise KeyError(f"product {product_id} ({size_label or '-'}) is not in the cart")

    def remove(self, product_id: int, size_label: Optional[str] = None) -> None:
        self._lines = [
            ln for ln in self._lines
            if not (ln.product_id == product_id and ln.size_label == size_label)
        ]

    def clear(self) -> None:
        self._lines = []


def _check_quantity(quantity) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValueError(f"quantity must be a positive integer, got {quantity!r}")


def summarize_cart(lines: List[CartLine]) -> CartSummary:
    """Reduce cart lines to a subtotal plus display rows."""
    items: List[CartItemDisplay] = []
    subtotal = Decimal("0")
    total_products = 0

    for idx, line in enumerate(lines, start=1):
        line_total = line.line_total
        subtotal += line_total
        total_products += line.quantity
        items.append(
            CartItemDisplay(
                index=idx,
                name=line.name,
                size=line.size_label or "-",
                quantity=line.quantity,
                unit_price_display=format_soles(line.unit_price),
                line_total=line_total,
                line_total_display=format_soles(line_total),
            )
        )

    return CartSummary(subtotal=subtotal, total_products=total_products, items=items)
