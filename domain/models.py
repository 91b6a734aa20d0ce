# tienda/domain/models.py

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Union

LIMA_METROPOLITANA = "lima_metropolitana"
PROVINCIA = "provincia"

MIN_DNI_LENGTH = 8
MIN_PHONE_LENGTH = 7


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float


@dataclass(frozen=True)
class CartLine:
    """
    One product row captured from the cart.
    """
    product_id: int
    name: str
    unit_price: Decimal
    quantity: int
    size_label: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Coupon:
    code: str
    discount_percent: Decimal
    is_visible: bool = True  # only drives what the UI advertises


@dataclass(frozen=True)
class LimaDestination:
    """
    Delivery by the shop's own courier. `location` stays None until the
    customer drops a pin on the map.
    """
    address: str
    location: Optional[GeoPoint] = None

    @property
    def region(self) -> str:
        return LIMA_METROPOLITANA


@dataclass(frozen=True)
class ProvinciaDestination:
    """
    Shipping through a third-party agency outside Lima.
    """
    address: str  # department / province
    agency: str
    dni: str
    phone: str

    def __post_init__(self):
        if not self.agency:
            raise ValueError("agency is required for provincia deliveries")
        if len(self.dni.strip()) < MIN_DNI_LENGTH:
            raise ValueError(f"dni must have at least {MIN_DNI_LENGTH} digits")
        if len(self.phone.strip()) < MIN_PHONE_LENGTH:
            raise ValueError(f"phone must have at least {MIN_PHONE_LENGTH} digits")

    @property
    def region(self) -> str:
        return PROVINCIA


DeliveryDestination = Union[LimaDestination, ProvinciaDestination]


@dataclass(frozen=True)
class DeliveryQuote:
    region: str
    fee: Decimal
    available: bool = True  # False: Lima order without a map pin
    paid_at_agency: bool = False
    advisory_range: Optional[str] = None  # e.g. "10.00 - 15.00"


@dataclass(frozen=True)
class PricingResult:
    subtotal: Decimal
    discount_percent: Decimal
    discount_amount: Decimal  # currency value derived from discount_percent
    delivery_fee: Decimal
    total: Decimal
    delivery_quote: DeliveryQuote


@dataclass
class Customer:
    name: str
    email: str


@dataclass
class OrderLine:
    product_id: int
    name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    size_label: Optional[str] = None


@dataclass
class Order:
    """
    A persisted order. `discount` is the percent that was applied, not the
    amount; surfaces recompute the amount from it and `total_price`.
    """
    order_id: Optional[int]
    client_name: str
    location_to_send: str
    address: str
    total_price: Decimal  # subtotal
    delivery_cost: Decimal
    discount: Decimal  # percent
    total_products: int
    lines: List[OrderLine] = field(default_factory=list)
    email: Optional[str] = None
    agency: Optional[str] = None
    dni: Optional[str] = None
    client_phone: Optional[str] = None
    location: Optional[GeoPoint] = None
    created_at: Optional[str] = None
    status: str = "pendiente"
