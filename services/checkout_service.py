# tienda/services/checkout_service.py

import logging
from decimal import Decimal
from typing import Any, Callable, Dict, Optional, Tuple

from domain.models import (
    Customer,
    DeliveryDestination,
    LimaDestination,
    Order,
    PricingResult,
    ProvinciaDestination,
)
from services.cart_service import Cart, CartSummary, summarize_cart
from services.coupon_service import CouponRegistry
from services.delivery_fee_service import FeeSettings
from services.message_service import build_whatsapp_link, compose_confirmation_message
from services.order_service import build_order_payload, submit_order
from services.pricing_service import RoundingPolicy, price_destination

logger = logging.getLogger(__name__)

MIN_ADDRESS_LENGTH = 3


class CheckoutSession:
    """
    One customer's checkout: cart + coupon + destination -> PricingResult,
    then message, payload and submission. The PricingResult is kept after a
    failed submission so the customer can retry as is.
    """

    def __init__(
            self,
            customer: Customer,
            registry: CouponRegistry,
            fee_settings: FeeSettings,
            policy: RoundingPolicy = RoundingPolicy.HALF_UP_CENT,
            cart: Optional[Cart] = None,
    ):
        self.customer = customer
        self.client_name = customer.name
        self.registry = registry
        self.fee_settings = fee_settings
        self.policy = policy
        self.cart = cart or Cart()
        self.coupon_code: str = ""
        self.destination: Optional[DeliveryDestination] = None
        self.pricing: Optional[PricingResult] = None
        self._pricing_key = None
        self.submitted_order: Optional[Order] = None
        self.last_error: Optional[str] = None

    # ----- inputs -----

    def apply_coupon(self, code: str) -> Decimal:
        self.coupon_code = code or ""
        return self.registry.resolve(self.coupon_code)

    def set_destination(self, destination: DeliveryDestination) -> None:
        self.destination = destination

    def update_config(self, registry: CouponRegistry, fee_settings: FeeSettings) -> None:
        self.registry = registry
        self.fee_settings = fee_settings

    # ----- pricing -----

    def summary(self) -> CartSummary:
        return summarize_cart(self.cart.lines)

    def price(self) -> PricingResult:
        """
        Compute the PricingResult, reusing the last one while none of its
        inputs changed. A session without a destination is priced as a Lima
        order without a pin.
        """
        discount_percent = self.registry.resolve(self.coupon_code)
        key = (tuple(self.cart.lines), discount_percent, self.destination, self.fee_settings, self.policy)
        if self.pricing is not None and key == self._pricing_key:
            return self.pricing

        destination = self.destination or LimaDestination(address="")
        self.pricing = price_destination(
            self.summary().subtotal,
            discount_percent,
            destination,
            self.fee_settings,
            self.policy,
        )
        self._pricing_key = key
        return self.pricing

    def validate(self) -> Tuple[bool, str]:
        destination = self.destination
        if not self.client_name.strip() or destination is None or len(destination.address) < MIN_ADDRESS_LENGTH:
            return False, "Completa tu nombre y dirección"

        if self.cart.is_empty():
            return False, "El carrito está vacío"

        if isinstance(destination, ProvinciaDestination):
            # agency/DNI/phone are checked when the destination is built
            return True, ""

        if not self.price().delivery_quote.available:
            return False, "Marca tu ubicación en el mapa"

        return True, ""

    # ----- outputs -----

    def confirmation_message(self) -> str:
        return compose_confirmation_message(
            self.client_name,
            self.destination,
            self.cart.lines,
            self.price(),
        )

    def whatsapp_link(self, phone: str) -> str:
        return build_whatsapp_link(phone, self.confirmation_message())

    def order_payload(self) -> Dict[str, Any]:
        return build_order_payload(
            self.customer,
            self.client_name,
            self.destination,
            self.cart.lines,
            self.price(),
        )

    def submit(self, insert_fn: Callable) -> Tuple[bool, str, Optional[Order]]:
        ok, msg = self.validate()
        if not ok:
            return False, msg, None

        logger.info("Submitting order for %s, total %s", self.customer.email, self.price().total)
        ok, msg, order = submit_order(self.order_payload(), insert_fn)
        if not ok:
            self.last_error = msg
            logger.warning("Keeping pricing for retry after failed submission")
            return False, msg, None

        self.last_error = None
        self.submitted_order = order
        return True, msg, order

    def reset(self) -> None:
        """Clear the cart after a successful order."""
        self.cart.clear()
        self.coupon_code = ""
        self.pricing = None
