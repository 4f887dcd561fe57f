# storefront/checkout.py
import logging
import re
from typing import Any, Dict, List, Mapping, Optional

from storefront.client import StorefrontAPIError, StorefrontClient, StorefrontConnectionError
from storefront.constants.order_status import PENDING_PAYMENT_METHOD, SHIPPING_OPTIONS
from storefront.payments.handoff import PaymentHandoff
from storefront.pricing import Totals, calculate_totals

logger = logging.getLogger(__name__)

BILLING_FIELDS = ("fullName", "email", "phone", "address", "city", "postalCode")

EMAIL_RE = re.compile(r"[\w\-.]+@([\w-]+\.)+[\w-]{2,4}", re.ASCII)
PHONE_RE = re.compile(r"\+?[\d\s-]{10,}", re.ASCII)
POSTAL_CODE_RE = re.compile(r"\d{5}(-\d{4})?", re.ASCII)


class EmptyCartError(Exception):
    pass


class CheckoutError(Exception):
    """Placing the order failed; the user is asked to try again."""


def validate_billing(form: Mapping[str, str]) -> Dict[str, str]:
    """Return field-level errors for the billing form; empty when valid."""
    errors = {}
    if not (form.get("fullName") or "").strip():
        errors["fullName"] = "Full name is required"
    if not EMAIL_RE.fullmatch(form.get("email") or ""):
        errors["email"] = "Valid email is required"
    if not PHONE_RE.fullmatch(form.get("phone") or ""):
        errors["phone"] = "Valid phone number is required"
    if not (form.get("address") or "").strip():
        errors["address"] = "Address is required"
    if not (form.get("city") or "").strip():
        errors["city"] = "City is required"
    if not POSTAL_CODE_RE.fullmatch(form.get("postalCode") or ""):
        errors["postalCode"] = "Valid postal code is required"
    return errors


def build_order_payload(
    form: Mapping[str, str],
    cart_items: List[Mapping[str, Any]],
    shipping_option: str,
    totals: Optional[Totals] = None,
) -> Dict[str, Any]:
    if totals is None:
        totals = calculate_totals(cart_items, shipping_option)

    payload = {field: form.get(field, "") for field in BILLING_FIELDS}
    payload.update({
        "shippingOption": shipping_option,
        "paymentMethod": PENDING_PAYMENT_METHOD,
        "cartItems": [dict(item) for item in cart_items],
    })
    payload.update(totals.as_dict())
    return payload


class Checkout:
    """
    The checkout page: billing form, cart summary and shipping choice.

    ``place_order`` validates locally, posts the order and hands back a
    payment handoff waiting on the confirmation modal.
    """

    def __init__(self, client: StorefrontClient, cart_items: Optional[List[Mapping[str, Any]]] = None):
        self.client = client
        self.cart_items = list(cart_items or [])
        self.form = {field: "" for field in BILLING_FIELDS}
        self.shipping_option = "standard"
        self.errors: Dict[str, str] = {}
        self.saved_order_id: Optional[str] = None

    def set_field(self, name: str, value: str):
        if name not in BILLING_FIELDS:
            raise KeyError(name)
        self.form[name] = value
        self.errors.pop(name, None)

    def select_shipping(self, option: str):
        if option not in SHIPPING_OPTIONS:
            raise ValueError(f"Unknown shipping option: {option!r}")
        self.shipping_option = option

    @property
    def totals(self) -> Totals:
        return calculate_totals(self.cart_items, self.shipping_option)

    def place_order(self) -> Optional[PaymentHandoff]:
        """Returns None when the form has errors (see ``self.errors``)."""
        if not self.cart_items:
            raise EmptyCartError("Your cart is empty. Add items to proceed to checkout.")

        errors = validate_billing(self.form)
        if errors:
            self.errors = errors
            return None

        payload = build_order_payload(self.form, self.cart_items, self.shipping_option, self.totals)
        try:
            order = self.client.create_order(payload)
        except (StorefrontAPIError, StorefrontConnectionError) as e:
            logger.error(f"Error placing order: {e}")
            raise CheckoutError("Failed to place order. Please try again.") from e

        self.saved_order_id = order["id"]
        handoff = PaymentHandoff(self.client, order["id"])
        handoff.confirm()
        return handoff
