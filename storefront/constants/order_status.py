from enum import Enum


class ShippingOption(str, Enum):
    standard = "standard"
    express = "express"


SHIPPING_OPTIONS = tuple(option.value for option in ShippingOption)

PENDING_PAYMENT_METHOD = "pending"

# Payment handoff states, as driven by the storefront client
CREATED = "created"
CONFIRMED = "confirmed"
CANCELLED = "cancelled"
PAY_NOW = "pay_now"
PROVIDER_CHECKOUT_OPEN = "provider_checkout_open"
SUCCEEDED = "succeeded"
CLOSED = "closed"

ALLOWED_TRANSITIONS = {
    CREATED: [CONFIRMED],
    CONFIRMED: [PAY_NOW, CANCELLED],
    CANCELLED: [],
    PAY_NOW: [PROVIDER_CHECKOUT_OPEN],
    PROVIDER_CHECKOUT_OPEN: [SUCCEEDED, CLOSED],
    CLOSED: [PROVIDER_CHECKOUT_OPEN],
    SUCCEEDED: [],
}
