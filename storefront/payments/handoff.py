"""
Payment handoff: the browser-side flow from a placed order to a paid one.

    created -> confirmed -> pay_now -> provider_checkout_open -> succeeded
    confirmed -> cancelled
    provider_checkout_open -> closed -> provider_checkout_open (retry)

Cancelling leaves the order unpaid; it is not cleaned up.
"""
import logging
from typing import Any, Dict, Optional

from storefront.client import StorefrontAPIError, StorefrontClient, StorefrontConnectionError
from storefront.constants import order_status as states
from storefront.payments.chapa import PROVIDER_NAME, ChapaGateway, chapa_gateway

logger = logging.getLogger(__name__)


class InvalidTransition(Exception):
    pass


class OrderUnavailable(Exception):
    """The order could not be loaded for the pay-now or success page."""


class PaymentNotRecorded(Exception):
    """The provider reported success but the API refused to mark the order paid."""


class PaymentHandoff:
    def __init__(
        self,
        client: StorefrontClient,
        order_id: str,
        gateway: Optional[ChapaGateway] = None,
    ):
        self.client = client
        self.order_id = order_id
        self.gateway = gateway or chapa_gateway
        self.state = states.CREATED
        self.order: Optional[Dict[str, Any]] = None
        self.loading = False

    def _transition(self, new_state: str):
        allowed = states.ALLOWED_TRANSITIONS.get(self.state, [])
        if new_state not in allowed:
            raise InvalidTransition(f"Cannot move from {self.state} to {new_state}")
        logger.debug(f"Order {self.order_id}: {self.state} -> {new_state}")
        self.state = new_state

    def confirm(self):
        self._transition(states.CONFIRMED)

    def cancel(self):
        self._transition(states.CANCELLED)
        logger.info(f"Order {self.order_id} left unpaid")

    def pay_now(self) -> Dict[str, Any]:
        if states.PAY_NOW not in states.ALLOWED_TRANSITIONS.get(self.state, []):
            raise InvalidTransition(f"Cannot move from {self.state} to {states.PAY_NOW}")
        try:
            self.order = self.client.get_order(self.order_id)
        except (StorefrontAPIError, StorefrontConnectionError) as e:
            raise OrderUnavailable("Failed to fetch order details.") from e
        self._transition(states.PAY_NOW)
        return self.order

    def open_checkout(self) -> Dict[str, Any]:
        """Returns the request the payment widget is opened with."""
        self._transition(states.PROVIDER_CHECKOUT_OPEN)
        self.loading = True
        return self.gateway.checkout_request(self.order)

    def on_success(self) -> str:
        """Widget reported success: record the payment, return the success page path."""
        if self.state != states.PROVIDER_CHECKOUT_OPEN:
            raise InvalidTransition(f"Cannot move from {self.state} to {states.SUCCEEDED}")
        try:
            self.order = self.client.mark_paid(self.order_id, PROVIDER_NAME)
        except StorefrontAPIError as e:
            # 409: an earlier attempt got through but its response was lost
            if e.status_code != 409 or not self._is_paid():
                self.on_close()
                raise PaymentNotRecorded(str(e)) from e
            logger.info(f"Order {self.order_id} was already paid")
        except StorefrontConnectionError as e:
            self.on_close()
            raise PaymentNotRecorded(str(e)) from e
        self.loading = False
        self._transition(states.SUCCEEDED)
        return f"/order-success/{self.order_id}"

    def _is_paid(self) -> bool:
        try:
            order = self.client.get_order(self.order_id)
        except (StorefrontAPIError, StorefrontConnectionError):
            logger.exception(f"Could not re-read order {self.order_id}")
            return False
        if order.get("isPaid"):
            self.order = order
            return True
        return False

    def on_close(self):
        self._transition(states.CLOSED)
        self.loading = False

    def load_success_page(self) -> Dict[str, Any]:
        if self.state != states.SUCCEEDED:
            raise InvalidTransition(f"Order {self.order_id} has not been paid in this handoff")
        try:
            self.order = self.client.get_order(self.order_id)
        except (StorefrontAPIError, StorefrontConnectionError) as e:
            raise OrderUnavailable("Failed to load order details.") from e
        return self.order
