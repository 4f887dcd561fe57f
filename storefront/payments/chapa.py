"""
Chapa payment provider.

The storefront opens Chapa's inline checkout in the browser with the order id
as ``tx_ref``. Before an order is marked paid the backend confirms that
transaction with Chapa's verify endpoint.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, Optional

import requests

from storefront.config import settings
from storefront.exceptions import PaymentGatewayError, PaymentVerificationError
from storefront.pricing import to_money

logger = logging.getLogger(__name__)

PROVIDER_NAME = "chapa"


def split_full_name(full_name: str):
    parts = (full_name or "").strip().split(" ", 1)
    first_name = parts[0]
    last_name = parts[1].strip() if len(parts) > 1 else ""
    return first_name, last_name


class ChapaGateway:
    def __init__(
        self,
        secret_key: Optional[str] = None,
        public_key: Optional[str] = None,
        base_url: Optional[str] = None,
        client_url: Optional[str] = None,
        currency: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        self.secret_key = secret_key if secret_key is not None else settings.CHAPA_SECRET_KEY
        self.public_key = public_key if public_key is not None else settings.CHAPA_PUBLIC_KEY
        self.base_url = (base_url or settings.CHAPA_BASE_URL).rstrip("/")
        self.client_url = (client_url or settings.CLIENT_URL).rstrip("/")
        self.currency = currency or settings.CURRENCY
        self.timeout = timeout or settings.CHAPA_TIMEOUT

    def checkout_request(self, order: Dict[str, Any]) -> Dict[str, Any]:
        """Build the inline checkout request for an order as returned by the API."""
        order_id = order["id"]
        first_name, last_name = split_full_name(order.get("fullName", ""))

        request = {
            "amount": f"{to_money(order['total']):.2f}",
            "currency": self.currency,
            "email": order.get("email"),
            "first_name": first_name,
            "last_name": last_name,
            "tx_ref": order_id,
            "callback_url": f"{self.client_url}/pay-now/callback/{order_id}",
            "return_url": f"{self.client_url}/order-success/{order_id}",
        }
        if self.public_key:
            request["key"] = self.public_key
        return request

    def verify(self, tx_ref: str) -> Dict[str, Any]:
        """Fetch the transaction behind ``tx_ref``; returns Chapa's ``data`` object."""
        if not self.secret_key:
            raise PaymentGatewayError("Payment provider is not configured")

        url = f"{self.base_url}/transaction/verify/{tx_ref}"
        headers = {"Authorization": f"Bearer {self.secret_key}"}

        try:
            response = requests.get(url, headers=headers, timeout=self.timeout)
        except requests.RequestException:
            logger.exception(f"Chapa verify request failed for {tx_ref}")
            raise PaymentGatewayError()

        if response.status_code >= 500:
            logger.error(f"Chapa verify failed ({response.status_code}): {response.text}")
            raise PaymentGatewayError()

        try:
            body = response.json()
        except ValueError:
            logger.error(f"Chapa verify returned a non-JSON body: {response.text}")
            raise PaymentGatewayError()

        if response.status_code >= 400 or body.get("status") != "success":
            logger.warning(f"Chapa could not verify {tx_ref}: {body.get('message')}")
            raise PaymentVerificationError()

        return body.get("data") or {}

    def confirm_payment(self, tx_ref: str, expected_amount: float) -> Dict[str, Any]:
        """Verify ``tx_ref`` and check it settled the expected amount in our currency."""
        data = self.verify(tx_ref)

        if data.get("status") != "success":
            logger.warning(f"Transaction {tx_ref} not successful: {data.get('status')}")
            raise PaymentVerificationError()

        if data.get("tx_ref") not in (None, tx_ref):
            logger.warning(f"Transaction reference mismatch: {data.get('tx_ref')} != {tx_ref}")
            raise PaymentVerificationError()

        currency = data.get("currency")
        if currency and currency.upper() != self.currency.upper():
            logger.warning(f"Transaction {tx_ref} paid in {currency}, expected {self.currency}")
            raise PaymentVerificationError()

        try:
            paid = to_money(data.get("amount"))
        except (TypeError, ArithmeticError):
            raise PaymentVerificationError()

        if paid < to_money(Decimal(str(expected_amount))):
            logger.warning(f"Transaction {tx_ref} paid {paid}, expected {expected_amount}")
            raise PaymentVerificationError()

        logger.info(f"Chapa confirmed {tx_ref}: {paid} {self.currency}")
        return data


chapa_gateway = ChapaGateway()
