"""HTTP client for the orders API, used by the checkout flow and payment handoff."""
import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5000"


class StorefrontAPIError(Exception):
    """The API answered with an error status."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


class StorefrontConnectionError(Exception):
    """The API could not be reached."""


class StorefrontClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: int = 10,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, json: Optional[dict] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, json=json, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise StorefrontConnectionError(str(e)) from e

        if response.status_code >= 400:
            try:
                message = response.json().get("message", response.text)
            except ValueError:
                message = response.text
            raise StorefrontAPIError(response.status_code, message)

        return response.json()

    def create_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/orders/create", json=payload)

    def get_order(self, order_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/orders/{order_id}")

    def mark_paid(self, order_id: str, payment_method: str) -> Dict[str, Any]:
        return self._request(
            "PATCH",
            f"/api/orders/{order_id}/pay",
            json={"paymentMethod": payment_method},
        )
