"""Inventory REST API client"""

from typing import Any, Dict, List, Optional

import requests
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ..utils.exceptions import RemoteFailure
from ..utils.logger import get_logger

logger = get_logger(__name__)

LOGIN_ENDPOINT = "/api/auth/login"
PRODUCTS_ENDPOINT = "/api/inventory/productos"
LOW_STOCK_ENDPOINT = "/api/inventory/productos/stock-bajo"
NOTIFICATIONS_ENDPOINT = "/api/inventory/notificaciones"

_ERROR_MESSAGE_KEYS = ("message", "mensaje", "error")


def _is_transport_failure(exc: BaseException) -> bool:
    """Only connection-level failures are worth retrying; HTTP errors are answers."""
    return isinstance(exc, RemoteFailure) and exc.status_code is None


_retry_reads = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
    retry=retry_if_exception(_is_transport_failure),
    reraise=True,
)


def extract_error_message(response: requests.Response, operation: str) -> str:
    """Best-effort human-readable message from an error body"""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in _ERROR_MESSAGE_KEYS:
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return f"{operation} failed: {response.status_code}"


class InventoryClient:
    """Client for the pet store inventory API"""

    def __init__(
        self,
        base_url: str,
        connection_timeout: int = 10,
        read_timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = (connection_timeout, read_timeout)
        self.session = session or requests.Session()

    def _make_request(
        self,
        method: str,
        endpoint: str,
        operation: str,
        token: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Make an HTTP request to the inventory API

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API path (without base URL)
            operation: Human-readable name used in error messages
            token: Bearer token; omitted for the login call
            data: JSON body

        Returns:
            Decoded JSON body, or None for empty responses

        Raises:
            RemoteFailure: On non-2xx status or transport failure
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        logger.debug("Sending inventory API request", method=method, endpoint=endpoint)
        try:
            response = self.session.request(
                method=method,
                url=url,
                json=data,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.error("Request timeout", endpoint=endpoint, timeout=self.timeout, error=str(e))
            raise RemoteFailure(f"{operation} failed: request timed out", operation=operation)
        except requests.exceptions.RequestException as e:
            logger.error("Request failed", endpoint=endpoint, error=str(e))
            raise RemoteFailure(f"{operation} failed: {e.__class__.__name__}", operation=operation)

        logger.info(
            "Received response from inventory API",
            method=method,
            endpoint=endpoint,
            status_code=response.status_code,
        )

        if not 200 <= response.status_code < 300:
            raise RemoteFailure(
                extract_error_message(response, operation),
                status_code=response.status_code,
                operation=operation,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            raise RemoteFailure(
                f"{operation} failed: invalid response body",
                status_code=response.status_code,
                operation=operation,
            )

    def login(self, username: str, password: str) -> Dict[str, Any]:
        body = self._make_request(
            "POST",
            LOGIN_ENDPOINT,
            operation="Login",
            data={"username": username, "password": password},
        )
        return body if isinstance(body, dict) else {}

    @_retry_reads
    def get_products(self, token: str) -> List[Dict[str, Any]]:
        return self._make_request("GET", PRODUCTS_ENDPOINT, "Fetch products", token=token) or []

    @_retry_reads
    def get_low_stock_products(self, token: str) -> List[Dict[str, Any]]:
        return self._make_request("GET", LOW_STOCK_ENDPOINT, "Fetch low stock products", token=token) or []

    @_retry_reads
    def get_notifications(self, token: str) -> List[Dict[str, Any]]:
        return self._make_request("GET", NOTIFICATIONS_ENDPOINT, "Fetch notifications", token=token) or []

    # Mutations are never retried: a repeated stock delta would be applied twice.

    def create_product(self, token: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._make_request("POST", PRODUCTS_ENDPOINT, "Create product", token=token, data=payload)

    def delete_product(self, token: str, codigo: int) -> None:
        self._make_request("DELETE", f"{PRODUCTS_ENDPOINT}/{codigo}", "Delete product", token=token)

    def increase_stock(self, token: str, codigo: int, amount: int) -> Dict[str, Any]:
        return self._make_request(
            "POST",
            f"{PRODUCTS_ENDPOINT}/{codigo}/aumentar-stock",
            "Increase stock",
            token=token,
            data={"cantidad": amount},
        )

    def decrease_stock(self, token: str, codigo: int, amount: int) -> Dict[str, Any]:
        return self._make_request(
            "POST",
            f"{PRODUCTS_ENDPOINT}/{codigo}/disminuir-stock",
            "Decrease stock",
            token=token,
            data={"cantidad": amount},
        )

    def update_minimum_threshold(self, token: str, codigo: int, value: int) -> Dict[str, Any]:
        return self._make_request(
            "PUT",
            f"{PRODUCTS_ENDPOINT}/{codigo}/umbral-minimo",
            "Update minimum threshold",
            token=token,
            data={"umbralMinimo": value},
        )
