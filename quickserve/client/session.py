"""
Session Store

Client-side counterpart of the API: holds the signed-in user and session
token, persists both to storage (keys ``user`` and ``token``), and wraps
every endpoint with httpx.

Usage:
    storage = LocalStorage("~/.quickserve/storage.json")
    session = SessionStore(storage, base_url="http://localhost:5000").load()
    session.login("alice@example.com", "secret1")
    cart = CartStore(storage).load()
    cart.add(session.get_menu()[0], 2)
    order = session.checkout(cart, "cash")
"""

import json
import logging
from datetime import date
from typing import Any, Optional, Union

import httpx

from quickserve.client.cart import CartStore
from quickserve.client.storage import LocalStorage

logger = logging.getLogger(__name__)

USER_KEY = "user"
TOKEN_KEY = "token"

DEFAULT_API_BASE_URL = "http://localhost:5000"
DEFAULT_TAX_RATE = 0.08


class ClientError(Exception):
    """
    A failed client operation.

    ``message`` is the server's own message when it sent one, otherwise a
    fixed fallback for the operation ("Login failed", "Order failed", ...).
    """

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Optional[dict] = None):
        self.message = message
        self.status_code = status_code
        self.payload = payload or {}
        super().__init__(message)


def _server_message(response: httpx.Response) -> tuple[Optional[str], dict]:
    try:
        body = response.json()
    except ValueError:
        return None, {}
    if not isinstance(body, dict):
        return None, {}
    message = body.get("message") or body.get("detail")
    return (message if isinstance(message, str) else None), body


class SessionStore:
    """
    Authenticated API session with persisted state.

    Args:
        storage: Where ``user`` and ``token`` are persisted
        http: Pre-built httpx client (tests pass FastAPI's TestClient)
        base_url: API root, used when ``http`` is not given
        tax_rate: Rate applied by ``checkout``
    """

    def __init__(
        self,
        storage: LocalStorage,
        http: Optional[httpx.Client] = None,
        base_url: str = DEFAULT_API_BASE_URL,
        tax_rate: float = DEFAULT_TAX_RATE,
        timeout: float = 10.0,
    ):
        self.storage = storage
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self._owns_http = http is None
        self.tax_rate = tax_rate
        self.user: Optional[dict[str, Any]] = None
        self.token: Optional[str] = None

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def load(self) -> "SessionStore":
        """Restore the session persisted by a previous run."""
        self.token = self.storage.get_item(TOKEN_KEY)
        raw_user = self.storage.get_item(USER_KEY)
        self.user = None
        if raw_user:
            try:
                user = json.loads(raw_user)
                if not isinstance(user, dict):
                    raise ValueError(f"expected an object, got {type(user).__name__}")
                self.user = user
            except ValueError as e:
                logger.warning(f"Discarding unreadable saved user: {e}")
                self.storage.remove_item(USER_KEY)
        return self

    def _persist(self, user: dict[str, Any], token: Optional[str] = None) -> None:
        self.user = user
        self.storage.set_item(USER_KEY, json.dumps(user))
        if token is not None:
            self.token = token
            self.storage.set_item(TOKEN_KEY, token)

    def close(self) -> None:
        if self._owns_http:
            self.http.close()

    def __enter__(self) -> "SessionStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and bool(self.token)

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    def _require_user(self) -> None:
        if not self.is_authenticated:
            raise ClientError("User not authenticated")

    def _request(
        self,
        method: str,
        path: str,
        fallback: str,
        authenticated: bool = False,
        **kwargs: Any,
    ) -> Any:
        headers = kwargs.pop("headers", {})
        if authenticated:
            self._require_user()
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = self.http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{fallback}: {e}")
            raise ClientError(fallback) from e

        if response.is_error:
            message, body = _server_message(response)
            logger.warning(f"{fallback}: {response.status_code} {message or ''}".rstrip())
            raise ClientError(message or fallback, status_code=response.status_code, payload=body)

        return response.json()

    # =========================================================================
    # AUTH
    # =========================================================================

    def login(self, email: str, password: str) -> dict[str, Any]:
        data = self._request(
            "POST", "/api/auth/login", "Login failed",
            json={"email": email, "password": password},
        )
        self._persist(data["user"], data["token"])
        return self.user

    def register(self, name: str, email: str, password: str) -> dict[str, Any]:
        data = self._request(
            "POST", "/api/auth/register", "Registration failed",
            json={"name": name, "email": email, "password": password},
        )
        self._persist(data["user"], data["token"])
        return self.user

    def logout(self) -> None:
        self.user = None
        self.token = None
        self.storage.remove_item(USER_KEY)
        self.storage.remove_item(TOKEN_KEY)

    # =========================================================================
    # PROFILE
    # =========================================================================

    def refresh_profile(self) -> dict[str, Any]:
        user = self._request("GET", "/api/users/me", "Failed to load profile", authenticated=True)
        self._persist(user)
        return user

    def update_profile(
        self,
        name: str,
        email: str,
        phone: Optional[str] = None,
        address: Optional[str] = None,
    ) -> dict[str, Any]:
        body = {"name": name, "email": email}
        if phone is not None:
            body["phone"] = phone
        if address is not None:
            body["address"] = address
        user = self._request("PUT", "/api/users/me", "Update failed", authenticated=True, json=body)
        self._persist(user)
        return user

    # =========================================================================
    # MENU
    # =========================================================================

    def get_menu(
        self,
        category: Optional[str] = None,
        search: Optional[str] = None,
        popular: Optional[bool] = None,
    ) -> list[dict[str, Any]]:
        params = {k: v for k, v in {"category": category, "search": search, "popular": popular}.items() if v is not None}
        return self._request("GET", "/api/menu", "Failed to fetch menu", params=params)

    def get_menu_item(self, item_id: str) -> dict[str, Any]:
        return self._request("GET", f"/api/menu/{item_id}", "Failed to fetch menu item")

    # =========================================================================
    # ORDERS
    # =========================================================================

    def make_order(
        self,
        items: list[dict[str, Any]],
        payment_method: str,
        subtotal: float,
        tax: float,
        total: float,
    ) -> dict[str, Any]:
        return self._request(
            "POST", "/api/orders", "Order failed", authenticated=True,
            json={
                "items": items,
                "paymentMethod": payment_method,
                "subtotal": subtotal,
                "tax": tax,
                "total": total,
            },
        )

    def get_orders(self) -> list[dict[str, Any]]:
        return self._request("GET", "/api/orders", "Failed to fetch orders", authenticated=True)

    def get_order(self, order_id: str) -> dict[str, Any]:
        return self._request("GET", f"/api/orders/{order_id}", "Failed to fetch order", authenticated=True)

    def checkout(self, cart: CartStore, payment_method: str) -> dict[str, Any]:
        """
        Submit the cart as an order.

        Totals are computed here from the cart; the cart is cleared only
        once the server has accepted the order.
        """
        self._require_user()
        if cart.is_empty():
            raise ClientError("Your cart is empty")

        subtotal = round(cart.total, 2)
        tax = round(subtotal * self.tax_rate, 2)
        order = self.make_order(
            items=cart.to_order_items(),
            payment_method=payment_method,
            subtotal=subtotal,
            tax=tax,
            total=round(subtotal + tax, 2),
        )
        cart.clear()
        return order

    # =========================================================================
    # RESERVATIONS
    # =========================================================================

    def make_reservation(
        self,
        reservation_date: Union[date, str],
        time: str,
        guests: int,
        notes: Optional[str] = None,
    ) -> dict[str, Any]:
        if isinstance(reservation_date, date):
            reservation_date = reservation_date.isoformat()
        return self._request(
            "POST", "/api/reservations", "Failed to reserve table", authenticated=True,
            json={"date": reservation_date, "time": time, "guests": guests, "notes": notes},
        )

    def get_reservations(self) -> list[dict[str, Any]]:
        return self._request("GET", "/api/reservations", "Failed to fetch reservations", authenticated=True)
