"""
Client Package

Storefront state for Python callers: persisted storage, the cart, and an
authenticated API session.
"""

from quickserve.client.cart import CartLine, CartStore
from quickserve.client.session import ClientError, SessionStore
from quickserve.client.storage import LocalStorage

__all__ = [
    "CartLine",
    "CartStore",
    "ClientError",
    "LocalStorage",
    "SessionStore",
]
