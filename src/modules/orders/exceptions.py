"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.  Nothing here is retried.
"""

from __future__ import annotations


class OrderNotFound(Exception):
    """The requested order does not exist."""


class InvalidTransition(Exception):
    """The (from, to) pair is not legal for the caller's role."""


class Unauthorized(Exception):
    """The caller does not own the order in the role it claims."""


class StaleWrite(Exception):
    """A conditional write matched zero rows: the order changed underneath."""


class AlreadyClaimed(StaleWrite):
    """Another driver won the claim on this order."""


class StoreNotFound(Exception):
    """The store referenced by the order intent does not exist."""


class StoreClosed(Exception):
    """The store is not approved or not currently accepting orders."""


class ProductNotFound(Exception):
    """An item references a product that does not exist in the store."""


class ProductUnavailable(Exception):
    """An item references a product the store has hidden."""
