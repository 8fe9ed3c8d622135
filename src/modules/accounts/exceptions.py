"""Account domain exceptions."""

from __future__ import annotations


class UserNotFound(Exception):
    """The requested user does not exist."""


class AccountAlreadyExists(Exception):
    """Username, email or phone already registered."""


class AccountActionNotAllowed(Exception):
    """The caller may not modify this account (or these fields)."""
