"""Review domain exceptions."""

from __future__ import annotations


class ReviewRejected(Exception):
    """The order is missing, not the caller's, not delivered, or already reviewed."""
