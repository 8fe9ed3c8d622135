"""Chat domain exceptions."""

from __future__ import annotations


class ConversationNotFound(Exception):
    """The order the conversation belongs to does not exist."""


class NotAParticipant(Exception):
    """Only the customer, the store and the assigned driver may talk."""
