"""Chat repositories package."""

from modules.chat.repositories.django_repository import MessageDjangoRepository
from modules.chat.repositories.interfaces import IMessageRepository

__all__ = ["IMessageRepository", "MessageDjangoRepository"]
