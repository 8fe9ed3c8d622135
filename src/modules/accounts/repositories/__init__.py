"""Account repositories package."""

from modules.accounts.repositories.django_repository import UserDjangoRepository
from modules.accounts.repositories.interfaces import IUserRepository

__all__ = ["IUserRepository", "UserDjangoRepository"]
