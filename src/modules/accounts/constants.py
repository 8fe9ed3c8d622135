"""Account roles and store subscription tiers."""

from django.db import models


class UserRole(models.TextChoices):
    MASTER = "MASTER", "Administrador"
    STORE = "STORE", "Tienda"
    DELIVERY = "DELIVERY", "Repartidor"
    CLIENT = "CLIENT", "Cliente"


SELF_REGISTERABLE_ROLES: set[str] = {UserRole.STORE, UserRole.DELIVERY, UserRole.CLIENT}


class Subscription(models.TextChoices):
    ULTRA = "ULTRA", "Ultra"
    PREMIUM = "PREMIUM", "Premium"
    STANDARD = "STANDARD", "Estándar"


SUBSCRIPTION_PRIORITY: dict[str, int] = {
    Subscription.ULTRA: 2,
    Subscription.PREMIUM: 1,
    Subscription.STANDARD: 0,
}
