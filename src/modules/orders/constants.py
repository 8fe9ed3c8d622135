"""Order domain constants.

Status choices and the transition table of the order state machine.
Each entry maps ``(from_status, to_status)`` to the roles allowed to
request it; every other pair is illegal.
"""

from django.db import models

from modules.accounts.constants import UserRole


class OrderStatus(models.TextChoices):
    PENDING = "PENDING", "Pendiente"
    PREPARING = "PREPARING", "Preparando"
    READY = "READY", "Listo"
    ON_WAY = "ON_WAY", "En camino"
    DELIVERED = "DELIVERED", "Entregado"
    REJECTED = "REJECTED", "Rechazado"


class PaymentMethod(models.TextChoices):
    CASH = "CASH", "Efectivo"
    CARD = "CARD", "Tarjeta"


TRANSITION_RULES: dict[tuple[str, str], frozenset[str]] = {
    (OrderStatus.PENDING, OrderStatus.PREPARING): frozenset({UserRole.STORE}),
    (OrderStatus.PENDING, OrderStatus.REJECTED): frozenset(
        {UserRole.STORE, UserRole.CLIENT}
    ),
    (OrderStatus.PREPARING, OrderStatus.READY): frozenset({UserRole.STORE}),
    (OrderStatus.READY, OrderStatus.ON_WAY): frozenset({UserRole.DELIVERY}),
    (OrderStatus.ON_WAY, OrderStatus.DELIVERED): frozenset({UserRole.DELIVERY}),
}

ORDER_NUMBER_MAX_RETRIES = 5

MAX_ITEM_QUANTITY = 99
