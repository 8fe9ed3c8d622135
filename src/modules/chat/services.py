"""Order conversations.

Messages are persisted, then pushed to the order's room
(``order_<id>``) once the transaction commits.  Only the order's
customer, store and assigned driver take part; the operator may read.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Set

import structlog
from django.db import transaction

from modules.accounts.constants import UserRole
from modules.chat.dtos import MessageOutputDTO
from modules.chat.exceptions import ConversationNotFound, NotAParticipant
from shared.domain.events import Topics, order_room
from shared.infrastructure.bus import publish_on_commit

if TYPE_CHECKING:
    from modules.accounts.models import User
    from modules.chat.dtos import SendMessageDTO
    from modules.chat.models import Message
    from modules.chat.repositories.interfaces import IMessageRepository
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from shared.domain.bus import INotificationBus

logger = structlog.get_logger(__name__)


class ChatService:
    def __init__(
        self,
        message_repository: IMessageRepository,
        order_repository: IOrderRepository,
        bus: INotificationBus,
    ) -> None:
        self._message_repo = message_repository
        self._order_repo = order_repository
        self._bus = bus

    @transaction.atomic
    def send_message(self, dto: SendMessageDTO) -> Message:
        """Raises ``ConversationNotFound`` / ``NotAParticipant``."""
        order = self._get_order(dto.order_id)
        participants = _participants(order)
        sender = str(dto.sender_id)
        if sender not in participants:
            raise NotAParticipant("Only order participants can send messages.")

        receiver = str(dto.receiver_id) if dto.receiver_id else _counterpart(order, sender)
        if receiver not in participants or receiver == sender:
            raise NotAParticipant("The receiver does not take part in this order.")

        message = self._message_repo.create(
            {
                "order_id": order.id,
                "sender_id": dto.sender_id,
                "receiver_id": receiver,
                "text": dto.text,
            }
        )
        payload = MessageOutputDTO.from_entity(message).model_dump(mode="json")
        publish_on_commit(self._bus, Topics.NEW_MESSAGE, payload, room=order_room(order.id))
        return message

    @transaction.atomic
    def list_messages(self, order_id: Any, user: User):
        """Conversation of an order, oldest first; marks the reader's messages read."""
        order = self._get_order(order_id)
        if user.role != UserRole.MASTER and str(user.id) not in _participants(order):
            raise NotAParticipant("Only order participants can read messages.")

        marked = self._message_repo.mark_read(order.id, user.id)
        if marked:
            logger.debug("chat.messages_read", order_id=str(order.id), count=marked)
        return self._message_repo.list({"order_id": order.id})

    def _get_order(self, order_id: Any) -> Order:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise ConversationNotFound(f"Order {order_id} not found.")
        return order


def _participants(order: Order) -> Set[str]:
    members = {str(order.customer_id), str(order.store_id)}
    if order.driver_id:
        members.add(str(order.driver_id))
    return members


def _counterpart(order: Order, sender: str) -> Optional[str]:
    if sender != str(order.customer_id):
        return str(order.customer_id)
    if order.driver_id:
        return str(order.driver_id)
    return str(order.store_id)
