"""Chat API views."""

from __future__ import annotations

from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.request import Request
from rest_framework.response import Response

from modules.chat.dtos import SendMessageDTO
from modules.chat.exceptions import ConversationNotFound, NotAParticipant
from modules.chat.models import Message
from modules.chat.repositories import MessageDjangoRepository
from modules.chat.serializers import MessageSerializer, SendMessageSerializer
from modules.chat.services import ChatService
from modules.core.permissions import IsApproved
from modules.orders.repositories import OrderDjangoRepository
from shared.infrastructure.bus import get_notification_bus

NOT_FOUND = {"detail": "Pedido no encontrado."}


class OrderMessagesView(GenericAPIView):
    """GET/POST /api/v1/orders/{order_id}/messages/"""

    permission_classes = [IsApproved]
    queryset = Message.objects.all()
    serializer_class = MessageSerializer
    pagination_class = None

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ChatService(
            message_repository=MessageDjangoRepository(),
            order_repository=OrderDjangoRepository(),
            bus=get_notification_bus(),
        )

    def get(self, request: Request, order_id) -> Response:
        try:
            messages = self._service.list_messages(order_id, request.user)
        except ConversationNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except NotAParticipant as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        return Response(MessageSerializer(messages, many=True).data)

    def post(self, request: Request, order_id) -> Response:
        serializer = SendMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            message = self._service.send_message(
                SendMessageDTO(
                    order_id=order_id,
                    sender_id=request.user.id,
                    **serializer.validated_data,
                )
            )
        except ConversationNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except NotAParticipant as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        return Response(MessageSerializer(message).data, status=status.HTTP_201_CREATED)
