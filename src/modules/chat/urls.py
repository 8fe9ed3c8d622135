"""Chat URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.chat.views import OrderMessagesView

urlpatterns = [
    path(
        "orders/<uuid:order_id>/messages/",
        OrderMessagesView.as_view(),
        name="order-messages",
    ),
]
