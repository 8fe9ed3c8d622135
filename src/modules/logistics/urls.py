"""Logistics URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from modules.logistics.views import ColonyViewSet, DeliveryQuoteView, SettingsView

router = DefaultRouter(trailing_slash=True)
router.register("colonies", ColonyViewSet, basename="colony")

urlpatterns = [
    path("settings/", SettingsView.as_view(), name="settings"),
    path("delivery-quote/", DeliveryQuoteView.as_view(), name="delivery-quote"),
    *router.urls,
]
