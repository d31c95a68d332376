"""Rating URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.ratings.views import OrderRatingsView

urlpatterns = [
    path(
        "orders/<uuid:order_id>/ratings/",
        OrderRatingsView.as_view(),
        name="order-ratings",
    ),
]
