"""Service-level routes."""
from __future__ import annotations

from django.urls import path

from .views import health

urlpatterns = [
    path("healthz/", health, name="tracker-health"),
]
