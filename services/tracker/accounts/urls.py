"""Route registration for user endpoints."""
from __future__ import annotations

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import UserViewSet

router = SimpleRouter(trailing_slash=False)
router.register("User", UserViewSet, basename="user")

urlpatterns = [
    path("", include(router.urls)),
]
