"""Route registration for work-order endpoints."""
from __future__ import annotations

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import WorkOrderViewSet

router = SimpleRouter(trailing_slash=False)
router.register("WorkOrder", WorkOrderViewSet, basename="workorder")

urlpatterns = [
    path("", include(router.urls)),
]
