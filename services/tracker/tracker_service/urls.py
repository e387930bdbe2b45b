"""URL configuration for the tracker service."""
from django.urls import include, path

urlpatterns = [
    path("api/", include("core.urls")),
    path("api/", include("accounts.urls")),
    path("api/", include("workorders.urls")),
    path("board/", include("board.urls")),
]
