"""Board view routes."""
from __future__ import annotations

from django.urls import path

from . import views

urlpatterns = [
    path("", views.board_view, name="board"),
    path("reload/", views.reload_board, name="board-reload"),
    path("cards/", views.add_card, name="board-cards"),
    path("cards/<int:card_id>/", views.delete_card, name="board-card-detail"),
    path("cards/<int:card_id>/move/", views.move_card, name="board-card-move"),
    path("cards/<int:card_id>/drag/", views.drag_card, name="board-card-drag"),
]
