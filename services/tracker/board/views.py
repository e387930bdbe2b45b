"""Board endpoints backed by the cached ``BoardState``."""
from __future__ import annotations

import threading
from typing import Any, Dict, Optional

from django.conf import settings
from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.request import Request
from rest_framework.response import Response

from .api import WorkOrderApi
from .serializers import AddCardSerializer, CardSerializer, ColumnSerializer, MoveCardSerializer
from .state import BoardState

_board: Optional[BoardState] = None
_board_lock = threading.Lock()


def get_board() -> BoardState:
    """Return the process-wide board, loading it on first use."""

    global _board
    with _board_lock:
        if _board is None:
            _board = BoardState(WorkOrderApi.from_settings(), creator_id=settings.BOARD_CREATOR_ID)
        board = _board
    with board.lock:
        if not board.loaded:
            board.load()
    return board


def reset_board() -> None:
    global _board
    with _board_lock:
        _board = None


def _board_payload(board: BoardState, query: str = "") -> Dict[str, Any]:
    return {
        "columns": ColumnSerializer(board.columns(query), many=True).data,
        "error": board.error,
        "anomalies": board.anomalous_stages(),
        "dragging": board.dragging,
    }


def _upstream_error(board: BoardState) -> Response:
    return Response({"detail": board.error}, status=status.HTTP_502_BAD_GATEWAY)


def _card_not_found() -> Response:
    return Response({"detail": "Not found."}, status=status.HTTP_404_NOT_FOUND)


@api_view(["GET"])
def board_view(request: Request) -> Response:
    board = get_board()
    with board.lock:
        if not board.loaded:
            return _upstream_error(board)
        return Response(_board_payload(board, request.query_params.get("q", "")))


@api_view(["POST"])
def reload_board(_: Request) -> Response:
    board = get_board()
    with board.lock:
        board.clear_error()
        if not board.load():
            return _upstream_error(board)
        return Response(_board_payload(board))


@api_view(["POST"])
def add_card(request: Request) -> Response:
    payload = AddCardSerializer(data=request.data)
    payload.is_valid(raise_exception=True)

    board = get_board()
    with board.lock:
        board.clear_error()
        created = board.add_card(payload.validated_data["stage"], payload.validated_data["description"])
        if board.error:
            return _upstream_error(board)
    if created is None:
        return Response(status=status.HTTP_204_NO_CONTENT)
    return Response(CardSerializer(created).data, status=status.HTTP_201_CREATED)


@api_view(["POST"])
def move_card(request: Request, card_id: int) -> Response:
    payload = MoveCardSerializer(data=request.data)
    payload.is_valid(raise_exception=True)

    board = get_board()
    with board.lock:
        if board.find(card_id) is None:
            return _card_not_found()
        board.clear_error()
        board.move(card_id, payload.validated_data["stage"])
        if board.error:
            return _upstream_error(board)
        return Response(_board_payload(board))


@api_view(["POST", "DELETE"])
def drag_card(request: Request, card_id: int) -> Response:
    board = get_board()
    with board.lock:
        if request.method == "DELETE":
            board.cancel_drag()
        elif board.find(card_id) is None:
            return _card_not_found()
        else:
            board.start_drag(card_id)
        return Response({"dragging": board.dragging})


@api_view(["DELETE"])
def delete_card(_: Request, card_id: int) -> Response:
    board = get_board()
    with board.lock:
        if board.find(card_id) is None:
            return _card_not_found()
        board.clear_error()
        if not board.delete(card_id):
            return _upstream_error(board)
    return Response(status=status.HTTP_204_NO_CONTENT)
