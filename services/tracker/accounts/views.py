"""API views for user records."""
from __future__ import annotations

from core.viewsets import FullReplaceModelViewSet

from .models import User
from .serializers import UserSerializer


class UserViewSet(FullReplaceModelViewSet):
    queryset = User.objects.all()
    serializer_class = UserSerializer
    capability_resource = "user"
