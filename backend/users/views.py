from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from .serializers import UserMeSerializer


class UserMeView(APIView):
    """Текущий сотрудник: роль и филиал (по ним фронт строит рабочее место)."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(UserMeSerializer(request.user).data)
