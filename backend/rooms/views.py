from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from users.permissions import IsBranchManager
from users.utils import scope_for_user
from .models import Room
from .serializers import RoomSerializer


class RoomViewSet(viewsets.ModelViewSet):
    """
    Комнаты филиала.
    - Сотрудники видят комнаты своего филиала (админ - все, ?branch_id=).
    - Ставку и вместимость меняют только менеджер/админ.
    """

    queryset = Room.objects.select_related("branch").all().order_by("id")
    serializer_class = RoomSerializer
    http_method_names = ["get", "patch", "head", "options"]

    def get_permissions(self):
        if self.request.method in ("GET", "HEAD", "OPTIONS"):
            return [IsAuthenticated()]
        return [IsBranchManager()]

    def get_queryset(self):
        qs = super().get_queryset()
        scope = scope_for_user(self.request.user)

        if scope.is_admin:
            branch_id = self.request.query_params.get("branch_id")
            if branch_id:
                qs = qs.filter(branch_id=branch_id)
        else:
            qs = qs.filter(branch_id=scope.branch_id)

        if self.request.query_params.get("active") == "1":
            qs = qs.filter(is_active=True)

        return qs
