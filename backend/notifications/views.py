from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from users.utils import scope_for_user
from .models import Notification
from .serializers import NotificationSerializer


class NotificationViewSet(viewsets.ReadOnlyModelViewSet):
    """
    - Сотрудник видит уведомления своего филиала.
    - Администратор видит все.
    """
    queryset = Notification.objects.select_related("branch", "client", "booking", "invoice").all().order_by(
        "-created_at"
    )
    serializer_class = NotificationSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        qs = super().get_queryset()
        scope = scope_for_user(self.request.user)

        if not scope.is_admin:
            qs = qs.filter(branch_id=scope.branch_id)

        return qs
