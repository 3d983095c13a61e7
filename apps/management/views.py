from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated
from .permissions import IsSuperuser
from .models import ManagementLog
from .serializers import ManagementLogSerializer


class ManagementLogViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Audit log of admin actions on payments and disputes.
    Filter with ?action=mark_paid or ?payment=<id>. Superusers only.
    """
    queryset = ManagementLog.objects.select_related('admin').all()
    serializer_class = ManagementLogSerializer
    permission_classes = [IsAuthenticated, IsSuperuser]

    def get_queryset(self):
        queryset = super().get_queryset()
        action = self.request.query_params.get('action', None)
        payment = self.request.query_params.get('payment', None)

        if action:
            queryset = queryset.filter(action=action)
        if payment:
            queryset = queryset.filter(payment_id=payment)

        return queryset
