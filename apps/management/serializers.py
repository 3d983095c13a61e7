from rest_framework import serializers
from apps.users.serializers import UserSummarySerializer
from .models import ManagementLog


class ManagementLogSerializer(serializers.ModelSerializer):
    admin = UserSummarySerializer(read_only=True)

    class Meta:
        model = ManagementLog
        fields = ['id', 'admin', 'action', 'details', 'payment', 'timestamp']
        read_only_fields = fields
