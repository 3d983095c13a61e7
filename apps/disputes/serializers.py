from rest_framework import serializers
from core.constants import DISPUTE_TYPE_CHOICES, DISPUTE_PRIORITY_CHOICES
from core.serializers import StrictSerializer
from apps.users.serializers import UserSummarySerializer
from .models import Dispute


class DisputeSerializer(serializers.ModelSerializer):
    raised_by = UserSummarySerializer(read_only=True)
    against = UserSummarySerializer(read_only=True)
    resolved_by = UserSummarySerializer(read_only=True)
    job_title = serializers.CharField(source='job.title', read_only=True)

    class Meta:
        model = Dispute
        fields = [
            'id', 'job', 'job_title', 'payment', 'raised_by', 'against', 'dispute_type', 'title',
            'description', 'priority', 'status', 'resolution', 'resolved_by',
            'created_at', 'updated_at', 'resolved_at'
        ]
        read_only_fields = fields


class DisputeCreateSerializer(StrictSerializer):
    job_id = serializers.IntegerField()
    payment_id = serializers.IntegerField(required=False, allow_null=True)
    dispute_type = serializers.ChoiceField(choices=DISPUTE_TYPE_CHOICES)
    title = serializers.CharField(max_length=200)
    description = serializers.CharField()
    priority = serializers.ChoiceField(choices=DISPUTE_PRIORITY_CHOICES, required=False, default='medium')
