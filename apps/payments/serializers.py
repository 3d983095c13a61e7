from rest_framework import serializers
from core.constants import DISPUTE_ACTION_CHOICES
from core.serializers import StrictSerializer, VersionedActionSerializer
from apps.users.serializers import UserSummarySerializer
from .models import Payment

MONEY = {'max_digits': 12, 'decimal_places': 2}


class PaymentSerializer(serializers.ModelSerializer):
    payer = UserSummarySerializer(read_only=True)
    recipient = UserSummarySerializer(read_only=True)
    job_title = serializers.CharField(source='job.title', read_only=True, default=None)
    breakdown = serializers.SerializerMethodField()
    admin_resolution = serializers.SerializerMethodField()

    class Meta:
        model = Payment
        fields = [
            'id', 'transaction_id', 'job', 'job_title', 'payer', 'recipient', 'amount', 'currency',
            'payment_method', 'payment_type', 'status', 'breakdown', 'description', 'notes',
            'error_code', 'error_message', 'refunded_amount', 'admin_resolution',
            'proof', 'proof_note', 'proof_uploaded_at',
            'initiated_at', 'processed_at', 'completed_at', 'updated_at', 'version'
        ]
        read_only_fields = fields

    def get_breakdown(self, obj):
        if not obj.has_breakdown:
            return None
        return {
            'gross_amount': str(obj.gross_amount),
            'platform_fee': str(obj.platform_fee),
            'processing_fee': str(obj.processing_fee),
            'tax': str(obj.tax),
            'net_amount': str(obj.net_amount),
        }

    def get_admin_resolution(self, obj):
        if not obj.resolution_action:
            return None
        return {
            'action': obj.resolution_action,
            'resolution': obj.resolution_note,
            'resolved_by': obj.resolved_by_id,
            'resolved_at': obj.resolved_at,
        }


class MarkPaidSerializer(VersionedActionSerializer):
    pass


class DisputeActionSerializer(VersionedActionSerializer):
    """Tagged by ``action``; only ``partial`` carries an amount."""
    action = serializers.ChoiceField(choices=DISPUTE_ACTION_CHOICES)
    note = serializers.CharField(allow_blank=False, trim_whitespace=False)
    amount = serializers.DecimalField(required=False, allow_null=True, **MONEY)

    def validate_note(self, value):
        if not value.strip():
            raise serializers.ValidationError("A resolution note is required.")
        return value

    def validate(self, data):
        if data['action'] != 'partial' and data.get('amount') is not None:
            raise serializers.ValidationError({"amount": ["Only a partial resolution takes an amount."]})
        return data


class BreakdownSerializer(VersionedActionSerializer):
    gross_amount = serializers.DecimalField(**MONEY)
    platform_fee = serializers.DecimalField(**MONEY)
    processing_fee = serializers.DecimalField(**MONEY)
    tax = serializers.DecimalField(**MONEY)
    net_amount = serializers.DecimalField(**MONEY)


class PaymentProofSerializer(VersionedActionSerializer):
    proof = serializers.FileField()
    note = serializers.CharField(required=False, allow_blank=True, max_length=1000)


class PaymentCancelSerializer(VersionedActionSerializer):
    reason = serializers.CharField(required=False, allow_blank=True)


class PaymentFailSerializer(VersionedActionSerializer):
    error_code = serializers.CharField(max_length=50)
    error_message = serializers.CharField()


class AdjustmentSerializer(StrictSerializer):
    recipient_id = serializers.IntegerField()
    amount = serializers.DecimalField(**MONEY)
    description = serializers.CharField(required=False, allow_blank=True, default='')
