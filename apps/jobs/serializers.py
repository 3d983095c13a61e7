from rest_framework import serializers
from core.serializers import StrictSerializer, VersionedActionSerializer
from apps.users.serializers import UserSummarySerializer
from .models import Category, Job, JobApplication, ProgressUpdate, RevisionRequest, Feedback

MONEY = {'max_digits': 12, 'decimal_places': 2}


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ['id', 'name']


class ProgressUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProgressUpdate
        fields = ['id', 'author', 'message', 'percentage', 'created_at']
        read_only_fields = fields


class RevisionRequestSerializer(serializers.ModelSerializer):
    class Meta:
        model = RevisionRequest
        fields = ['id', 'requested_by', 'reason', 'requested_at', 'resolved_at']
        read_only_fields = fields


class FeedbackSerializer(serializers.ModelSerializer):
    class Meta:
        model = Feedback
        fields = ['id', 'rating', 'review', 'created_at', 'updated_at']
        read_only_fields = fields


class JobSerializer(serializers.ModelSerializer):
    client = UserSummarySerializer(read_only=True)
    assigned_worker = serializers.SerializerMethodField()
    category = CategorySerializer(read_only=True)
    category_id = serializers.PrimaryKeyRelatedField(
        queryset=Category.objects.all(), source='category', write_only=True, required=False, allow_null=True
    )
    save_as_draft = serializers.BooleanField(write_only=True, required=False, default=False)

    class Meta:
        model = Job
        fields = [
            'id', 'title', 'description', 'category', 'category_id', 'budget', 'currency', 'deadline',
            'status', 'progress_percentage', 'client', 'assigned_worker', 'completed_at',
            'cancelled_at', 'cancellation_reason', 'version', 'created_at', 'updated_at', 'save_as_draft'
        ]
        read_only_fields = [
            'id', 'status', 'progress_percentage', 'client', 'assigned_worker', 'completed_at',
            'cancelled_at', 'cancellation_reason', 'version', 'created_at', 'updated_at'
        ]

    def get_assigned_worker(self, obj):
        if obj.assigned_worker is None:
            return None
        return UserSummarySerializer(obj.assigned_worker.user).data

    def create(self, validated_data):
        save_as_draft = validated_data.pop('save_as_draft', False)
        validated_data['status'] = 'draft' if save_as_draft else 'posted'
        return super().create(validated_data)


class JobDetailSerializer(JobSerializer):
    progress_updates = ProgressUpdateSerializer(many=True, read_only=True)
    revisions = RevisionRequestSerializer(many=True, read_only=True)
    feedback = serializers.SerializerMethodField()

    class Meta(JobSerializer.Meta):
        fields = JobSerializer.Meta.fields + ['progress_updates', 'revisions', 'feedback']

    def get_feedback(self, obj):
        feedback = Feedback.objects.filter(job=obj).first()
        return FeedbackSerializer(feedback).data if feedback else None


class JobApplicationSerializer(serializers.ModelSerializer):
    worker = serializers.SerializerMethodField()
    job_title = serializers.CharField(source='job.title', read_only=True)

    class Meta:
        model = JobApplication
        fields = [
            'id', 'job', 'job_title', 'worker', 'proposal', 'proposed_budget', 'status',
            'applied_at', 'reviewed_at', 'review_notes'
        ]
        read_only_fields = fields

    def get_worker(self, obj):
        data = UserSummarySerializer(obj.worker.user).data
        data['rating'] = str(obj.worker.rating)
        return data


class ApplySerializer(StrictSerializer):
    proposal = serializers.CharField(required=False, allow_blank=True, default='')
    proposed_budget = serializers.DecimalField(required=False, allow_null=True, min_value=0, **MONEY)


class ApplicationDecisionSerializer(VersionedActionSerializer):
    pass


class RejectApplicationSerializer(VersionedActionSerializer):
    reason = serializers.CharField(required=False, allow_blank=True)


class WorkerActionSerializer(VersionedActionSerializer):
    pass


class ProgressSerializer(VersionedActionSerializer):
    percentage = serializers.IntegerField(min_value=0, max_value=100)
    message = serializers.CharField(required=False, allow_blank=True, default='')


class SubmitWorkSerializer(VersionedActionSerializer):
    message = serializers.CharField(required=False, allow_blank=True, default='')


class RevisionSerializer(VersionedActionSerializer):
    reason = serializers.CharField()


class CompleteWithRatingSerializer(VersionedActionSerializer):
    rating = serializers.IntegerField(min_value=1, max_value=5)
    review = serializers.CharField(required=False, allow_blank=True, default='')


class CancelJobSerializer(VersionedActionSerializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')
