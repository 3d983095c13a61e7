from rest_framework import serializers
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.utils import timezone
from .models import Client, Worker

import logging

User = get_user_model()
logger = logging.getLogger(__name__)


class LoginSerializer(serializers.Serializer):
    identifier = serializers.CharField(max_length=255, trim_whitespace=True)
    password = serializers.CharField(max_length=128, write_only=True)

    def validate(self, data):
        identifier = data.get('identifier').strip().lower()
        password = data.get('password')
        cache_key = f'login_attempts_{identifier}'
        attempts = cache.get(cache_key, 0)
        if attempts >= 5:
            logger.warning(f"Too many login attempts for {identifier}")
            raise serializers.ValidationError("Too many login attempts. Please try again in 15 minutes.")
        user = User.get_by_identifier(identifier)
        if not user or not user.check_password(password):
            logger.warning(f"Failed login for identifier: {identifier}")
            cache.set(cache_key, attempts + 1, 900)
            raise serializers.ValidationError("Invalid credentials.")
        if not user.is_active:
            raise serializers.ValidationError("User account is disabled. Please contact support.")
        cache.delete(cache_key)
        data['user'] = user
        return data

    def save(self):
        user = self.validated_data['user']
        user.last_login = timezone.now()
        user.save(update_fields=['last_login'])
        return user


class ClientProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = Client
        fields = ['company_name', 'location']


class WorkerProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = Worker
        fields = ['location', 'rating', 'total_reviews', 'completed_jobs']
        read_only_fields = ['rating', 'total_reviews', 'completed_jobs']


class UserSummarySerializer(serializers.ModelSerializer):
    """Compact representation embedded in jobs, payments and disputes."""
    role = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = ['id', 'username', 'first_name', 'last_name', 'email', 'role']


class UserSerializer(serializers.ModelSerializer):
    role = serializers.CharField(read_only=True)
    client_profile = serializers.SerializerMethodField()
    worker_profile = serializers.SerializerMethodField()
    rating_stats = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id', 'username', 'first_name', 'last_name', 'email', 'phone_number',
            'role', 'is_verified', 'client_profile', 'worker_profile', 'rating_stats'
        ]

    def get_client_profile(self, obj):
        if obj.is_client:
            return ClientProfileSerializer(obj.client).data
        return None

    def get_worker_profile(self, obj):
        if obj.is_worker:
            return WorkerProfileSerializer(obj.worker).data
        return None

    def get_rating_stats(self, obj):
        return obj.get_rating_stats()
