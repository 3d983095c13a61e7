from django.contrib import admin
from .models import Dispute

@admin.register(Dispute)
class DisputeAdmin(admin.ModelAdmin):
    list_display = ('id', 'job', 'payment', 'raised_by', 'against', 'dispute_type', 'priority', 'status', 'created_at')
    list_filter = ('status', 'dispute_type', 'priority')
    search_fields = ('title', 'job__title', 'raised_by__username', 'against__username')
