from django.contrib import admin
from .models import Category, Job, JobApplication, ProgressUpdate, RevisionRequest, Feedback

admin.site.register(Category)

@admin.register(Job)
class JobAdmin(admin.ModelAdmin):
    list_display = ('title', 'client', 'assigned_worker', 'status', 'budget', 'progress_percentage', 'created_at')
    list_filter = ('status', 'category')
    search_fields = ('title', 'client__username')
    readonly_fields = ('version',)

@admin.register(JobApplication)
class JobApplicationAdmin(admin.ModelAdmin):
    list_display = ('job', 'worker', 'proposed_budget', 'status', 'applied_at')
    list_filter = ('status',)

@admin.register(ProgressUpdate)
class ProgressUpdateAdmin(admin.ModelAdmin):
    list_display = ('job', 'author', 'percentage', 'created_at')

@admin.register(RevisionRequest)
class RevisionRequestAdmin(admin.ModelAdmin):
    list_display = ('job', 'requested_by', 'requested_at', 'resolved_at')

@admin.register(Feedback)
class FeedbackAdmin(admin.ModelAdmin):
    list_display = ('job', 'worker', 'client', 'rating', 'created_at')
