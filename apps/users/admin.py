from django.contrib import admin
from .models import User, Client, Worker

@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'email', 'phone_number', 'is_client', 'is_worker', 'is_staff', 'is_superuser', 'is_verified')
    list_filter = ('is_staff', 'is_superuser', 'is_verified')
    search_fields = ('username', 'email', 'phone_number')

@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ('user', 'company_name', 'location')
    search_fields = ('user__username', 'user__email', 'company_name')

@admin.register(Worker)
class WorkerAdmin(admin.ModelAdmin):
    list_display = ('user', 'location', 'rating', 'total_reviews', 'completed_jobs')
    search_fields = ('user__username', 'user__email')
