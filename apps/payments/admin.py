from django.contrib import admin
from .models import Payment

@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ('transaction_id', 'job', 'payer', 'recipient', 'amount', 'currency', 'payment_method', 'status', 'initiated_at')
    list_filter = ('status', 'payment_method', 'payment_type')
    search_fields = ('transaction_id', 'payer__username', 'recipient__username')
    readonly_fields = ('version',)
