from django.urls import path
from .views import (
    PaymentAdminListView, MyPaymentsView, PaymentDetailView, PaymentMarkPaidView, PaymentDisputeView,
    PaymentBreakdownView, PaymentProofView, PaymentCancelView, PaymentFailView, AdjustmentCreateView
)

urlpatterns = [
    # Payments console
    path('', PaymentAdminListView.as_view(), name='payment_list'),
    path('adjustments/', AdjustmentCreateView.as_view(), name='payment_adjustment_create'),
    path('mine/', MyPaymentsView.as_view(), name='payment_mine'),
    path('<int:payment_id>/', PaymentDetailView.as_view(), name='payment_detail'),
    path('<int:payment_id>/mark-paid', PaymentMarkPaidView.as_view(), name='payment_mark_paid'),
    path('<int:payment_id>/mark-paid/', PaymentMarkPaidView.as_view()),
    path('<int:payment_id>/dispute', PaymentDisputeView.as_view(), name='payment_dispute'),
    path('<int:payment_id>/dispute/', PaymentDisputeView.as_view()),
    path('<int:payment_id>/breakdown/', PaymentBreakdownView.as_view(), name='payment_breakdown'),
    path('<int:payment_id>/proof/', PaymentProofView.as_view(), name='payment_proof'),
    path('<int:payment_id>/cancel/', PaymentCancelView.as_view(), name='payment_cancel'),
    path('<int:payment_id>/fail/', PaymentFailView.as_view(), name='payment_fail'),
]
