from django.urls import path
from .views import (
    DisputeListCreateView, DisputeDetailView, AdminDisputeListView, AdminDisputeInvestigateView
)

urlpatterns = [
    path('', DisputeListCreateView.as_view(), name='dispute_list_create'),
    path('<int:dispute_id>/', DisputeDetailView.as_view(), name='dispute_detail'),

    # Admin
    path('admin/', AdminDisputeListView.as_view(), name='admin_list_disputes'),
    path('admin/<int:dispute_id>/investigate/', AdminDisputeInvestigateView.as_view(), name='admin_investigate_dispute'),
]
