from django.urls import path
from .views import (
    JobListCreateView, JobDetailView, JobPublishView, JobApplyView, JobApplicationsListView,
    ApplicationAcceptView, ApplicationRejectView, JobStartView, JobDeclineView, JobProgressView,
    JobSubmitView, JobRevisionView, JobCompleteView, JobCancelView
)

urlpatterns = [
    path('', JobListCreateView.as_view(), name='job_list_create'),
    path('<int:job_id>/', JobDetailView.as_view(), name='job_detail'),
    path('<int:job_id>/publish/', JobPublishView.as_view(), name='job_publish'),

    # Applications
    path('<int:job_id>/apply/', JobApplyView.as_view(), name='job_apply'),
    path('<int:job_id>/applications/', JobApplicationsListView.as_view(), name='job_applications'),
    path('<int:job_id>/applications/<int:application_id>/accept/', ApplicationAcceptView.as_view(), name='application_accept'),
    path('<int:job_id>/applications/<int:application_id>/reject/', ApplicationRejectView.as_view(), name='application_reject'),

    # Worker side
    path('<int:job_id>/start/', JobStartView.as_view(), name='job_start'),
    path('<int:job_id>/decline/', JobDeclineView.as_view(), name='job_decline'),
    path('<int:job_id>/progress/', JobProgressView.as_view(), name='job_progress'),
    path('<int:job_id>/submit/', JobSubmitView.as_view(), name='job_submit'),

    # Client side
    path('<int:job_id>/revision/', JobRevisionView.as_view(), name='job_revision'),
    path('<int:job_id>/complete/', JobCompleteView.as_view(), name='job_complete'),
    path('<int:job_id>/cancel/', JobCancelView.as_view(), name='job_cancel'),
]
