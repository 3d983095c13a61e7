from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static
from drf_yasg.views import get_schema_view
from drf_yasg import openapi
from rest_framework import permissions

schema_view = get_schema_view(
    openapi.Info(
        title="Belimuno API",
        default_version='v1',
        description="Job lifecycle, payment ledger and dispute resolution for the Belimuno marketplace",
    ),
    public=True,
    permission_classes=[permissions.AllowAny],
)

urlpatterns = [
    path('', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('admin/', admin.site.urls),
    path('users/', include('apps.users.urls')),
    path('jobs/', include('apps.jobs.urls')),
    path('payments/', include('apps.payments.urls')),
    path('disputes/', include('apps.disputes.urls')),
    path('notifications/', include('apps.notifications.urls')),
    path('management/', include('apps.management.urls')),
] + static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
