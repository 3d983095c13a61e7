from django.urls import path
from .views import AuthLoginView, UserProfileView

urlpatterns = [
    # Authentication
    path('auth/login/', AuthLoginView.as_view(), name='auth_login'),

    # Profile
    path('me/', UserProfileView.as_view(), name='user_profile'),
]
