"""
Authentication and registration endpoints for the users app.

This module exposes JWT obtain/refresh views and a registration
endpoint. Login is via email + password only.
"""
from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from .views import EmailTokenObtainPairView, RegisterView

urlpatterns = [
    path("login/", EmailTokenObtainPairView.as_view(), name="login"),
    path("token/", EmailTokenObtainPairView.as_view(), name="token_obtain_pair_email"),
    path("token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("register/", RegisterView.as_view(), name="register"),
]
