"""
URL configuration for the costing backend.
All API endpoints live under the `/api/` prefix, one include per app.
Authentication endpoints are nested under `/api/auth/`.
"""

from django.contrib import admin
from django.urls import include, path
from django.views.generic import RedirectView
from drf_spectacular.views import (
    SpectacularAPIView, SpectacularSwaggerView, SpectacularRedocView
)
from django.conf import settings
from django.conf.urls.static import static

from rest_framework.routers import DefaultRouter

from affiliates.views import AffiliateRedirectView
from users.views import UserViewSet
from costing_backend.views import index

router = DefaultRouter()
router.register(r"users", UserViewSet, basename="user")

urlpatterns = [
    path("", index, name="index"),
    path("admin/", admin.site.urls),

    path("api/", RedirectView.as_view(pattern_name="swagger-ui", permanent=False)),

    #  Swagger/Redoc
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("api/redoc/", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),

    path("api/", include(router.urls)),
    path("api/auth/", include("users.urls")),
    path("api/inventory/", include("inventory.urls")),
    path("api/costing/", include("costing.urls")),
    path("api/recipes/", include("recipes.urls")),
    path("api/billing/", include("billing.urls")),
    path("api/affiliates/", include("affiliates.urls")),
    path("api/notifications/", include("notifications.urls")),
    path("api/backoffice/", include("backoffice.urls")),

    # Public referral links
    path("r/<str:code>/", AffiliateRedirectView.as_view(), name="affiliate-redirect"),
]

if settings.DEBUG and getattr(settings, "MEDIA_URL", "").startswith("/"):
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
