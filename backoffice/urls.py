from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import AdminActionViewSet, AdminUserViewSet, BackupViewSet

router = DefaultRouter()
router.register(r"users", AdminUserViewSet, basename="backoffice-user")
router.register(r"actions", AdminActionViewSet, basename="backoffice-action")
router.register(r"backups", BackupViewSet, basename="backoffice-backup")

urlpatterns = [
    path("", include(router.urls)),
]
