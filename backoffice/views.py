"""
Back-office endpoints, restricted to platform admins.

Admins browse client accounts with their plan, change plans and roles,
import recipes into a client's account and take data backups.
"""
from django.contrib.auth.models import User
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from common.files import decode_base64_file
from common.permissions import IsPlatformAdmin
from . import excel, services
from .filters import AdminUserFilter
from .models import AdminAction, BackupRecord
from .serializers import (
    AdminActionSerializer,
    AdminUserSerializer,
    BackupRecordDetailSerializer,
    BackupRecordSerializer,
    BackupRequestSerializer,
    PlanUpdateSerializer,
    RecipeImportSerializer,
    RolesUpdateSerializer,
)


class AdminUserViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = User.objects.select_related("profile").prefetch_related("roles").order_by("-date_joined")
    serializer_class = AdminUserSerializer
    permission_classes = [IsPlatformAdmin]
    filterset_class = AdminUserFilter

    @action(detail=True, methods=["post"])
    def plan(self, request, pk=None):
        serializer = PlanUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = services.update_user_plan(
            request.user, self.get_object(), data["plan"], expires_at=data["expires_at"], reason=data["reason"]
        )
        return Response(result)

    @action(detail=True, methods=["post"])
    def roles(self, request, pk=None):
        serializer = RolesUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        roles = services.set_roles(
            request.user, self.get_object(), serializer.validated_data["roles"], serializer.validated_data["reason"]
        )
        return Response({"roles": roles})

    @action(detail=True, methods=["post"], url_path="import-recipes")
    def import_recipes(self, request, pk=None):
        target = self.get_object()
        serializer = RecipeImportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        content = decode_base64_file(serializer.validated_data["file_base64"])
        result = excel.import_recipes(target, content)
        services.audit(
            request.user,
            target,
            AdminAction.ACTION_RECIPE_IMPORT,
            new_value={"receitas_criadas": result["receitas_criadas"], "produtos_criados": result["produtos_criados"]},
        )
        return Response({"success": True, "cliente": target.profile.nome or target.email, **result})

    @action(detail=True, methods=["get"])
    def history(self, request, pk=None):
        actions = AdminAction.objects.filter(target_user=self.get_object()).select_related("admin_user", "target_user")
        return Response(AdminActionSerializer(actions, many=True).data)


class AdminActionViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = AdminAction.objects.select_related("admin_user", "target_user")
    serializer_class = AdminActionSerializer
    permission_classes = [IsPlatformAdmin]
    filterset_fields = ["action_type", "target_user", "admin_user"]


class BackupViewSet(mixins.CreateModelMixin, viewsets.ReadOnlyModelViewSet):
    queryset = BackupRecord.objects.all()
    permission_classes = [IsPlatformAdmin]
    filterset_fields = ["status", "backup_type"]

    def get_serializer_class(self):
        if self.action == "retrieve":
            return BackupRecordDetailSerializer
        if self.action == "create":
            return BackupRequestSerializer
        return BackupRecordSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        record = services.create_backup(
            request.user,
            backup_type=serializer.validated_data["backup_type"],
            tables=serializer.validated_data.get("tables"),
        )
        body = BackupRecordSerializer(record).data
        if record.status == BackupRecord.STATUS_FAILED:
            body["error"] = "Falha ao criar backup. Tente novamente ou contate o suporte."
            return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return Response(body, status=status.HTTP_201_CREATED)
