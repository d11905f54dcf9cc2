"""
Serializers for the backoffice app.
"""
from django.contrib.auth.models import User
from django.utils import timezone
from rest_framework import serializers

from billing.limits import effective_plan
from billing.plans import PLAN_CHOICES
from users.models import UserRole
from .models import AdminAction, BackupRecord
from .services import BACKUP_TABLES


class AdminUserSerializer(serializers.ModelSerializer):
    nome = serializers.CharField(source="profile.nome", read_only=True, default="")
    nome_fantasia = serializers.CharField(source="profile.nome_fantasia", read_only=True, default="")
    cnpj_cpf = serializers.CharField(source="profile.cnpj_cpf", read_only=True, default="")
    plan = serializers.CharField(source="profile.plan", read_only=True, default="free")
    plan_expires_at = serializers.DateTimeField(source="profile.plan_expires_at", read_only=True, default=None)
    subscription_status = serializers.CharField(source="profile.subscription_status", read_only=True, default="")
    effective_plan = serializers.SerializerMethodField()
    roles = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "username",
            "is_active",
            "date_joined",
            "last_login",
            "nome",
            "nome_fantasia",
            "cnpj_cpf",
            "plan",
            "plan_expires_at",
            "subscription_status",
            "effective_plan",
            "roles",
        ]
        read_only_fields = fields

    def get_effective_plan(self, obj):
        profile = getattr(obj, "profile", None)
        return effective_plan(profile) if profile else "free"

    def get_roles(self, obj):
        return sorted(role.role for role in obj.roles.all())


class PlanUpdateSerializer(serializers.Serializer):
    plan = serializers.ChoiceField(choices=PLAN_CHOICES)
    expires_at = serializers.DateTimeField(required=False, allow_null=True, default=None)
    reason = serializers.CharField(min_length=10, max_length=500)

    def validate_expires_at(self, value):
        if value is not None and value <= timezone.now():
            raise serializers.ValidationError("Data de expiração deve ser futura.")
        return value


class RolesUpdateSerializer(serializers.Serializer):
    roles = serializers.ListField(child=serializers.ChoiceField(choices=UserRole.ROLE_CHOICES), allow_empty=True)
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class RecipeImportSerializer(serializers.Serializer):
    file_base64 = serializers.CharField()


class AdminActionSerializer(serializers.ModelSerializer):
    admin_email = serializers.EmailField(source="admin_user.email", read_only=True, default=None)
    target_email = serializers.EmailField(source="target_user.email", read_only=True, default=None)

    class Meta:
        model = AdminAction
        fields = [
            "id",
            "admin_user",
            "admin_email",
            "target_user",
            "target_email",
            "action_type",
            "old_value",
            "new_value",
            "reason",
            "created_at",
        ]
        read_only_fields = fields


class BackupRecordSerializer(serializers.ModelSerializer):
    class Meta:
        model = BackupRecord
        fields = [
            "id",
            "backup_type",
            "status",
            "tables_included",
            "record_counts",
            "file_size",
            "error_message",
            "created_by",
            "created_at",
            "completed_at",
        ]
        read_only_fields = fields


class BackupRecordDetailSerializer(BackupRecordSerializer):
    class Meta(BackupRecordSerializer.Meta):
        fields = BackupRecordSerializer.Meta.fields + ["data"]
        read_only_fields = fields


class BackupRequestSerializer(serializers.Serializer):
    backup_type = serializers.ChoiceField(choices=BackupRecord.TYPE_CHOICES, default=BackupRecord.TYPE_FULL)
    tables = serializers.ListField(
        child=serializers.ChoiceField(choices=BACKUP_TABLES), required=False, allow_empty=False
    )
