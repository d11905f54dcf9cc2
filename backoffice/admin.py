from django.contrib import admin

from .models import AdminAction, BackupRecord


@admin.register(AdminAction)
class AdminActionAdmin(admin.ModelAdmin):
    list_display = ("action_type", "admin_user", "target_user", "created_at")
    list_filter = ("action_type",)
    search_fields = ("admin_user__email", "target_user__email", "reason")
    readonly_fields = ("admin_user", "target_user", "action_type", "old_value", "new_value", "reason", "created_at")


@admin.register(BackupRecord)
class BackupRecordAdmin(admin.ModelAdmin):
    list_display = ("id", "backup_type", "status", "file_size", "created_by", "created_at", "completed_at")
    list_filter = ("status", "backup_type")
    exclude = ("data",)
