"""
Models for the backoffice app.

`AdminAction` is the audit trail of changes platform admins make to
client accounts.  `BackupRecord` stores the outcome of a data backup;
row data is kept inline only for small tables.
"""
from django.conf import settings
from django.db import models


class AdminAction(models.Model):
    ACTION_PLAN_CHANGE = "plan_change"
    ACTION_ROLE_CHANGE = "role_change"
    ACTION_RECIPE_IMPORT = "recipe_import"
    ACTION_CHOICES = [
        (ACTION_PLAN_CHANGE, "Alteração de plano"),
        (ACTION_ROLE_CHANGE, "Alteração de papéis"),
        (ACTION_RECIPE_IMPORT, "Importação de receitas"),
    ]

    admin_user = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, on_delete=models.SET_NULL, related_name="admin_actions"
    )
    target_user = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, on_delete=models.SET_NULL, related_name="admin_actions_received"
    )
    action_type = models.CharField(max_length=32, choices=ACTION_CHOICES)
    old_value = models.JSONField(null=True, blank=True)
    new_value = models.JSONField(null=True, blank=True)
    reason = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["target_user", "created_at"], name="backoffice_action_target_idx"),
        ]

    def __str__(self):
        return f"{self.action_type} by {self.admin_user_id} on {self.target_user_id}"


class BackupRecord(models.Model):
    TYPE_FULL = "full"
    TYPE_INCREMENTAL = "incremental"
    TYPE_CHOICES = [(TYPE_FULL, "Completo"), (TYPE_INCREMENTAL, "Incremental")]

    STATUS_IN_PROGRESS = "in_progress"
    STATUS_COMPLETED = "completed"
    STATUS_FAILED = "failed"
    STATUS_CHOICES = [
        (STATUS_IN_PROGRESS, "Em andamento"),
        (STATUS_COMPLETED, "Concluído"),
        (STATUS_FAILED, "Falhou"),
    ]

    backup_type = models.CharField(max_length=16, choices=TYPE_CHOICES, default=TYPE_FULL)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_IN_PROGRESS)
    tables_included = models.JSONField(default=list, blank=True)
    record_counts = models.JSONField(default=dict, blank=True)
    data = models.JSONField(null=True, blank=True)
    file_size = models.PositiveBigIntegerField(default=0)
    error_message = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="+"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"Backup #{self.pk} ({self.status})"
