"""
In-app notifications shown in the notification panel.
"""
from django.conf import settings
from django.db import models


class Notification(models.Model):
    TYPE_INFO = "info"
    TYPE_WARNING = "warning"
    TYPE_SUCCESS = "success"
    TYPE_ERROR = "error"
    TYPE_CHOICES = [
        (TYPE_INFO, "Informação"),
        (TYPE_WARNING, "Aviso"),
        (TYPE_SUCCESS, "Sucesso"),
        (TYPE_ERROR, "Erro"),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="notifications")
    title = models.CharField(max_length=255)
    message = models.TextField()
    type = models.CharField(max_length=16, choices=TYPE_CHOICES, default=TYPE_INFO)
    read = models.BooleanField(default=False)
    # id of the product or recipe the notification is about
    related_id = models.CharField(max_length=64, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["user", "read"], name="notif_user_read_idx"),
        ]

    def __str__(self):
        return f"{self.title} -> {self.user_id}"
