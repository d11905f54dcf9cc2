"""
Models for the users app.

A `UserProfile` model extends the built-in `auth.User` with the business
details of the account owner and its subscription state.  A
`OneToOneField` links each profile to its user.  The `UserProfile` is
created automatically via signals when a new user instance is saved.

`UserRole` grants platform-level roles; holders of the `admin` role can
use the back-office endpoints.
"""
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth.models import User
from django.db import models
from django.utils import timezone

from billing.plans import PLAN_CHOICES, PLAN_FREE


class UserProfileManager(models.Manager):
    def lock(self, user):
        """
        Row-lock the account owner's profile until the current transaction ends.

        Per-account counters (product codes, receipt and recipe numbers) are
        computed as MAX()+1, so their callers take this lock first.
        """
        return self.select_for_update().get(user=user)


class UserProfile(models.Model):
    """Extension of Django's built-in User model."""

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="profile")
    nome = models.CharField(max_length=255, blank=True)
    nome_fantasia = models.CharField(max_length=255, blank=True)
    cnpj_cpf = models.CharField(max_length=32, blank=True)
    telefone = models.CharField(max_length=32, blank=True)

    # Payroll default used when an employee has no own hours
    horas_trabalhadas_mes = models.DecimalField(max_digits=6, decimal_places=2, default=Decimal("173.20"))

    plan = models.CharField(max_length=20, choices=PLAN_CHOICES, default=PLAN_FREE)
    plan_expires_at = models.DateTimeField(null=True, blank=True)
    stripe_customer_id = models.CharField(max_length=255, blank=True, default="")
    subscription_status = models.CharField(max_length=32, blank=True, default="")

    pdf_exports_count = models.PositiveIntegerField(default=0)
    pdf_exports_reset_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserProfileManager()

    @property
    def plan_expired(self) -> bool:
        return bool(self.plan_expires_at and self.plan_expires_at <= timezone.now())

    def reset_pdf_exports_if_due(self, now=None) -> bool:
        """Zero the monthly PDF counter once a month has passed. Returns True if reset."""
        now = now or timezone.now()
        if self.pdf_exports_reset_at and now < self.pdf_exports_reset_at:
            return False
        self.pdf_exports_count = 0
        self.pdf_exports_reset_at = now + timedelta(days=30)
        return True

    def __str__(self) -> str:
        return f"Profile<{self.user.username}>"

    class Meta:
        indexes = [
            models.Index(fields=["plan"], name="users_profile_plan_idx"),
            models.Index(fields=["stripe_customer_id"], name="users_profile_stripe_idx"),
        ]


class UserRole(models.Model):
    ROLE_ADMIN = "admin"
    ROLE_MODERATOR = "moderator"
    ROLE_USER = "user"
    ROLE_CHOICES = [
        (ROLE_ADMIN, "Admin"),
        (ROLE_MODERATOR, "Moderator"),
        (ROLE_USER, "User"),
    ]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="roles")
    role = models.CharField(max_length=16, choices=ROLE_CHOICES)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["user", "role"], name="uniq_user_role"),
        ]
        ordering = ["user_id", "role"]

    def __str__(self):
        return f"{self.user_id}:{self.role}"
