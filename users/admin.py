"""
Admin configuration for the users app.

The default `User` admin is re-registered with an inline profile form so
that plan and billing fields are editable via the Django admin.
"""
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth.models import User

from .models import UserProfile, UserRole


class UserProfileInline(admin.StackedInline):
    model = UserProfile
    can_delete = False


class UserRoleInline(admin.TabularInline):
    model = UserRole
    extra = 0


class UserAdmin(BaseUserAdmin):
    inlines = [UserProfileInline, UserRoleInline]
    list_display = ("username", "email", "is_active", "date_joined")


admin.site.unregister(User)
admin.site.register(User, UserAdmin)


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "nome", "plan", "plan_expires_at", "subscription_status")
    list_filter = ("plan", "subscription_status")
    search_fields = ("user__username", "user__email", "nome", "nome_fantasia", "cnpj_cpf")
