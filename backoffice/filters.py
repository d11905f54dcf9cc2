import django_filters
from django.contrib.auth.models import User
from django.db.models import Q

from billing.plans import PLAN_CHOICES


class AdminUserFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method="filter_search")
    plan = django_filters.ChoiceFilter(field_name="profile__plan", choices=PLAN_CHOICES)

    class Meta:
        model = User
        fields = ["plan", "is_active"]

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(email__icontains=value)
            | Q(profile__nome__icontains=value)
            | Q(profile__nome_fantasia__icontains=value)
            | Q(profile__cnpj_cpf__icontains=value)
        )
