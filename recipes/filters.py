import django_filters
from django.db.models import Q

from .models import Recipe, RecipeStockMovement


class RecipeFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method="filter_search")
    status = django_filters.ChoiceFilter(choices=Recipe.STATUS_CHOICES)
    tipo_produto = django_filters.NumberFilter(field_name="tipo_produto_id")

    class Meta:
        model = Recipe
        fields = ["status", "tipo_produto"]

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        q = Q(nome__icontains=value)
        if value.isdigit():
            q |= Q(numero_sequencial=int(value))
        return queryset.filter(q)


class RecipeStockMovementFilter(django_filters.FilterSet):
    receita = django_filters.NumberFilter(field_name="receita_id")
    tipo = django_filters.ChoiceFilter(choices=RecipeStockMovement.TIPO_CHOICES)
    data_inicio = django_filters.DateFilter(field_name="data", lookup_expr="gte")
    data_fim = django_filters.DateFilter(field_name="data", lookup_expr="lte")
    search = django_filters.CharFilter(method="filter_search")

    class Meta:
        model = RecipeStockMovement
        fields = []

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(Q(receita__nome__icontains=value) | Q(observacao__icontains=value))
