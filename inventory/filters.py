"""
django-filter FilterSet definitions for the inventory app.

`ProductFilter` backs the product list: free-text `search` across name,
internal code and barcodes, brand/category/unit filters and the
"below minimum stock" switch.  `StockMovementFilter` backs the movement
history.
"""
from django.db.models import Q
from django_filters import rest_framework as filters

from .models import Product, StockMovement, below_minimum_q


class ProductFilter(filters.FilterSet):
    search = filters.CharFilter(method="filter_search")
    marca = filters.CharFilter(field_name="marcas__nome", lookup_expr="iexact")
    categoria = filters.CharFilter(field_name="categorias__nome", lookup_expr="iexact")
    unidade = filters.CharFilter(field_name="unidade_compra", lookup_expr="iexact")
    abaixo_minimo = filters.BooleanFilter(method="filter_abaixo_minimo")
    ativo = filters.BooleanFilter(field_name="ativo")

    class Meta:
        model = Product
        fields = []

    def filter_search(self, queryset, name, value):
        value = (value or "").strip()
        if not value:
            return queryset
        q = Q(nome__icontains=value) | Q(sku__icontains=value) | Q(codigos_barras__icontains=value)
        if value.isdigit():
            q |= Q(codigo_interno=int(value))
        return queryset.filter(q)

    def filter_abaixo_minimo(self, queryset, name, value):
        if value:
            return queryset.filter(below_minimum_q())
        return queryset


class StockMovementFilter(filters.FilterSet):
    data_inicio = filters.DateFilter(field_name="data_hora", lookup_expr="date__gte")
    data_fim = filters.DateFilter(field_name="data_hora", lookup_expr="date__lte")
    tipo = filters.ChoiceFilter(choices=StockMovement.TIPO_CHOICES)
    produto = filters.NumberFilter(field_name="produto_id")
    responsavel = filters.CharFilter(field_name="responsavel", lookup_expr="icontains")

    class Meta:
        model = StockMovement
        fields = []
