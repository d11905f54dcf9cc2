"""
Views for the recipes app.
"""
import logging

from django.db.models import ProtectedError
from django.http import HttpResponse
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from billing.limits import check_limit, consume_pdf_export
from billing.plans import RESOURCE_PDF_EXPORTS
from common.exceptions import BusinessRuleError
from common.mixins import OwnedQuerysetMixin
from . import showcase
from .costing import recipe_cost
from .filters import RecipeFilter, RecipeStockMovementFilter
from .models import ProductType, Recipe, RecipeStock, RecipeStockMovement
from .pdf import recipe_filename, render_recipe_pdf
from .serializers import (
    ApplyMarkupSerializer,
    ProductTypeSerializer,
    RecipeEntrySerializer,
    RecipeExitSerializer,
    RecipeListSerializer,
    RecipeSerializer,
    RecipeStockMovementSerializer,
    RecipeStockSerializer,
)
from .services import apply_markup, duplicate_recipe

logger = logging.getLogger(__name__)


class ProductTypeViewSet(OwnedQuerysetMixin, viewsets.ModelViewSet):
    queryset = ProductType.objects.all()
    serializer_class = ProductTypeSerializer
    pagination_class = None


class RecipeViewSet(OwnedQuerysetMixin, viewsets.ModelViewSet):
    queryset = Recipe.objects.select_related("tipo_produto", "markup").prefetch_related(
        "ingredientes__produto", "embalagens__produto", "sub_receitas__sub_receita", "mao_obra", "passos"
    )
    filterset_class = RecipeFilter

    def get_serializer_class(self):
        if self.action == "list":
            return RecipeListSerializer
        return RecipeSerializer

    def perform_destroy(self, instance):
        try:
            instance.delete()
        except ProtectedError as exc:
            parents = sorted({link.receita.nome for link in exc.protected_objects})
            raise BusinessRuleError(
                f"Receita usada como sub-receita em: {', '.join(parents)}. Remova-a dessas receitas antes de excluir."
            )

    @action(detail=True, methods=["get"])
    def cost(self, request, pk=None):
        return Response(recipe_cost(self.get_object()))

    @action(detail=True, methods=["post"], url_path="apply-markup")
    def apply_markup(self, request, pk=None):
        recipe = self.get_object()
        serializer = ApplyMarkupSerializer(data=request.data, context=self.get_serializer_context())
        serializer.is_valid(raise_exception=True)
        recipe = apply_markup(recipe, serializer.validated_data.get("markup"))
        return Response(RecipeSerializer(recipe, context=self.get_serializer_context()).data)

    @action(detail=True, methods=["post"])
    def duplicate(self, request, pk=None):
        copy = duplicate_recipe(self.get_object())
        return Response(
            RecipeSerializer(copy, context=self.get_serializer_context()).data, status=status.HTTP_201_CREATED
        )

    @action(detail=True, methods=["get"])
    def pdf(self, request, pk=None):
        recipe = self.get_object()
        check_limit(request.user, RESOURCE_PDF_EXPORTS)
        content = render_recipe_pdf(recipe)
        used = consume_pdf_export(request.user)
        logger.info("PDF export %s for recipe %s by user %s", used, recipe.pk, request.user.pk)
        response = HttpResponse(content, content_type="application/pdf")
        response["Content-Disposition"] = f'attachment; filename="{recipe_filename(recipe)}"'
        return response


class RecipeStockViewSet(OwnedQuerysetMixin, mixins.ListModelMixin, mixins.RetrieveModelMixin,
                         mixins.DestroyModelMixin, viewsets.GenericViewSet):
    """Finished recipes on display. DELETE takes a recipe off the showcase."""

    queryset = RecipeStock.objects.filter(ativo=True).select_related("receita")
    serializer_class = RecipeStockSerializer
    pagination_class = None

    def get_queryset(self):
        qs = super().get_queryset()
        search = self.request.query_params.get("search", "").strip()
        if search:
            qs = qs.filter(receita__nome__icontains=search)
        return qs

    def perform_destroy(self, instance):
        instance.ativo = False
        instance.save(update_fields=["ativo", "updated_at"])

    @action(detail=False, methods=["get"])
    def summary(self, request):
        return Response(showcase.showcase_summary(request.user))

    @action(detail=True, methods=["get"])
    def history(self, request, pk=None):
        stock = self.get_object()
        movements = RecipeStockMovement.objects.filter(user=request.user, receita=stock.receita)
        return Response({
            "estoque": RecipeStockSerializer(stock).data,
            "movimentacoes": RecipeStockMovementSerializer(movements.select_related("receita"), many=True).data,
            "totais": showcase.movement_totals(movements),
        })


class RecipeStockMovementViewSet(OwnedQuerysetMixin, viewsets.ReadOnlyModelViewSet):
    """Showcase history plus the entry and exit endpoints."""

    queryset = RecipeStockMovement.objects.select_related("receita")
    serializer_class = RecipeStockMovementSerializer
    filterset_class = RecipeStockMovementFilter

    def _register(self, serializer_class, register):
        serializer = serializer_class(data=self.request.data, context=self.get_serializer_context())
        serializer.is_valid(raise_exception=True)
        movement = register(self.request.user, **serializer.validated_data)
        return Response(RecipeStockMovementSerializer(movement).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["post"])
    def entry(self, request):
        return self._register(RecipeEntrySerializer, showcase.register_recipe_entry)

    @action(detail=False, methods=["post"])
    def exit(self, request):
        return self._register(RecipeExitSerializer, showcase.register_recipe_exit)

    @action(detail=False, methods=["get"])
    def totals(self, request):
        return Response(showcase.movement_totals(self.filter_queryset(self.get_queryset())))
