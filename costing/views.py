"""
Views for the costing app.
"""
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from billing.limits import check_limit
from billing.plans import RESOURCE_MARKUPS
from common.mixins import OwnedQuerysetMixin
from .markup import calc_markup
from .models import Employee, FixedExpense, FixedExpenseCategory, MarkupBlock, RevenueEntry, SalesCharge
from .serializers import (
    CalculateSerializer,
    EmployeeSerializer,
    FixedExpenseCategorySerializer,
    FixedExpenseSerializer,
    MarkupBlockSerializer,
    MarkupFractionsSerializer,
    RevenueEntrySerializer,
    SalesChargeSerializer,
)
from .services import compute_block, recalculate_block


class FixedExpenseCategoryViewSet(OwnedQuerysetMixin, viewsets.ModelViewSet):
    queryset = FixedExpenseCategory.objects.all()
    serializer_class = FixedExpenseCategorySerializer
    pagination_class = None


class FixedExpenseViewSet(OwnedQuerysetMixin, viewsets.ModelViewSet):
    queryset = FixedExpense.objects.select_related("categoria")
    serializer_class = FixedExpenseSerializer
    filterset_fields = ["ativo", "categoria"]


class EmployeeViewSet(OwnedQuerysetMixin, viewsets.ModelViewSet):
    queryset = Employee.objects.all()
    serializer_class = EmployeeSerializer
    filterset_fields = ["ativo", "tipo_mao_obra"]


class SalesChargeViewSet(OwnedQuerysetMixin, viewsets.ModelViewSet):
    queryset = SalesCharge.objects.all()
    serializer_class = SalesChargeSerializer
    filterset_fields = ["ativo"]


class RevenueEntryViewSet(OwnedQuerysetMixin, viewsets.ModelViewSet):
    queryset = RevenueEntry.objects.all()
    serializer_class = RevenueEntrySerializer


class MarkupBlockViewSet(OwnedQuerysetMixin, viewsets.ModelViewSet):
    queryset = MarkupBlock.objects.all()
    serializer_class = MarkupBlockSerializer
    filterset_fields = ["tipo"]

    def perform_create(self, serializer):
        nome = serializer.validated_data.get("nome", "")
        tipo = serializer.validated_data.get("tipo") or (
            MarkupBlock.TIPO_SUB_RECEITA if "sub" in nome.lower() else MarkupBlock.TIPO_NORMAL
        )
        if tipo != MarkupBlock.TIPO_SUB_RECEITA:
            check_limit(self.request.user, RESOURCE_MARKUPS)
        block = serializer.save(user=self.request.user, tipo=tipo)
        recalculate_block(block)

    @action(detail=True, methods=["post"])
    def recalculate(self, request, pk=None):
        block = recalculate_block(self.get_object())
        return Response(self.get_serializer(block).data)


class CalculateView(APIView):
    """Markup for a selection of expenses, payroll and charges, without saving."""

    def post(self, request):
        serializer = CalculateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = compute_block(
            request.user,
            data["periodo"],
            data["despesas"],
            data["funcionarios"],
            data["encargos"],
            data["margem_lucro"],
        )
        result["markup_aplicado"] = result["markup_ideal"]
        return Response(result)


class CalculateFractionsView(APIView):
    """Markup multiplier from cost fractions (0.1 == 10%)."""

    def post(self, request):
        serializer = MarkupFractionsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            result = calc_markup(**serializer.validated_data)
        except ValueError as exc:
            return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(result._asdict())
