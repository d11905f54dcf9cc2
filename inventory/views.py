"""
Views for the inventory app.

All endpoints are scoped to the authenticated account.  Products are
never hard-deleted: DELETE deactivates them so past movements and
recipes keep their references.
"""
from django.http import HttpResponse
from django.utils import timezone
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from billing.limits import check_limit
from billing.plans import RESOURCE_PRODUCTS
from common.files import decode_base64_file
from common.mixins import OwnedQuerysetMixin
from . import excel
from .filters import ProductFilter, StockMovementFilter
from .models import Brand, Category, MovementReceipt, Product, StockMovement, Supplier
from .serializers import (
    BrandSerializer,
    CategorySerializer,
    ExcelImportSerializer,
    FinalizeMovementSerializer,
    MovementReceiptSerializer,
    ProductSerializer,
    StockMovementSerializer,
    SupplierSerializer,
)
from .services import deactivate_product, finalize_movement, stock_summary

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def xlsx_response(content: bytes, filename: str) -> HttpResponse:
    response = HttpResponse(content, content_type=XLSX_CONTENT_TYPE)
    response["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response


class CategoryViewSet(OwnedQuerysetMixin, viewsets.ModelViewSet):
    queryset = Category.objects.all()
    serializer_class = CategorySerializer
    pagination_class = None


class BrandViewSet(OwnedQuerysetMixin, viewsets.ModelViewSet):
    queryset = Brand.objects.all()
    serializer_class = BrandSerializer
    pagination_class = None


class SupplierViewSet(OwnedQuerysetMixin, viewsets.ModelViewSet):
    queryset = Supplier.objects.all()
    serializer_class = SupplierSerializer


class ProductViewSet(OwnedQuerysetMixin, viewsets.ModelViewSet):
    queryset = Product.objects.prefetch_related("marcas", "categorias", "fornecedores")
    serializer_class = ProductSerializer
    filterset_class = ProductFilter

    def get_queryset(self):
        qs = super().get_queryset()
        if self.action == "list" and "ativo" not in self.request.query_params:
            qs = qs.filter(ativo=True)
        return qs.distinct()

    def perform_create(self, serializer):
        check_limit(self.request.user, RESOURCE_PRODUCTS)
        serializer.save(user=self.request.user)

    def perform_destroy(self, instance):
        deactivate_product(instance)

    @action(detail=False, methods=["get"])
    def summary(self, request):
        return Response(stock_summary(request.user))

    @action(detail=False, methods=["get"], url_path="export")
    def export(self, request):
        content = excel.export_products(Product.objects.filter(user=request.user, ativo=True))
        filename = f"estoque_produtos_{timezone.localdate().isoformat()}.xlsx"
        return xlsx_response(content, filename)

    @action(detail=False, methods=["get"], url_path="import-template")
    def import_template(self, request):
        return xlsx_response(excel.products_template(), "modelo_importacao_produtos.xlsx")

    @action(detail=False, methods=["post"], url_path="import")
    def import_excel(self, request):
        serializer = ExcelImportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        content = decode_base64_file(serializer.validated_data["file_base64"])
        return Response(excel.import_products(request.user, content))


class StockMovementViewSet(OwnedQuerysetMixin, viewsets.ReadOnlyModelViewSet):
    """Movement history plus the cart finalization endpoint."""

    queryset = StockMovement.objects.select_related("produto", "comprovante")
    serializer_class = StockMovementSerializer
    filterset_class = StockMovementFilter

    @action(detail=False, methods=["post"])
    def finalize(self, request):
        serializer = FinalizeMovementSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        receipt = finalize_movement(
            request.user,
            [dict(item) for item in data["itens"]],
            data["responsavel"],
            origem=data.get("origem", ""),
            observacao=data.get("observacao", ""),
        )
        return Response(MovementReceiptSerializer(receipt).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"])
    def motivos(self, request):
        return Response({
            StockMovement.TIPO_ENTRADA: StockMovement.MOTIVOS_ENTRADA,
            StockMovement.TIPO_SAIDA: StockMovement.MOTIVOS_SAIDA,
        })


class MovementReceiptViewSet(OwnedQuerysetMixin, mixins.ListModelMixin, mixins.RetrieveModelMixin,
                             viewsets.GenericViewSet):
    queryset = MovementReceipt.objects.prefetch_related("movimentacoes__produto")
    serializer_class = MovementReceiptSerializer
