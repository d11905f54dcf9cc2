"""
Serializers for the inventory app.
"""
from decimal import Decimal

from django.db import transaction
from rest_framework import serializers

from .models import Brand, Category, MovementReceipt, Product, StockMovement, Supplier
from .services import get_or_create_named, next_codigo_interno
from .units import VALID_UNITS, normalize_unit


class NameListField(serializers.ListField):
    """Brands/categories travel as a list of names."""

    child = serializers.CharField(max_length=120)

    def to_representation(self, data):
        return [obj.nome for obj in data.all()]


class UnitField(serializers.CharField):
    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        if value == "" and self.allow_blank:
            return value
        unit = normalize_unit(value)
        if unit is None:
            raise serializers.ValidationError(f"Unidade inválida. Use: {', '.join(VALID_UNITS)}")
        return unit


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ["id", "nome", "created_at"]
        read_only_fields = ["id", "created_at"]


class BrandSerializer(serializers.ModelSerializer):
    class Meta:
        model = Brand
        fields = ["id", "nome", "created_at"]
        read_only_fields = ["id", "created_at"]


class SupplierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Supplier
        fields = ["id", "nome", "cnpj_cpf", "contato", "telefone", "email", "observacoes", "ativo", "created_at"]
        read_only_fields = ["id", "created_at"]


class ProductSerializer(serializers.ModelSerializer):
    marcas = NameListField(required=False)
    categorias = NameListField(required=False)
    fornecedores = serializers.PrimaryKeyRelatedField(many=True, required=False, queryset=Supplier.objects.all())
    unidade_compra = UnitField(max_length=8)
    unidade_uso = UnitField(max_length=8, required=False, allow_blank=True)
    custo_unitario = serializers.DecimalField(max_digits=14, decimal_places=4, min_value=Decimal("0"), required=False)
    estoque_atual = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=Decimal("0"), required=False)
    estoque_minimo = serializers.DecimalField(
        max_digits=14, decimal_places=3, min_value=Decimal("0"), required=False, allow_null=True
    )
    fator_conversao = serializers.DecimalField(
        max_digits=14, decimal_places=4, min_value=Decimal("0.0001"), required=False, allow_null=True
    )
    abaixo_minimo = serializers.BooleanField(read_only=True)
    custo_por_unidade_uso = serializers.DecimalField(max_digits=18, decimal_places=6, read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "nome",
            "codigo_interno",
            "codigos_barras",
            "sku",
            "marcas",
            "categorias",
            "fornecedores",
            "unidade_compra",
            "unidade_uso",
            "fator_conversao",
            "custo_unitario",
            "custo_por_unidade_uso",
            "estoque_atual",
            "estoque_minimo",
            "abaixo_minimo",
            "ativo",
            "imagem_url",
            "rotulo_porcao",
            "rotulo_kcal",
            "rotulo_carb",
            "rotulo_prot",
            "rotulo_gord_total",
            "rotulo_gord_sat",
            "rotulo_gord_trans",
            "rotulo_fibra",
            "rotulo_sodio",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "codigo_interno", "ativo", "created_at", "updated_at"]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        owner = self.context.get("owner")
        if owner is not None:
            self.fields["fornecedores"].child_relation.queryset = Supplier.objects.filter(user=owner)

    def validate_nome(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Nome é obrigatório.")
        return value

    def validate_codigos_barras(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("Informe uma lista de códigos.")
        return [str(v).strip() for v in value if str(v).strip()]

    def validate(self, attrs):
        unidade_uso = attrs.get("unidade_uso", getattr(self.instance, "unidade_uso", ""))
        fator = attrs.get("fator_conversao", getattr(self.instance, "fator_conversao", None))
        if fator is not None and not unidade_uso:
            raise serializers.ValidationError(
                {"fator_conversao": "Fator de conversão requer unidade de uso."}
            )
        return attrs

    def _set_names(self, product, marcas, categorias):
        if marcas is not None:
            product.marcas.set(get_or_create_named(Brand, product.user, marcas)[0])
        if categorias is not None:
            product.categorias.set(get_or_create_named(Category, product.user, categorias)[0])

    @transaction.atomic
    def create(self, validated_data):
        marcas = validated_data.pop("marcas", None)
        categorias = validated_data.pop("categorias", None)
        fornecedores = validated_data.pop("fornecedores", None)
        validated_data["codigo_interno"] = next_codigo_interno(validated_data["user"])
        product = Product.objects.create(**validated_data)
        self._set_names(product, marcas, categorias)
        if fornecedores is not None:
            product.fornecedores.set(fornecedores)
        return product

    def update(self, instance, validated_data):
        marcas = validated_data.pop("marcas", None)
        categorias = validated_data.pop("categorias", None)
        instance = super().update(instance, validated_data)
        self._set_names(instance, marcas, categorias)
        return instance


class StockMovementSerializer(serializers.ModelSerializer):
    produto_nome = serializers.CharField(source="produto.nome", read_only=True)
    comprovante_numero = serializers.IntegerField(source="comprovante.numero", read_only=True)

    class Meta:
        model = StockMovement
        fields = [
            "id",
            "produto",
            "produto_nome",
            "comprovante",
            "comprovante_numero",
            "tipo",
            "motivo",
            "quantidade",
            "custo_aplicado",
            "subtotal",
            "responsavel",
            "origem",
            "observacao",
            "data_hora",
        ]
        read_only_fields = fields


class MovementReceiptSerializer(serializers.ModelSerializer):
    movimentacoes = StockMovementSerializer(many=True, read_only=True)

    class Meta:
        model = MovementReceipt
        fields = [
            "id", "numero", "tipo", "responsavel", "origem", "observacao",
            "valor_total", "data_hora", "movimentacoes",
        ]
        read_only_fields = fields


class MovementItemSerializer(serializers.Serializer):
    produto = serializers.IntegerField()
    tipo = serializers.ChoiceField(choices=StockMovement.TIPO_CHOICES)
    motivo = serializers.CharField(max_length=64)
    quantidade = serializers.DecimalField(max_digits=14, decimal_places=3)
    custo_aplicado = serializers.DecimalField(max_digits=14, decimal_places=4, required=False, allow_null=True)


class FinalizeMovementSerializer(serializers.Serializer):
    itens = MovementItemSerializer(many=True, allow_empty=True)
    responsavel = serializers.CharField(max_length=255, allow_blank=True)
    origem = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    observacao = serializers.CharField(required=False, allow_blank=True, default="")


class ExcelImportSerializer(serializers.Serializer):
    file_base64 = serializers.CharField()
