"""
Serializers for the recipes app.

Component lists (ingredients, packaging, sub-recipes, labor and steps)
are written together with the recipe; sending a list replaces it.
"""
from decimal import Decimal

from rest_framework import serializers

from common.fields import OwnedPrimaryKeyField
from costing.models import Employee, MarkupBlock
from inventory.models import Product
from .models import (
    ProductType,
    Recipe,
    RecipeIngredient,
    RecipeLabor,
    RecipePackaging,
    RecipeStep,
    RecipeStock,
    RecipeStockMovement,
    RecipeSubRecipe,
)
from .services import COMPONENTS, create_recipe, update_recipe

QUANTITY = {"max_digits": 14, "decimal_places": 4, "min_value": Decimal("0.0001")}


class ProductTypeSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductType
        fields = ["id", "nome", "created_at"]
        read_only_fields = ["id", "created_at"]


class RecipeIngredientSerializer(serializers.ModelSerializer):
    produto = OwnedPrimaryKeyField(queryset=Product.objects.all())
    produto_nome = serializers.CharField(source="produto.nome", read_only=True)
    quantidade = serializers.DecimalField(**QUANTITY)

    class Meta:
        model = RecipeIngredient
        fields = ["id", "produto", "produto_nome", "quantidade"]
        read_only_fields = ["id"]


class RecipePackagingSerializer(RecipeIngredientSerializer):
    class Meta(RecipeIngredientSerializer.Meta):
        model = RecipePackaging


class RecipeSubRecipeSerializer(serializers.ModelSerializer):
    sub_receita = OwnedPrimaryKeyField(queryset=Recipe.objects.all())
    sub_receita_nome = serializers.CharField(source="sub_receita.nome", read_only=True)
    quantidade = serializers.DecimalField(**QUANTITY)

    class Meta:
        model = RecipeSubRecipe
        fields = ["id", "sub_receita", "sub_receita_nome", "quantidade", "unidade"]
        read_only_fields = ["id"]


class RecipeLaborSerializer(serializers.ModelSerializer):
    funcionario = OwnedPrimaryKeyField(queryset=Employee.objects.all(), required=False, allow_null=True)
    tempo = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal("0"))
    custo_por_hora = serializers.DecimalField(
        max_digits=14, decimal_places=4, min_value=Decimal("0"), required=False, allow_null=True
    )

    class Meta:
        model = RecipeLabor
        fields = ["id", "funcionario", "descricao", "tempo", "unidade_tempo", "custo_por_hora", "valor_total"]
        read_only_fields = ["id", "valor_total"]

    def validate(self, attrs):
        if attrs.get("funcionario") is None and not attrs.get("custo_por_hora"):
            raise serializers.ValidationError("Informe o funcionário ou o custo por hora.")
        return attrs


class RecipeStepSerializer(serializers.ModelSerializer):
    class Meta:
        model = RecipeStep
        fields = ["id", "ordem", "descricao", "imagem_url"]
        read_only_fields = ["id"]


class RecipeListSerializer(serializers.ModelSerializer):
    tipo_produto_nome = serializers.CharField(source="tipo_produto.nome", read_only=True, default=None)

    class Meta:
        model = Recipe
        fields = [
            "id",
            "numero_sequencial",
            "nome",
            "tipo_produto",
            "tipo_produto_nome",
            "rendimento_valor",
            "rendimento_unidade",
            "preco_venda",
            "status",
            "imagem_url",
            "updated_at",
        ]


class RecipeSerializer(serializers.ModelSerializer):
    tipo_produto = OwnedPrimaryKeyField(queryset=ProductType.objects.all(), required=False, allow_null=True)
    markup = OwnedPrimaryKeyField(queryset=MarkupBlock.objects.all(), required=False, allow_null=True)
    preco_venda = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0"), required=False)
    ingredientes = RecipeIngredientSerializer(many=True, required=False)
    embalagens = RecipePackagingSerializer(many=True, required=False)
    sub_receitas = RecipeSubRecipeSerializer(many=True, required=False)
    mao_obra = RecipeLaborSerializer(many=True, required=False)
    passos = RecipeStepSerializer(many=True, required=False)

    class Meta:
        model = Recipe
        fields = [
            "id",
            "numero_sequencial",
            "nome",
            "tipo_produto",
            "rendimento_valor",
            "rendimento_unidade",
            "peso_unitario",
            "tempo_preparo_total",
            "tempo_preparo_mao_obra",
            "conservacao",
            "observacoes",
            "imagem_url",
            "markup",
            "preco_venda",
            "status",
            "ingredientes",
            "embalagens",
            "sub_receitas",
            "mao_obra",
            "passos",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "numero_sequencial", "created_at", "updated_at"]

    def validate_nome(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Nome é obrigatório.")
        return value

    def validate_conservacao(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("Conservação deve ser um objeto.")
        return value

    def _split(self, validated_data):
        components = {key: validated_data.pop(key) for key in COMPONENTS if key in validated_data}
        return validated_data, components

    def create(self, validated_data):
        user = validated_data.pop("user")
        data, components = self._split(validated_data)
        return create_recipe(user, data, components)

    def update(self, instance, validated_data):
        validated_data.pop("user", None)
        data, components = self._split(validated_data)
        return update_recipe(instance, data, components)


class ApplyMarkupSerializer(serializers.Serializer):
    markup = OwnedPrimaryKeyField(queryset=MarkupBlock.objects.all(), required=False, allow_null=True)


# Showcase (vitrine)

class RecipeStockSerializer(serializers.ModelSerializer):
    receita_nome = serializers.CharField(source="receita.nome", read_only=True)
    situacao = serializers.CharField(read_only=True)

    class Meta:
        model = RecipeStock
        fields = [
            "id", "receita", "receita_nome", "quantidade_atual", "quantidade_minima", "unidade",
            "custo_unitario_medio", "situacao", "data_ultima_movimentacao", "updated_at",
        ]
        read_only_fields = fields


class RecipeStockMovementSerializer(serializers.ModelSerializer):
    receita_nome = serializers.CharField(source="receita.nome", read_only=True)

    class Meta:
        model = RecipeStockMovement
        fields = [
            "id", "receita", "receita_nome", "tipo", "quantidade", "custo_unitario", "preco_venda",
            "observacao", "data", "created_at",
        ]
        read_only_fields = fields


class RecipeEntrySerializer(serializers.Serializer):
    receita = OwnedPrimaryKeyField(queryset=Recipe.objects.all())
    quantidade = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=Decimal("0.001"))
    custo_unitario = serializers.DecimalField(
        max_digits=14, decimal_places=4, min_value=Decimal("0"), required=False, allow_null=True
    )
    quantidade_minima = serializers.DecimalField(
        max_digits=14, decimal_places=3, min_value=Decimal("0"), required=False, allow_null=True
    )
    unidade = serializers.CharField(max_length=32, required=False, allow_blank=True)
    observacao = serializers.CharField(required=False, allow_blank=True, default="")
    data = serializers.DateField(required=False, allow_null=True)


class RecipeExitSerializer(serializers.Serializer):
    receita = OwnedPrimaryKeyField(queryset=Recipe.objects.all())
    tipo = serializers.ChoiceField(choices=RecipeStockMovement.TIPOS_SAIDA)
    quantidade = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=Decimal("0.001"))
    preco_venda = serializers.DecimalField(
        max_digits=14, decimal_places=2, min_value=Decimal("0"), required=False, allow_null=True
    )
    observacao = serializers.CharField(required=False, allow_blank=True, default="")
    data = serializers.DateField(required=False, allow_null=True)
