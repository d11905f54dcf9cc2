"""
Models for the recipes app.

A `Recipe` (ficha técnica) lists the stock products it consumes as
ingredients and packaging, other recipes it uses as sub-recipes, the
labor it takes and its preparation steps.  Costs are never stored on the
lines; they are derived from current product costs by `costing.py`.
"""
from decimal import Decimal

from django.conf import settings
from django.db import models


class ProductType(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="tipos_produto")
    nome = models.CharField(max_length=120)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["nome"]
        constraints = [
            models.UniqueConstraint(fields=["user", "nome"], name="uniq_product_type_per_user"),
        ]

    def __str__(self):
        return self.nome


class Recipe(models.Model):
    STATUS_RASCUNHO = "rascunho"
    STATUS_FINALIZADA = "finalizada"
    STATUS_CHOICES = [(STATUS_RASCUNHO, "Rascunho"), (STATUS_FINALIZADA, "Finalizada")]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="receitas")
    numero_sequencial = models.PositiveIntegerField()
    nome = models.CharField(max_length=255)
    tipo_produto = models.ForeignKey(
        ProductType, null=True, blank=True, on_delete=models.SET_NULL, related_name="receitas"
    )
    rendimento_valor = models.DecimalField(max_digits=12, decimal_places=3, null=True, blank=True)
    rendimento_unidade = models.CharField(max_length=16, blank=True)
    peso_unitario = models.DecimalField(max_digits=12, decimal_places=3, null=True, blank=True)
    # minutes
    tempo_preparo_total = models.PositiveIntegerField(default=0)
    tempo_preparo_mao_obra = models.PositiveIntegerField(default=0)
    # {"congelado": {"temperatura": -18, "tempo": 3, "unidade": "meses"}, "refrigerado": {...}, "ambiente": {...}}
    conservacao = models.JSONField(default=dict, blank=True)
    observacoes = models.TextField(blank=True)
    imagem_url = models.URLField(max_length=500, blank=True)
    markup = models.ForeignKey(
        "costing.MarkupBlock", null=True, blank=True, on_delete=models.SET_NULL, related_name="receitas"
    )
    preco_venda = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_RASCUNHO)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-numero_sequencial"]
        constraints = [
            models.UniqueConstraint(fields=["user", "numero_sequencial"], name="uniq_recipe_number_per_user"),
        ]
        indexes = [
            models.Index(fields=["user", "status"], name="recipes_status_idx"),
        ]

    def __str__(self):
        return f"#{self.numero_sequencial} {self.nome}"


class RecipeIngredient(models.Model):
    receita = models.ForeignKey(Recipe, on_delete=models.CASCADE, related_name="ingredientes")
    produto = models.ForeignKey("inventory.Product", on_delete=models.PROTECT, related_name="+")
    quantidade = models.DecimalField(max_digits=14, decimal_places=4)

    class Meta:
        ordering = ["id"]


class RecipePackaging(models.Model):
    receita = models.ForeignKey(Recipe, on_delete=models.CASCADE, related_name="embalagens")
    produto = models.ForeignKey("inventory.Product", on_delete=models.PROTECT, related_name="+")
    quantidade = models.DecimalField(max_digits=14, decimal_places=4)

    class Meta:
        ordering = ["id"]


class RecipeSubRecipe(models.Model):
    receita = models.ForeignKey(Recipe, on_delete=models.CASCADE, related_name="sub_receitas")
    sub_receita = models.ForeignKey(Recipe, on_delete=models.PROTECT, related_name="usada_em")
    quantidade = models.DecimalField(max_digits=14, decimal_places=4)
    unidade = models.CharField(max_length=16, blank=True)

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(condition=~models.Q(receita=models.F("sub_receita")), name="sub_recipe_not_self"),
        ]


class RecipeLabor(models.Model):
    UNIDADE_MINUTOS = "minutos"
    UNIDADE_HORAS = "horas"
    UNIDADE_DIAS = "dias"
    UNIDADE_CHOICES = [(UNIDADE_MINUTOS, "Minutos"), (UNIDADE_HORAS, "Horas"), (UNIDADE_DIAS, "Dias")]

    receita = models.ForeignKey(Recipe, on_delete=models.CASCADE, related_name="mao_obra")
    funcionario = models.ForeignKey(
        "costing.Employee", null=True, blank=True, on_delete=models.SET_NULL, related_name="+"
    )
    descricao = models.CharField(max_length=255, blank=True)
    tempo = models.DecimalField(max_digits=10, decimal_places=2)
    unidade_tempo = models.CharField(max_length=8, choices=UNIDADE_CHOICES, default=UNIDADE_MINUTOS)
    custo_por_hora = models.DecimalField(max_digits=14, decimal_places=4, default=Decimal("0"))
    valor_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))

    class Meta:
        ordering = ["id"]


class RecipeStep(models.Model):
    receita = models.ForeignKey(Recipe, on_delete=models.CASCADE, related_name="passos")
    ordem = models.PositiveIntegerField()
    descricao = models.TextField()
    imagem_url = models.URLField(max_length=500, blank=True)

    class Meta:
        ordering = ["ordem"]


class RecipeStock(models.Model):
    """Finished units of a recipe on display for sale (vitrine)."""

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="estoque_receitas")
    receita = models.ForeignKey(Recipe, on_delete=models.CASCADE, related_name="estoques")
    quantidade_atual = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal("0"))
    quantidade_minima = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal("0"))
    unidade = models.CharField(max_length=32, default="unidades")
    custo_unitario_medio = models.DecimalField(max_digits=14, decimal_places=4, default=Decimal("0"))
    ativo = models.BooleanField(default=True)
    data_ultima_movimentacao = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["receita__nome"]
        constraints = [
            models.UniqueConstraint(fields=["user", "receita"], name="uniq_recipe_stock_per_user"),
        ]

    def __str__(self):
        return f"{self.receita.nome}: {self.quantidade_atual} {self.unidade}"

    @property
    def situacao(self) -> str:
        if self.quantidade_atual <= 0:
            return "sem_estoque"
        if self.quantidade_atual <= self.quantidade_minima:
            return "baixo"
        return "normal"


class RecipeStockMovement(models.Model):
    TIPO_ENTRADA = "entrada"
    TIPO_VENDA = "venda"
    TIPO_PERDAS = "perdas"
    TIPO_BRINDES = "brindes"
    TIPO_CHOICES = [
        (TIPO_ENTRADA, "Entrada"),
        (TIPO_VENDA, "Venda"),
        (TIPO_PERDAS, "Perdas"),
        (TIPO_BRINDES, "Brindes"),
    ]
    TIPOS_SAIDA = (TIPO_VENDA, TIPO_PERDAS, TIPO_BRINDES)

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="movimentacoes_receitas"
    )
    receita = models.ForeignKey(Recipe, on_delete=models.CASCADE, related_name="movimentacoes_estoque")
    tipo = models.CharField(max_length=16, choices=TIPO_CHOICES)
    quantidade = models.DecimalField(max_digits=14, decimal_places=3)
    custo_unitario = models.DecimalField(max_digits=14, decimal_places=4, default=Decimal("0"))
    # Only set on sales
    preco_venda = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    observacao = models.TextField(blank=True)
    data = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-data", "-created_at"]
        indexes = [
            models.Index(fields=["user", "data"], name="recipes_stock_mov_date_idx"),
        ]

    def __str__(self):
        return f"{self.get_tipo_display()} {self.quantidade} x {self.receita_id}"
