"""
Models for the inventory app.

Every row belongs to one account (`user`).  Products carry their current
stock; every change to it is recorded as a `StockMovement`, grouped by
the `MovementReceipt` (comprovante) issued when a movement cart is
finalized.
"""
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from .units import UNIT_CHOICES


class Category(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="categorias")
    nome = models.CharField(max_length=120)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["nome"]
        constraints = [
            models.UniqueConstraint(fields=["user", "nome"], name="uniq_category_per_user"),
        ]

    def __str__(self):
        return self.nome


class Brand(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="marcas")
    nome = models.CharField(max_length=120)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["nome"]
        constraints = [
            models.UniqueConstraint(fields=["user", "nome"], name="uniq_brand_per_user"),
        ]

    def __str__(self):
        return self.nome


class Supplier(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="fornecedores")
    nome = models.CharField(max_length=255)
    cnpj_cpf = models.CharField(max_length=32, blank=True)
    contato = models.CharField(max_length=255, blank=True)
    telefone = models.CharField(max_length=32, blank=True)
    email = models.EmailField(blank=True)
    observacoes = models.TextField(blank=True)
    ativo = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["nome"]
        constraints = [
            models.UniqueConstraint(fields=["user", "nome"], name="uniq_supplier_per_user"),
        ]

    def __str__(self):
        return self.nome


class Product(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="produtos")
    nome = models.CharField(max_length=255)
    codigo_interno = models.PositiveIntegerField()
    codigos_barras = models.JSONField(default=list, blank=True)
    sku = models.CharField(max_length=64, blank=True)
    marcas = models.ManyToManyField(Brand, blank=True, related_name="produtos")
    categorias = models.ManyToManyField(Category, blank=True, related_name="produtos")
    fornecedores = models.ManyToManyField(Supplier, blank=True, related_name="produtos")

    unidade_compra = models.CharField(max_length=8, choices=UNIT_CHOICES, default="un")
    # When set, recipes consume the product in this unit: one purchase unit
    # holds `fator_conversao` usage units.
    unidade_uso = models.CharField(max_length=8, choices=UNIT_CHOICES, blank=True)
    fator_conversao = models.DecimalField(max_digits=14, decimal_places=4, null=True, blank=True)

    custo_unitario = models.DecimalField(max_digits=14, decimal_places=4, default=Decimal("0"))
    estoque_atual = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal("0"))
    estoque_minimo = models.DecimalField(max_digits=14, decimal_places=3, null=True, blank=True)
    ativo = models.BooleanField(default=True)
    imagem_url = models.URLField(max_length=500, blank=True)

    # Nutrition label
    rotulo_porcao = models.CharField(max_length=64, blank=True)
    rotulo_kcal = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    rotulo_carb = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    rotulo_prot = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    rotulo_gord_total = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    rotulo_gord_sat = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    rotulo_gord_trans = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    rotulo_fibra = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    rotulo_sodio = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["codigo_interno"]
        constraints = [
            models.UniqueConstraint(fields=["user", "codigo_interno"], name="uniq_product_code_per_user"),
            models.CheckConstraint(condition=Q(estoque_atual__gte=0), name="product_stock_non_negative"),
        ]
        indexes = [
            models.Index(fields=["user", "ativo"], name="inv_product_user_active_idx"),
            models.Index(fields=["user", "nome"], name="inv_product_user_name_idx"),
        ]

    def __str__(self):
        return f"{self.codigo_interno} - {self.nome}"

    @property
    def abaixo_minimo(self) -> bool:
        return self.estoque_minimo is not None and self.estoque_atual < self.estoque_minimo

    @property
    def custo_por_unidade_uso(self) -> Decimal:
        """Cost of one usage unit (falls back to the purchase unit)."""
        if self.unidade_uso:
            factor = self.fator_conversao or Decimal("1")
            if factor == 0:
                factor = Decimal("1")
            return self.custo_unitario / factor
        return self.custo_unitario

    @property
    def valor_em_estoque(self) -> Decimal:
        return self.custo_unitario * self.estoque_atual


def below_minimum_q():
    return Q(estoque_minimo__isnull=False) & Q(estoque_atual__lt=F("estoque_minimo"))


class MovementReceipt(models.Model):
    """Comprovante issued for one finalized movement cart."""

    TIPO_ENTRADA = "entrada"
    TIPO_SAIDA = "saida"
    TIPO_CHOICES = [(TIPO_ENTRADA, "Entrada"), (TIPO_SAIDA, "Saída")]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="comprovantes")
    numero = models.PositiveIntegerField()
    tipo = models.CharField(max_length=10, choices=TIPO_CHOICES)
    responsavel = models.CharField(max_length=255)
    origem = models.CharField(max_length=255, blank=True)
    observacao = models.TextField(blank=True)
    valor_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    data_hora = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-data_hora", "-numero"]
        constraints = [
            models.UniqueConstraint(fields=["user", "numero"], name="uniq_receipt_number_per_user"),
        ]

    def __str__(self):
        return f"Comprovante #{self.numero}"


class StockMovement(models.Model):
    TIPO_ENTRADA = MovementReceipt.TIPO_ENTRADA
    TIPO_SAIDA = MovementReceipt.TIPO_SAIDA
    TIPO_CHOICES = MovementReceipt.TIPO_CHOICES

    MOTIVOS_ENTRADA = [
        "Compra de fornecedor",
        "Devolução de cliente",
        "Ajuste de inventário (aumento)",
        "Transferência entre estabelecimentos",
        "Produção interna",
        "Doação recebida",
        "Outros",
    ]
    MOTIVOS_SAIDA = [
        "Venda",
        "Consumo interno",
        "Perda/Quebra",
        "Vencimento",
        "Devolução a fornecedor",
        "Ajuste de inventário (redução)",
        "Doação",
        "Transferência entre estabelecimentos",
        "Outros",
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="movimentacoes")
    produto = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="movimentacoes")
    comprovante = models.ForeignKey(
        MovementReceipt, on_delete=models.CASCADE, related_name="movimentacoes", null=True, blank=True
    )
    tipo = models.CharField(max_length=10, choices=TIPO_CHOICES)
    motivo = models.CharField(max_length=64)
    quantidade = models.DecimalField(max_digits=14, decimal_places=3)
    custo_aplicado = models.DecimalField(max_digits=14, decimal_places=4, default=Decimal("0"))
    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    responsavel = models.CharField(max_length=255)
    origem = models.CharField(max_length=255, blank=True)
    observacao = models.TextField(blank=True)
    data_hora = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-data_hora", "-id"]
        indexes = [
            models.Index(fields=["user", "data_hora"], name="inv_movement_user_date_idx"),
            models.Index(fields=["user", "tipo"], name="inv_movement_user_type_idx"),
        ]

    def __str__(self):
        return f"{self.get_tipo_display()} {self.quantidade} x {self.produto_id}"
