from django.contrib import admin

from .models import Brand, Category, MovementReceipt, Product, StockMovement, Supplier


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("codigo_interno", "nome", "user", "unidade_compra", "custo_unitario", "estoque_atual", "estoque_minimo", "ativo")
    list_filter = ("ativo", "unidade_compra")
    search_fields = ("nome", "sku", "user__email")
    ordering = ("user", "codigo_interno")


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ("data_hora", "user", "produto", "tipo", "motivo", "quantidade", "subtotal", "responsavel")
    list_filter = ("tipo", "motivo")
    search_fields = ("produto__nome", "responsavel", "user__email")


@admin.register(MovementReceipt)
class MovementReceiptAdmin(admin.ModelAdmin):
    list_display = ("numero", "user", "tipo", "responsavel", "valor_total", "data_hora")
    list_filter = ("tipo",)


admin.site.register(Category)
admin.site.register(Brand)
admin.site.register(Supplier)
