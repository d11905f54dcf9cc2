from django.contrib import admin

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


class RecipeIngredientInline(admin.TabularInline):
    model = RecipeIngredient
    extra = 0
    raw_id_fields = ("produto",)


class RecipePackagingInline(admin.TabularInline):
    model = RecipePackaging
    extra = 0
    raw_id_fields = ("produto",)


class RecipeSubRecipeInline(admin.TabularInline):
    model = RecipeSubRecipe
    fk_name = "receita"
    extra = 0
    raw_id_fields = ("sub_receita",)


class RecipeLaborInline(admin.TabularInline):
    model = RecipeLabor
    extra = 0


class RecipeStepInline(admin.TabularInline):
    model = RecipeStep
    extra = 0


@admin.register(Recipe)
class RecipeAdmin(admin.ModelAdmin):
    list_display = ("numero_sequencial", "nome", "user", "status", "preco_venda", "updated_at")
    list_filter = ("status",)
    search_fields = ("nome", "user__email")
    inlines = [
        RecipeIngredientInline,
        RecipePackagingInline,
        RecipeSubRecipeInline,
        RecipeLaborInline,
        RecipeStepInline,
    ]


admin.site.register(ProductType)


@admin.register(RecipeStock)
class RecipeStockAdmin(admin.ModelAdmin):
    list_display = ("receita", "user", "quantidade_atual", "quantidade_minima", "custo_unitario_medio", "ativo")
    list_filter = ("ativo",)
    raw_id_fields = ("receita",)


@admin.register(RecipeStockMovement)
class RecipeStockMovementAdmin(admin.ModelAdmin):
    list_display = ("data", "tipo", "receita", "user", "quantidade", "preco_venda")
    list_filter = ("tipo",)
    raw_id_fields = ("receita",)
