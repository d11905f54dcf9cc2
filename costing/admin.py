from django.contrib import admin

from .models import Employee, FixedExpense, FixedExpenseCategory, MarkupBlock, RevenueEntry, SalesCharge


@admin.register(MarkupBlock)
class MarkupBlockAdmin(admin.ModelAdmin):
    list_display = ("nome", "user", "tipo", "periodo", "margem_lucro", "markup_ideal", "markup_aplicado", "calculado_em")
    list_filter = ("tipo", "periodo")
    search_fields = ("nome", "user__email")


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ("nome", "user", "cargo", "tipo_mao_obra", "salario_base", "custo_por_hora", "ativo")
    list_filter = ("tipo_mao_obra", "ativo")
    search_fields = ("nome", "cargo", "user__email")


@admin.register(FixedExpense)
class FixedExpenseAdmin(admin.ModelAdmin):
    list_display = ("descricao", "user", "categoria", "valor", "ativo")
    list_filter = ("ativo",)


@admin.register(SalesCharge)
class SalesChargeAdmin(admin.ModelAdmin):
    list_display = ("nome", "user", "valor_percentual", "valor_fixo", "ativo")


@admin.register(RevenueEntry)
class RevenueEntryAdmin(admin.ModelAdmin):
    list_display = ("mes", "user", "valor")
    ordering = ("user", "-mes")


admin.site.register(FixedExpenseCategory)
