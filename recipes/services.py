"""
Recipe operations: numbering, component replacement, sub-recipe cycle
detection, duplication and markup pricing.
"""
from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import Max

from billing.limits import check_limit
from billing.plans import RESOURCE_RECIPES
from common.exceptions import BusinessRuleError
from users.models import UserProfile
from .costing import labor_value, price_from_markup, recipe_cost
from .models import Recipe, RecipeIngredient, RecipeLabor, RecipePackaging, RecipeStep, RecipeSubRecipe

logger = logging.getLogger(__name__)

COMPONENTS = ("ingredientes", "embalagens", "sub_receitas", "mao_obra", "passos")


def next_numero_sequencial(user) -> int:
    UserProfile.objects.lock(user)
    current = Recipe.objects.filter(user=user).aggregate(m=Max("numero_sequencial"))["m"]
    return (current or 0) + 1


def creates_cycle(recipe: Recipe | None, sub_recipe: Recipe) -> bool:
    """True when using `sub_recipe` inside `recipe` would make a loop."""
    if recipe is None or recipe.pk is None:
        return False
    if sub_recipe.pk == recipe.pk:
        return True
    seen = set()
    pending = [sub_recipe.pk]
    while pending:
        current = pending.pop()
        if current == recipe.pk:
            return True
        if current in seen:
            continue
        seen.add(current)
        pending.extend(
            RecipeSubRecipe.objects.filter(receita_id=current).values_list("sub_receita_id", flat=True)
        )
    return False


def _labor_row(recipe, data):
    funcionario = data.get("funcionario")
    custo_por_hora = data.get("custo_por_hora")
    horas_por_dia = None
    if funcionario is not None:
        if not custo_por_hora:
            custo_por_hora = funcionario.custo_por_hora
        horas_por_dia = funcionario.horas_por_dia
        if not data.get("descricao"):
            data["descricao"] = funcionario.nome
    data["custo_por_hora"] = custo_por_hora or 0
    data["valor_total"] = labor_value(data["custo_por_hora"], data["tempo"], data.get("unidade_tempo"), horas_por_dia)
    return RecipeLabor(receita=recipe, **data)


def replace_components(recipe: Recipe, components: dict) -> None:
    """Replace every component list present in `components`."""
    if "ingredientes" in components:
        recipe.ingredientes.all().delete()
        RecipeIngredient.objects.bulk_create(
            [RecipeIngredient(receita=recipe, **row) for row in components["ingredientes"]]
        )
    if "embalagens" in components:
        recipe.embalagens.all().delete()
        RecipePackaging.objects.bulk_create(
            [RecipePackaging(receita=recipe, **row) for row in components["embalagens"]]
        )
    if "sub_receitas" in components:
        for row in components["sub_receitas"]:
            if creates_cycle(recipe, row["sub_receita"]):
                raise BusinessRuleError(f"A receita {row['sub_receita'].nome} não pode ser usada como sub-receita aqui.")
        recipe.sub_receitas.all().delete()
        RecipeSubRecipe.objects.bulk_create(
            [RecipeSubRecipe(receita=recipe, **row) for row in components["sub_receitas"]]
        )
    if "mao_obra" in components:
        recipe.mao_obra.all().delete()
        RecipeLabor.objects.bulk_create([_labor_row(recipe, dict(row)) for row in components["mao_obra"]])
    if "passos" in components:
        recipe.passos.all().delete()
        RecipeStep.objects.bulk_create([RecipeStep(receita=recipe, **row) for row in components["passos"]])


@transaction.atomic
def create_recipe(user, data: dict, components: dict) -> Recipe:
    check_limit(user, RESOURCE_RECIPES)
    recipe = Recipe.objects.create(user=user, numero_sequencial=next_numero_sequencial(user), **data)
    replace_components(recipe, components)
    return recipe


@transaction.atomic
def update_recipe(recipe: Recipe, data: dict, components: dict) -> Recipe:
    for key, value in data.items():
        setattr(recipe, key, value)
    recipe.save()
    replace_components(recipe, components)
    return recipe


@transaction.atomic
def duplicate_recipe(recipe: Recipe) -> Recipe:
    check_limit(recipe.user, RESOURCE_RECIPES)
    source_pk = recipe.pk
    copy = Recipe.objects.get(pk=source_pk)
    copy.pk = None
    copy.id = None
    copy.nome = f"{recipe.nome} (cópia)"
    copy.status = Recipe.STATUS_RASCUNHO
    copy.numero_sequencial = next_numero_sequencial(recipe.user)
    copy.save()

    for model in (RecipeIngredient, RecipePackaging, RecipeSubRecipe, RecipeLabor, RecipeStep):
        rows = list(model.objects.filter(receita_id=source_pk))
        for row in rows:
            row.pk = None
            row.id = None
            row.receita = copy
        model.objects.bulk_create(rows)
    logger.info("Duplicated recipe %s as %s for user %s", source_pk, copy.pk, recipe.user_id)
    return copy


def apply_markup(recipe: Recipe, markup_block=None) -> Recipe:
    block = markup_block or recipe.markup
    if block is None:
        raise BusinessRuleError("Selecione um bloco de markup.")
    cost = recipe_cost(recipe)
    recipe.markup = block
    recipe.preco_venda = price_from_markup(cost["custo_total"], block.markup_aplicado)
    recipe.save(update_fields=["markup", "preco_venda", "updated_at"])
    return recipe
