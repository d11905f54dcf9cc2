"""
Recipe import from a client's Excel workbook.

Each sheet holds one recipe.  Cell A1 is the recipe name; label rows in
column B ("Tipo do Produto", "Rendimento", "Congelado", "Refrigerado",
"Ambiente") carry the header data, and the INGREDIENTES, EMBALAGEM and
MODO DE PREPARO markers in column A start the component sections.
Ingredient and packaging sections have one header row after the marker.
"""
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

import pandas as pd
from django.db import transaction

from common.files import read_excel
from inventory.models import Category, Product
from inventory.services import get_or_create_named, next_codigo_interno
from inventory.units import normalize_unit
from recipes.models import ProductType, Recipe, RecipeIngredient, RecipePackaging, RecipeStep
from recipes.services import next_numero_sequencial

logger = logging.getLogger(__name__)

MARKER_INGREDIENTS = "INGREDIENTES"
MARKER_PACKAGING = "EMBALAGEM"
MARKER_STEPS = "MODO DE PREPARO"
MARKERS = (MARKER_INGREDIENTS, MARKER_PACKAGING, MARKER_STEPS)

DEFAULT_PRODUCT_TYPE = "MASSA"
MIN_STEP_LENGTH = 5

UNIT_LABELS = {
    "Grama (g)": "g",
    "Quilograma (kg)": "k",
    "Mililitro (ml)": "ml",
    "Litro (l)": "l",
    "Unidade": "un",
    "Centímetro": "cm",
}


def _cell(row, index):
    if index >= len(row):
        return None
    value = row[index]
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _number(value) -> Decimal:
    if value is None:
        return Decimal("0")
    try:
        return Decimal(str(value).replace(",", "."))
    except InvalidOperation:
        return Decimal("0")


def _unit(label, default):
    if label is None:
        return default
    return normalize_unit(UNIT_LABELS.get(str(label), label)) or default


def read_workbook(content: bytes) -> dict:
    """Sheet name -> list of row lists, read without a header row."""
    sheets = read_excel(content, sheet_name=None, header=None, dtype=object)
    return {name: df.values.tolist() for name, df in sheets.items()}


def parse_recipe_sheet(sheet_name, rows) -> dict:
    recipe = {
        "nome": str(_cell(rows[0], 0) or sheet_name) if rows else sheet_name,
        "tipo_produto": DEFAULT_PRODUCT_TYPE,
        "rendimento_valor": Decimal("0"),
        "rendimento_unidade": "g",
        "conservacao": {},
        "ingredientes": [],
        "embalagens": [],
        "passos": [],
    }
    for row in rows:
        label, value, extra = _cell(row, 1), _cell(row, 2), _cell(row, 3)
        if label == "Tipo do Produto" and value:
            recipe["tipo_produto"] = str(value)
        elif label == "Rendimento" and value:
            recipe["rendimento_valor"] = _number(value)
            recipe["rendimento_unidade"] = _unit(extra, "g")
        elif label in ("Congelado", "Refrigerado", "Ambiente") and value and extra:
            recipe["conservacao"][label.lower()] = {"temperatura": str(value), "tempo": str(extra)}

    starts = {}
    for index, row in enumerate(rows):
        marker = _cell(row, 0)
        if marker in MARKERS:
            starts[marker] = index + (1 if marker == MARKER_STEPS else 2)

    for marker, key, default_unit in (
        (MARKER_INGREDIENTS, "ingredientes", "g"),
        (MARKER_PACKAGING, "embalagens", "un"),
    ):
        if marker not in starts:
            continue
        for row in rows[starts[marker]:]:
            nome = _cell(row, 0)
            if nome is None or nome in MARKERS:
                break
            quantidade = _number(_cell(row, 1))
            if quantidade == 0:
                continue
            recipe[key].append({"nome": str(nome), "quantidade": quantidade, "unidade": _unit(_cell(row, 2), default_unit)})

    if MARKER_STEPS in starts:
        for row in rows[starts[MARKER_STEPS]:]:
            descricao = _cell(row, 0)
            if descricao is None or len(str(descricao)) < MIN_STEP_LENGTH:
                continue
            recipe["passos"].append(str(descricao))
    return recipe


class _ProductResolver:
    """Find products by name in the client's stock, creating missing ones."""

    def __init__(self, user):
        self.user = user
        self.created = 0
        self.existing = 0

    def __call__(self, nome, unidade, category_name):
        product = Product.objects.filter(user=self.user, nome__iexact=nome).first()
        if product is not None:
            self.existing += 1
            return product
        product = Product.objects.create(
            user=self.user,
            nome=nome,
            codigo_interno=next_codigo_interno(self.user),
            unidade_compra=unidade,
        )
        categories, _ = get_or_create_named(Category, self.user, [category_name])
        product.categorias.set(categories)
        self.created += 1
        return product


def _create_recipe(user, parsed, resolve) -> Recipe:
    tipo, _ = ProductType.objects.get_or_create(user=user, nome=parsed["tipo_produto"])
    recipe = Recipe.objects.create(
        user=user,
        numero_sequencial=next_numero_sequencial(user),
        nome=parsed["nome"],
        tipo_produto=tipo,
        rendimento_valor=parsed["rendimento_valor"],
        rendimento_unidade=parsed["rendimento_unidade"],
        conservacao=parsed["conservacao"],
        status=Recipe.STATUS_FINALIZADA,
    )
    RecipeIngredient.objects.bulk_create(
        RecipeIngredient(receita=recipe, produto=resolve(line["nome"], line["unidade"], "INGREDIENTES"),
                         quantidade=line["quantidade"])
        for line in parsed["ingredientes"]
    )
    RecipePackaging.objects.bulk_create(
        RecipePackaging(receita=recipe, produto=resolve(line["nome"], line["unidade"], "EMBALAGENS"),
                        quantidade=line["quantidade"])
        for line in parsed["embalagens"]
    )
    RecipeStep.objects.bulk_create(
        RecipeStep(receita=recipe, ordem=ordem, descricao=descricao)
        for ordem, descricao in enumerate(parsed["passos"], start=1)
    )
    return recipe


def import_recipes(user, content: bytes) -> dict:
    """Create one recipe per sheet for `user`; a failing sheet does not stop the others."""
    workbook = read_workbook(content)
    resolve = _ProductResolver(user)
    details, errors = [], []

    for sheet_name, rows in workbook.items():
        counts = (resolve.created, resolve.existing)
        try:
            parsed = parse_recipe_sheet(sheet_name, rows)
            with transaction.atomic():
                recipe = _create_recipe(user, parsed, resolve)
        except Exception as exc:
            logger.exception("Recipe sheet %r failed for user %s", sheet_name, user.pk)
            resolve.created, resolve.existing = counts
            errors.append({"receita": sheet_name, "erro": str(exc)})
            continue
        details.append({"receita": recipe.nome, "status": "criada", "id": recipe.pk})

    logger.info("Recipe import for user %s: %d created, %d errors", user.pk, len(details), len(errors))
    return {
        "receitas_criadas": len(details),
        "produtos_criados": resolve.created,
        "produtos_existentes": resolve.existing,
        "detalhes": details,
        "erros": errors,
    }
