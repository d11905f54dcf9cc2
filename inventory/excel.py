"""
Excel import/export for products.

Spreadsheets are read and written with pandas (openpyxl reads, xlsxwriter
writes).  The import validates every row independently and reports
problems as "Linha N: ..." where N is the spreadsheet row number (the
header is row 1), so a partially valid file still imports its good rows.
"""
from __future__ import annotations

import io
import logging
from decimal import Decimal, InvalidOperation

import pandas as pd
from django.db import IntegrityError, transaction

from billing.limits import check_limit
from billing.plans import RESOURCE_PRODUCTS
from common.exceptions import PlanLimitExceeded
from common.files import read_excel
from .models import Brand, Category, Product
from .services import get_or_create_named, next_codigo_interno
from .units import VALID_UNITS, normalize_unit

logger = logging.getLogger(__name__)

COLUMNS = [
    "nome",
    "codigo_interno",
    "codigos_barras",
    "marcas",
    "categorias",
    "unidade_compra",
    "unidade_uso",
    "fator_conversao",
    "custo_unitario",
    "estoque_atual",
    "estoque_minimo",
]

TEMPLATE_EXAMPLE = {
    "nome": "Farinha de trigo",
    "codigo_interno": "",
    "codigos_barras": "7891234567890",
    "marcas": "Marca A",
    "categorias": "Secos,Farinhas",
    "unidade_compra": "k",
    "unidade_uso": "g",
    "fator_conversao": 1000,
    "custo_unitario": 5.49,
    "estoque_atual": 10,
    "estoque_minimo": 2,
}


def _blank(value) -> bool:
    return value is None or (isinstance(value, float) and pd.isna(value)) or str(value).strip() == ""


def _split(value) -> list[str]:
    if _blank(value):
        return []
    return [part.strip() for part in str(value).split(",") if part.strip()]


def _decimal(value, default=None):
    if _blank(value):
        return default
    try:
        return Decimal(str(value).strip().replace(",", "."))
    except InvalidOperation:
        raise ValueError(value)


def _write_sheet(df: pd.DataFrame, sheet_name: str) -> bytes:
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="xlsxwriter") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)
        worksheet = writer.sheets[sheet_name]
        workbook = writer.book
        header_format = workbook.add_format({
            "bold": True,
            "text_wrap": True,
            "valign": "top",
            "fg_color": "#D7E4BC",
            "border": 1,
            "align": "center",
        })
        for col_num, value in enumerate(df.columns.values):
            worksheet.write(0, col_num, value, header_format)
        for i, col in enumerate(df.columns):
            lengths = df[col].astype(str).map(len)
            max_length = max(lengths.max() if len(lengths) else 0, len(col))
            worksheet.set_column(i, i, max_length + 2)
    output.seek(0)
    return output.getvalue()


def export_products(queryset) -> bytes:
    rows = []
    for p in queryset.prefetch_related("marcas", "categorias").order_by("codigo_interno"):
        rows.append({
            "nome": p.nome,
            "codigo_interno": p.codigo_interno,
            "codigos_barras": ",".join(p.codigos_barras or []),
            "marcas": ",".join(m.nome for m in p.marcas.all()),
            "categorias": ",".join(c.nome for c in p.categorias.all()),
            "unidade_compra": p.unidade_compra,
            "unidade_uso": p.unidade_uso or "",
            "fator_conversao": float(p.fator_conversao) if p.fator_conversao is not None else "",
            "custo_unitario": float(p.custo_unitario),
            "estoque_atual": float(p.estoque_atual),
            "estoque_minimo": float(p.estoque_minimo) if p.estoque_minimo is not None else "",
        })
    return _write_sheet(pd.DataFrame(rows, columns=COLUMNS), "Produtos")


def products_template() -> bytes:
    return _write_sheet(pd.DataFrame([TEMPLATE_EXAMPLE], columns=COLUMNS), "Produtos")


def validate_row(row, line: int) -> list[str]:
    errors = []
    if _blank(row.get("nome")):
        errors.append(f"Linha {line}: Nome é obrigatório")
    if normalize_unit(row.get("unidade_compra")) is None:
        errors.append(f"Linha {line}: Unidade de compra inválida (use: {', '.join(VALID_UNITS)})")
    if not _blank(row.get("unidade_uso")) and normalize_unit(row.get("unidade_uso")) is None:
        errors.append(f"Linha {line}: Unidade de uso inválida (use: {', '.join(VALID_UNITS)})")
    for field, label in (
        ("custo_unitario", "Custo unitário"),
        ("estoque_atual", "Estoque atual"),
        ("estoque_minimo", "Estoque mínimo"),
    ):
        try:
            value = _decimal(row.get(field), Decimal("0"))
        except ValueError:
            value = None
        if value is None or value < 0:
            errors.append(f"Linha {line}: {label} inválido")
    if not _blank(row.get("fator_conversao")):
        try:
            factor = _decimal(row.get("fator_conversao"))
        except ValueError:
            factor = None
        if factor is None or factor <= 0:
            errors.append(f"Linha {line}: Fator de conversão inválido")
        if _blank(row.get("unidade_uso")):
            errors.append(f"Linha {line}: Se informar fator de conversão, unidade de uso é obrigatória")
    return errors


def read_sheet(content: bytes, sheet_name=0) -> pd.DataFrame:
    df = read_excel(content, sheet_name=sheet_name, dtype=object)
    df.columns = [str(c).strip().lower() for c in df.columns]
    return df


def import_products(user, content: bytes) -> dict:
    """Create products from the first sheet of an .xlsx file."""
    df = read_sheet(content)
    errors: list[str] = []
    created = 0
    brands_created = 0
    categories_created = 0

    for index, record in enumerate(df.to_dict(orient="records")):
        line = index + 2
        row_errors = validate_row(record, line)
        if row_errors:
            errors.extend(row_errors)
            continue
        try:
            check_limit(user, RESOURCE_PRODUCTS)
        except PlanLimitExceeded as exc:
            errors.append(f"Linha {line}: limite de produtos do plano atingido ({exc.limit})")
            continue

        codigo = record.get("codigo_interno")
        if _blank(codigo):
            codigo = None
        else:
            try:
                codigo = int(float(codigo))
            except (TypeError, ValueError):
                errors.append(f"Linha {line}: Código interno inválido")
                continue

        unidade_uso = normalize_unit(record.get("unidade_uso")) or ""
        try:
            with transaction.atomic():
                if codigo is None:
                    codigo = next_codigo_interno(user)
                product = Product.objects.create(
                    user=user,
                    nome=str(record["nome"]).strip(),
                    codigo_interno=codigo,
                    codigos_barras=_split(record.get("codigos_barras")),
                    unidade_compra=normalize_unit(record.get("unidade_compra")),
                    unidade_uso=unidade_uso,
                    fator_conversao=_decimal(record.get("fator_conversao")) if unidade_uso else None,
                    custo_unitario=_decimal(record.get("custo_unitario"), Decimal("0")),
                    estoque_atual=_decimal(record.get("estoque_atual"), Decimal("0")),
                    estoque_minimo=_decimal(record.get("estoque_minimo")),
                )
                brands, n = get_or_create_named(Brand, user, _split(record.get("marcas")))
                brands_created += n
                product.marcas.set(brands)
                categories, n = get_or_create_named(Category, user, _split(record.get("categorias")))
                categories_created += n
                product.categorias.set(categories)
        except IntegrityError:
            errors.append(f"Linha {line}: Erro ao criar produto - código interno {codigo} já existe")
            continue
        created += 1

    if errors:
        logger.info("Product import for user %s: %d created, %d errors", user.pk, created, len(errors))
    return {
        "produtos_criados": created,
        "marcas_criadas": brands_created,
        "categorias_criadas": categories_created,
        "erros": errors,
    }
