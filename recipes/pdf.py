"""
Recipe sheet (ficha técnica) rendered to PDF with Pillow.

Pages are drawn as A4 images at 150 DPI and saved as a multi-page PDF.
"""
from __future__ import annotations

import io
import textwrap
from decimal import Decimal

from django.utils import timezone
from django.utils.text import slugify
from PIL import Image, ImageDraw, ImageFont

from .costing import recipe_cost

DPI = 150
PAGE_SIZE = (1240, 1754)
MARGIN = 90
LINE = 30

FONT_PATHS = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "DejaVuSans.ttf",
    "arial.ttf",
)
BOLD_FONT_PATHS = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "DejaVuSans-Bold.ttf",
    "arialbd.ttf",
)

CONSERVATION_LABELS = (("congelado", "Congelado"), ("refrigerado", "Refrigerado"), ("ambiente", "Ambiente"))


def _font(paths, size):
    for path in paths:
        try:
            return ImageFont.truetype(path, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def fmt_money(value) -> str:
    value = Decimal(str(value or 0)).quantize(Decimal("0.01"))
    whole, cents = f"{value:.2f}".split(".")
    whole = f"{int(whole):,}".replace(",", ".")
    return f"R$ {whole},{cents}"


def fmt_qty(value) -> str:
    value = Decimal(str(value or 0)).normalize()
    text = f"{value:f}"
    return text.replace(".", ",")


class PageWriter:
    """Flows text lines and simple tables over as many pages as needed."""

    def __init__(self, footer: str = ""):
        self.footer = footer
        self.pages: list[Image.Image] = []
        self.font = _font(FONT_PATHS, 20)
        self.small = _font(FONT_PATHS, 16)
        self.bold = _font(BOLD_FONT_PATHS, 22)
        self.title_font = _font(BOLD_FONT_PATHS, 34)
        self._new_page()

    def _new_page(self):
        self.page = Image.new("RGB", PAGE_SIZE, color="white")
        self.draw = ImageDraw.Draw(self.page)
        self.pages.append(self.page)
        self.y = MARGIN

    def _ensure(self, height):
        if self.y + height > PAGE_SIZE[1] - MARGIN - LINE:
            self._new_page()

    def title(self, text):
        bbox = self.draw.textbbox((0, 0), text, font=self.title_font)
        x = (PAGE_SIZE[0] - (bbox[2] - bbox[0])) // 2
        self.draw.text((x, self.y), text, fill="black", font=self.title_font)
        self.y += 2 * LINE

    def heading(self, text):
        self._ensure(3 * LINE)
        self.y += LINE // 2
        self.draw.text((MARGIN, self.y), text, fill="black", font=self.bold)
        self.y += LINE + 6
        self.draw.line((MARGIN, self.y - 8, PAGE_SIZE[0] - MARGIN, self.y - 8), fill="#999999", width=1)

    def text(self, text, indent=20, width=90):
        for line in textwrap.wrap(text, width=width) or [""]:
            self._ensure(LINE)
            self.draw.text((MARGIN + indent, self.y), line, fill="black", font=self.font)
            self.y += LINE

    def table(self, headers, rows, widths):
        def draw_row(values, font, fill=None):
            self._ensure(LINE + 8)
            if fill:
                self.draw.rectangle((MARGIN, self.y - 4, PAGE_SIZE[0] - MARGIN, self.y + LINE - 4), fill=fill)
            x = MARGIN + 10
            for value, width in zip(values, widths):
                self.draw.text((x, self.y), str(value)[: max(width // 12, 4)], fill="black", font=font)
                x += width
            self.y += LINE + 4

        draw_row(headers, self.bold, fill="#e6e6e6")
        for row in rows:
            draw_row(row, self.font)

    def render(self) -> bytes:
        total = len(self.pages)
        for number, page in enumerate(self.pages, start=1):
            draw = ImageDraw.Draw(page)
            footer = f"{self.footer}    {number}/{total}" if self.footer else f"{number}/{total}"
            bbox = draw.textbbox((0, 0), footer, font=self.small)
            x = (PAGE_SIZE[0] - (bbox[2] - bbox[0])) // 2
            draw.text((x, PAGE_SIZE[1] - MARGIN // 2 - LINE), footer, fill="#555555", font=self.small)
        buffer = io.BytesIO()
        self.pages[0].save(buffer, "PDF", resolution=DPI, save_all=True, append_images=self.pages[1:])
        return buffer.getvalue()


def _footer(user) -> str:
    profile = getattr(user, "profile", None)
    parts = []
    if profile is not None:
        if profile.nome_fantasia:
            parts.append(profile.nome_fantasia)
        if profile.telefone:
            parts.append(profile.telefone)
    return " | ".join(parts)


def recipe_filename(recipe) -> str:
    return f"ficha-tecnica-{slugify(recipe.nome) or recipe.pk}-{timezone.localdate().isoformat()}.pdf"


def render_recipe_pdf(recipe) -> bytes:
    cost = recipe_cost(recipe)
    writer = PageWriter(footer=_footer(recipe.user))
    writer.title(recipe.nome)

    writer.heading("DADOS")
    if recipe.tipo_produto_id:
        writer.text(f"Tipo do Produto: {recipe.tipo_produto.nome}")
    if recipe.rendimento_valor:
        writer.text(f"Rendimento: {fmt_qty(recipe.rendimento_valor)} {recipe.rendimento_unidade}".strip())
    if recipe.peso_unitario:
        writer.text(f"Peso unitário: {fmt_qty(recipe.peso_unitario)} g")
    if recipe.tempo_preparo_total:
        writer.text(f"Tempo de preparo: {recipe.tempo_preparo_total} min")

    conservacao = recipe.conservacao or {}
    rows = []
    for key, label in CONSERVATION_LABELS:
        entry = conservacao.get(key) or {}
        if entry.get("tempo"):
            rows.append((label, entry.get("temperatura", ""), f"{entry['tempo']} {entry.get('unidade', '')}".strip()))
    if rows:
        writer.heading("CONSERVAÇÃO")
        writer.table(("Local", "Temp. °C", "Tempo"), rows, (360, 300, 300))

    if cost["ingredientes"]:
        writer.heading("INGREDIENTES")
        writer.table(
            ("Ingrediente", "Qtd", "Custo Un.", "Total"),
            [
                (line["nome"], f"{fmt_qty(line['quantidade'])} {line['unidade']}", fmt_money(line["custo_unitario"]),
                 fmt_money(line["custo_total"]))
                for line in cost["ingredientes"] + cost["sub_receitas"]
            ],
            (480, 200, 180, 180),
        )

    if cost["embalagens"]:
        writer.heading("EMBALAGENS")
        writer.table(
            ("Embalagem", "Qtd", "Custo Un.", "Total"),
            [
                (line["nome"], fmt_qty(line["quantidade"]), fmt_money(line["custo_unitario"]),
                 fmt_money(line["custo_total"]))
                for line in cost["embalagens"]
            ],
            (480, 200, 180, 180),
        )

    passos = list(recipe.passos.all())
    if passos:
        writer.heading("MODO DE PREPARO")
        for passo in passos:
            writer.text(f"{passo.ordem}. {passo.descricao}")

    if recipe.observacoes:
        writer.heading("OBSERVAÇÕES")
        writer.text(recipe.observacoes)

    writer.heading("CUSTOS")
    writer.table(
        ("Item", "Valor"),
        [
            ("Ingredientes", fmt_money(cost["custo_ingredientes"] + cost["custo_sub_receitas"])),
            ("Embalagens", fmt_money(cost["custo_embalagens"])),
            ("Mão de Obra", fmt_money(cost["custo_mao_obra"])),
            ("CUSTO TOTAL", fmt_money(cost["custo_total"])),
            ("PREÇO VENDA", fmt_money(recipe.preco_venda)),
        ],
        (600, 300),
    )
    return writer.render()
