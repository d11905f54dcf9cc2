"""Measurement units accepted for products and recipe ingredients."""

VALID_UNITS = ("cm", "cx", "fd", "g", "k", "l", "m", "ml", "pct", "un")

UNIT_CHOICES = [
    ("cm", "Centímetro"),
    ("cx", "Caixa"),
    ("fd", "Fardo"),
    ("g", "Grama"),
    ("k", "Quilograma"),
    ("l", "Litro"),
    ("m", "Metro"),
    ("ml", "Mililitro"),
    ("pct", "Pacote"),
    ("un", "Unidade"),
]

UNIT_ALIASES = {
    "kg": "k",
    "pc": "pct",
    "pç": "pct",
    "und": "un",
    "unid": "un",
    "unidade": "un",
    "lt": "l",
}


def normalize_unit(value):
    """Lowercase and resolve aliases; returns None for unknown units."""
    if value is None:
        return None
    unit = str(value).strip().lower()
    unit = UNIT_ALIASES.get(unit, unit)
    return unit if unit in VALID_UNITS else None
