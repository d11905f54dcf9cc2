"""
Subscription plans and their feature limits.

Plans are static configuration rather than database rows: prices shown in
the app, per-resource limits and the plan hierarchy used for feature
gating.  A limit of `UNLIMITED` (-1) means the resource is not capped.
"""
from __future__ import annotations

from decimal import Decimal

PLAN_FREE = "free"
PLAN_PROFESSIONAL = "professional"
PLAN_ENTERPRISE = "enterprise"
PLAN_CHOICES = [
    (PLAN_FREE, "Gratuito"),
    (PLAN_PROFESSIONAL, "Profissional"),
    (PLAN_ENTERPRISE, "Empresarial"),
]

PLAN_HIERARCHY = {PLAN_FREE: 0, PLAN_PROFESSIONAL: 1, PLAN_ENTERPRISE: 2}

UNLIMITED = -1

RESOURCE_PRODUCTS = "produtos"
RESOURCE_RECIPES = "receitas"
RESOURCE_MARKUPS = "markups"
RESOURCE_MOVEMENTS = "movimentacoes"
RESOURCE_PDF_EXPORTS = "pdf_exports"
RESOURCES = (
    RESOURCE_PRODUCTS,
    RESOURCE_RECIPES,
    RESOURCE_MARKUPS,
    RESOURCE_MOVEMENTS,
    RESOURCE_PDF_EXPORTS,
)

PLAN_CONFIGS = {
    PLAN_FREE: {
        "name": "Gratuito",
        "price": Decimal("0.00"),
        "price_yearly": Decimal("0.00"),
        "limits": {
            RESOURCE_PRODUCTS: 30,
            RESOURCE_RECIPES: 5,
            RESOURCE_MARKUPS: 1,
            RESOURCE_MOVEMENTS: UNLIMITED,
            RESOURCE_PDF_EXPORTS: 0,
        },
    },
    PLAN_PROFESSIONAL: {
        "name": "Profissional",
        "price": Decimal("49.90"),
        "price_yearly": Decimal("478.80"),
        "limits": {
            RESOURCE_PRODUCTS: UNLIMITED,
            RESOURCE_RECIPES: 60,
            RESOURCE_MARKUPS: 3,
            RESOURCE_MOVEMENTS: UNLIMITED,
            RESOURCE_PDF_EXPORTS: 80,
        },
    },
    PLAN_ENTERPRISE: {
        "name": "Empresarial",
        "price": Decimal("89.90"),
        "price_yearly": Decimal("838.80"),
        "limits": {
            RESOURCE_PRODUCTS: UNLIMITED,
            RESOURCE_RECIPES: UNLIMITED,
            RESOURCE_MARKUPS: UNLIMITED,
            RESOURCE_MOVEMENTS: UNLIMITED,
            RESOURCE_PDF_EXPORTS: UNLIMITED,
        },
    },
}

BILLING_MONTHLY = "monthly"
BILLING_YEARLY = "yearly"
BILLING_CHOICES = [(BILLING_MONTHLY, "Mensal"), (BILLING_YEARLY, "Anual")]

# Legacy spellings found in Stripe metadata and older rows
_PLAN_ALIASES = {
    "gratuito": PLAN_FREE,
    "profissional": PLAN_PROFESSIONAL,
    "pro": PLAN_PROFESSIONAL,
    "empresarial": PLAN_ENTERPRISE,
}


def normalize_plan(value, default=None):
    """Return a canonical plan id for `value`, or `default` if unknown."""
    if not value:
        return default
    key = str(value).strip().lower()
    key = _PLAN_ALIASES.get(key, key)
    return key if key in PLAN_CONFIGS else default


def plan_limit(plan: str, resource: str) -> int:
    return PLAN_CONFIGS[plan]["limits"][resource]


def plan_at_least(plan: str, required: str) -> bool:
    return PLAN_HIERARCHY.get(plan, 0) >= PLAN_HIERARCHY[required]


def price_key(plan: str, billing: str) -> str:
    return f"{plan}_{billing}"
