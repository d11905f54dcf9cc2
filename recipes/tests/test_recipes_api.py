"""
Tests for recipe costing, markup pricing, duplication and PDF export.
"""
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from costing.models import Employee, MarkupBlock
from inventory.models import Product
from recipes.costing import labor_value, profitability
from recipes.models import Recipe, RecipeSubRecipe
from users.models import UserProfileManager

URL = "/api/recipes/recipes/"


def _product(user, codigo, nome, custo, **extra):
    return Product.objects.create(user=user, codigo_interno=codigo, nome=nome, custo_unitario=Decimal(custo), **extra)


@pytest.fixture
def stock(user):
    return {
        "farinha": _product(user, 1, "Farinha", "10", unidade_compra="k", unidade_uso="g", fator_conversao=Decimal("1000")),
        "ovo": _product(user, 2, "Ovo", "0.50"),
        "caixa": _product(user, 3, "Caixa", "1.20"),
    }


@pytest.fixture
def bolo(auth_client, stock):
    payload = {
        "nome": "Bolo",
        "rendimento_valor": "10",
        "rendimento_unidade": "un",
        "ingredientes": [
            {"produto": stock["farinha"].id, "quantidade": "500"},
            {"produto": stock["ovo"].id, "quantidade": "4"},
        ],
        "embalagens": [{"produto": stock["caixa"].id, "quantidade": "1"}],
        "mao_obra": [{"descricao": "Confeiteira", "tempo": "30", "unidade_tempo": "minutos", "custo_por_hora": "30"}],
        "passos": [{"ordem": 1, "descricao": "Misture tudo."}, {"ordem": 2, "descricao": "Asse por 40 minutos."}],
    }
    resp = auth_client.post(URL, payload, content_type="application/json")
    assert resp.status_code == 201, resp.content
    return resp.json()


def test_labor_value_units():
    assert labor_value(Decimal("30"), Decimal("30"), "minutos") == Decimal("15.00")
    assert labor_value(Decimal("20"), Decimal("2"), "dias") == Decimal("320.00")
    assert labor_value(Decimal("20"), Decimal("2"), "dias", Decimal("6")) == Decimal("240.00")
    assert labor_value(Decimal("20"), Decimal("1.5"), "horas") == Decimal("30.00")


def test_profitability():
    result = profitability(Decimal("50"), Decimal("20"), Decimal("10"))
    assert result == {"margem": Decimal("60.00"), "lucro_bruto": Decimal("30.00"), "lucro_liquido": Decimal("3.00")}
    assert profitability(Decimal("0"), Decimal("20"))["margem"] is None


@pytest.mark.django_db
def test_create_recipe_and_cost(auth_client, bolo):
    assert bolo["numero_sequencial"] == 1
    assert len(bolo["ingredientes"]) == 2
    assert bolo["mao_obra"][0]["valor_total"] == 15.0

    resp = auth_client.get(f"{URL}{bolo['id']}/cost/")
    assert resp.status_code == 200
    cost = resp.json()
    assert cost["custo_ingredientes"] == 7.0
    assert cost["custo_embalagens"] == 1.2
    assert cost["custo_mao_obra"] == 15.0
    assert cost["custo_total"] == 23.2
    assert cost["custo_unitario"] == 2.32
    assert cost["margem"] is None


@pytest.mark.django_db
def test_apply_markup_sets_price(auth_client, user, bolo):
    block = MarkupBlock.objects.create(user=user, nome="Loja", tipo="normal", markup_aplicado=Decimal("2"))
    resp = auth_client.post(f"{URL}{bolo['id']}/apply-markup/", {"markup": block.id}, content_type="application/json")
    assert resp.status_code == 200
    assert resp.json()["preco_venda"] == 46.4
    assert resp.json()["markup"] == block.id


@pytest.mark.django_db
def test_apply_markup_requires_block(auth_client, bolo):
    resp = auth_client.post(f"{URL}{bolo['id']}/apply-markup/", {}, content_type="application/json")
    assert resp.status_code == 400


@pytest.mark.django_db
def test_sub_recipe_cycles_are_rejected(auth_client, user):
    massa = auth_client.post(URL, {"nome": "Massa"}, content_type="application/json").json()
    torta = auth_client.post(
        URL,
        {"nome": "Torta", "sub_receitas": [{"sub_receita": massa["id"], "quantidade": "1"}]},
        content_type="application/json",
    ).json()

    resp = auth_client.patch(
        f"{URL}{massa['id']}/",
        {"sub_receitas": [{"sub_receita": torta["id"], "quantidade": "1"}]},
        content_type="application/json",
    )
    assert resp.status_code == 400

    resp = auth_client.patch(
        f"{URL}{massa['id']}/",
        {"sub_receitas": [{"sub_receita": massa["id"], "quantidade": "1"}]},
        content_type="application/json",
    )
    assert resp.status_code == 400


@pytest.mark.django_db
def test_sub_recipe_cost_uses_unit_price(auth_client, user):
    massa = Recipe.objects.create(
        user=user, numero_sequencial=1, nome="Massa", preco_venda=Decimal("20"), rendimento_valor=Decimal("4")
    )
    torta = auth_client.post(
        URL,
        {"nome": "Torta", "sub_receitas": [{"sub_receita": massa.id, "quantidade": "2"}]},
        content_type="application/json",
    ).json()
    cost = auth_client.get(f"{URL}{torta['id']}/cost/").json()
    assert cost["custo_sub_receitas"] == 10.0


@pytest.mark.django_db
def test_foreign_products_are_rejected(auth_client, other_user):
    foreign = _product(other_user, 1, "Alheio", "1")
    resp = auth_client.post(
        URL,
        {"nome": "X", "ingredientes": [{"produto": foreign.id, "quantidade": "1"}]},
        content_type="application/json",
    )
    assert resp.status_code == 400


@pytest.mark.django_db
def test_labor_uses_employee_hourly_cost(auth_client, user):
    employee = Employee.objects.create(user=user, nome="Ana", custo_por_hora=Decimal("20"))
    resp = auth_client.post(
        URL,
        {"nome": "Pão", "mao_obra": [{"funcionario": employee.id, "tempo": "2", "unidade_tempo": "dias"}]},
        content_type="application/json",
    )
    assert resp.status_code == 201
    labor = resp.json()["mao_obra"][0]
    assert labor["valor_total"] == 320.0
    assert labor["descricao"] == "Ana"


@pytest.mark.django_db
def test_free_plan_recipe_limit(auth_client, user):
    for n in range(1, 6):
        Recipe.objects.create(user=user, numero_sequencial=n, nome=f"R{n}")
    resp = auth_client.post(URL, {"nome": "Sexta"}, content_type="application/json")
    assert resp.status_code == 403
    assert resp.json()["resource"] == "receitas"


@pytest.mark.django_db
def test_duplicate_copies_lines(auth_client, bolo):
    resp = auth_client.post(f"{URL}{bolo['id']}/duplicate/", content_type="application/json")
    assert resp.status_code == 201
    copy = resp.json()
    assert copy["nome"] == "Bolo (cópia)"
    assert copy["numero_sequencial"] == 2
    assert copy["status"] == Recipe.STATUS_RASCUNHO
    assert len(copy["ingredientes"]) == 2
    assert len(copy["passos"]) == 2
    assert Recipe.objects.get(pk=bolo["id"]).ingredientes.count() == 2


@pytest.mark.django_db
def test_pdf_export_is_gated_by_plan(auth_client, user, bolo, set_plan):
    resp = auth_client.get(f"{URL}{bolo['id']}/pdf/")
    assert resp.status_code == 403

    set_plan(user, "professional")
    resp = auth_client.get(f"{URL}{bolo['id']}/pdf/")
    assert resp.status_code == 200
    assert resp["Content-Type"] == "application/pdf"
    assert resp.content.startswith(b"%PDF")
    user.profile.refresh_from_db()
    assert user.profile.pdf_exports_count == 1


@pytest.mark.django_db
def test_pdf_export_stops_at_monthly_quota(auth_client, user, bolo, set_plan):
    profile = set_plan(user, "professional")
    profile.pdf_exports_count = 80
    profile.pdf_exports_reset_at = timezone.now() + timedelta(days=10)
    profile.save()

    resp = auth_client.get(f"{URL}{bolo['id']}/pdf/")
    assert resp.status_code == 403
    assert resp.json()["resource"] == "pdf_exports"
    assert resp.json()["current"] == 80
    profile.refresh_from_db()
    assert profile.pdf_exports_count == 80


@pytest.mark.django_db
def test_pdf_quota_resets_after_window(auth_client, user, bolo, set_plan):
    profile = set_plan(user, "professional")
    profile.pdf_exports_count = 80
    profile.pdf_exports_reset_at = timezone.now() - timedelta(days=1)
    profile.save()

    resp = auth_client.get(f"{URL}{bolo['id']}/pdf/")
    assert resp.status_code == 200
    profile.refresh_from_db()
    assert profile.pdf_exports_count == 1
    assert profile.pdf_exports_reset_at > timezone.now() + timedelta(days=29)


@pytest.mark.django_db
def test_recipe_used_as_sub_recipe_cannot_be_deleted(auth_client, user):
    massa = auth_client.post(URL, {"nome": "Massa"}, content_type="application/json").json()
    for nome in ("Torta de limão", "Empadão"):
        resp = auth_client.post(
            URL,
            {"nome": nome, "sub_receitas": [{"sub_receita": massa["id"], "quantidade": "1"}]},
            content_type="application/json",
        )
        assert resp.status_code == 201

    resp = auth_client.delete(f"{URL}{massa['id']}/")
    assert resp.status_code == 400
    assert resp.json()["detail"].startswith("Receita usada como sub-receita em: Empadão, Torta de limão.")
    assert Recipe.objects.filter(pk=massa["id"]).exists()

    RecipeSubRecipe.objects.filter(sub_receita_id=massa["id"]).delete()
    assert auth_client.delete(f"{URL}{massa['id']}/").status_code == 204
    assert not Recipe.objects.filter(pk=massa["id"]).exists()


@pytest.mark.django_db
def test_recipe_numbering_locks_the_account(auth_client, user, bolo, monkeypatch):
    locked = []
    original = UserProfileManager.lock

    def lock(self, owner):
        locked.append(owner.pk)
        return original(self, owner)

    monkeypatch.setattr(UserProfileManager, "lock", lock)
    resp = auth_client.post(f"{URL}{bolo['id']}/duplicate/")
    assert resp.status_code == 201
    assert resp.json()["numero_sequencial"] == 2
    assert locked == [user.pk]
