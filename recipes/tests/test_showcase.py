"""
Tests for the finished-recipe showcase: entries, exits, balances and history.
"""
from decimal import Decimal

import pytest

from recipes.models import Recipe, RecipeStock, RecipeStockMovement
from recipes.showcase import weighted_average_cost

BASE = "/api/recipes/showcase/"


def _post(client, url, payload):
    return client.post(url, payload, content_type="application/json")


@pytest.fixture
def brigadeiro(user):
    return Recipe.objects.create(
        user=user, numero_sequencial=1, nome="Brigadeiro", status=Recipe.STATUS_FINALIZADA,
        preco_venda=Decimal("3.50"), rendimento_valor=Decimal("20"),
    )


def _entry(client, recipe, quantidade="10", **extra):
    payload = {"receita": recipe.id, "quantidade": quantidade}
    payload.update(extra)
    return _post(client, f"{BASE}movements/entry/", payload)


def _exit(client, recipe, quantidade, tipo="venda", **extra):
    payload = {"receita": recipe.id, "tipo": tipo, "quantidade": quantidade}
    payload.update(extra)
    return _post(client, f"{BASE}movements/exit/", payload)


def test_weighted_average_cost():
    assert weighted_average_cost(Decimal("0"), Decimal("9"), Decimal("5"), Decimal("2")) == Decimal("2.0000")
    assert weighted_average_cost(Decimal("10"), Decimal("1"), Decimal("10"), Decimal("2")) == Decimal("1.5000")


@pytest.mark.django_db
def test_entries_accumulate_with_average_cost(auth_client, user, brigadeiro):
    resp = _entry(auth_client, brigadeiro, "10", custo_unitario="1.00", quantidade_minima="5")
    assert resp.status_code == 201, resp.content
    assert resp.json()["tipo"] == "entrada"
    assert _entry(auth_client, brigadeiro, "30", custo_unitario="2.00").status_code == 201

    stock = RecipeStock.objects.get(user=user, receita=brigadeiro)
    assert stock.quantidade_atual == Decimal("40")
    assert stock.custo_unitario_medio == Decimal("1.75")
    assert stock.quantidade_minima == Decimal("5")

    listed = auth_client.get(f"{BASE}stock/").json()
    assert [row["receita_nome"] for row in listed] == ["Brigadeiro"]
    assert listed[0]["situacao"] == "normal"


@pytest.mark.django_db
def test_entry_defaults_to_recipe_unit_cost(auth_client, user, brigadeiro, monkeypatch):
    monkeypatch.setattr("recipes.showcase.recipe_cost", lambda recipe: {"custo_unitario": Decimal("0.85")})
    assert _entry(auth_client, brigadeiro, "4").status_code == 201
    assert RecipeStockMovement.objects.get(user=user).custo_unitario == Decimal("0.85")


@pytest.mark.django_db
def test_draft_recipes_cannot_enter_showcase(auth_client, user):
    draft = Recipe.objects.create(user=user, numero_sequencial=1, nome="Rascunho")
    resp = _entry(auth_client, draft)
    assert resp.status_code == 400
    assert "finalizadas" in resp.json()["detail"]
    assert not RecipeStock.objects.exists()


@pytest.mark.django_db
def test_sale_uses_recipe_price_and_lowers_balance(auth_client, user, brigadeiro):
    _entry(auth_client, brigadeiro, "10", custo_unitario="1.20")

    resp = _exit(auth_client, brigadeiro, "4")
    assert resp.status_code == 201
    assert resp.json()["preco_venda"] == "3.50"
    assert resp.json()["custo_unitario"] == "1.2000"

    resp = _exit(auth_client, brigadeiro, "1", tipo="perdas", preco_venda="9.99", observacao="Caiu no chão")
    assert resp.status_code == 201
    assert resp.json()["preco_venda"] == "0.00"

    stock = RecipeStock.objects.get(user=user, receita=brigadeiro)
    assert stock.quantidade_atual == Decimal("5")


@pytest.mark.django_db
def test_exit_beyond_balance_is_rejected(auth_client, user, brigadeiro):
    resp = _exit(auth_client, brigadeiro, "1")
    assert resp.status_code == 400
    assert "Quantidade insuficiente em estoque para Brigadeiro" in resp.json()["detail"]

    _entry(auth_client, brigadeiro, "2")
    resp = _exit(auth_client, brigadeiro, "2.5", tipo="brindes")
    assert resp.status_code == 400
    assert RecipeStock.objects.get(user=user).quantidade_atual == Decimal("2")
    assert RecipeStockMovement.objects.filter(user=user).count() == 1


@pytest.mark.django_db
def test_exit_type_must_be_an_exit(auth_client, brigadeiro):
    _entry(auth_client, brigadeiro, "2")
    resp = _exit(auth_client, brigadeiro, "1", tipo="entrada")
    assert resp.status_code == 400
    assert "tipo" in resp.json()


@pytest.mark.django_db
def test_summary_counts_low_and_empty_stock(auth_client, user, brigadeiro):
    beijinho = Recipe.objects.create(
        user=user, numero_sequencial=2, nome="Beijinho", status=Recipe.STATUS_FINALIZADA
    )
    _entry(auth_client, brigadeiro, "10", custo_unitario="1", quantidade_minima="2")
    _exit(auth_client, brigadeiro, "8")
    _entry(auth_client, beijinho, "3", custo_unitario="2")
    _exit(auth_client, beijinho, "3", tipo="brindes")

    assert auth_client.get(f"{BASE}stock/summary/").json() == {
        "total_receitas": 2,
        "estoque_baixo": 1,
        "sem_estoque": 1,
        "valor_total_estoque": 2.0,
    }
    situacoes = {row["receita_nome"]: row["situacao"] for row in auth_client.get(f"{BASE}stock/").json()}
    assert situacoes == {"Beijinho": "sem_estoque", "Brigadeiro": "baixo"}


@pytest.mark.django_db
def test_history_filters_and_totals(auth_client, user, brigadeiro):
    _entry(auth_client, brigadeiro, "10", custo_unitario="1.50", data="2026-03-01")
    _exit(auth_client, brigadeiro, "4", preco_venda="4.00", data="2026-03-02", observacao="Feira")
    _exit(auth_client, brigadeiro, "1", tipo="perdas", data="2026-03-05")

    resp = auth_client.get(f"{BASE}movements/?tipo=venda")
    assert [m["observacao"] for m in resp.json()["results"]] == ["Feira"]
    resp = auth_client.get(f"{BASE}movements/?data_inicio=2026-03-02&data_fim=2026-03-04")
    assert resp.json()["count"] == 1
    assert auth_client.get(f"{BASE}movements/?search=feira").json()["count"] == 1

    totals = auth_client.get(f"{BASE}movements/totals/").json()
    assert totals == {"entradas": 10.0, "saidas": 5.0, "custo_total": 15.0, "venda_total": 16.0}

    stock = RecipeStock.objects.get(user=user)
    history = auth_client.get(f"{BASE}stock/{stock.pk}/history/").json()
    assert history["estoque"]["quantidade_atual"] == "5.000"
    assert [m["tipo"] for m in history["movimentacoes"]] == ["perdas", "venda", "entrada"]
    assert history["totais"]["venda_total"] == 16.0


@pytest.mark.django_db
def test_removed_stock_restarts_on_next_entry(auth_client, user, brigadeiro):
    _entry(auth_client, brigadeiro, "5", custo_unitario="1")
    stock = RecipeStock.objects.get(user=user)
    assert auth_client.delete(f"{BASE}stock/{stock.pk}/").status_code == 204
    assert auth_client.get(f"{BASE}stock/").json() == []
    assert _exit(auth_client, brigadeiro, "1").status_code == 400

    _entry(auth_client, brigadeiro, "2", custo_unitario="3")
    stock.refresh_from_db()
    assert stock.ativo is True
    assert stock.quantidade_atual == Decimal("2")
    assert stock.custo_unitario_medio == Decimal("3")


@pytest.mark.django_db
def test_showcase_is_isolated_per_account(auth_client, other_user):
    foreign = Recipe.objects.create(
        user=other_user, numero_sequencial=1, nome="Alheia", status=Recipe.STATUS_FINALIZADA
    )
    resp = _entry(auth_client, foreign)
    assert resp.status_code == 400
    assert "receita" in resp.json()
    RecipeStock.objects.create(user=other_user, receita=foreign, quantidade_atual=Decimal("3"))
    assert auth_client.get(f"{BASE}stock/").json() == []
