"""
API tests for expenses, payroll, charges, revenue and markup blocks.
"""
from django.utils import timezone

import pytest

from costing.models import MarkupBlock


def _post(client, url, payload):
    return client.post(url, payload, content_type="application/json")


@pytest.fixture
def pricing_inputs(auth_client):
    expense = _post(auth_client, "/api/costing/expenses/", {"descricao": "Aluguel", "valor": "2000"}).json()
    employee = _post(auth_client, "/api/costing/employees/", {"nome": "Ana", "salario_base": "3000"}).json()
    icms = _post(auth_client, "/api/costing/sales-charges/", {"nome": "ICMS", "valor_percentual": "10"}).json()
    pix = _post(
        auth_client, "/api/costing/sales-charges/", {"nome": "PIX", "valor_percentual": "2", "valor_fixo": "0.50"}
    ).json()
    mes = timezone.localdate().replace(day=1).isoformat()
    resp = _post(auth_client, "/api/costing/revenue/", {"mes": mes, "valor": "10000"})
    assert resp.status_code == 201
    return {
        "despesas_selecionadas": [expense["id"]],
        "funcionarios_selecionados": [employee["id"]],
        "encargos_selecionados": [icms["id"], pix["id"]],
    }


@pytest.mark.django_db
def test_create_block_computes_markup(auth_client, pricing_inputs):
    resp = _post(auth_client, "/api/costing/markups/", {"nome": "Loja", "margem_lucro": "10", **pricing_inputs})
    assert resp.status_code == 201
    block = MarkupBlock.objects.get(pk=resp.json()["id"])
    assert block.tipo == MarkupBlock.TIPO_NORMAL
    assert str(block.gasto_sobre_faturamento) == "50.00"
    assert str(block.markup_ideal) == "3.5714"
    assert block.markup_aplicado == block.markup_ideal
    assert str(block.valor_em_real) == "0.50"


@pytest.mark.django_db
def test_recalculate_picks_up_changed_inputs(auth_client, pricing_inputs):
    block_id = _post(auth_client, "/api/costing/markups/", {"nome": "Loja", **pricing_inputs}).json()["id"]
    expense_id = pricing_inputs["despesas_selecionadas"][0]
    auth_client.patch(f"/api/costing/expenses/{expense_id}/", {"valor": "7000"}, content_type="application/json")

    resp = _post(auth_client, f"/api/costing/markups/{block_id}/recalculate/", {})
    assert resp.status_code == 200
    assert resp.json()["gasto_sobre_faturamento"] == 100.0
    # total >= 100% falls back to the default multiplier
    assert resp.json()["markup_ideal"] == 1.25


@pytest.mark.django_db
def test_markup_limit_excludes_sub_recipe_blocks(auth_client):
    assert _post(auth_client, "/api/costing/markups/", {"nome": "Principal"}).status_code == 201
    resp = _post(auth_client, "/api/costing/markups/", {"nome": "Delivery"})
    assert resp.status_code == 403
    assert resp.json()["resource"] == "markups"

    resp = _post(auth_client, "/api/costing/markups/", {"nome": "Sub receitas"})
    assert resp.status_code == 201
    assert resp.json()["tipo"] == MarkupBlock.TIPO_SUB_RECEITA


@pytest.mark.django_db
def test_professional_plan_allows_three_blocks(auth_client, user, set_plan):
    set_plan(user, "professional")
    for nome in ("A", "B", "C"):
        assert _post(auth_client, "/api/costing/markups/", {"nome": nome}).status_code == 201
    assert _post(auth_client, "/api/costing/markups/", {"nome": "D"}).status_code == 403


@pytest.mark.django_db
def test_calculate_does_not_persist(auth_client, pricing_inputs):
    resp = _post(
        auth_client,
        "/api/costing/calculate/",
        {
            "despesas": pricing_inputs["despesas_selecionadas"],
            "funcionarios": pricing_inputs["funcionarios_selecionados"],
            "encargos": pricing_inputs["encargos_selecionados"],
            "margem_lucro": "10",
        },
    )
    assert resp.status_code == 200
    assert resp.json()["markup_ideal"] == 3.5714
    assert resp.json()["faturamento_medio"] == 10000.0
    assert MarkupBlock.objects.count() == 0


@pytest.mark.django_db
def test_calculate_fractions_rejects_total_over_one(auth_client):
    resp = _post(auth_client, "/api/costing/calculate/fractions/", {"taxes": "0.5", "profit": "0.5"})
    assert resp.status_code == 400
    ok = _post(auth_client, "/api/costing/calculate/fractions/", {"taxes": "0.2", "profit": "0.3"})
    assert ok.status_code == 200
    assert ok.json()["multiplier"] == 2.0


@pytest.mark.django_db
def test_selections_ignore_other_accounts_rows(auth_client, other_user):
    from costing.models import FixedExpense

    foreign = FixedExpense.objects.create(user=other_user, descricao="X", valor=5000)
    resp = _post(auth_client, "/api/costing/calculate/", {"despesas": [foreign.id]})
    assert resp.json()["gasto_sobre_faturamento"] == 0.0


@pytest.mark.django_db
def test_employee_derives_monthly_hours(auth_client):
    resp = _post(
        auth_client,
        "/api/costing/employees/",
        {"nome": "Bia", "salario_base": "2000", "adicional": "200", "desconto": "100",
         "horas_por_dia": "8", "dias_por_semana": "5", "semanas_por_mes": "4.33"},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["horas_totais_mes"] == 173.2
    assert body["salario_liquido"] == 2100.0
