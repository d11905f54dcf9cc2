"""
API tests for products, movements, receipts and the Excel round trip.
"""
import base64
import io
from decimal import Decimal

import pandas as pd
import pytest
from openpyxl import Workbook

from inventory.models import MovementReceipt, Product, StockMovement
from users.models import UserProfileManager


def _post(client, url, payload):
    return client.post(url, payload, content_type="application/json")


def _product(client, **overrides):
    payload = {"nome": "Farinha", "unidade_compra": "kg", "custo_unitario": "5.00", "estoque_atual": "10"}
    payload.update(overrides)
    resp = _post(client, "/api/inventory/products/", payload)
    assert resp.status_code == 201, resp.content
    return resp.json()


def _finalize(client, itens, responsavel="Ana"):
    return _post(client, "/api/inventory/movements/finalize/", {
        "itens": itens,
        "responsavel": responsavel,
        "origem": "Loja 1",
        "observacao": "",
    })


@pytest.mark.django_db
def test_create_product_assigns_code_and_normalizes_unit(auth_client):
    first = _product(auth_client, marcas=["Dona Benta"], categorias=["Secos", "secos"])
    second = _product(auth_client, nome="Açúcar")
    assert first["codigo_interno"] == 1
    assert second["codigo_interno"] == 2
    assert first["unidade_compra"] == "k"
    assert first["marcas"] == ["Dona Benta"]
    assert first["categorias"] == ["Secos"]


@pytest.mark.django_db
def test_invalid_unit_is_rejected(auth_client):
    resp = _post(auth_client, "/api/inventory/products/", {"nome": "X", "unidade_compra": "barril"})
    assert resp.status_code == 400
    assert "unidade_compra" in resp.json()


@pytest.mark.django_db
def test_conversion_factor_requires_usage_unit(auth_client):
    resp = _post(auth_client, "/api/inventory/products/", {
        "nome": "Leite", "unidade_compra": "l", "fator_conversao": "1000",
    })
    assert resp.status_code == 400
    assert "fator_conversao" in resp.json()


@pytest.mark.django_db
def test_delete_deactivates_product(auth_client):
    product = _product(auth_client)
    assert auth_client.delete(f"/api/inventory/products/{product['id']}/").status_code == 204
    assert Product.objects.get(pk=product["id"]).ativo is False
    assert auth_client.get("/api/inventory/products/").json()["count"] == 0
    assert auth_client.get("/api/inventory/products/?ativo=false").json()["count"] == 1


@pytest.mark.django_db
def test_product_filters(auth_client):
    _product(auth_client, nome="Farinha de trigo", marcas=["Dona Benta"], estoque_minimo="20")
    _product(auth_client, nome="Chocolate em pó", marcas=["Nestlé"], estoque_minimo="1")

    names = lambda resp: [p["nome"] for p in resp.json()["results"]]  # noqa: E731
    assert names(auth_client.get("/api/inventory/products/?search=trigo")) == ["Farinha de trigo"]
    assert names(auth_client.get("/api/inventory/products/?marca=nestlé")) == ["Chocolate em pó"]
    assert names(auth_client.get("/api/inventory/products/?abaixo_minimo=true")) == ["Farinha de trigo"]
    assert names(auth_client.get("/api/inventory/products/?search=2")) == ["Chocolate em pó"]


@pytest.mark.django_db
def test_products_are_isolated_per_account(auth_client, other_user):
    mine = _product(auth_client)
    Product.objects.create(user=other_user, nome="Alheio", codigo_interno=1)

    resp = auth_client.get("/api/inventory/products/")
    assert [p["id"] for p in resp.json()["results"]] == [mine["id"]]
    foreign = Product.objects.get(user=other_user)
    assert auth_client.get(f"/api/inventory/products/{foreign.pk}/").status_code == 404


@pytest.mark.django_db
def test_summary_reports_value_and_low_stock(auth_client):
    _product(auth_client, custo_unitario="2.50", estoque_atual="4", estoque_minimo="5")
    _product(auth_client, nome="Ovos", unidade_compra="un", custo_unitario="0.80", estoque_atual="30")

    data = auth_client.get("/api/inventory/products/summary/").json()
    assert data == {"total_produtos": 2, "abaixo_minimo": 1, "valor_total_estoque": 34.0}


@pytest.mark.django_db
def test_finalize_entry_and_exit_issues_receipts(auth_client, user):
    product = _product(auth_client)

    resp = _finalize(auth_client, [{
        "produto": product["id"], "tipo": "entrada", "motivo": "Compra de fornecedor",
        "quantidade": "5", "custo_aplicado": "6.00",
    }])
    assert resp.status_code == 201
    receipt = resp.json()
    assert receipt["numero"] == 1
    assert receipt["tipo"] == "entrada"
    assert receipt["valor_total"] == 30.0
    assert receipt["movimentacoes"][0]["produto_nome"] == "Farinha"

    stored = Product.objects.get(pk=product["id"])
    assert stored.estoque_atual == Decimal("15")
    assert stored.custo_unitario == Decimal("6")

    resp = _finalize(auth_client, [{
        "produto": product["id"], "tipo": "saida", "motivo": "Venda", "quantidade": "3",
    }])
    assert resp.status_code == 201
    assert resp.json()["numero"] == 2
    assert resp.json()["valor_total"] == 18.0
    assert Product.objects.get(pk=product["id"]).estoque_atual == Decimal("12")
    assert StockMovement.objects.filter(user=user).count() == 2


@pytest.mark.django_db
def test_finalize_rejects_exit_beyond_stock_and_writes_nothing(auth_client, user):
    product = _product(auth_client, estoque_atual="2")

    resp = _finalize(auth_client, [
        {"produto": product["id"], "tipo": "saida", "motivo": "Venda", "quantidade": "1.5"},
        {"produto": product["id"], "tipo": "saida", "motivo": "Perda/Quebra", "quantidade": "1"},
    ])
    assert resp.status_code == 400
    assert "Estoque insuficiente para Farinha" in resp.json()["detail"]
    assert Product.objects.get(pk=product["id"]).estoque_atual == Decimal("2")
    assert not MovementReceipt.objects.filter(user=user).exists()


@pytest.mark.django_db
def test_finalize_validates_reason_responsible_and_ownership(auth_client, other_user):
    product = _product(auth_client)
    item = {"produto": product["id"], "tipo": "entrada", "motivo": "Venda", "quantidade": "1"}

    resp = _finalize(auth_client, [item])
    assert resp.status_code == 400
    assert "motivo inválido" in resp.json()["detail"]

    item["motivo"] = "Compra de fornecedor"
    assert _finalize(auth_client, [item], responsavel="  ").status_code == 400
    assert _finalize(auth_client, []).status_code == 400

    foreign = Product.objects.create(user=other_user, nome="Alheio", codigo_interno=1)
    item["produto"] = foreign.pk
    resp = _finalize(auth_client, [item])
    assert resp.status_code == 400
    assert "Produto não encontrado" in resp.json()["detail"]


@pytest.mark.django_db
def test_movement_history_filters_and_reasons(auth_client):
    product = _product(auth_client)
    _finalize(auth_client, [{"produto": product["id"], "tipo": "saida", "motivo": "Venda", "quantidade": "1"}])
    _finalize(auth_client, [{
        "produto": product["id"], "tipo": "entrada", "motivo": "Produção interna", "quantidade": "2",
    }])

    resp = auth_client.get("/api/inventory/movements/?tipo=saida")
    assert [m["motivo"] for m in resp.json()["results"]] == ["Venda"]
    assert auth_client.get("/api/inventory/receipts/").json()["count"] == 2

    motivos = auth_client.get("/api/inventory/movements/motivos/").json()
    assert "Compra de fornecedor" in motivos["entrada"]
    assert "Vencimento" in motivos["saida"]


@pytest.mark.django_db
def test_free_plan_product_limit(auth_client, user):
    Product.objects.bulk_create([
        Product(user=user, nome=f"P{i}", codigo_interno=i) for i in range(1, 31)
    ])
    resp = _post(auth_client, "/api/inventory/products/", {"nome": "Extra", "unidade_compra": "un"})
    assert resp.status_code == 403
    assert resp.json()["resource"] == "produtos"


def _workbook_base64(rows):
    wb = Workbook()
    ws = wb.active
    ws.append(["nome", "codigo_interno", "codigos_barras", "marcas", "categorias", "unidade_compra",
               "unidade_uso", "fator_conversao", "custo_unitario", "estoque_atual", "estoque_minimo"])
    for row in rows:
        ws.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return base64.b64encode(buffer.getvalue()).decode()


@pytest.mark.django_db
def test_import_products_reports_line_errors(auth_client, user):
    payload = _workbook_base64([
        ["Leite", None, "789100", "Itambé", "Laticínios,Frios", "l", "ml", 1000, 4.5, 12, 2],
        [None, None, None, None, None, "un", None, None, 1, 1, None],
        ["Ovos", None, None, None, None, "barril", None, None, 1, 1, None],
        ["Queijo", None, None, "itambé", "Frios", "kg", None, None, "abc", 1, None],
    ])

    resp = _post(auth_client, "/api/inventory/products/import/", {"file_base64": payload})
    assert resp.status_code == 200
    data = resp.json()
    assert data["produtos_criados"] == 1
    assert data["marcas_criadas"] == 1
    assert data["categorias_criadas"] == 2
    assert "Linha 3: Nome é obrigatório" in data["erros"]
    assert any(e.startswith("Linha 4: Unidade de compra inválida") for e in data["erros"])
    assert "Linha 5: Custo unitário inválido" in data["erros"]

    leite = Product.objects.get(user=user, nome="Leite")
    assert leite.codigos_barras == ["789100"]
    assert leite.unidade_uso == "ml"
    assert leite.fator_conversao == Decimal("1000")
    assert leite.custo_por_unidade_uso == Decimal("0.0045")


@pytest.mark.django_db
def test_export_and_template_are_xlsx(auth_client):
    _product(auth_client, marcas=["Dona Benta"])
    _product(auth_client, nome="Açúcar")

    resp = auth_client.get("/api/inventory/products/export/")
    assert resp.status_code == 200
    assert resp["Content-Type"].startswith("application/vnd.openxmlformats")
    assert "estoque_produtos_" in resp["Content-Disposition"]
    df = pd.read_excel(io.BytesIO(resp.content), engine="openpyxl")
    assert list(df["nome"]) == ["Farinha", "Açúcar"]
    assert df.loc[0, "marcas"] == "Dona Benta"

    template = auth_client.get("/api/inventory/products/import-template/")
    assert template.status_code == 200
    df = pd.read_excel(io.BytesIO(template.content), engine="openpyxl")
    assert df.loc[0, "nome"] == "Farinha de trigo"


@pytest.mark.django_db
def test_import_rejects_non_workbook(auth_client, user):
    payload = base64.b64encode(b"this is not a spreadsheet").decode()
    resp = _post(auth_client, "/api/inventory/products/import/", {"file_base64": payload})
    assert resp.status_code == 400
    assert resp.json() == ["Arquivo Excel inválido."]
    assert not Product.objects.filter(user=user).exists()


@pytest.fixture
def owner_locks(monkeypatch):
    locked = []
    original = UserProfileManager.lock

    def lock(self, user):
        locked.append(user.pk)
        return original(self, user)

    monkeypatch.setattr(UserProfileManager, "lock", lock)
    return locked


@pytest.mark.django_db
def test_numbering_locks_the_account(auth_client, user, owner_locks):
    product = _product(auth_client)
    assert owner_locks == [user.pk]

    resp = _finalize(auth_client, [{
        "produto": product["id"], "tipo": "entrada", "motivo": "Compra de fornecedor", "quantidade": "1",
    }])
    assert resp.status_code == 201
    assert owner_locks == [user.pk, user.pk]

    _post(auth_client, "/api/inventory/products/import/", {"file_base64": _workbook_base64([
        ["Leite", None, None, None, None, "l", None, None, 4.5, 1, None],
    ])})
    assert owner_locks == [user.pk] * 3
    assert Product.objects.get(user=user, nome="Leite").codigo_interno == 2
