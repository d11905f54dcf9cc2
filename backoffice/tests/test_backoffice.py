"""
Tests for the back-office: client list, plan and role changes, backups
and the recipe workbook import.
"""
import base64
import io
from datetime import timedelta
from decimal import Decimal

import pytest
from django.db import DatabaseError
from django.utils import timezone
from openpyxl import Workbook

from backoffice.models import AdminAction, BackupRecord
from inventory.models import Category, Product
from recipes.models import Recipe
from users.models import UserRole

URL = "/api/backoffice/"


def _workbook(sheets):
    wb = Workbook()
    wb.remove(wb.active)
    for title, rows in sheets.items():
        ws = wb.create_sheet(title)
        for row in rows:
            ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return base64.b64encode(buf.getvalue()).decode()


@pytest.mark.django_db
def test_backoffice_requires_platform_admin(auth_client):
    assert auth_client.get(f"{URL}users/").status_code == 403
    assert auth_client.post(f"{URL}backups/", {}, content_type="application/json").status_code == 403


@pytest.mark.django_db
def test_list_users_with_plan(admin_auth_client, user, set_plan):
    set_plan(user, "professional")
    resp = admin_auth_client.get(f"{URL}users/", {"search": "u1@"})
    assert resp.status_code == 200
    rows = resp.json()["results"]
    assert [r["email"] for r in rows] == ["u1@example.com"]
    assert rows[0]["plan"] == "professional"
    assert rows[0]["roles"] == []

    resp = admin_auth_client.get(f"{URL}users/", {"plan": "professional"})
    assert resp.json()["count"] == 1


@pytest.mark.django_db
def test_plan_update_validation(admin_auth_client, user):
    url = f"{URL}users/{user.id}/plan/"
    resp = admin_auth_client.post(url, {"plan": "professional", "reason": "   curto   "}, content_type="application/json")
    assert resp.status_code == 400
    assert "reason" in resp.json()

    resp = admin_auth_client.post(url, {"plan": "gold", "reason": "Cortesia de parceria"}, content_type="application/json")
    assert resp.status_code == 400

    past = (timezone.now() - timedelta(days=1)).isoformat()
    resp = admin_auth_client.post(
        url, {"plan": "professional", "reason": "Cortesia de parceria", "expires_at": past}, content_type="application/json"
    )
    assert resp.status_code == 400
    assert "expires_at" in resp.json()


@pytest.mark.django_db
def test_plan_update_is_audited(admin_auth_client, platform_admin, user):
    expires = timezone.now() + timedelta(days=30)
    resp = admin_auth_client.post(
        f"{URL}users/{user.id}/plan/",
        {"plan": "enterprise", "reason": "Cortesia de parceria", "expires_at": expires.isoformat()},
        content_type="application/json",
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["old_plan"] == "free"
    assert body["new_plan"] == "enterprise"
    assert body["stripe_warning"] is None

    user.profile.refresh_from_db()
    assert user.profile.plan == "enterprise"
    assert user.profile.plan_expires_at is not None

    action = AdminAction.objects.get(target_user=user)
    assert action.admin_user == platform_admin
    assert action.action_type == AdminAction.ACTION_PLAN_CHANGE
    assert action.old_value["plan"] == "free"
    assert action.new_value["plan"] == "enterprise"
    assert action.reason == "Cortesia de parceria"


@pytest.mark.django_db
def test_plan_update_warns_about_active_stripe_subscription(admin_auth_client, user, fake_stripe):
    profile = user.profile
    profile.stripe_customer_id = "cus_123"
    profile.save()
    fake_stripe.Subscription.list.return_value = {"data": [{"id": "sub_1"}]}

    resp = admin_auth_client.post(
        f"{URL}users/{user.id}/plan/",
        {"plan": "free", "reason": "Cancelamento solicitado"},
        content_type="application/json",
    )
    assert resp.status_code == 200
    warning = resp.json()["stripe_warning"]
    assert warning["has_active_subscription"] is True
    assert warning["subscription_id"] == "sub_1"
    fake_stripe.Subscription.list.assert_called_once_with(customer="cus_123", status="active", limit=1)


@pytest.mark.django_db
def test_plan_update_survives_audit_failure(admin_auth_client, user, monkeypatch):
    def broken_create(**kwargs):
        raise DatabaseError("audit table locked")

    monkeypatch.setattr(AdminAction.objects, "create", broken_create)
    resp = admin_auth_client.post(
        f"{URL}users/{user.id}/plan/",
        {"plan": "professional", "reason": "Cortesia de parceria"},
        content_type="application/json",
    )
    assert resp.status_code == 200
    user.profile.refresh_from_db()
    assert user.profile.plan == "professional"


@pytest.mark.django_db
def test_set_roles(admin_auth_client, platform_admin, user):
    resp = admin_auth_client.post(
        f"{URL}users/{user.id}/roles/", {"roles": ["moderator"]}, content_type="application/json"
    )
    assert resp.status_code == 200
    assert resp.json() == {"roles": ["moderator"]}
    assert list(UserRole.objects.filter(user=user).values_list("role", flat=True)) == ["moderator"]

    resp = admin_auth_client.post(
        f"{URL}users/{platform_admin.id}/roles/", {"roles": []}, content_type="application/json"
    )
    assert resp.status_code == 400
    assert UserRole.objects.filter(user=platform_admin, role="admin").exists()


@pytest.mark.django_db
def test_backup_keeps_rows_of_small_tables_only(admin_auth_client, user, settings):
    settings.BACKUP_INLINE_ROW_LIMIT = 1
    Product.objects.create(user=user, codigo_interno=1, nome="Farinha")
    Product.objects.create(user=user, codigo_interno=2, nome="Açúcar")
    Category.objects.create(user=user, nome="Secos")

    resp = admin_auth_client.post(
        f"{URL}backups/",
        {"backup_type": "full", "tables": ["inventory.product", "inventory.category"]},
        content_type="application/json",
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "completed"
    assert body["record_counts"] == {"inventory.product": 2, "inventory.category": 1}
    assert body["file_size"] > 0

    record = BackupRecord.objects.get(pk=body["id"])
    assert list(record.data) == ["inventory.category"]
    assert record.data["inventory.category"][0]["nome"] == "Secos"

    detail = admin_auth_client.get(f"{URL}backups/{record.id}/").json()
    assert detail["data"]["inventory.category"][0]["nome"] == "Secos"


@pytest.mark.django_db
def test_backup_rejects_unknown_table(admin_auth_client):
    resp = admin_auth_client.post(f"{URL}backups/", {"tables": ["auth.user"]}, content_type="application/json")
    assert resp.status_code == 400


@pytest.mark.django_db
def test_import_recipes_for_client(admin_auth_client, user):
    Product.objects.create(user=user, codigo_interno=1, nome="Farinha", unidade_compra="k")
    file_base64 = _workbook({
        "Bolo": [
            ["Bolo de Cenoura"],
            [None, "Tipo do Produto", "BOLO"],
            [None, "Rendimento", 2, "Quilograma (kg)"],
            [None, "Congelado", "-18", "90 dias"],
            ["INGREDIENTES"],
            ["Ingrediente", "Quantidade", "Unidade"],
            ["Farinha", 500, "Grama (g)"],
            ["Cenoura", 3, "Unidade"],
            ["EMBALAGEM"],
            ["Embalagem", "Quantidade", "Unidade"],
            ["Caixa", 1, "Unidade"],
            ["MODO DE PREPARO"],
            ["Misture os ingredientes secos."],
            ["Ok"],
            ["Leve ao forno por 40 minutos."],
        ],
        "Pão": [
            ["Pão Caseiro"],
            ["INGREDIENTES"],
            ["Ingrediente", "Quantidade", "Unidade"],
            ["farinha", 1000, "Grama (g)"],
        ],
    })

    resp = admin_auth_client.post(
        f"{URL}users/{user.id}/import-recipes/", {"file_base64": file_base64}, content_type="application/json"
    )
    assert resp.status_code == 200, resp.content
    body = resp.json()
    assert body["receitas_criadas"] == 2
    assert body["produtos_criados"] == 2
    assert body["produtos_existentes"] == 2
    assert body["erros"] == []

    bolo = Recipe.objects.get(user=user, nome="Bolo de Cenoura")
    assert bolo.numero_sequencial == 1
    assert bolo.status == Recipe.STATUS_FINALIZADA
    assert bolo.tipo_produto.nome == "BOLO"
    assert bolo.rendimento_valor == Decimal("2")
    assert bolo.rendimento_unidade == "k"
    assert bolo.conservacao == {"congelado": {"temperatura": "-18", "tempo": "90 dias"}}
    assert bolo.ingredientes.count() == 2
    assert bolo.embalagens.get().produto.nome == "Caixa"
    assert [p.descricao for p in bolo.passos.all()] == [
        "Misture os ingredientes secos.",
        "Leve ao forno por 40 minutos.",
    ]

    caixa = Product.objects.get(user=user, nome="Caixa")
    assert [c.nome for c in caixa.categorias.all()] == ["EMBALAGENS"]
    assert Recipe.objects.get(user=user, nome="Pão Caseiro").ingredientes.get().produto.codigo_interno == 1
    assert AdminAction.objects.filter(target_user=user, action_type=AdminAction.ACTION_RECIPE_IMPORT).exists()


@pytest.mark.django_db
def test_import_recipes_rejects_non_workbook(admin_auth_client, user):
    file_base64 = base64.b64encode(b"this is not a spreadsheet").decode()
    resp = admin_auth_client.post(
        f"{URL}users/{user.id}/import-recipes/", {"file_base64": file_base64}, content_type="application/json"
    )
    assert resp.status_code == 400
    assert resp.json() == ["Arquivo Excel inválido."]
    assert not Recipe.objects.filter(user=user).exists()
    assert not AdminAction.objects.filter(action_type=AdminAction.ACTION_RECIPE_IMPORT).exists()
