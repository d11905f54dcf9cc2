"""
Tests for affiliate links, sale attribution, commissions and checkout.
"""
from decimal import Decimal

import pytest

from affiliates import services
from affiliates.models import Affiliate, AffiliateCommission, AffiliateCoupon, AffiliateLink, AffiliateSale, AffiliateStripeProduct
from common.exceptions import BusinessRuleError


@pytest.fixture
def affiliate(db):
    aff = Affiliate.objects.create(
        name="Maria Souza",
        email="maria@example.com",
        affiliate_code="MARIA001",
        commission_type=Affiliate.COMMISSION_PERCENTAGE,
        commission_percentage=Decimal("10"),
    )
    AffiliateLink.objects.create(affiliate=aff, link_code="maria-x1")
    return aff


def _session(session_id="cs_1", code="maria-x1", amount=4990, plan="professional"):
    return {
        "id": session_id,
        "amount_total": amount,
        "created": 1760000000,
        "payment_intent": "pi_1",
        "customer_details": {"email": "cliente@example.com", "name": "Cliente"},
        "metadata": {"affiliate_code": code, "plan_type": plan, "is_affiliate_sale": "true"},
    }


@pytest.mark.django_db
def test_redirect_sets_cookie_and_counts_click(client, affiliate, settings):
    resp = client.get("/r/maria-x1/")
    assert resp.status_code == 302
    assert resp["Location"] == f"{settings.FRONTEND_URL}/affiliate/maria-x1"
    assert resp.cookies["aff_code"].value == "maria-x1"
    assert resp.cookies["aff_code"]["max-age"] == 60 * 24 * 60 * 60
    assert AffiliateLink.objects.get(link_code="maria-x1").clicks == 1


@pytest.mark.django_db
def test_redirect_with_unknown_code(client, settings):
    resp = client.get("/r/nope/")
    assert resp.status_code == 302
    assert resp["Location"] == f"{settings.FRONTEND_URL}/planos"
    assert "aff_code" not in resp.cookies


@pytest.mark.django_db
def test_record_affiliate_sale_is_idempotent(affiliate):
    sale = services.record_affiliate_sale(_session())
    assert sale is not None
    assert sale.sale_amount == Decimal("49.90")
    assert sale.commission_amount == Decimal("4.99")
    assert sale.plan_type == "professional"
    assert sale.commission.status == AffiliateCommission.STATUS_PENDING

    assert services.record_affiliate_sale(_session()) is None
    assert AffiliateSale.objects.count() == 1
    affiliate.refresh_from_db()
    assert affiliate.total_sales == Decimal("49.90")
    assert affiliate.total_commissions == Decimal("4.99")
    assert AffiliateLink.objects.get(link_code="maria-x1").conversions == 1


@pytest.mark.django_db
def test_sale_without_known_code_is_ignored(affiliate):
    assert services.record_affiliate_sale(_session(code="other")) is None
    assert services.record_affiliate_sale(_session(code="")) is None


@pytest.mark.django_db
def test_fixed_commission(affiliate):
    affiliate.commission_type = Affiliate.COMMISSION_FIXED
    affiliate.commission_fixed_amount = Decimal("15")
    affiliate.save()
    sale = services.record_affiliate_sale(_session(amount=8990, plan="enterprise"))
    assert sale.commission_amount == Decimal("15")
    assert sale.plan_type == "enterprise"


@pytest.mark.django_db
def test_commission_transitions(admin_auth_client, affiliate):
    commission = services.record_affiliate_sale(_session()).commission
    base = f"/api/affiliates/commissions/{commission.id}"

    assert admin_auth_client.post(f"{base}/pay/", {}, content_type="application/json").status_code == 400
    resp = admin_auth_client.post(f"{base}/approve/", {}, content_type="application/json")
    assert resp.status_code == 200
    assert resp.json()["status"] == "approved"
    resp = admin_auth_client.post(
        f"{base}/pay/", {"payment_method": "pix", "payment_reference": "E123"}, content_type="application/json"
    )
    assert resp.status_code == 200
    assert resp.json()["paid_at"] is not None
    assert resp.json()["payment_reference"] == "E123"
    assert admin_auth_client.post(f"{base}/cancel/", {}, content_type="application/json").status_code == 400


@pytest.mark.django_db
def test_cancelling_commission_reduces_total(affiliate):
    commission = services.record_affiliate_sale(_session()).commission
    services.transition_commission(commission, AffiliateCommission.STATUS_CANCELLED)
    affiliate.refresh_from_db()
    assert affiliate.total_commissions == Decimal("0")


@pytest.mark.django_db
def test_management_requires_platform_admin(auth_client):
    assert auth_client.get("/api/affiliates/affiliates/").status_code == 403


@pytest.mark.django_db
def test_admin_creates_affiliate_with_link(admin_auth_client):
    resp = admin_auth_client.post(
        "/api/affiliates/affiliates/",
        {"name": "João Lima", "email": "joao@example.com", "commission_percentage": "20"},
        content_type="application/json",
    )
    assert resp.status_code == 201
    code = resp.json()["affiliate_code"]
    assert code.startswith("JOOLIMA")
    assert len(code) == len("JOOLIMA") + 4
    affiliate = Affiliate.objects.get(pk=resp.json()["id"])
    assert affiliate.links.count() == 1


@pytest.mark.django_db
def test_deleting_affiliate_without_sales_removes_it(admin_auth_client, affiliate):
    resp = admin_auth_client.delete(f"/api/affiliates/affiliates/{affiliate.pk}/")
    assert resp.status_code == 204
    assert not Affiliate.objects.filter(pk=affiliate.pk).exists()
    assert not AffiliateLink.objects.filter(link_code="maria-x1").exists()


@pytest.mark.django_db
def test_deleting_affiliate_with_sales_deactivates_it(admin_auth_client, affiliate):
    sale = services.record_affiliate_sale(_session())

    resp = admin_auth_client.delete(f"/api/affiliates/affiliates/{affiliate.pk}/")
    assert resp.status_code == 204

    affiliate.refresh_from_db()
    assert affiliate.status == Affiliate.STATUS_INACTIVE
    assert not affiliate.links.filter(is_active=True).exists()
    assert AffiliateSale.objects.filter(pk=sale.pk, affiliate=affiliate).exists()
    assert AffiliateCommission.objects.filter(affiliate=affiliate).count() == 1
    assert services.find_link("maria-x1") is None


@pytest.mark.django_db
def test_checkout_uses_affiliate_price_and_cookie(client, affiliate, fake_stripe):
    AffiliateStripeProduct.objects.create(
        affiliate=affiliate, plan_type="professional", billing="monthly", stripe_price_id="price_aff_pro_m"
    )
    fake_stripe.checkout.Session.create.return_value = {"id": "cs_9", "url": "https://checkout.test/cs_9"}
    client.cookies["aff_code"] = "maria-x1"

    resp = client.post(
        "/api/affiliates/checkout/",
        {"plan_type": "professional", "billing": "monthly", "direct": True},
        content_type="application/json",
    )
    assert resp.status_code == 200
    assert resp.json()["url"] == "https://checkout.test/cs_9"
    params = fake_stripe.checkout.Session.create.call_args.kwargs
    assert params["line_items"] == [{"price": "price_aff_pro_m", "quantity": 1}]
    assert params["metadata"]["affiliate_code"] == "maria-x1"
    assert params["metadata"]["is_affiliate_sale"] == "true"
    assert "discounts" not in params


@pytest.mark.django_db
def test_checkout_without_affiliate_uses_default_price(client, fake_stripe, settings):
    fake_stripe.checkout.Session.create.return_value = {"id": "cs_2", "url": "https://checkout.test/cs_2"}
    resp = client.post(
        "/api/affiliates/checkout/",
        {"plan_type": "enterprise", "billing": "yearly", "direct": True},
        content_type="application/json",
    )
    assert resp.status_code == 200
    params = fake_stripe.checkout.Session.create.call_args.kwargs
    assert params["line_items"][0]["price"] == settings.STRIPE_PRICE_IDS["enterprise_yearly"]
    assert params["metadata"]["is_affiliate_sale"] == "false"


@pytest.mark.django_db
def test_coupon_creation_rolls_back_stripe_coupon(affiliate, fake_stripe, monkeypatch):
    fake_stripe.Coupon.create.return_value = {"id": "MARIASOUZA-ABC123"}

    def broken_create(**kwargs):
        raise RuntimeError("db down")

    monkeypatch.setattr(AffiliateCoupon.objects, "create", broken_create)
    with pytest.raises(BusinessRuleError) as excinfo:
        services.create_affiliate_coupon(affiliate, "Lançamento", AffiliateCoupon.DISCOUNT_PERCENTAGE, Decimal("15"))
    assert "Erro ao salvar cupom" in str(excinfo.value.detail)
    fake_stripe.Coupon.delete.assert_called_once_with("MARIASOUZA-ABC123")


@pytest.mark.django_db
def test_admin_creates_coupon(admin_auth_client, affiliate, fake_stripe):
    fake_stripe.Coupon.create.side_effect = lambda **params: {"id": params["id"]}
    resp = admin_auth_client.post(
        "/api/affiliates/coupons/",
        {"affiliate": affiliate.id, "name": "Promo", "discount_type": "fixed", "discount_value": "10.00"},
        content_type="application/json",
    )
    assert resp.status_code == 201
    coupon_id = resp.json()["coupon"]["stripe_coupon_id"]
    assert coupon_id.startswith("MARIASOUZA-")
    params = fake_stripe.Coupon.create.call_args.kwargs
    assert params["amount_off"] == 1000
    assert params["currency"] == "brl"
    assert params["duration"] == "forever"


@pytest.mark.django_db
def test_sync_records_only_new_affiliate_sessions(affiliate, fake_stripe):
    services.record_affiliate_sale(_session("cs_old"))
    listing = fake_stripe.checkout.Session.list.return_value
    listing.auto_paging_iter.return_value = [
        _session("cs_old"),
        _session("cs_new"),
        {"id": "cs_plain", "metadata": {}},
    ]
    result = services.sync_affiliate_sales(days=30)
    assert result == {"success": True, "synced_sales": 1, "errors": 0, "total_sessions": 3}
    assert AffiliateSale.objects.filter(stripe_session_id="cs_new").exists()


@pytest.mark.django_db
def test_stats(admin_auth_client, affiliate):
    AffiliateLink.objects.filter(link_code="maria-x1").update(clicks=4)
    services.record_affiliate_sale(_session())
    resp = admin_auth_client.get(f"/api/affiliates/affiliates/{affiliate.id}/stats/")
    assert resp.status_code == 200
    body = resp.json()
    assert body["clicks"] == 4
    assert body["conversions"] == 1
    assert body["conversion_rate"] == 25.0
    assert body["commissions"]["pending"]["count"] == 1
