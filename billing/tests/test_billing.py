"""
Tests for plans, usage limits, Stripe checkout, the webhook and in-app
coupons.  Stripe is replaced by the `fake_stripe` mock.
"""
import json
from datetime import timedelta

import pytest
import stripe
from django.utils import timezone

from backoffice.services import update_user_plan
from billing.models import CouponRedemption, PromotionalCoupon, Subscription
from inventory.models import Product

URL = "/api/billing/"
PERIOD_END = 1893456000  # 2030-01-01


def _stripe_subscription(product="prod_pro", status="active"):
    return {
        "id": "sub_1",
        "customer": "cus_1",
        "status": status,
        "metadata": {},
        "items": {"data": [{"price": {"product": product}, "current_period_end": PERIOD_END}]},
    }


def _post_event(client, event):
    return client.post(
        f"{URL}webhook/stripe/",
        json.dumps(event),
        content_type="application/json",
        HTTP_STRIPE_SIGNATURE="t=1,v1=abc",
    )


@pytest.mark.django_db
def test_plan_catalogue_is_public(client):
    resp = client.get(f"{URL}plans/")
    assert resp.status_code == 200
    plans = {p["id"]: p for p in resp.json()}
    assert set(plans) == {"free", "professional", "enterprise"}
    assert plans["free"]["limits"]["receitas"] == 5


@pytest.mark.django_db
def test_usage_reports_limits(auth_client, user):
    Product.objects.create(user=user, codigo_interno=1, nome="Farinha")
    resp = auth_client.get(f"{URL}usage/")
    assert resp.status_code == 200
    body = resp.json()
    assert body["plan"] == "free"
    assert body["resources"]["produtos"] == {"used": 1, "limit": 30, "remaining": 29}
    assert body["resources"]["pdf_exports"]["remaining"] == 0


@pytest.mark.django_db
def test_expired_plan_falls_back_to_free(auth_client, user, set_plan):
    set_plan(user, "professional", expires_at=timezone.now() - timedelta(days=1))
    assert auth_client.get(f"{URL}usage/").json()["plan"] == "free"


@pytest.mark.django_db
def test_admin_is_unlimited(admin_auth_client):
    body = admin_auth_client.get(f"{URL}usage/").json()
    assert body["is_admin"] is True
    assert body["resources"]["receitas"]["limit"] == -1


@pytest.mark.django_db
def test_checkout_creates_session(auth_client, user, fake_stripe):
    fake_stripe.Customer.list.return_value = {"data": []}
    fake_stripe.checkout.Session.create.return_value = {"id": "cs_1", "url": "https://checkout.test/cs_1"}

    resp = auth_client.post(
        f"{URL}checkout/", {"plan": "professional", "billing": "yearly"},
        content_type="application/json", HTTP_ORIGIN="http://app.test",
    )
    assert resp.status_code == 200
    assert resp.json() == {"url": "https://checkout.test/cs_1", "session_id": "cs_1"}
    params = fake_stripe.checkout.Session.create.call_args.kwargs
    assert params["line_items"] == [{"price": "price_pro_y", "quantity": 1}]
    assert params["customer_email"] == "u1@example.com"
    assert params["metadata"]["user_id"] == str(user.id)
    assert params["success_url"].startswith("http://app.test/")


@pytest.mark.django_db
def test_checkout_reuses_customer(auth_client, fake_stripe):
    fake_stripe.Customer.list.return_value = {"data": [{"id": "cus_9"}]}
    fake_stripe.checkout.Session.create.return_value = {"id": "cs_2", "url": "https://checkout.test/cs_2"}
    auth_client.post(f"{URL}checkout/", {"plan": "enterprise"}, content_type="application/json")
    params = fake_stripe.checkout.Session.create.call_args.kwargs
    assert params["customer"] == "cus_9"
    assert "customer_email" not in params


@pytest.mark.django_db
def test_checkout_stripe_error_is_502(auth_client, fake_stripe):
    fake_stripe.Customer.list.side_effect = stripe.StripeError("boom")
    resp = auth_client.post(f"{URL}checkout/", {"plan": "professional"}, content_type="application/json")
    assert resp.status_code == 502


@pytest.mark.django_db
def test_checkout_rejects_free_plan(auth_client, fake_stripe):
    resp = auth_client.post(f"{URL}checkout/", {"plan": "free"}, content_type="application/json")
    assert resp.status_code == 400


@pytest.mark.django_db
def test_webhook_requires_signature(client):
    resp = client.post(f"{URL}webhook/stripe/", "{}", content_type="application/json")
    assert resp.status_code == 400


@pytest.mark.django_db
def test_webhook_rejects_bad_signature(client, monkeypatch):
    def reject(**kwargs):
        raise stripe.SignatureVerificationError("bad signature", "t=1,v1=abc")

    monkeypatch.setattr(stripe.Webhook, "construct_event", reject)
    resp = _post_event(client, {"type": "checkout.session.completed"})
    assert resp.status_code == 400


@pytest.mark.django_db
def test_webhook_checkout_completed_activates_plan(client, user, fake_stripe, monkeypatch):
    monkeypatch.setattr(stripe.Webhook, "construct_event", lambda **kwargs: {})
    fake_stripe.Subscription.retrieve.return_value = _stripe_subscription()
    fake_stripe.Customer.retrieve.return_value = {"id": "cus_1", "email": "u1@example.com"}

    event = {
        "id": "evt_1",
        "type": "checkout.session.completed",
        "data": {"object": {"id": "cs_1", "subscription": "sub_1", "metadata": {"user_id": str(user.id)}}},
    }
    resp = _post_event(client, event)
    assert resp.status_code == 200
    assert resp.json() == {"received": True}

    user.profile.refresh_from_db()
    assert user.profile.plan == "professional"
    assert user.profile.stripe_customer_id == "cus_1"
    assert user.profile.plan_expires_at.year == 2030
    record = Subscription.objects.get(stripe_subscription_id="sub_1")
    assert record.user == user
    assert record.status == "active"


@pytest.mark.django_db
def test_webhook_subscription_deleted_downgrades(client, user, set_plan, monkeypatch):
    monkeypatch.setattr(stripe.Webhook, "construct_event", lambda **kwargs: {})
    set_plan(user, "enterprise")
    Subscription.objects.create(user=user, stripe_subscription_id="sub_1", plan="enterprise", status="active")

    resp = _post_event(client, {"type": "customer.subscription.deleted", "data": {"object": {"id": "sub_1"}}})
    assert resp.status_code == 200
    user.profile.refresh_from_db()
    assert user.profile.plan == "free"
    assert Subscription.objects.get(stripe_subscription_id="sub_1").status == "canceled"


@pytest.mark.django_db
def test_webhook_ignores_unknown_events(client, monkeypatch):
    monkeypatch.setattr(stripe.Webhook, "construct_event", lambda **kwargs: {})
    resp = _post_event(client, {"type": "customer.created", "data": {"object": {}}})
    assert resp.json() == {"received": True}


@pytest.mark.django_db
def test_webhook_handler_failure_is_500(client, fake_stripe, monkeypatch):
    monkeypatch.setattr(stripe.Webhook, "construct_event", lambda **kwargs: {})
    fake_stripe.Subscription.retrieve.side_effect = stripe.StripeError("down")
    event = {"type": "checkout.session.completed", "data": {"object": {"id": "cs_1", "subscription": "sub_1"}}}
    assert _post_event(client, event).status_code == 500


@pytest.mark.django_db
def test_check_subscription_keeps_manual_plan(auth_client, user, set_plan, fake_stripe):
    set_plan(user, "professional", expires_at=timezone.now() + timedelta(days=10))
    fake_stripe.Customer.list.return_value = {"data": []}
    resp = auth_client.post(f"{URL}check-subscription/")
    assert resp.json()["subscribed"] is False
    assert resp.json()["plan"] == "professional"


@pytest.mark.django_db
def test_check_subscription_finds_active(auth_client, user, fake_stripe):
    fake_stripe.Customer.list.return_value = {"data": [{"id": "cus_1"}]}
    fake_stripe.Subscription.list.return_value = {"data": [_stripe_subscription(product="prod_ent")]}
    resp = auth_client.post(f"{URL}check-subscription/")
    assert resp.json()["subscribed"] is True
    assert resp.json()["plan"] == "enterprise"
    user.profile.refresh_from_db()
    assert user.profile.plan == "enterprise"


@pytest.mark.django_db
def test_check_subscription_stripe_error_falls_back(auth_client, fake_stripe):
    fake_stripe.Customer.list.side_effect = stripe.StripeError("down")
    resp = auth_client.post(f"{URL}check-subscription/")
    assert resp.status_code == 200
    assert resp.json()["plan"] == "free"
    assert "error" in resp.json()


@pytest.mark.django_db
def test_check_subscription_downgrades_lapsed_stripe_plan(auth_client, user, set_plan, fake_stripe):
    profile = set_plan(user, "professional", expires_at=timezone.now() + timedelta(days=10))
    profile.subscription_status = "active"
    profile.save()
    fake_stripe.Customer.list.return_value = {"data": [{"id": "cus_1"}]}
    fake_stripe.Subscription.list.return_value = {"data": []}

    resp = auth_client.post(f"{URL}check-subscription/")
    assert resp.json()["plan"] == "free"
    user.profile.refresh_from_db()
    assert user.profile.plan == "free"
    assert user.profile.subscription_status == "canceled"


@pytest.mark.django_db
def test_admin_grant_survives_previously_canceled_subscription(auth_client, user, platform_admin, fake_stripe):
    profile = user.profile
    profile.subscription_status = "canceled"
    profile.stripe_customer_id = "cus_old"
    profile.save()
    fake_stripe.Subscription.list.return_value = {"data": []}
    update_user_plan(platform_admin, user, "enterprise", reason="Cortesia para parceiro")
    user.profile.refresh_from_db()
    assert user.profile.subscription_status == ""

    resp = auth_client.post(f"{URL}check-subscription/")
    assert resp.json()["plan"] == "enterprise"
    user.profile.refresh_from_db()
    assert user.profile.plan == "enterprise"


@pytest.mark.django_db
def test_canceled_status_alone_does_not_take_back_a_grant(auth_client, user, set_plan, fake_stripe):
    profile = set_plan(user, "professional")
    profile.subscription_status = "canceled"
    profile.save()
    fake_stripe.Customer.list.return_value = {"data": []}

    resp = auth_client.post(f"{URL}check-subscription/")
    assert resp.json()["plan"] == "professional"
    user.profile.refresh_from_db()
    assert user.profile.plan == "professional"


@pytest.mark.django_db
def test_stripe_error_fallback_matches_stored_plan(auth_client, user, set_plan, fake_stripe):
    profile = set_plan(user, "enterprise", expires_at=timezone.now() + timedelta(days=10))
    profile.subscription_status = "active"
    profile.save()
    fake_stripe.Customer.list.side_effect = stripe.StripeError("down")

    resp = auth_client.post(f"{URL}check-subscription/")
    assert resp.status_code == 200
    assert resp.json()["plan"] == "free"
    assert resp.json()["error"] == "down"
    user.profile.refresh_from_db()
    assert user.profile.plan == "free"


@pytest.mark.django_db
def test_stripe_error_keeps_manual_plan(auth_client, user, set_plan, fake_stripe):
    set_plan(user, "professional")
    fake_stripe.Customer.list.side_effect = stripe.StripeError("down")

    resp = auth_client.post(f"{URL}check-subscription/")
    assert resp.json()["plan"] == "professional"
    user.profile.refresh_from_db()
    assert user.profile.plan == "professional"


@pytest.mark.django_db
def test_apply_trial_coupon(auth_client, user):
    PromotionalCoupon.objects.create(code="TESTE30", trial_days=30, applies_to_plans=["enterprise"])
    resp = auth_client.post(f"{URL}coupons/apply/", {"code": " teste30 "}, content_type="application/json")
    assert resp.status_code == 200
    assert resp.json()["plan_granted"] == "enterprise"
    user.profile.refresh_from_db()
    assert user.profile.plan == "enterprise"
    assert PromotionalCoupon.objects.get(code="TESTE30").times_redeemed == 1

    again = auth_client.post(f"{URL}coupons/apply/", {"code": "TESTE30"}, content_type="application/json")
    assert again.status_code == 400
    assert again.json() == {"success": False, "error": "Você já utilizou este cupom"}
    assert CouponRedemption.objects.count() == 1


@pytest.mark.django_db
def test_apply_coupon_errors(auth_client):
    PromotionalCoupon.objects.create(code="VELHO", trial_days=7, expires_at=timezone.now() - timedelta(days=1))
    PromotionalCoupon.objects.create(code="ESGOTADO", trial_days=7, max_redemptions=1, times_redeemed=1)

    def apply(code):
        return auth_client.post(f"{URL}coupons/apply/", {"code": code}, content_type="application/json").json()

    assert apply("NAOEXISTE")["error"] == "Cupom inválido ou inativo"
    assert apply("VELHO")["error"] == "Cupom expirado"
    assert apply("ESGOTADO")["error"] == "Limite de usos do cupom atingido"
    assert apply("a!")["success"] is False


@pytest.mark.django_db
def test_promotional_coupons_admin_only(auth_client, admin_auth_client):
    payload = {"code": "BEMVINDO", "discount_type": "trial_period", "trial_days": 14, "applies_to_plans": ["professional"]}
    assert auth_client.post(f"{URL}promotional-coupons/", payload, content_type="application/json").status_code == 403
    resp = admin_auth_client.post(f"{URL}promotional-coupons/", payload, content_type="application/json")
    assert resp.status_code == 201, resp.content
    assert resp.json()["code"] == "BEMVINDO"
