"""
Affiliate operations.

Sale attribution is idempotent on the Stripe checkout session id: the
webhook task and the periodic sync may both see the same session, and
only the first one records it.
"""
from __future__ import annotations

import logging
import re
import secrets
import string
from datetime import timedelta
from decimal import Decimal

import stripe
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Count, F, Q, Sum
from django.utils import timezone

from billing.plans import (
    BILLING_MONTHLY,
    BILLING_YEARLY,
    PLAN_CONFIGS,
    PLAN_ENTERPRISE,
    PLAN_PROFESSIONAL,
    normalize_plan,
    price_key,
)
from billing.services import find_customer_id
from billing.stripe_client import client, from_timestamp, sget, sget_path
from common.exceptions import BusinessRuleError
from .models import (
    Affiliate,
    AffiliateCommission,
    AffiliateCoupon,
    AffiliateLink,
    AffiliateSale,
    AffiliateStripeProduct,
)

logger = logging.getLogger(__name__)
User = get_user_model()

CODE_ALPHABET = string.ascii_uppercase + string.digits


def random_suffix(length=6) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def _name_prefix(name: str, size=None) -> str:
    prefix = re.sub(r"[^A-Z0-9]", "", name.upper())
    return prefix[:size] if size else prefix


def generate_affiliate_code(name: str) -> str:
    prefix = _name_prefix(name, 8) or "AFF"
    while True:
        code = f"{prefix}{random_suffix(4)}"
        if not Affiliate.objects.filter(affiliate_code=code).exists():
            return code


def generate_link_code(affiliate: Affiliate) -> str:
    while True:
        code = f"{affiliate.affiliate_code.lower()}-{random_suffix(4).lower()}"
        if not AffiliateLink.objects.filter(link_code=code).exists():
            return code


def coupon_code(affiliate: Affiliate) -> str:
    return f"{_name_prefix(affiliate.name) or 'AFF'}-{random_suffix(6)}"


def find_link(code: str):
    if not code:
        return None
    return (
        AffiliateLink.objects.select_related("affiliate")
        .filter(link_code=code, is_active=True, affiliate__status=Affiliate.STATUS_ACTIVE)
        .first()
    )


def register_click(link: AffiliateLink) -> None:
    AffiliateLink.objects.filter(pk=link.pk).update(clicks=F("clicks") + 1)


@transaction.atomic
def deactivate_affiliate(affiliate: Affiliate) -> Affiliate:
    """Retire an affiliate that already has sales: links and coupons stop working, history is kept."""
    affiliate.status = Affiliate.STATUS_INACTIVE
    affiliate.save(update_fields=["status", "updated_at"])
    affiliate.links.update(is_active=False)
    affiliate.coupons.update(is_active=False)
    affiliate.stripe_products.update(is_active=False)
    logger.info("Affiliate %s deactivated instead of deleted", affiliate.affiliate_code)
    return affiliate


# Commissions

def transition_commission(commission: AffiliateCommission, new_status: str, **details) -> AffiliateCommission:
    with transaction.atomic():
        commission = AffiliateCommission.objects.select_for_update().get(pk=commission.pk)
        if not commission.can_transition(new_status):
            raise BusinessRuleError(
                f"Transição de comissão inválida: {commission.status} -> {new_status}."
            )
        now = timezone.now()
        commission.status = new_status
        if new_status == AffiliateCommission.STATUS_APPROVED:
            commission.approved_at = now
        elif new_status == AffiliateCommission.STATUS_PAID:
            commission.paid_at = now
            commission.payment_method = details.get("payment_method", "")
            commission.payment_reference = details.get("payment_reference", "")
        if details.get("notes"):
            commission.notes = details["notes"]
        commission.save()
        if new_status == AffiliateCommission.STATUS_CANCELLED:
            Affiliate.objects.filter(pk=commission.affiliate_id).update(
                total_commissions=F("total_commissions") - commission.amount
            )
    logger.info("Commission %s moved to %s", commission.pk, new_status)
    return commission


# Sales

def _plan_from_line_items(session_id):
    items = client().checkout.Session.list_line_items(session_id, limit=1)
    product = sget_path(items, "data", 0, "price", "product")
    if product is not None and not isinstance(product, str):
        product = sget(product, "id")
    return normalize_plan(settings.STRIPE_PRODUCT_TO_PLAN.get(product or ""))


def _customer_user(session):
    user_id = sget_path(session, "metadata", "user_id")
    if user_id:
        user = User.objects.filter(pk=user_id).first()
        if user:
            return user
    email = sget_path(session, "customer_details", "email") or sget(session, "customer_email")
    if email:
        return User.objects.filter(email__iexact=email).first()
    return None


def record_affiliate_sale(session, plan_type=None):
    """Attribute a completed checkout session to the affiliate in its metadata.

    Returns the new `AffiliateSale`, or None when the session carries no
    known affiliate code or was already recorded.
    """
    session_id = sget(session, "id")
    code = sget_path(session, "metadata", "affiliate_code")
    if not session_id or not code:
        return None
    if AffiliateSale.objects.filter(stripe_session_id=session_id).exists():
        return None

    link = AffiliateLink.objects.select_related("affiliate").filter(link_code=code).first()
    if link is None:
        logger.warning("Affiliate link %s not found for session %s", code, session_id)
        return None
    affiliate = link.affiliate

    plan = normalize_plan(plan_type) or normalize_plan(sget_path(session, "metadata", "plan_type"))
    if plan is None:
        plan = _plan_from_line_items(session_id) or PLAN_PROFESSIONAL
    amount = Decimal(sget(session, "amount_total", 0) or 0) / Decimal(100)
    commission_amount = affiliate.commission_for(amount)
    created = from_timestamp(sget(session, "created")) or timezone.now()
    payment_intent = sget(session, "payment_intent", "")
    if not isinstance(payment_intent, str):
        payment_intent = sget(payment_intent, "id", "")

    try:
        with transaction.atomic():
            sale = AffiliateSale.objects.create(
                affiliate=affiliate,
                link=link,
                customer_email=sget_path(session, "customer_details", "email") or sget(session, "customer_email", ""),
                customer_name=sget_path(session, "customer_details", "name", default=""),
                customer_user=_customer_user(session),
                plan_type=plan,
                sale_amount=amount,
                commission_amount=commission_amount,
                stripe_session_id=session_id,
                stripe_payment_intent_id=payment_intent,
                status=AffiliateSale.STATUS_CONFIRMED,
                sale_date=created,
                confirmed_at=created,
            )
            AffiliateCommission.objects.create(affiliate=affiliate, sale=sale, amount=commission_amount)
            AffiliateLink.objects.filter(pk=link.pk).update(conversions=F("conversions") + 1)
            Affiliate.objects.filter(pk=affiliate.pk).update(
                total_sales=F("total_sales") + amount,
                total_commissions=F("total_commissions") + commission_amount,
            )
    except IntegrityError:
        # recorded concurrently by the webhook or the sync
        logger.info("Affiliate sale for session %s already recorded", session_id)
        return None

    logger.info("Affiliate sale %s recorded for %s: %s (commission %s)", session_id, affiliate.affiliate_code, amount, commission_amount)
    return sale


def sync_affiliate_sales(days=None) -> dict:
    """Record affiliate sales from completed Stripe checkouts of the last N days."""
    days = days or settings.AFFILIATE_SYNC_DAYS
    since = int((timezone.now() - timedelta(days=days)).timestamp())
    sessions = client().checkout.Session.list(created={"gte": since}, status="complete", limit=100)

    total = synced = errors = 0
    for session in sessions.auto_paging_iter():
        total += 1
        if not sget_path(session, "metadata", "affiliate_code"):
            continue
        try:
            if record_affiliate_sale(session) is not None:
                synced += 1
        except Exception:
            logger.exception("Failed to sync affiliate session %s", sget(session, "id"))
            errors += 1
    logger.info("Affiliate sync: %d sessions, %d synced, %d errors", total, synced, errors)
    return {"success": True, "synced_sales": synced, "errors": errors, "total_sessions": total}


# Stripe products and coupons

def create_affiliate_products(affiliate: Affiliate) -> list:
    """Create one Stripe product and price per paid plan and billing cycle."""
    api = client()
    created = []
    for plan in (PLAN_PROFESSIONAL, PLAN_ENTERPRISE):
        for billing in (BILLING_MONTHLY, BILLING_YEARLY):
            config = PLAN_CONFIGS[plan]
            amount = config["price"] if billing == BILLING_MONTHLY else config["price_yearly"]
            metadata = {
                "affiliate_id": str(affiliate.pk),
                "affiliate_name": affiliate.name,
                "plan_type": plan,
                "billing": billing,
            }
            label = "Mensal" if billing == BILLING_MONTHLY else "Anual"
            product = api.Product.create(
                name=f"{config['name']} {label} - {affiliate.name} (Afiliado)",
                metadata=metadata,
            )
            price = api.Price.create(
                product=product["id"],
                unit_amount=int((Decimal(amount) * 100).to_integral_value()),
                currency=settings.STRIPE_DEFAULT_CURRENCY,
                recurring={"interval": "month" if billing == BILLING_MONTHLY else "year"},
                metadata=metadata,
            )
            row, _ = AffiliateStripeProduct.objects.update_or_create(
                affiliate=affiliate,
                plan_type=plan,
                billing=billing,
                defaults={"stripe_product_id": product["id"], "stripe_price_id": price["id"], "is_active": True},
            )
            created.append(row)
    logger.info("Created %d Stripe prices for affiliate %s", len(created), affiliate.affiliate_code)
    return created


def create_affiliate_coupon(affiliate, name, discount_type, discount_value, description="",
                            max_redemptions=None, expires_at=None) -> AffiliateCoupon:
    """Create the coupon in Stripe, then locally; the Stripe coupon is deleted if the insert fails."""
    api = client()
    code = coupon_code(affiliate)
    params = {
        "id": code,
        "name": f"{name} - {affiliate.name}"[:40],
        "duration": "once" if expires_at else "forever",
    }
    if discount_type == AffiliateCoupon.DISCOUNT_PERCENTAGE:
        params["percent_off"] = float(discount_value)
    else:
        params["amount_off"] = int((Decimal(discount_value) * 100).to_integral_value())
        params["currency"] = settings.STRIPE_DEFAULT_CURRENCY
    if max_redemptions:
        params["max_redemptions"] = max_redemptions
    if expires_at:
        params["redeem_by"] = int(expires_at.timestamp())

    stripe_coupon = api.Coupon.create(**params)
    try:
        with transaction.atomic():
            coupon = AffiliateCoupon.objects.create(
                affiliate=affiliate,
                stripe_coupon_id=stripe_coupon["id"],
                name=name,
                description=description,
                discount_type=discount_type,
                discount_value=discount_value,
                max_redemptions=max_redemptions,
                expires_at=expires_at,
            )
    except Exception:
        logger.exception("Failed to save coupon %s; removing it from Stripe", stripe_coupon["id"])
        try:
            api.Coupon.delete(stripe_coupon["id"])
        except stripe.StripeError:
            logger.exception("Failed to delete Stripe coupon %s", stripe_coupon["id"])
        raise BusinessRuleError("Erro ao salvar cupom no banco de dados.")
    return coupon


# Checkout

def _affiliate_price(affiliate, plan, billing):
    if affiliate is None:
        return None
    return (
        AffiliateStripeProduct.objects.filter(affiliate=affiliate, plan_type=plan, billing=billing, is_active=True)
        .values_list("stripe_price_id", flat=True)
        .first()
    )


def _affiliate_discount(affiliate):
    if affiliate is None:
        return None
    now = timezone.now()
    coupons = AffiliateCoupon.objects.filter(affiliate=affiliate, is_active=True).filter(
        Q(expires_at__isnull=True) | Q(expires_at__gte=now)
    )
    for coupon in coupons:
        if not coupon.usable(now):
            continue
        try:
            stripe_coupon = client().Coupon.retrieve(coupon.stripe_coupon_id)
        except stripe.StripeError:
            logger.warning("Stripe coupon %s could not be validated", coupon.stripe_coupon_id)
            continue
        if sget(stripe_coupon, "valid"):
            return coupon.stripe_coupon_id
    return None


def create_affiliate_checkout(plan, billing, code, origin, user=None) -> dict:
    link = find_link(code) if code else None
    affiliate = link.affiliate if link else None

    price_id = _affiliate_price(affiliate, plan, billing) or settings.STRIPE_PRICE_IDS.get(price_key(plan, billing))
    if not price_id:
        raise BusinessRuleError(f"Plano inválido: {plan}_{billing}")

    params = {
        "line_items": [{"price": price_id, "quantity": 1}],
        "mode": "subscription",
        "success_url": f"{origin}/auth/success?session_id={{CHECKOUT_SESSION_ID}}",
        "cancel_url": f"{origin}/planos",
        "metadata": {
            "affiliate_code": link.link_code if link else "",
            "affiliate_id": str(affiliate.pk) if affiliate else "",
            "plan_type": plan,
            "billing": billing,
            "is_affiliate_sale": "true" if link else "false",
        },
    }
    if user is not None and user.is_authenticated:
        params["metadata"]["user_id"] = str(user.pk)
        customer_id = find_customer_id(user.email)
        if customer_id:
            params["customer"] = customer_id
        else:
            params["customer_email"] = user.email
    discount = _affiliate_discount(affiliate)
    if discount:
        params["discounts"] = [{"coupon": discount}]

    session = client().checkout.Session.create(**params)
    logger.info("Affiliate checkout %s (code=%s, price=%s)", session["id"], code or "-", price_id)
    return {"url": session["url"], "session_id": session["id"]}


# Reports

def affiliate_stats(affiliate: Affiliate | None = None) -> dict:
    links = AffiliateLink.objects.all()
    sales = AffiliateSale.objects.exclude(status__in=[AffiliateSale.STATUS_CANCELLED, AffiliateSale.STATUS_REFUNDED])
    commissions = AffiliateCommission.objects.all()
    if affiliate is not None:
        links = links.filter(affiliate=affiliate)
        sales = sales.filter(affiliate=affiliate)
        commissions = commissions.filter(affiliate=affiliate)

    link_totals = links.aggregate(clicks=Sum("clicks"), conversions=Sum("conversions"))
    sale_totals = sales.aggregate(count=Count("id"), amount=Sum("sale_amount"))
    by_status = {
        row["status"]: {"count": row["count"], "amount": row["amount"]}
        for row in commissions.values("status").annotate(count=Count("id"), amount=Sum("amount"))
    }
    clicks = link_totals["clicks"] or 0
    conversions = link_totals["conversions"] or 0
    empty = {"count": 0, "amount": Decimal("0")}
    return {
        "clicks": clicks,
        "conversions": conversions,
        "conversion_rate": round(conversions / clicks * 100, 2) if clicks else 0,
        "sales_count": sale_totals["count"] or 0,
        "sales_amount": sale_totals["amount"] or Decimal("0"),
        "commissions": {
            status: by_status.get(status, empty)
            for status, _ in AffiliateCommission.STATUS_CHOICES
        },
    }
