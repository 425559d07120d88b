"""Stripe Payment Gateway Adapter

PaymentGateway ABC の Stripe 実装。
Checkout Session の作成・取得と Webhook 署名検証を行う。

セッション作成時に metadata.calendar_id を埋め込み、
確認時・Webhook 受信時にどのカレンダーの決済かを照合する。
"""

from __future__ import annotations

import logging
from typing import Any

import stripe

from pawcal.domain.errors import PaymentError
from pawcal.domain.models import (
    CalendarRecord,
    CheckoutSession,
    PaymentEvent,
    PaymentSession,
)
from pawcal.domain.ports import PaymentGateway

logger = logging.getLogger(__name__)


class StripePaymentGateway(PaymentGateway):
    """Stripe Checkout を使った PaymentGateway 実装"""

    def __init__(self, secret_key: str, webhook_secret: str, currency: str = "usd") -> None:
        """
        Args:
            secret_key: Stripe シークレットキー
            webhook_secret: Webhook エンドポイントの署名シークレット
            currency: 決済通貨
        """
        if not secret_key:
            raise ValueError("secret_key is required")
        self._secret_key = secret_key
        self._webhook_secret = webhook_secret
        self._currency = currency

    def create_checkout_session(
        self,
        calendar: CalendarRecord,
        amount_cents: int,
        success_url: str,
        cancel_url: str,
        customer_email: str | None = None,
    ) -> CheckoutSession:
        params: dict[str, Any] = {
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "price_data": {
                        "currency": self._currency,
                        "unit_amount": amount_cents,
                        "product_data": {
                            "name": f"{calendar.pet_name}'s Custom Pet Calendar",
                            "description": (
                                f"A beautiful 12-month wall calendar featuring {calendar.pet_name} "
                                "celebrating major holidays throughout the year."
                            ),
                        },
                    },
                    "quantity": 1,
                }
            ],
            "mode": "payment",
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": {"calendar_id": calendar.id},
        }
        if customer_email:
            params["customer_email"] = customer_email

        try:
            session = stripe.checkout.Session.create(api_key=self._secret_key, **params)
        except stripe.StripeError as e:
            logger.error("Stripe checkout creation failed: calendar_id=%s, error=%s", calendar.id, e)
            raise PaymentError(f"Failed to create checkout session: {e}") from e

        return CheckoutSession(id=session["id"], url=session["url"])

    def retrieve_session(self, session_id: str) -> PaymentSession:
        try:
            session = stripe.checkout.Session.retrieve(session_id, api_key=self._secret_key)
        except stripe.StripeError as e:
            logger.error("Stripe session retrieval failed: session_id=%s, error=%s", session_id, e)
            raise PaymentError(f"Failed to retrieve checkout session: {e}") from e
        return _to_payment_session(session)

    def parse_event(self, payload: bytes, signature: str) -> PaymentEvent:
        try:
            event = stripe.Webhook.construct_event(payload, signature, self._webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning("Stripe webhook verification failed: %s", e)
            raise PaymentError(f"Invalid webhook payload: {e}") from e

        event_type = _get(event, "type") or ""
        obj = _get(_get(event, "data"), "object")
        session = None
        if _get(obj, "object") == "checkout.session":
            session = _to_payment_session(obj)
        logger.info("Stripe webhook received: type=%s", event_type)
        return PaymentEvent(type=event_type, session=session)


def _get(obj: Any, key: str) -> Any:
    """StripeObject / dict から安全に値を取り出す"""
    if obj is None:
        return None
    try:
        return obj[key]
    except (KeyError, TypeError):
        return None


def _to_payment_session(session: Any) -> PaymentSession:
    email = _get(session, "customer_email") or _get(
        _get(session, "customer_details"), "email"
    )
    return PaymentSession(
        id=_get(session, "id") or "",
        paid=_get(session, "payment_status") == "paid",
        customer_email=email or "",
        calendar_id=_get(_get(session, "metadata"), "calendar_id"),
    )
