"""Stripe 連携ルート

GET  /api/stripe/status           → 200 { enabled }
GET  /api/stripe/publishable-key  → 200 { publishableKey }
POST /api/stripe/webhook          → 200 { received: true }（署名検証必須）
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from pawcal.config import AppConfig
from pawcal.domain.errors import InvalidStatusTransitionError, PaymentError
from pawcal.domain.ports import PaymentGateway
from pawcal.entrypoints.api.deps import (
    get_app_config,
    get_payment_gateway,
    get_purchase_service,
)
from pawcal.entrypoints.api.schemas import PublishableKeyResponse
from pawcal.services.purchase import PurchaseService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/stripe", tags=["stripe"])


@router.get("/status")
async def stripe_status(
    gateway: PaymentGateway | None = Depends(get_payment_gateway),
) -> dict:
    """決済機能が有効かどうかを返す（フロントエンドの購入ボタン表示制御用）"""
    return {"enabled": gateway is not None}


@router.get("/publishable-key", response_model=PublishableKeyResponse)
async def stripe_publishable_key(
    gateway: PaymentGateway | None = Depends(get_payment_gateway),
    config: AppConfig = Depends(get_app_config),
) -> PublishableKeyResponse:
    """Stripe.js の初期化に使う公開キーを返す"""
    if gateway is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Payments are not configured",
        )
    if not config.stripe_publishable_key:
        logger.error("STRIPE_PUBLISHABLE_KEY is not set while payments are enabled")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get publishable key",
        )
    return PublishableKeyResponse(publishable_key=config.stripe_publishable_key)


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(None, alias="stripe-signature"),
    service: PurchaseService | None = Depends(get_purchase_service),
) -> dict:
    """
    Stripe Webhook を受け取り、支払い完了を calendar に反映する。

    署名検証には生のリクエストボディが必要なため、JSON としてはパースしない。
    """
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Payments are not configured",
        )
    if not stripe_signature:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing stripe-signature",
        )

    payload = await request.body()
    try:
        service.handle_webhook(payload, stripe_signature)
    except PaymentError as e:
        logger.warning("Webhook rejected: %s", e)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Webhook processing error",
        ) from e
    except InvalidStatusTransitionError as e:
        logger.warning("Webhook for calendar in unexpected status: %s", e)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    return {"received": True}
