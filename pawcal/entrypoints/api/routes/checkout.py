"""チェックアウト API ルート

POST /api/checkout          → 200 { url }（Stripe Checkout の URL）
GET  /api/checkout/verify   → 200 { success, calendar }（未払いなら { success: false } のみ）
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from pawcal.config import AppConfig
from pawcal.domain.errors import (
    CalendarNotFoundError,
    InvalidStatusTransitionError,
    PaymentError,
)
from pawcal.entrypoints.api.deps import get_app_config, get_purchase_service
from pawcal.entrypoints.api.schemas import (
    CheckoutRequest,
    CheckoutResponse,
    VerifyResponse,
    to_calendar_response,
)
from pawcal.services.purchase import PurchaseService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/checkout", tags=["checkout"])

_PAYMENTS_DISABLED_DETAIL = "Payments are coming soon! Check back later."


def _require_service(service: PurchaseService | None) -> PurchaseService:
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=_PAYMENTS_DISABLED_DETAIL,
        )
    return service


@router.post("", response_model=CheckoutResponse)
def create_checkout(
    body: CheckoutRequest,
    request: Request,
    service: PurchaseService | None = Depends(get_purchase_service),
    config: AppConfig = Depends(get_app_config),
) -> CheckoutResponse:
    """ready のカレンダーに対して Stripe Checkout セッションを作成する"""
    service = _require_service(service)
    if not body.calendar_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Calendar ID is required",
        )

    base_url = config.public_base_url or str(request.base_url).rstrip("/")
    try:
        session = service.start_checkout(body.calendar_id, base_url, email=body.email)
    except CalendarNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Calendar not found"
        ) from None
    except InvalidStatusTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except PaymentError as e:
        logger.error("Checkout creation failed: calendar_id=%s, error=%s", body.calendar_id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create checkout session",
        ) from e

    return CheckoutResponse(url=session.url)


# 未払い時は calendar キー自体を返さない（明示的に渡したフィールドのみ出力）
@router.get("/verify", response_model=VerifyResponse, response_model_exclude_unset=True)
def verify_checkout(
    session_id: str | None = Query(None),
    calendar_id: str | None = Query(None),
    service: PurchaseService | None = Depends(get_purchase_service),
) -> VerifyResponse:
    """
    チェックアウト完了後の戻り先から呼ばれ、支払い状態を確認する。

    支払い済みであれば calendar を purchased に更新する（Webhook と同じ反映を冪等に行う）。
    """
    service = _require_service(service)
    if not session_id or not calendar_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing params")

    try:
        result = service.confirm(calendar_id, session_id)
    except CalendarNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Calendar not found"
        ) from None
    except InvalidStatusTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except PaymentError as e:
        logger.error("Checkout verification failed: session_id=%s, error=%s", session_id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to verify checkout session",
        ) from e

    if not result.success or result.progress is None:
        return VerifyResponse(success=False)
    return VerifyResponse(success=True, calendar=to_calendar_response(result.progress))
