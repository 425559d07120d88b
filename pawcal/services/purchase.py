"""PurchaseService - チェックアウト作成と決済状態の反映

外部決済の状態をローカルの Calendar に反映する唯一の経路。
同期は決済プロバイダ → Calendar の一方向のみ。
"""

from __future__ import annotations

import logging

from pawcal.domain.errors import CalendarNotFoundError, InvalidStatusTransitionError
from pawcal.domain.models import (
    CalendarRecord,
    CalendarStatus,
    CheckoutSession,
    PaymentSession,
    PurchaseResult,
)
from pawcal.domain.ports import CalendarRepository, PaymentGateway
from pawcal.services.progress import load_progress

logger = logging.getLogger(__name__)

CALENDAR_PRICE_CENTS = 2999

# 支払い完了として扱う Webhook イベント
_PAID_EVENT_TYPES = frozenset(
    {
        "checkout.session.completed",
        "checkout.session.async_payment_succeeded",
    }
)


class PurchaseService:
    """
    決済フロー。

    - start_checkout: ready のカレンダーに対してチェックアウトセッションを作成
    - confirm: セッションの支払い状態を確認し、支払い済みなら purchased にする
    - handle_webhook: 署名検証済みイベントから confirm と同じ反映を行う
    """

    def __init__(self, repository: CalendarRepository, gateway: PaymentGateway) -> None:
        self._repo = repository
        self._gateway = gateway

    def start_checkout(
        self,
        calendar_id: str,
        base_url: str,
        email: str | None = None,
    ) -> CheckoutSession:
        """
        チェックアウトセッションを作成する。

        Raises:
            CalendarNotFoundError: カレンダーが存在しない場合
            InvalidStatusTransitionError: status が ready でない場合
        """
        calendar = self._get_or_raise(calendar_id)
        if calendar.status is not CalendarStatus.READY:
            raise InvalidStatusTransitionError(
                calendar.status.value, CalendarStatus.PURCHASED.value
            )

        session = self._gateway.create_checkout_session(
            calendar,
            amount_cents=CALENDAR_PRICE_CENTS,
            success_url=(
                f"{base_url}/checkout/success"
                f"?session_id={{CHECKOUT_SESSION_ID}}&calendar_id={calendar_id}"
            ),
            cancel_url=f"{base_url}/calendar/{calendar_id}",
            customer_email=email or None,
        )
        logger.info(
            "Checkout session created: calendar_id=%s, session_id=%s",
            calendar_id,
            session.id,
        )
        return session

    def confirm(self, calendar_id: str, session_id: str) -> PurchaseResult:
        """
        決済セッションを確認し、支払い済みなら purchased を書き込む（冪等）。

        Returns:
            PurchaseResult: 未払い・別カレンダーのセッションの場合は success=False

        Raises:
            CalendarNotFoundError: カレンダーが存在しない場合
            InvalidStatusTransitionError: カレンダーがまだ ready になっていない場合
        """
        calendar = self._get_or_raise(calendar_id)
        session = self._gateway.retrieve_session(session_id)
        return self._apply(calendar, session)

    def handle_webhook(self, payload: bytes, signature: str) -> None:
        """
        Webhook を処理する。

        Raises:
            PaymentError: 署名検証に失敗した場合
        """
        event = self._gateway.parse_event(payload, signature)
        if event.type not in _PAID_EVENT_TYPES or event.session is None:
            logger.info("Webhook event ignored: type=%s", event.type)
            return

        session = event.session
        calendar = None
        if session.calendar_id:
            calendar = self._repo.get(session.calendar_id)
        if calendar is None:
            # stripe_session_id は購入反映時にだけ書かれるため、この検索で見つかるのは
            # 反映済みセッションの再配送のみ。metadata のない初回購入はここでは拾えない
            calendar = self._repo.find_by_session(session.id)
        if calendar is None:
            logger.warning(
                "Webhook session has no matching calendar: session_id=%s", session.id
            )
            return

        self._apply(calendar, session)

    def _apply(self, calendar: CalendarRecord, session: PaymentSession) -> PurchaseResult:
        if not session.paid:
            logger.info(
                "Session not paid: calendar_id=%s, session_id=%s",
                calendar.id,
                session.id,
            )
            return PurchaseResult(success=False)

        if session.calendar_id and session.calendar_id != calendar.id:
            logger.warning(
                "Session belongs to another calendar: calendar_id=%s, session_calendar_id=%s",
                calendar.id,
                session.calendar_id,
            )
            return PurchaseResult(success=False)

        if not calendar.status.can_transition_to(CalendarStatus.PURCHASED):
            raise InvalidStatusTransitionError(
                calendar.status.value, CalendarStatus.PURCHASED.value
            )

        self._repo.mark_purchased(calendar.id, session.id, session.customer_email)
        logger.info(
            "Calendar purchased: calendar_id=%s, session_id=%s",
            calendar.id,
            session.id,
        )
        return PurchaseResult(success=True, progress=load_progress(self._repo, calendar.id))

    def _get_or_raise(self, calendar_id: str) -> CalendarRecord:
        calendar = self._repo.get(calendar_id)
        if calendar is None:
            raise CalendarNotFoundError(calendar_id)
        return calendar
