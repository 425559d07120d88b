"""Firestore Repository Adapter

CalendarRepository の Firestore 実装。

Firestore コレクション構造:
  calendars/{calendarId}                    ← カレンダー注文レコード
  calendars/{calendarId}/months/{month}     ← 月ごとの生成結果（ドキュメントID = 月番号）

月レコードのドキュメントIDを月番号にすることで、
1カレンダーにつき同じ月のレコードが2件以上できないようにしている。
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from google.cloud import firestore

from pawcal.domain.models import (
    CalendarMonth,
    CalendarRecord,
    CalendarStatus,
    PetType,
)
from pawcal.domain.ports import CalendarRepository

logger = logging.getLogger(__name__)

_CALENDARS = "calendars"
_MONTHS = "months"


class FirestoreCalendarRepository(CalendarRepository):
    """
    Firestore を使った CalendarRepository 実装。

    calendars/{calendarId} と months サブコレクションを管理する。
    """

    def __init__(self, db: firestore.Client) -> None:
        """
        Args:
            db: 初期化済みの Firestore クライアント
        """
        self._db = db

    def _calendar_ref(self, calendar_id: str):
        return self._db.collection(_CALENDARS).document(calendar_id)

    # ── CalendarRecord ───────────────────────────────────────────────────────

    def create(self, record: CalendarRecord) -> str:
        """カレンダーレコードを Firestore に作成。IDを返す"""
        calendar_id = record.id or str(uuid.uuid4())
        self._calendar_ref(calendar_id).set(self._record_to_dict(record))
        logger.info("Created calendar: calendar_id=%s", calendar_id)
        return calendar_id

    def get(self, calendar_id: str) -> CalendarRecord | None:
        """カレンダーレコードを取得。存在しない場合は None を返す"""
        snap = self._calendar_ref(calendar_id).get()
        if not snap.exists:
            return None
        return self._dict_to_record(calendar_id, snap.to_dict() or {})

    def update_status(self, calendar_id: str, status: CalendarStatus) -> None:
        """カレンダーのステータスを更新"""
        self._calendar_ref(calendar_id).update(
            {
                "status": status.value,
                "updated_at": firestore.SERVER_TIMESTAMP,
            }
        )
        logger.info(
            "Updated status: calendar_id=%s, status=%s", calendar_id, status.value
        )

    def mark_purchased(self, calendar_id: str, session_id: str, email: str) -> None:
        """status=purchased と決済情報を書き込む"""
        self._calendar_ref(calendar_id).update(
            {
                "status": CalendarStatus.PURCHASED.value,
                "stripe_session_id": session_id,
                "customer_email": email,
                "updated_at": firestore.SERVER_TIMESTAMP,
            }
        )
        logger.info(
            "Marked purchased: calendar_id=%s, session_id=%s", calendar_id, session_id
        )

    def find_by_session(self, session_id: str) -> CalendarRecord | None:
        """決済セッションIDで検索"""
        snaps = (
            self._db.collection(_CALENDARS)
            .where("stripe_session_id", "==", session_id)
            .limit(1)
            .stream()
        )
        for snap in snaps:
            return self._dict_to_record(snap.id, snap.to_dict() or {})
        return None

    def delete(self, calendar_id: str) -> None:
        """カレンダーと months サブコレクションを削除"""
        ref = self._calendar_ref(calendar_id)
        # サブコレクションを先に削除
        for snap in ref.collection(_MONTHS).stream():
            snap.reference.delete()
        ref.delete()
        logger.info("Deleted calendar: calendar_id=%s", calendar_id)

    # ── CalendarMonth ────────────────────────────────────────────────────────

    def create_month(
        self, calendar_id: str, month: int, holiday_name: str
    ) -> CalendarMonth:
        """月レコードを作成（generated=False）"""
        month_id = str(month)
        self._calendar_ref(calendar_id).collection(_MONTHS).document(month_id).set(
            {
                "calendar_id": calendar_id,
                "month": month,
                "holiday_name": holiday_name,
                "image_url": None,
                "generated": False,
                "created_at": firestore.SERVER_TIMESTAMP,
            }
        )
        return CalendarMonth(
            id=month_id,
            calendar_id=calendar_id,
            month=month,
            holiday_name=holiday_name,
        )

    def list_months(self, calendar_id: str) -> list[CalendarMonth]:
        """月レコード一覧を取得"""
        snaps = self._calendar_ref(calendar_id).collection(_MONTHS).stream()
        return [
            CalendarMonth(
                id=snap.id,
                calendar_id=calendar_id,
                month=int(d.get("month") or snap.id),
                holiday_name=d.get("holiday_name") or "",
                image_url=d.get("image_url"),
                generated=bool(d.get("generated", False)),
            )
            for snap in snaps
            for d in (snap.to_dict() or {},)
        ]

    def mark_month_generated(
        self, calendar_id: str, month: int, image_url: str
    ) -> None:
        """画像URLを書き込み generated=True にする"""
        self._calendar_ref(calendar_id).collection(_MONTHS).document(str(month)).update(
            {
                "image_url": image_url,
                "generated": True,
                "updated_at": firestore.SERVER_TIMESTAMP,
            }
        )

    # ── 変換ヘルパー ──────────────────────────────────────────────────────────

    @staticmethod
    def _record_to_dict(record: CalendarRecord) -> dict[str, Any]:
        return {
            "pet_name": record.pet_name,
            "pet_type": record.pet_type.value,
            "photo_path": record.photo_path,
            "photo_mime_type": record.photo_mime_type,
            "status": record.status.value,
            "customer_email": record.customer_email,
            "stripe_session_id": record.stripe_session_id,
            "created_at": firestore.SERVER_TIMESTAMP,
            "updated_at": firestore.SERVER_TIMESTAMP,
        }

    @staticmethod
    def _dict_to_record(calendar_id: str, data: dict) -> CalendarRecord:
        return CalendarRecord(
            id=calendar_id,
            pet_name=data.get("pet_name") or "",
            pet_type=PetType(data.get("pet_type") or PetType.DOG.value),
            photo_path=data.get("photo_path") or "",
            status=CalendarStatus(data.get("status") or CalendarStatus.PENDING.value),
            photo_mime_type=data.get("photo_mime_type") or "image/png",
            customer_email=data.get("customer_email"),
            stripe_session_id=data.get("stripe_session_id"),
            created_at=data.get("created_at"),
        )
