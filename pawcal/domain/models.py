"""ドメインモデル - 外部依存なしのデータ構造"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from enum import Enum

TOTAL_MONTHS = 12


class PetType(Enum):
    """ペットの種類"""

    DOG = "dog"
    CAT = "cat"


class CalendarStatus(Enum):
    """カレンダーのライフサイクル状態

    pending → generating → ready → purchased の順にのみ進む。
    """

    PENDING = "pending"
    GENERATING = "generating"
    READY = "ready"
    PURCHASED = "purchased"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)

    def can_transition_to(self, target: CalendarStatus) -> bool:
        """target への遷移が許可されているか

        隣接する次の状態への前進のみ許可する。
        purchased → purchased は決済確認の再適用（冪等）として許可する。
        """
        if self is CalendarStatus.PURCHASED and target is CalendarStatus.PURCHASED:
            return True
        return target.rank == self.rank + 1


_STATUS_ORDER = (
    CalendarStatus.PENDING,
    CalendarStatus.GENERATING,
    CalendarStatus.READY,
    CalendarStatus.PURCHASED,
)


@dataclass(frozen=True)
class CalendarRecord:
    """カレンダー注文レコード（Firestoreに永続化）"""

    id: str  # Firestore ドキュメントID
    pet_name: str  # 例: "Buddy"
    pet_type: PetType
    photo_path: str  # 元写真の保存先（例: "uploads/{id}"）
    status: CalendarStatus = CalendarStatus.PENDING
    photo_mime_type: str = "image/png"
    customer_email: str | None = None
    stripe_session_id: str | None = None
    created_at: datetime.datetime | None = None


@dataclass(frozen=True)
class CalendarMonth:
    """1か月分の生成結果レコード"""

    id: str  # Firestore ドキュメントID（月番号の文字列）
    calendar_id: str
    month: int  # 1-12
    holiday_name: str  # 例: "Halloween"
    image_url: str | None = None  # 例: "/generated/{calendar_id}/10.png"
    generated: bool = False


@dataclass(frozen=True)
class MonthTheme:
    """月ごとの祝日テーマ"""

    month: int
    holiday: str
    scene: str  # プロンプトに埋め込むシーン描写


@dataclass(frozen=True)
class MonthOutcome:
    """1か月分の生成試行の結果"""

    month: int
    holiday: str
    image_url: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.image_url is not None


@dataclass(frozen=True)
class GenerationReport:
    """12か月分の生成結果の集計"""

    calendar_id: str
    outcomes: list[MonthOutcome] = field(default_factory=list)

    @property
    def generated_count(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failed_months(self) -> list[int]:
        return [o.month for o in self.outcomes if not o.ok]


@dataclass(frozen=True)
class CalendarProgress:
    """ポーリング用の進捗ビュー（保存せず都度計算する）"""

    calendar: CalendarRecord
    months: list[CalendarMonth]
    generated_count: int
    total_months: int = TOTAL_MONTHS


@dataclass(frozen=True)
class CheckoutSession:
    """決済プロバイダのチェックアウトセッション"""

    id: str
    url: str


@dataclass(frozen=True)
class PaymentSession:
    """決済プロバイダから取得したセッション状態"""

    id: str
    paid: bool
    customer_email: str = ""
    calendar_id: str | None = None  # セッション作成時に metadata に埋め込んだ ID


@dataclass(frozen=True)
class PaymentEvent:
    """署名検証済みの Webhook イベント"""

    type: str  # 例: "checkout.session.completed"
    session: PaymentSession | None = None


@dataclass(frozen=True)
class PurchaseResult:
    """購入確認の結果"""

    success: bool
    progress: CalendarProgress | None = None
