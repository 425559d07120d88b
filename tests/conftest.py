"""共通テストフィクスチャ

全テストから利用可能なモックオブジェクトとサンプルデータを提供。

モックの作成:
- 外部サービスのポートは MagicMock(spec=ABC) でメソッドシグネチャを保持
- CalendarRepository は状態遷移を追えるようにインメモリ実装を使う
"""

import dataclasses
from unittest.mock import MagicMock

import pytest
from pawcal.config import AppConfig
from pawcal.domain.models import (
    CalendarMonth,
    CalendarRecord,
    CalendarStatus,
    CheckoutSession,
    PaymentSession,
    PetType,
)
from pawcal.domain.ports import (
    BlobStorage,
    CalendarRepository,
    ImageSynthesizer,
    PaymentGateway,
    TaskQueue,
)

PHOTO_BYTES = b"\x89PNG\r\n\x1a\nfake-photo"
IMAGE_BYTES = b"\x89PNG\r\n\x1a\nfake-generated"


# ========== インメモリリポジトリ ==========


class InMemoryCalendarRepository(CalendarRepository):
    """dict で状態を保持する CalendarRepository 実装（テスト専用）"""

    def __init__(self) -> None:
        self.calendars: dict[str, CalendarRecord] = {}
        self.months: dict[str, dict[int, CalendarMonth]] = {}
        self.status_history: dict[str, list[CalendarStatus]] = {}

    def create(self, record: CalendarRecord) -> str:
        self.calendars[record.id] = record
        self.months.setdefault(record.id, {})
        self.status_history[record.id] = [record.status]
        return record.id

    def get(self, calendar_id: str) -> CalendarRecord | None:
        return self.calendars.get(calendar_id)

    def update_status(self, calendar_id: str, status: CalendarStatus) -> None:
        self.calendars[calendar_id] = dataclasses.replace(
            self.calendars[calendar_id], status=status
        )
        self.status_history.setdefault(calendar_id, []).append(status)

    def mark_purchased(self, calendar_id: str, session_id: str, email: str) -> None:
        self.calendars[calendar_id] = dataclasses.replace(
            self.calendars[calendar_id],
            status=CalendarStatus.PURCHASED,
            stripe_session_id=session_id,
            customer_email=email,
        )
        self.status_history.setdefault(calendar_id, []).append(CalendarStatus.PURCHASED)

    def find_by_session(self, session_id: str) -> CalendarRecord | None:
        for record in self.calendars.values():
            if record.stripe_session_id == session_id:
                return record
        return None

    def delete(self, calendar_id: str) -> None:
        self.calendars.pop(calendar_id, None)
        self.months.pop(calendar_id, None)

    def create_month(
        self, calendar_id: str, month: int, holiday_name: str
    ) -> CalendarMonth:
        record = CalendarMonth(
            id=str(month),
            calendar_id=calendar_id,
            month=month,
            holiday_name=holiday_name,
        )
        self.months.setdefault(calendar_id, {})[month] = record
        return record

    def list_months(self, calendar_id: str) -> list[CalendarMonth]:
        return list(self.months.get(calendar_id, {}).values())

    def mark_month_generated(
        self, calendar_id: str, month: int, image_url: str
    ) -> None:
        current = self.months[calendar_id][month]
        self.months[calendar_id][month] = dataclasses.replace(
            current, image_url=image_url, generated=True
        )


# ========== サンプルデータ ==========


@pytest.fixture
def sample_calendar() -> CalendarRecord:
    """サンプルカレンダー: 生成待ちの犬"""
    return CalendarRecord(
        id="cal-123",
        pet_name="Buddy",
        pet_type=PetType.DOG,
        photo_path="uploads/cal-123",
        photo_mime_type="image/png",
    )


@pytest.fixture
def ready_calendar(sample_calendar) -> CalendarRecord:
    """サンプルカレンダー: 生成済み（購入可能）"""
    return dataclasses.replace(sample_calendar, status=CalendarStatus.READY)


@pytest.fixture
def paid_session() -> PaymentSession:
    """支払い済みの決済セッション"""
    return PaymentSession(
        id="cs_test_123",
        paid=True,
        customer_email="owner@example.com",
        calendar_id="cal-123",
    )


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    """ローカル保存・決済有効のテスト用設定"""
    return AppConfig(
        project_id="test-project",
        local_artifact_dir=str(tmp_path / "artifacts"),
        stripe_secret_key="sk_test_dummy",
        stripe_webhook_secret="whsec_dummy",
        stripe_publishable_key="pk_test_dummy",
        public_base_url="https://pawcal.example.com",
        local_mode=True,
    )


# ========== モックフィクスチャ ==========


@pytest.fixture
def repo() -> InMemoryCalendarRepository:
    """インメモリの CalendarRepository"""
    return InMemoryCalendarRepository()


@pytest.fixture
def mock_synthesizer() -> MagicMock:
    """ImageSynthesizer のモック"""
    mock = MagicMock(spec=ImageSynthesizer)
    mock.synthesize.return_value = IMAGE_BYTES
    return mock


@pytest.fixture
def mock_blob_storage() -> MagicMock:
    """BlobStorage のモック"""
    mock = MagicMock(spec=BlobStorage)
    mock.upload.side_effect = lambda path, content, content_type: path
    mock.download.return_value = PHOTO_BYTES
    return mock


@pytest.fixture
def mock_task_queue() -> MagicMock:
    """TaskQueue のモック"""
    mock = MagicMock(spec=TaskQueue)
    mock.enqueue.return_value = "projects/p/locations/l/queues/q/tasks/t"
    return mock


@pytest.fixture
def mock_gateway(paid_session) -> MagicMock:
    """PaymentGateway のモック"""
    mock = MagicMock(spec=PaymentGateway)
    mock.create_checkout_session.return_value = CheckoutSession(
        id="cs_test_123", url="https://checkout.stripe.com/c/pay/cs_test_123"
    )
    mock.retrieve_session.return_value = paid_session
    return mock
