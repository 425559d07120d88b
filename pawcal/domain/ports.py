"""Ports - サービスのインターフェース定義（ABC）

各Port（抽象基底クラス）は外部サービスとの契約を定義します。
実装クラス（Adapter）はこれらのABCを継承し、全ての抽象メソッドを実装する必要があります。
実装漏れはインスタンス化時に即座に検出されます。
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pawcal.domain.models import (
    CalendarMonth,
    CalendarRecord,
    CalendarStatus,
    CheckoutSession,
    PaymentEvent,
    PaymentSession,
)


class CalendarRepository(ABC):
    """カレンダー・月レコードの永続化（Firestore等）"""

    @abstractmethod
    def create(self, record: CalendarRecord) -> str:
        """カレンダーレコードを作成。生成されたIDを返す"""
        pass

    @abstractmethod
    def get(self, calendar_id: str) -> CalendarRecord | None:
        """カレンダーレコードを取得。存在しない場合はNoneを返す"""
        pass

    @abstractmethod
    def update_status(self, calendar_id: str, status: CalendarStatus) -> None:
        """カレンダーのステータスを更新"""
        pass

    @abstractmethod
    def mark_purchased(self, calendar_id: str, session_id: str, email: str) -> None:
        """status=purchased とメールアドレス・決済セッションIDを書き込む"""
        pass

    @abstractmethod
    def find_by_session(self, session_id: str) -> CalendarRecord | None:
        """決済セッションIDでカレンダーを検索"""
        pass

    @abstractmethod
    def delete(self, calendar_id: str) -> None:
        """カレンダーと配下の月レコードを削除"""
        pass

    @abstractmethod
    def create_month(
        self, calendar_id: str, month: int, holiday_name: str
    ) -> CalendarMonth:
        """月レコードを作成（generated=False）"""
        pass

    @abstractmethod
    def list_months(self, calendar_id: str) -> list[CalendarMonth]:
        """カレンダー配下の月レコード一覧を取得（順序は保証しない）"""
        pass

    @abstractmethod
    def mark_month_generated(
        self, calendar_id: str, month: int, image_url: str
    ) -> None:
        """月レコードに画像URLを書き込み generated=True にする"""
        pass


class ImageSynthesizer(ABC):
    """画像生成（Gemini等の画像編集モデル）"""

    @abstractmethod
    def synthesize(self, photo: bytes, mime_type: str, prompt: str) -> bytes:
        """元写真とプロンプトから 1024x1024 の画像を1枚生成してPNGバイト列を返す

        Raises:
            SynthesisError: API エラー、または画像データが返らなかった場合
        """
        pass


class BlobStorage(ABC):
    """バイナリファイルのアップロード・ダウンロード（GCS等）"""

    @abstractmethod
    def ensure_namespace(self, prefix: str) -> None:
        """prefix 配下に書き込めるようにする（冪等）"""
        pass

    @abstractmethod
    def upload(self, blob_path: str, content: bytes, content_type: str) -> str:
        """ファイルをアップロード。ストレージパス（blob_path）を返す"""
        pass

    @abstractmethod
    def download(self, blob_path: str) -> bytes:
        """ファイルをダウンロードしてバイト列を返す

        Raises:
            ArtifactNotFoundError: ファイルが存在しない場合
        """
        pass


class TaskQueue(ABC):
    """非同期処理キュー（Cloud Tasks等）"""

    @abstractmethod
    def enqueue(self, payload: dict, task_id: str | None = None) -> str:
        """ジョブをキューに追加。キュータスクIDを返す

        task_id を指定した場合、同じIDのジョブは重複して登録されない。
        """
        pass


class PaymentGateway(ABC):
    """決済プロバイダ（Stripe等）"""

    @abstractmethod
    def create_checkout_session(
        self,
        calendar: CalendarRecord,
        amount_cents: int,
        success_url: str,
        cancel_url: str,
        customer_email: str | None = None,
    ) -> CheckoutSession:
        """チェックアウトセッションを作成"""
        pass

    @abstractmethod
    def retrieve_session(self, session_id: str) -> PaymentSession:
        """セッションの支払い状態を取得"""
        pass

    @abstractmethod
    def parse_event(self, payload: bytes, signature: str) -> PaymentEvent:
        """Webhook ペイロードの署名を検証してイベントに変換

        Raises:
            PaymentError: 署名が不正な場合
        """
        pass
