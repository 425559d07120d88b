"""FastAPI 依存性注入

設定・Firestore リポジトリ・外部サービスアダプタの初期化を担当する。
各ルートは Depends() でこのモジュールの関数を呼び出してインスタンスを受け取る。
テストでは app.dependency_overrides でモックに差し替える。
"""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends
from google import genai
from google.cloud import firestore

from pawcal.adapters.cloud_storage import GCSBlobStorage
from pawcal.adapters.cloud_tasks_queue import CloudTasksQueue
from pawcal.adapters.firestore_repository import FirestoreCalendarRepository
from pawcal.adapters.gemini_image import GeminiImageSynthesizer
from pawcal.adapters.local_storage import LocalBlobStorage
from pawcal.adapters.stripe_payments import StripePaymentGateway
from pawcal.config import AppConfig
from pawcal.domain.ports import (
    BlobStorage,
    CalendarRepository,
    PaymentGateway,
    TaskQueue,
)
from pawcal.services.calendar_generator import CalendarGenerator
from pawcal.services.purchase import PurchaseService

logger = logging.getLogger(__name__)


# ── 設定（プロセス起動後の最初の参照で1回だけ読み込む） ─────────────────────────


@lru_cache(maxsize=1)
def get_app_config() -> AppConfig:
    """AppConfig を返す依存関数"""
    config = AppConfig.from_env()
    logger.info(
        "Config loaded: project_id=%s, local_mode=%s, payments_enabled=%s",
        config.project_id,
        config.local_mode,
        config.payments_enabled,
    )
    return config


# ── Firestore クライアント（シングルトン） ──────────────────────────────────────

_firestore_client: firestore.Client | None = None


def _get_firestore_client() -> firestore.Client:
    global _firestore_client
    if _firestore_client is None:
        _firestore_client = firestore.Client()
        logger.info("Firestore client initialized")
    return _firestore_client


# ── GenAI クライアント（シングルトン） ──────────────────────────────────────────

_genai_client: genai.Client | None = None


def _get_genai_client(config: AppConfig) -> genai.Client:
    global _genai_client
    if _genai_client is None:
        _genai_client = genai.Client(
            vertexai=True,
            project=config.project_id,
            location=config.vertex_ai_location,
        )
        logger.info(
            "GenAI client initialized: project=%s, location=%s",
            config.project_id,
            config.vertex_ai_location,
        )
    return _genai_client


# ── 組み立てヘルパー（Depends 外からも呼ばれる） ────────────────────────────────


def build_blob_storage(config: AppConfig) -> BlobStorage:
    """LOCAL_ARTIFACT_DIR があればローカルディスク、なければ GCS"""
    if config.local_artifact_dir:
        return LocalBlobStorage(config.local_artifact_dir)
    return GCSBlobStorage(bucket_name=config.gcs_bucket_name)


def build_calendar_generator(
    repo: CalendarRepository, config: AppConfig | None = None
) -> CalendarGenerator:
    """CalendarGenerator を組み立てる"""
    config = config or get_app_config()
    synthesizer = GeminiImageSynthesizer(
        client=_get_genai_client(config),
        model_name=config.image_model,
    )
    return CalendarGenerator(
        repository=repo,
        synthesizer=synthesizer,
        storage=build_blob_storage(config),
    )


# ── 依存関数 ───────────────────────────────────────────────────────────────────


def get_calendar_repo() -> CalendarRepository:
    """CalendarRepository を返す依存関数"""
    return FirestoreCalendarRepository(_get_firestore_client())


def get_blob_storage(config: AppConfig = Depends(get_app_config)) -> BlobStorage:
    """BlobStorage を返す依存関数"""
    return build_blob_storage(config)


def get_calendar_generator(
    repo: CalendarRepository = Depends(get_calendar_repo),
    config: AppConfig = Depends(get_app_config),
) -> CalendarGenerator:
    """CalendarGenerator を返す依存関数（ワーカー用）"""
    return build_calendar_generator(repo, config)


def get_task_queue(config: AppConfig = Depends(get_app_config)) -> TaskQueue | None:
    """
    TaskQueue を返す依存関数。

    LOCAL_MODE=true の場合は None を返す（BackgroundTasks で代替）。
    """
    if config.local_mode:
        return None
    return CloudTasksQueue(
        project_id=config.project_id,
        location=config.cloud_tasks_location,
        queue_name=config.cloud_tasks_queue,
        worker_url=config.worker_url,
        service_account_email=config.service_account_email,
    )


def get_payment_gateway(
    config: AppConfig = Depends(get_app_config),
) -> PaymentGateway | None:
    """
    PaymentGateway を返す依存関数。

    Stripe のキーが設定されていない場合は None を返す（決済機能は無効）。
    """
    if not config.payments_enabled:
        return None
    return StripePaymentGateway(
        secret_key=config.stripe_secret_key,
        webhook_secret=config.stripe_webhook_secret,
    )


def get_purchase_service(
    repo: CalendarRepository = Depends(get_calendar_repo),
    gateway: PaymentGateway | None = Depends(get_payment_gateway),
) -> PurchaseService | None:
    """PurchaseService を返す依存関数。決済無効時は None"""
    if gateway is None:
        return None
    return PurchaseService(repository=repo, gateway=gateway)
