"""設定管理 - 環境変数の型安全な読み込み"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv


@dataclass(frozen=True)
class AppConfig:
    """アプリケーション設定"""

    project_id: str
    gcs_bucket_name: str = ""
    local_artifact_dir: str = ""  # 設定時は GCS の代わりにローカルディスクへ保存
    vertex_ai_location: str = "us-central1"
    image_model: str = "gemini-2.5-flash-image"
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_publishable_key: str = ""  # フロントエンドの Stripe.js 用（公開してよいキー）
    public_base_url: str = ""  # 例: "https://pawcal.example.com"
    cloud_tasks_location: str = "us-central1"
    cloud_tasks_queue: str = ""
    worker_url: str = ""
    service_account_email: str = ""
    local_mode: bool = False

    @property
    def payments_enabled(self) -> bool:
        """Stripe のキーが揃っている場合のみ決済を有効にする"""
        return bool(self.stripe_secret_key and self.stripe_webhook_secret)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """環境変数から設定を読み込む"""
        load_dotenv()

        project_id = os.getenv("PROJECT_ID")
        if not project_id:
            raise ValueError("PROJECT_ID is not set in environment")

        local_artifact_dir = os.getenv("LOCAL_ARTIFACT_DIR", "")
        gcs_bucket_name = os.getenv("GCS_BUCKET_NAME", "")
        if not gcs_bucket_name and not local_artifact_dir:
            raise ValueError(
                "Either GCS_BUCKET_NAME or LOCAL_ARTIFACT_DIR must be set in environment"
            )

        return cls(
            project_id=project_id,
            gcs_bucket_name=gcs_bucket_name,
            local_artifact_dir=local_artifact_dir,
            vertex_ai_location=os.getenv("VERTEX_AI_LOCATION", "us-central1"),
            image_model=os.getenv("IMAGE_MODEL", "gemini-2.5-flash-image"),
            stripe_secret_key=os.getenv("STRIPE_SECRET_KEY", ""),
            stripe_webhook_secret=os.getenv("STRIPE_WEBHOOK_SECRET", ""),
            stripe_publishable_key=os.getenv("STRIPE_PUBLISHABLE_KEY", ""),
            public_base_url=os.getenv("PUBLIC_BASE_URL", "").rstrip("/"),
            cloud_tasks_location=os.getenv("CLOUD_TASKS_LOCATION", "us-central1"),
            cloud_tasks_queue=os.getenv("CLOUD_TASKS_QUEUE", ""),
            worker_url=os.getenv("WORKER_URL", ""),
            service_account_email=os.getenv("SERVICE_ACCOUNT_EMAIL", ""),
            local_mode=bool(os.getenv("LOCAL_MODE")),
        )
