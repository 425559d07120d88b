"""Cloud Storage Adapter

BlobStorage の GCS 実装。生成したカレンダー画像（PNG）を 1 バケットに置く。

    gs://{GCS_BUCKET_NAME}/generated/{calendar_id}/{month}.png
"""

from __future__ import annotations

import logging

from google.api_core.exceptions import NotFound
from google.cloud import storage

from pawcal.domain.errors import ArtifactNotFoundError
from pawcal.domain.ports import BlobStorage

logger = logging.getLogger(__name__)


class GCSBlobStorage(BlobStorage):
    """GCS バケット 1 つに生成画像を保存する"""

    def __init__(self, bucket_name: str, client: storage.Client | None = None) -> None:
        """
        Args:
            bucket_name: 画像を置くバケット
            client: テスト用の差し替え。省略時は ADC で初期化
        """
        self._bucket = (client or storage.Client()).bucket(bucket_name)

    def ensure_namespace(self, prefix: str) -> None:
        # GCS にディレクトリはないので、最初のアップロードでパスができる
        logger.debug("No-op namespace for gs://%s/%s", self._bucket.name, prefix)

    def upload(self, blob_path: str, content: bytes, content_type: str) -> str:
        self._bucket.blob(blob_path).upload_from_string(content, content_type=content_type)
        logger.info(
            "Stored image: gs://%s/%s (%d bytes)", self._bucket.name, blob_path, len(content)
        )
        return blob_path

    def download(self, blob_path: str) -> bytes:
        """
        画像を読み出す。

        Raises:
            ArtifactNotFoundError: 未生成（または生成失敗）の月
        """
        try:
            return self._bucket.blob(blob_path).download_as_bytes()
        except NotFound as e:
            raise ArtifactNotFoundError(blob_path) from e
