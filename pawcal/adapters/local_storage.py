"""Local Disk Storage Adapter

BlobStorage ABC のローカルファイルシステム実装。
LOCAL_ARTIFACT_DIR を設定したローカル開発環境で GCS の代わりに使う。
"""

from __future__ import annotations

import logging
from pathlib import Path

from pawcal.domain.errors import ArtifactNotFoundError
from pawcal.domain.ports import BlobStorage

logger = logging.getLogger(__name__)


class LocalBlobStorage(BlobStorage):
    """root_dir 配下に blob_path をそのまま相対パスとして保存する"""

    def __init__(self, root_dir: str) -> None:
        self._root = Path(root_dir).resolve()

    def _resolve(self, blob_path: str) -> Path:
        path = (self._root / blob_path).resolve()
        # root_dir の外へのパス（../ 等）は拒否する
        if not path.is_relative_to(self._root):
            raise ValueError(f"Path escapes storage root: {blob_path}")
        return path

    def ensure_namespace(self, prefix: str) -> None:
        self._resolve(prefix).mkdir(parents=True, exist_ok=True)

    def upload(self, blob_path: str, content: bytes, content_type: str) -> str:
        path = self._resolve(blob_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        logger.info("Saved: path=%s, size=%d bytes", path, len(content))
        return blob_path

    def download(self, blob_path: str) -> bytes:
        path = self._resolve(blob_path)
        if not path.is_file():
            raise ArtifactNotFoundError(blob_path)
        return path.read_bytes()
