"""Cloud Tasks ワーカー エントリーポイント

Cloud Tasks から HTTP POST を受け取り、カレンダー画像生成を非同期実行する。

受け取るペイロード（JSON）:
  {
    "calendar_id": "calendar-uuid"
  }

処理フロー:
  1. Firestore からカレンダーレコードを取得
  2. status=pending 以外ならスキップ（再配送・二重実行の防止）
  3. BlobStorage から元写真を読み出す
  4. CalendarGenerator で12か月分を生成
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from pawcal.domain.models import CalendarStatus, GenerationReport
from pawcal.domain.ports import BlobStorage, CalendarRepository
from pawcal.entrypoints.api.deps import (
    build_calendar_generator,
    get_blob_storage,
    get_calendar_generator,
    get_calendar_repo,
)
from pawcal.entrypoints.api.worker_auth import verify_worker_token
from pawcal.services.calendar_generator import CalendarGenerator

logger = logging.getLogger(__name__)


def run_generation(
    calendar_id: str,
    repo: CalendarRepository,
    storage: BlobStorage,
    generator: CalendarGenerator,
) -> GenerationReport | None:
    """
    画像生成のコアロジック。

    Cloud Tasks HTTP ハンドラーとローカル開発の BackgroundTasks の両方から
    呼び出される共通実装。

    Returns:
        GenerationReport。カレンダーが存在しない・pending でない場合は None

    Raises:
        ArtifactNotFoundError: 元写真が保存先に見つからない（status は pending のまま）
    """
    calendar = repo.get(calendar_id)
    if calendar is None:
        logger.warning("Calendar not found, skipping: calendar_id=%s", calendar_id)
        return None

    if calendar.status is not CalendarStatus.PENDING:
        logger.info(
            "Calendar is not pending, skipping: calendar_id=%s, status=%s",
            calendar_id,
            calendar.status.value,
        )
        return None

    photo = storage.download(calendar.photo_path)
    return generator.generate(
        calendar_id,
        calendar.pet_name,
        calendar.pet_type,
        photo,
        calendar.photo_mime_type,
    )


def run_generation_local(
    calendar_id: str, repo: CalendarRepository, storage: BlobStorage
) -> None:
    """
    LOCAL_MODE 用。BackgroundTasks から呼ばれる。

    リクエスト元はレスポンス済みのため、例外はログに残して握りつぶす。
    """
    try:
        run_generation(calendar_id, repo, storage, build_calendar_generator(repo))
    except Exception:
        logger.exception("Background generation failed: calendar_id=%s", calendar_id)


# ── Worker ルーター（app.py で /worker プレフィックスにマウント） ───────────────

router = APIRouter(dependencies=[Depends(verify_worker_token)])


class GenerationJob(BaseModel):
    calendar_id: str


@router.post("/generate", status_code=status.HTTP_200_OK)
def generate_calendar(
    job: GenerationJob,
    repo: CalendarRepository = Depends(get_calendar_repo),
    storage: BlobStorage = Depends(get_blob_storage),
    generator: CalendarGenerator = Depends(get_calendar_generator),
) -> dict:
    """
    Cloud Tasks から呼び出されるカレンダー画像生成エンドポイント。

    OIDC トークン検証は verify_worker_token Depends によりアプリレベルで実施済み。
    12か月分の生成は数分かかるため、同期関数としてスレッドプールで実行する。
    """
    calendar_id = job.calendar_id
    try:
        report = run_generation(calendar_id, repo, storage, generator)
    except Exception as e:
        logger.exception("Worker failed: calendar_id=%s", calendar_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Generation failed: {e}",
        ) from e

    if report is None:
        return {"status": "skipped", "calendar_id": calendar_id}
    return {
        "status": "completed",
        "calendar_id": calendar_id,
        "generated": report.generated_count,
        "failed_months": report.failed_months,
    }
