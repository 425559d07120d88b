"""カレンダー API ルート

POST /api/calendars               → 202 { id, status }
GET  /api/calendars/{id}          → 200 CalendarResponse（ポーリング対象）
GET  /api/calendars/{id}/months   → 200 { months, generatedCount }
"""

from __future__ import annotations

import logging
import uuid

from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    File,
    Form,
    HTTPException,
    UploadFile,
    status,
)

from pawcal.domain.models import CalendarRecord, CalendarStatus, PetType
from pawcal.domain.ports import BlobStorage, CalendarRepository, TaskQueue
from pawcal.entrypoints.api.deps import get_blob_storage, get_calendar_repo, get_task_queue
from pawcal.entrypoints.api.schemas import (
    CalendarResponse,
    CreateCalendarResponse,
    MonthsResponse,
    to_calendar_response,
    to_month_response,
)
from pawcal.services.month_themes import upload_path
from pawcal.services.progress import build_progress, load_progress

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/calendars", tags=["calendars"])

_MAX_UPLOAD_SIZE_BYTES = 10 * 1024 * 1024  # 10 MB


@router.post("", status_code=status.HTTP_202_ACCEPTED, response_model=CreateCalendarResponse)
async def create_calendar(
    background_tasks: BackgroundTasks,
    photo: UploadFile | None = File(None),
    pet_name: str | None = Form(None, alias="petName"),
    pet_type: str | None = Form(None, alias="petType"),
    repo: CalendarRepository = Depends(get_calendar_repo),
    storage: BlobStorage = Depends(get_blob_storage),
    queue: TaskQueue | None = Depends(get_task_queue),
) -> CreateCalendarResponse:
    """
    ペット写真をアップロードし、12か月分の画像生成をキューに追加する。

    - カレンダーは status=pending で作成し、生成完了を待たずに返す
    - 元写真は BlobStorage の uploads/{id} に置き、レコードにはパスだけを持つ
    - 生成ジョブはカレンダーIDをキーに Cloud Tasks に登録（1カレンダー1ジョブ）
    """
    if photo is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Photo is required")

    name = (pet_name or "").strip()
    if not name or not pet_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Pet name and type are required",
        )

    try:
        kind = PetType(pet_type)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Pet type must be 'dog' or 'cat'",
        ) from None

    mime_type = photo.content_type or "application/octet-stream"
    if not mime_type.startswith("image/"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only image files are allowed",
        )

    content = await photo.read()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Photo is required")
    if len(content) > _MAX_UPLOAD_SIZE_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Photo must be {_MAX_UPLOAD_SIZE_BYTES // (1024 * 1024)} MB or smaller",
        )

    # ── 元写真を保存し、Firestore にカレンダーレコードを作成（status=pending） ──
    new_id = str(uuid.uuid4())
    photo_path = storage.upload(upload_path(new_id), content, mime_type)
    record = CalendarRecord(
        id=new_id,
        pet_name=name,
        pet_type=kind,
        photo_path=photo_path,
        photo_mime_type=mime_type,
    )
    calendar_id = repo.create(record)

    # ── 生成ジョブをディスパッチ ──────────────────────────────────────────────
    if queue is None:
        # ローカル開発: Cloud Tasks を使わず同プロセスの BackgroundTasks で実行
        from pawcal.entrypoints.worker import run_generation_local

        background_tasks.add_task(run_generation_local, calendar_id, repo, storage)
        logger.info("LOCAL_MODE: scheduled background generation for calendar_id=%s", calendar_id)
    else:
        queue.enqueue({"calendar_id": calendar_id}, task_id=f"calendar-{calendar_id}")

    logger.info(
        "Calendar created: calendar_id=%s, pet_type=%s, photo_size=%d bytes",
        calendar_id,
        kind.value,
        len(content),
    )
    return CreateCalendarResponse(id=calendar_id, status=CalendarStatus.PENDING.value)


@router.get("/{calendar_id}", response_model=CalendarResponse)
async def get_calendar(
    calendar_id: str,
    repo: CalendarRepository = Depends(get_calendar_repo),
) -> CalendarResponse:
    """カレンダーと月ごとの生成状況を返す"""
    progress = load_progress(repo, calendar_id)
    if progress is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Calendar not found")
    return to_calendar_response(progress)


@router.get("/{calendar_id}/months", response_model=MonthsResponse)
async def get_calendar_months(
    calendar_id: str,
    repo: CalendarRepository = Depends(get_calendar_repo),
) -> MonthsResponse:
    """月ごとの生成状況のみを返す"""
    calendar = repo.get(calendar_id)
    if calendar is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Calendar not found")
    progress = build_progress(calendar, repo.list_months(calendar_id))
    return MonthsResponse(
        months=[to_month_response(m) for m in progress.months],
        generated_count=progress.generated_count,
    )
