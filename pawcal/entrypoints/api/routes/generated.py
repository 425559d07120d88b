"""生成画像の配信ルート

GET /generated/{calendar_id}/{month}.png → image/png

MonthResponse.imageUrl が指すパス。/api プレフィックスなしでマウントする。
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response

from pawcal.domain.errors import ArtifactNotFoundError
from pawcal.domain.models import TOTAL_MONTHS
from pawcal.domain.ports import BlobStorage
from pawcal.entrypoints.api.deps import get_blob_storage
from pawcal.services.month_themes import artifact_path

router = APIRouter(prefix="/generated", tags=["generated"])


@router.get("/{calendar_id}/{month}.png")
def get_generated_image(
    calendar_id: str,
    month: int,
    storage: BlobStorage = Depends(get_blob_storage),
) -> Response:
    if not 1 <= month <= TOTAL_MONTHS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")
    try:
        content = storage.download(artifact_path(calendar_id, month))
    except ArtifactNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Image not found"
        ) from None
    return Response(
        content=content,
        media_type="image/png",
        headers={"Cache-Control": "public, max-age=3600"},
    )
