"""CalendarGenerator - 12か月分の画像生成ワークフロー

1つのカレンダーについて、固定の12テーマを月順に処理する。
各月は独立に成功・失敗し、失敗した月はログを残して次の月へ進む。
全12回の試行が終わったら、成否に関わらず status=ready にする。
"""

from __future__ import annotations

import logging

from pawcal.domain.models import (
    CalendarStatus,
    GenerationReport,
    MonthOutcome,
    MonthTheme,
    PetType,
)
from pawcal.domain.ports import BlobStorage, CalendarRepository, ImageSynthesizer
from pawcal.services.month_themes import (
    MONTH_THEMES,
    artifact_path,
    artifact_prefix,
    artifact_url,
    build_month_prompt,
)

logger = logging.getLogger(__name__)


class CalendarGenerator:
    """
    カレンダー画像生成の全体ワークフロー。

    処理フロー:
    1. status=generating に更新
    2. カレンダー単位の保存先を用意
    3. 1月〜12月の各テーマについて:
       - 月レコード作成
       - プロンプト構築
       - 画像生成
       - 保存して月レコードを generated に更新
    4. status=ready に更新
    """

    def __init__(
        self,
        repository: CalendarRepository,
        synthesizer: ImageSynthesizer,
        storage: BlobStorage,
    ) -> None:
        """
        Args:
            repository: カレンダー・月レコードの永続化
            synthesizer: 画像生成（Gemini等）
            storage: 生成画像の保存先（GCS等）
        """
        self._repo = repository
        self._synthesizer = synthesizer
        self._storage = storage

    def generate(
        self,
        calendar_id: str,
        pet_name: str,
        pet_type: PetType,
        photo: bytes,
        mime_type: str = "image/png",
    ) -> GenerationReport:
        """
        12か月分の画像を生成する。

        Args:
            calendar_id: カレンダーID（status=pending であること）
            pet_name: ペットの名前
            pet_type: ペットの種類
            photo: 元写真のバイト列
            mime_type: 元写真の MIME タイプ

        Returns:
            GenerationReport: 月ごとの結果の集計
        """
        log_extra = {"calendar_id": calendar_id}
        logger.info(
            "Generation started: calendar_id=%s, pet_type=%s, photo_size=%d bytes",
            calendar_id,
            pet_type.value,
            len(photo),
            extra=log_extra,
        )

        self._repo.update_status(calendar_id, CalendarStatus.GENERATING)
        self._storage.ensure_namespace(artifact_prefix(calendar_id))

        outcomes = [
            self._generate_month(calendar_id, pet_name, pet_type, photo, mime_type, theme)
            for theme in MONTH_THEMES
        ]

        self._repo.update_status(calendar_id, CalendarStatus.READY)

        report = GenerationReport(calendar_id=calendar_id, outcomes=outcomes)
        if report.failed_months:
            logger.warning(
                "Generation finished with failures: calendar_id=%s, generated=%d/%d, failed_months=%s",
                calendar_id,
                report.generated_count,
                len(outcomes),
                report.failed_months,
                extra=log_extra,
            )
        else:
            logger.info(
                "Generation complete: calendar_id=%s, generated=%d/%d",
                calendar_id,
                report.generated_count,
                len(outcomes),
                extra=log_extra,
            )
        return report

    def _generate_month(
        self,
        calendar_id: str,
        pet_name: str,
        pet_type: PetType,
        photo: bytes,
        mime_type: str,
        theme: MonthTheme,
    ) -> MonthOutcome:
        """
        1か月分の処理。エラーが発生しても他の月の処理は続行。

        Returns:
            MonthOutcome: 処理結果（エラー情報含む）
        """
        try:
            self._repo.create_month(calendar_id, theme.month, theme.holiday)

            prompt = build_month_prompt(pet_name, pet_type, theme)
            image = self._synthesizer.synthesize(photo, mime_type, prompt)

            self._storage.upload(artifact_path(calendar_id, theme.month), image, "image/png")
            image_url = artifact_url(calendar_id, theme.month)
            self._repo.mark_month_generated(calendar_id, theme.month, image_url)

            logger.info(
                "Month generated: calendar_id=%s, month=%d (%s)",
                calendar_id,
                theme.month,
                theme.holiday,
                extra={"calendar_id": calendar_id},
            )
            return MonthOutcome(month=theme.month, holiday=theme.holiday, image_url=image_url)

        except Exception as e:
            logger.exception(
                "Error generating month: calendar_id=%s, month=%d (%s)",
                calendar_id,
                theme.month,
                theme.holiday,
                extra={"calendar_id": calendar_id},
            )
            return MonthOutcome(month=theme.month, holiday=theme.holiday, error=str(e))
