"""進捗ビュー - ポーリング用の読み取り専用プロジェクション"""

from __future__ import annotations

from pawcal.domain.models import CalendarMonth, CalendarProgress, CalendarRecord
from pawcal.domain.ports import CalendarRepository


def build_progress(
    calendar: CalendarRecord, months: list[CalendarMonth]
) -> CalendarProgress:
    """月レコードを月順に並べ、生成済み件数を数える"""
    ordered = sorted(months, key=lambda m: m.month)
    return CalendarProgress(
        calendar=calendar,
        months=ordered,
        generated_count=sum(1 for m in ordered if m.generated),
    )


def load_progress(
    repository: CalendarRepository, calendar_id: str
) -> CalendarProgress | None:
    """カレンダーの進捗を取得。存在しない場合は None を返す"""
    calendar = repository.get(calendar_id)
    if calendar is None:
        return None
    return build_progress(calendar, repository.list_months(calendar_id))
