"""API レスポンス・リクエストのスキーマ

JSON のキーは camelCase（petName, generatedCount 等）で入出力する。
"""

from __future__ import annotations

import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from pawcal.domain.models import CalendarMonth, CalendarProgress


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PublishableKeyResponse(CamelModel):
    publishable_key: str


class CreateCalendarResponse(CamelModel):
    id: str
    status: str


class MonthResponse(CamelModel):
    id: str
    calendar_id: str
    month: int
    holiday_name: str
    image_url: str | None
    generated: bool


class CalendarResponse(CamelModel):
    """カレンダー詳細（元写真は含めない）"""

    id: str
    pet_name: str
    pet_type: str
    status: str
    customer_email: str | None
    stripe_session_id: str | None
    created_at: datetime.datetime | None
    months: list[MonthResponse]
    generated_count: int
    total_months: int


class MonthsResponse(CamelModel):
    months: list[MonthResponse]
    generated_count: int


class CheckoutRequest(CamelModel):
    calendar_id: str | None = None
    email: str | None = None


class CheckoutResponse(CamelModel):
    url: str


class VerifyResponse(CamelModel):
    success: bool
    calendar: CalendarResponse | None = None


def to_month_response(month: CalendarMonth) -> MonthResponse:
    return MonthResponse(
        id=month.id,
        calendar_id=month.calendar_id,
        month=month.month,
        holiday_name=month.holiday_name,
        image_url=month.image_url,
        generated=month.generated,
    )


def to_calendar_response(progress: CalendarProgress) -> CalendarResponse:
    calendar = progress.calendar
    return CalendarResponse(
        id=calendar.id,
        pet_name=calendar.pet_name,
        pet_type=calendar.pet_type.value,
        status=calendar.status.value,
        customer_email=calendar.customer_email,
        stripe_session_id=calendar.stripe_session_id,
        created_at=calendar.created_at,
        months=[to_month_response(m) for m in progress.months],
        generated_count=progress.generated_count,
        total_months=progress.total_months,
    )
