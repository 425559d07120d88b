"""Services layer - ポートにのみ依存するワークフロー"""

from pawcal.services.calendar_generator import CalendarGenerator
from pawcal.services.progress import build_progress, load_progress
from pawcal.services.purchase import CALENDAR_PRICE_CENTS, PurchaseService

__all__ = [
    "CalendarGenerator",
    "PurchaseService",
    "CALENDAR_PRICE_CENTS",
    "build_progress",
    "load_progress",
]
