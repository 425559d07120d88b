"""Domain layer - 外部依存なしのドメインモデルとインターフェース定義"""

from pawcal.domain.errors import (
    ArtifactNotFoundError,
    CalendarNotFoundError,
    InvalidStatusTransitionError,
    PawCalError,
    PaymentError,
    SynthesisError,
)
from pawcal.domain.models import (
    TOTAL_MONTHS,
    CalendarMonth,
    CalendarProgress,
    CalendarRecord,
    CalendarStatus,
    CheckoutSession,
    GenerationReport,
    MonthOutcome,
    MonthTheme,
    PaymentEvent,
    PaymentSession,
    PetType,
    PurchaseResult,
)
from pawcal.domain.ports import (
    BlobStorage,
    CalendarRepository,
    ImageSynthesizer,
    PaymentGateway,
    TaskQueue,
)

__all__ = [
    # Models
    "TOTAL_MONTHS",
    "PetType",
    "CalendarStatus",
    "CalendarRecord",
    "CalendarMonth",
    "MonthTheme",
    "MonthOutcome",
    "GenerationReport",
    "CalendarProgress",
    "CheckoutSession",
    "PaymentSession",
    "PaymentEvent",
    "PurchaseResult",
    # Errors
    "PawCalError",
    "CalendarNotFoundError",
    "InvalidStatusTransitionError",
    "SynthesisError",
    "PaymentError",
    "ArtifactNotFoundError",
    # Ports
    "CalendarRepository",
    "ImageSynthesizer",
    "BlobStorage",
    "TaskQueue",
    "PaymentGateway",
]
