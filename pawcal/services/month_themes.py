"""月ごとの祝日テーマとプロンプト・保存パスの組み立て"""

from __future__ import annotations

from pawcal.domain.models import MonthTheme, PetType

MONTH_THEMES: tuple[MonthTheme, ...] = (
    MonthTheme(1, "New Year's Day", "celebrating New Year's Day with party hats, confetti, and fireworks"),
    MonthTheme(2, "Valentine's Day", "surrounded by hearts and roses for Valentine's Day, with a cute love theme"),
    MonthTheme(3, "St. Patrick's Day", "wearing a tiny green hat for St. Patrick's Day, with shamrocks and gold"),
    MonthTheme(4, "Easter", "with colorful Easter eggs and spring flowers, wearing bunny ears"),
    MonthTheme(5, "Mother's Day", "with a bouquet of flowers for Mother's Day, in a soft spring setting"),
    MonthTheme(6, "Summer Solstice", "playing at the beach on a sunny summer day, splashing in waves"),
    MonthTheme(7, "Independence Day", "with American flags and fireworks for the 4th of July, patriotic and festive"),
    MonthTheme(8, "National Pet Day", "playing happily outdoors on National Pet Day, wearing a colorful bandana"),
    MonthTheme(9, "Back to School", "sitting next to school books and an apple, looking curious and studious"),
    MonthTheme(10, "Halloween", "wearing a cute Halloween costume with pumpkins and bats in the background"),
    MonthTheme(11, "Thanksgiving", "sitting at a cozy Thanksgiving table with autumn leaves, pumpkins, and harvest decorations"),
    MonthTheme(12, "Christmas", "wearing a Santa hat next to a decorated Christmas tree with wrapped presents and snowflakes"),
)

_ARTIFACT_ROOT = "generated"
_UPLOAD_ROOT = "uploads"


def build_month_prompt(pet_name: str, pet_type: PetType, theme: MonthTheme) -> str:
    """画像編集モデルに渡すプロンプトを構築"""
    kind = pet_type.value
    return (
        f"A charming, high-quality digital illustration of a {kind} named {pet_name} "
        f"{theme.scene}. The {kind} is the main subject, depicted in a warm and playful "
        "illustration style suitable for a wall calendar. "
        "Keep the pet's appearance consistent and adorable."
    )


def upload_path(calendar_id: str) -> str:
    """アップロードされた元写真の保存先。/generated 配下ではないので公開されない"""
    return f"{_UPLOAD_ROOT}/{calendar_id}"


def artifact_prefix(calendar_id: str) -> str:
    """カレンダー単位の保存先（例: generated/{calendar_id}）"""
    return f"{_ARTIFACT_ROOT}/{calendar_id}"


def artifact_path(calendar_id: str, month: int) -> str:
    """月ごとの画像パス（例: generated/{calendar_id}/10.png）"""
    return f"{artifact_prefix(calendar_id)}/{month}.png"


def artifact_url(calendar_id: str, month: int) -> str:
    """クライアントに返す画像URL（/generated/... で配信される）"""
    return f"/{artifact_path(calendar_id, month)}"
