"""ドメイン固有の例外クラス"""


class PawCalError(Exception):
    """PawCal の基底例外"""

    pass


class CalendarNotFoundError(PawCalError):
    """指定 ID のカレンダーが存在しない"""

    pass


class InvalidStatusTransitionError(PawCalError):
    """ステータスを逆行・スキップさせる遷移"""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Cannot move calendar from '{current}' to '{target}'")
        self.current = current
        self.target = target


class SynthesisError(PawCalError):
    """画像生成エラー（Gemini API等）"""

    pass


class PaymentError(PawCalError):
    """決済プロバイダ呼び出しエラー（Stripe等）"""

    pass


class ArtifactNotFoundError(PawCalError):
    """生成画像がストレージに存在しない"""

    pass
