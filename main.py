"""Cloud Run デプロイ用エントリーポイント

起動コマンド:
    uvicorn main:app --host 0.0.0.0 --port ${PORT:-8080}
"""

from pawcal.entrypoints.api.app import app

# uvicorn はこのモジュールから app をインポートする
__all__ = ["app"]
