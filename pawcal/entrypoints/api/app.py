"""FastAPI アプリケーション

PawCal バックエンド API。
ペット写真から12か月分のカレンダー画像を生成し、Stripe で購入を受け付ける。

エンドポイント一覧:
  POST   /api/calendars
  GET    /api/calendars/{id}
  GET    /api/calendars/{id}/months
  POST   /api/checkout
  GET    /api/checkout/verify
  GET    /api/stripe/status
  GET    /api/stripe/publishable-key
  POST   /api/stripe/webhook              ← Stripe 署名で検証
  GET    /generated/{id}/{month}.png
  POST   /worker/generate                 ← Cloud Tasks OIDC で検証
  GET    /health
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.responses import Response

from pawcal.entrypoints import worker
from pawcal.entrypoints.api.routes import calendars, checkout, generated, stripe_webhook
from pawcal.logging_config import setup_logging

# ── ロギング初期化 ───────────────────────────────────────────────────────────
setup_logging()
logger = logging.getLogger(__name__)

# ── FastAPI アプリ ───────────────────────────────────────────────────────────
app = FastAPI(
    title="PawCal API",
    description="ペット写真から AI カレンダーを作る PawCal のバックエンド API",
    version="1.0.0",
)

# ── グローバル例外ミドルウェア ──────────────────────────────────────────────────
# add_middleware は後から登録したものが外側になる。
# CORSMiddleware より先に登録して内側に置き、500 レスポンスにも CORS ヘッダーを付与する。
#
# スタック: ServerErrorMiddleware → CORSMiddleware → このMW → ExceptionMiddleware → Routes


@app.middleware("http")
async def _catch_unhandled_exceptions(
    request: Request, call_next: Callable[[Request], Response]
) -> Response:
    try:
        return await call_next(request)
    except Exception as exc:
        logger.error(
            "Unhandled exception: %s %s - %s",
            request.method,
            request.url.path,
            exc,
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )


# ── CORS（フロントエンドからのリクエストを許可） ─────────────────────────────
# CORS_ORIGINS 環境変数でカンマ区切りのオリジンを指定可能
_extra_origins = [
    o.strip() for o in os.environ.get("CORS_ORIGINS", "").split(",") if o.strip()
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_extra_origins if _extra_origins else ["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

# ── ルーター登録 ─────────────────────────────────────────────────────────────
_PREFIX = "/api"

app.include_router(calendars.router, prefix=_PREFIX)
app.include_router(checkout.router, prefix=_PREFIX)
app.include_router(stripe_webhook.router, prefix=_PREFIX)

# 生成画像は imageUrl（/generated/...）でそのまま参照されるためプレフィックスなし
app.include_router(generated.router)

# ── Cloud Tasks ワーカールート（/worker/*）────────────────────────────────────
# アプリレベルの OIDC トークン検証（verify_worker_token）で保護される。
app.include_router(worker.router, prefix="/worker")


@app.get("/health")
async def health() -> dict:
    """ヘルスチェックエンドポイント（Cloud Run の起動確認用）"""
    return {"status": "ok"}


logger.info("PawCal API started")
