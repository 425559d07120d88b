"""/worker/* の呼び出し元検証

生成ジョブは CloudTasksQueue が SA の OIDC トークン付きで POST する。
ここではそのトークンを検証し、キュー以外からの生成リクエストを 401 で弾く。

- 期待する呼び出し元: WORKER_SERVICE_ACCOUNT_EMAIL（未設定なら SERVICE_ACCOUNT_EMAIL）
- audience: WORKER_URL（キュー側が audience=WORKER_URL で発行するため一致する）
- どちらの SA も未設定なら常に 401
- LOCAL_MODE では生成は BackgroundTasks で動くため検証しない
"""

from __future__ import annotations

import logging
import os

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _expected_caller() -> str:
    return os.environ.get("WORKER_SERVICE_ACCOUNT_EMAIL") or os.environ.get(
        "SERVICE_ACCOUNT_EMAIL", ""
    )


def _decode(token: str) -> dict:
    """署名・有効期限・audience を検証してクレームを返す"""
    try:
        return id_token.verify_oauth2_token(
            token,
            google_requests.Request(),
            audience=os.environ.get("WORKER_URL") or None,
        )
    except Exception as exc:
        logger.warning("Worker token rejected: %s", exc)
        raise _unauthorized("Invalid OIDC token") from exc


def verify_worker_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> None:
    """worker ルーター全体に掛ける Depends。検証失敗は 401"""
    if os.environ.get("LOCAL_MODE"):
        return

    expected = _expected_caller()
    if not expected:
        logger.error("No worker service account configured; rejecting generation request")
        raise _unauthorized("Worker authentication is not configured")

    if credentials is None:
        raise _unauthorized("Missing Authorization header")

    claims = _decode(credentials.credentials)
    caller = claims.get("email", "")
    if caller != expected or claims.get("email_verified") is False:
        logger.warning("Worker call from unexpected identity: expected=%s, got=%s", expected, caller)
        raise _unauthorized("Unauthorized service account")
