"""ロギング設定

Cloud Run 上では 1 行 1 JSON（Cloud Logging の構造化ログ）、ローカルではテキストで出す。

    from pawcal.logging_config import setup_logging
    setup_logging()

    logger.info("Month generated", extra={"calendar_id": calendar_id})

extra で渡した calendar_id はトップレベルのフィールドになり、
ログエクスプローラで jsonPayload.calendar_id として絞り込める。

環境変数:
    LOG_LEVEL: DEBUG / INFO / WARNING / ERROR / CRITICAL（既定 INFO）
    K_SERVICE / CLOUD_RUN_JOB: Cloud Run が自動で設定する
"""

import json
import logging
import os

# extra で渡されたらそのまま JSON に載せるフィールド
_CONTEXT_FIELDS = ("calendar_id",)

_NOISY_LOGGERS = ("google.auth", "urllib3", "httpx", "stripe")

_TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class CloudLoggingFormatter(logging.Formatter):
    """Cloud Logging の構造化ログ形式で 1 レコードを JSON にする

    severity は Python のレベル名をそのまま使う（Cloud Logging と同名）。
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict = {
            "severity": record.levelname
            if record.levelname in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
            else "DEFAULT",
            "message": record.getMessage(),
            "logger": record.name,
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "logging.googleapis.com/sourceLocation": {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            },
        }
        for name in _CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value:
                entry[name] = value
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def _running_on_cloud_run() -> bool:
    return bool(os.getenv("K_SERVICE") or os.getenv("CLOUD_RUN_JOB"))


def setup_logging() -> None:
    """root ロガーを初期化する（何度呼んでもハンドラは 1 つ）"""
    root = logging.getLogger()
    root.setLevel(getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO))

    handler = logging.StreamHandler()
    if _running_on_cloud_run():
        handler.setFormatter(CloudLoggingFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    root.handlers.clear()
    root.addHandler(handler)

    # google.auth の token refresh や stripe のリクエストログは WARNING 以上のみ
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
