"""Cloud Tasks Queue Adapter

TaskQueue の Cloud Tasks 実装。生成ジョブ 1 件 = HTTP タスク 1 件で、
ワーカー（POST /worker/generate）に JSON を届ける。

    {"calendar_id": "..."}

呼び出し側は task_id="calendar-{calendar_id}" を渡す。同名タスクは
Cloud Tasks 側で重複登録できないため、同じカレンダーのジョブは 1 件に絞られる。
"""

from __future__ import annotations

import datetime
import json
import logging

from google.api_core.exceptions import AlreadyExists
from google.cloud import tasks_v2

from pawcal.domain.ports import TaskQueue

logger = logging.getLogger(__name__)

# 12 か月分の画像生成は数分かかるため、HTTP タスクの上限（30 分）まで待つ
DISPATCH_DEADLINE = datetime.timedelta(minutes=30)


class CloudTasksQueue(TaskQueue):
    """OIDC トークン付き HTTP タスクとしてジョブを投入する"""

    def __init__(
        self,
        project_id: str,
        location: str,
        queue_name: str,
        worker_url: str,
        service_account_email: str,
        client: tasks_v2.CloudTasksClient | None = None,
    ) -> None:
        """
        Args:
            project_id: GCP プロジェクト ID
            location: キューのリージョン（例: "us-central1"）
            queue_name: キュー名（例: "calendar-generation"）
            worker_url: POST 先（/worker/generate の完全 URL）。OIDC の audience にも使う
            service_account_email: トークンを発行する SA
            client: テスト用の差し替え。省略時は ADC で初期化
        """
        self._client = client or tasks_v2.CloudTasksClient()
        self._queue = (project_id, location, queue_name)
        self._queue_path = self._client.queue_path(project_id, location, queue_name)
        self._worker_url = worker_url
        self._service_account_email = service_account_email

    def _build_task(self, payload: dict, task_id: str | None) -> dict:
        task: dict = {
            "http_request": {
                "http_method": tasks_v2.HttpMethod.POST,
                "url": self._worker_url,
                "headers": {"Content-Type": "application/json"},
                "body": json.dumps(payload).encode("utf-8"),
                "oidc_token": {
                    "service_account_email": self._service_account_email,
                    "audience": self._worker_url,
                },
            },
            "dispatch_deadline": DISPATCH_DEADLINE,
        }
        if task_id:
            task["name"] = self._client.task_path(*self._queue, task_id)
        return task

    def enqueue(self, payload: dict, task_id: str | None = None) -> str:
        """
        ジョブを投入し、タスク名（完全修飾）を返す。

        同名タスクが既にあれば新規作成せず、そのタスク名を返す。
        """
        task = self._build_task(payload, task_id)
        try:
            created = self._client.create_task(
                request={"parent": self._queue_path, "task": task}
            )
        except AlreadyExists:
            logger.info("Generation job already queued: task=%s", task["name"])
            return task["name"]

        logger.info("Generation job queued: task=%s, payload=%s", created.name, payload)
        return created.name
