"""Worker（カレンダー画像生成）のユニットテスト

run_generation のスキップ判定と /worker/generate エンドポイントを検証する。
LOCAL_MODE=true にして OIDC 検証を無効化する。
"""

import dataclasses
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from pawcal.domain.errors import ArtifactNotFoundError
from pawcal.domain.models import CalendarStatus, GenerationReport, MonthOutcome
from pawcal.entrypoints import worker
from pawcal.entrypoints.api.app import app
from pawcal.entrypoints.api.deps import (
    get_blob_storage,
    get_calendar_generator,
    get_calendar_repo,
)
from pawcal.services.calendar_generator import CalendarGenerator


@pytest.fixture(autouse=True)
def local_mode(monkeypatch):
    monkeypatch.setenv("LOCAL_MODE", "true")


@pytest.fixture
def mock_generator() -> MagicMock:
    generator = MagicMock(spec=CalendarGenerator)
    generator.generate.return_value = GenerationReport(
        calendar_id="cal-123",
        outcomes=[
            MonthOutcome(month=1, holiday="New Year's Day", image_url="/generated/cal-123/1.png"),
            MonthOutcome(month=2, holiday="Valentine's Day", error="boom"),
        ],
    )
    return generator


@pytest.fixture
def client(repo, mock_blob_storage, mock_generator):
    app.dependency_overrides[get_calendar_repo] = lambda: repo
    app.dependency_overrides[get_blob_storage] = lambda: mock_blob_storage
    app.dependency_overrides[get_calendar_generator] = lambda: mock_generator

    with TestClient(app, raise_server_exceptions=False) as c:
        yield c

    app.dependency_overrides.clear()


class TestRunGeneration:
    def test_pending_calendar_is_generated(
        self, repo, sample_calendar, mock_blob_storage, mock_generator
    ):
        """pending のカレンダーは保存先から読み出した写真で生成される"""
        repo.create(sample_calendar)

        report = worker.run_generation(
            sample_calendar.id, repo, mock_blob_storage, mock_generator
        )

        assert report is mock_generator.generate.return_value
        mock_generator.generate.assert_called_once_with(
            sample_calendar.id,
            "Buddy",
            sample_calendar.pet_type,
            mock_blob_storage.download.return_value,
            "image/png",
        )
        mock_blob_storage.download.assert_called_once_with("uploads/cal-123")

    def test_missing_photo_raises_and_keeps_pending(
        self, repo, sample_calendar, mock_blob_storage, mock_generator
    ):
        """元写真が読めない場合は生成を始めず、pending のまま再試行を待つ"""
        repo.create(sample_calendar)
        mock_blob_storage.download.side_effect = ArtifactNotFoundError("uploads/cal-123")

        with pytest.raises(ArtifactNotFoundError):
            worker.run_generation(sample_calendar.id, repo, mock_blob_storage, mock_generator)

        mock_generator.generate.assert_not_called()
        assert repo.get(sample_calendar.id).status is CalendarStatus.PENDING

    def test_missing_calendar_is_skipped(self, repo, mock_blob_storage, mock_generator):
        assert worker.run_generation("missing", repo, mock_blob_storage, mock_generator) is None
        mock_generator.generate.assert_not_called()

    @pytest.mark.parametrize(
        "status",
        [CalendarStatus.GENERATING, CalendarStatus.READY, CalendarStatus.PURCHASED],
    )
    def test_non_pending_calendar_is_skipped(
        self, repo, sample_calendar, mock_blob_storage, mock_generator, status
    ):
        """再配送されたジョブは pending 以外なら何もしない"""
        repo.create(dataclasses.replace(sample_calendar, status=status))

        assert (
            worker.run_generation(sample_calendar.id, repo, mock_blob_storage, mock_generator)
            is None
        )
        mock_generator.generate.assert_not_called()
        mock_blob_storage.download.assert_not_called()


class TestRunGenerationLocal:
    def test_errors_are_logged_not_raised(
        self, repo, sample_calendar, mock_blob_storage, monkeypatch
    ):
        """BackgroundTasks から呼ばれるため例外は外に出さない"""
        repo.create(sample_calendar)
        broken = MagicMock(spec=CalendarGenerator)
        broken.generate.side_effect = RuntimeError("firestore unavailable")
        monkeypatch.setattr(worker, "build_calendar_generator", lambda r: broken)

        worker.run_generation_local(sample_calendar.id, repo, mock_blob_storage)

        broken.generate.assert_called_once()


class TestGenerateEndpoint:
    def test_completed_response(self, client, repo, sample_calendar):
        repo.create(sample_calendar)

        response = client.post("/worker/generate", json={"calendar_id": sample_calendar.id})

        assert response.status_code == 200
        assert response.json() == {
            "status": "completed",
            "calendar_id": sample_calendar.id,
            "generated": 1,
            "failed_months": [2],
        }

    def test_skipped_response(self, client):
        response = client.post("/worker/generate", json={"calendar_id": "missing"})

        assert response.status_code == 200
        assert response.json() == {"status": "skipped", "calendar_id": "missing"}

    def test_failure_returns_500(self, client, repo, sample_calendar, mock_generator):
        """生成中の例外は 500 を返し、Cloud Tasks にリトライさせる"""
        repo.create(sample_calendar)
        mock_generator.generate.side_effect = RuntimeError("firestore unavailable")

        response = client.post("/worker/generate", json={"calendar_id": sample_calendar.id})

        assert response.status_code == 500
        assert "Generation failed" in response.json()["detail"]

    def test_missing_photo_returns_500(self, client, repo, sample_calendar, mock_blob_storage):
        """元写真が見つからない場合も 500 を返し、カレンダーは pending のまま"""
        repo.create(sample_calendar)
        mock_blob_storage.download.side_effect = ArtifactNotFoundError("uploads/cal-123")

        response = client.post("/worker/generate", json={"calendar_id": sample_calendar.id})

        assert response.status_code == 500
        assert repo.get(sample_calendar.id).status is CalendarStatus.PENDING

    def test_missing_calendar_id_returns_422(self, client):
        response = client.post("/worker/generate", json={})
        assert response.status_code == 422
