"""カレンダー API のユニットテスト

dependency_overrides を使ってリポジトリ・キュー・保存先を差し替える。
実際の Firestore / Cloud Tasks / Gemini は使わない。
"""

import pytest
from fastapi.testclient import TestClient
from pawcal.adapters.local_storage import LocalBlobStorage
from pawcal.domain.models import CalendarStatus
from pawcal.entrypoints import worker
from pawcal.entrypoints.api.app import app
from pawcal.entrypoints.api.deps import get_blob_storage, get_calendar_repo, get_task_queue
from pawcal.entrypoints.api.routes.calendars import _MAX_UPLOAD_SIZE_BYTES
from pawcal.services.calendar_generator import CalendarGenerator

_PHOTO = b"\x89PNG\r\n\x1a\nfake-photo"


def _form(pet_name: str = "Buddy", pet_type: str = "dog") -> dict:
    return {"petName": pet_name, "petType": pet_type}


def _files(content: bytes = _PHOTO, content_type: str = "image/png") -> dict:
    return {"photo": ("buddy.png", content, content_type)}


@pytest.fixture
def storage(tmp_path) -> LocalBlobStorage:
    return LocalBlobStorage(str(tmp_path / "artifacts"))


@pytest.fixture
def client(repo, storage, mock_task_queue):
    """モックを差し込んだ FastAPI テストクライアント（Cloud Tasks 経由）"""
    app.dependency_overrides[get_calendar_repo] = lambda: repo
    app.dependency_overrides[get_blob_storage] = lambda: storage
    app.dependency_overrides[get_task_queue] = lambda: mock_task_queue

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


class TestCreateCalendar:
    """POST /api/calendars のテスト"""

    def test_create_returns_202_pending(self, client, repo, storage):
        """正常アップロードで 202 と status=pending を返す"""
        response = client.post("/api/calendars", data=_form(), files=_files())

        assert response.status_code == 202
        data = response.json()
        assert data["status"] == "pending"
        saved = repo.get(data["id"])
        assert saved.pet_name == "Buddy"
        assert saved.status is CalendarStatus.PENDING
        assert saved.photo_mime_type == "image/png"
        # 月レコードは生成ワークフローが作るまで存在しない
        assert repo.list_months(data["id"]) == []
        # 元写真はレコードではなく保存先に置かれる
        assert saved.photo_path == f"uploads/{data['id']}"
        assert storage.download(saved.photo_path) == _PHOTO

    def test_accepts_typical_phone_photo(self, client, repo, storage):
        """数 MB の写真もそのまま受け付ける"""
        photo = b"\xff\xd8\xff\xe0" + b"x" * (2 * 1024 * 1024)

        response = client.post(
            "/api/calendars", data=_form(), files=_files(photo, "image/jpeg")
        )

        assert response.status_code == 202
        saved = repo.get(response.json()["id"])
        assert saved.photo_mime_type == "image/jpeg"
        assert storage.download(saved.photo_path) == photo

    def test_create_enqueues_named_task(self, client, mock_task_queue):
        """カレンダーIDから作ったタスクIDで生成ジョブを登録する"""
        response = client.post("/api/calendars", data=_form(pet_type="cat"), files=_files())

        calendar_id = response.json()["id"]
        mock_task_queue.enqueue.assert_called_once_with(
            {"calendar_id": calendar_id}, task_id=f"calendar-{calendar_id}"
        )

    def test_missing_photo_returns_400(self, client, repo, mock_task_queue):
        response = client.post("/api/calendars", data=_form())

        assert response.status_code == 400
        assert response.json()["detail"] == "Photo is required"
        assert repo.calendars == {}
        mock_task_queue.enqueue.assert_not_called()

    @pytest.mark.parametrize("form", [{"petType": "dog"}, {"petName": "Buddy"}, _form(pet_name="  ")])
    def test_missing_name_or_type_returns_400(self, client, repo, form):
        response = client.post("/api/calendars", data=form, files=_files())

        assert response.status_code == 400
        assert response.json()["detail"] == "Pet name and type are required"
        assert repo.calendars == {}

    def test_unknown_pet_type_returns_400(self, client, repo):
        response = client.post("/api/calendars", data=_form(pet_type="hamster"), files=_files())

        assert response.status_code == 400
        assert repo.calendars == {}

    def test_non_image_returns_400(self, client, repo):
        response = client.post(
            "/api/calendars",
            data=_form(),
            files=_files(b"%PDF-1.4", "application/pdf"),
        )

        assert response.status_code == 400
        assert repo.calendars == {}

    def test_oversized_photo_returns_413(self, client, repo, storage):
        response = client.post(
            "/api/calendars",
            data=_form(),
            files=_files(b"x" * (_MAX_UPLOAD_SIZE_BYTES + 1)),
        )

        assert response.status_code == 413
        assert response.json()["detail"] == "Photo must be 10 MB or smaller"
        assert repo.calendars == {}


class TestCreateCalendarLocalMode:
    """LOCAL_MODE（キューなし）では BackgroundTasks で生成まで完了する"""

    def test_background_generation_reaches_ready(
        self, repo, storage, mock_synthesizer, monkeypatch
    ):
        monkeypatch.setattr(
            worker,
            "build_calendar_generator",
            lambda r: CalendarGenerator(repository=r, synthesizer=mock_synthesizer, storage=storage),
        )
        app.dependency_overrides[get_calendar_repo] = lambda: repo
        app.dependency_overrides[get_blob_storage] = lambda: storage
        app.dependency_overrides[get_task_queue] = lambda: None
        try:
            with TestClient(app) as c:
                response = c.post("/api/calendars", data=_form(), files=_files())
                calendar_id = response.json()["id"]
                # TestClient はレスポンス返却後に BackgroundTasks を実行済み
                detail = c.get(f"/api/calendars/{calendar_id}").json()
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 202
        assert detail["status"] == "ready"
        assert detail["generatedCount"] == 12
        assert [m["month"] for m in detail["months"]] == list(range(1, 13))
        assert detail["months"][0]["imageUrl"] == f"/generated/{calendar_id}/1.png"
        # 保存先から読み出した元写真が画像生成に渡される
        assert mock_synthesizer.synthesize.call_args.args[0] == _PHOTO
        generated_png = storage.download(f"generated/{calendar_id}/1.png")
        assert generated_png == mock_synthesizer.synthesize.return_value


class TestGetCalendar:
    """GET /api/calendars/{id} のテスト"""

    def test_returns_progress_without_photo(self, client, repo, sample_calendar):
        """元写真を含まず、月ごとの状況と生成数を返す"""
        repo.create(sample_calendar)
        repo.create_month(sample_calendar.id, 2, "Valentine's Day")
        repo.create_month(sample_calendar.id, 1, "New Year's Day")
        repo.mark_month_generated(sample_calendar.id, 1, "/generated/cal-123/1.png")

        response = client.get(f"/api/calendars/{sample_calendar.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == sample_calendar.id
        assert data["petName"] == "Buddy"
        assert data["petType"] == "dog"
        assert data["status"] == "pending"
        assert data["generatedCount"] == 1
        assert data["totalMonths"] == 12
        assert [m["month"] for m in data["months"]] == [1, 2]
        assert data["months"][0]["holidayName"] == "New Year's Day"
        assert "photoPath" not in data

    def test_unknown_calendar_returns_404(self, client):
        response = client.get("/api/calendars/missing")

        assert response.status_code == 404
        assert response.json()["detail"] == "Calendar not found"


class TestGetCalendarMonths:
    """GET /api/calendars/{id}/months のテスト"""

    def test_returns_months(self, client, repo, sample_calendar):
        repo.create(sample_calendar)
        repo.create_month(sample_calendar.id, 1, "New Year's Day")
        repo.mark_month_generated(sample_calendar.id, 1, "/generated/cal-123/1.png")

        response = client.get(f"/api/calendars/{sample_calendar.id}/months")

        assert response.status_code == 200
        data = response.json()
        assert data["generatedCount"] == 1
        assert data["months"][0]["generated"] is True
        assert data["months"][0]["imageUrl"] == "/generated/cal-123/1.png"

    def test_unknown_calendar_returns_404(self, client):
        response = client.get("/api/calendars/missing/months")
        assert response.status_code == 404
