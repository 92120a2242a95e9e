"""
End-to-end: FastAPI app with the local backend (SQLite + filesystem), and the CLI.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.api.deps import get_settings
from src.api.main import app
from src.app_shell import cli
from src.app_shell.config import ConfigError

RULES_PATH = Path(__file__).resolve().parents[2] / "rules.yaml"


@pytest.fixture
def data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    monkeypatch.setenv("PROJECTS_BACKEND", "local")
    monkeypatch.setenv("PROJECTS_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("PROJECTS_RULES_PATH", str(RULES_PATH))
    monkeypatch.setenv("PROJECTS_PUBLIC_BASE_URL", "http://testserver/media")
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()


def stored_files(data_dir: Path) -> list[str]:
    bucket = data_dir / "media" / "project-images"
    return sorted(p.name for p in bucket.iterdir()) if bucket.exists() else []


class TestLocalApp:
    def test_health(self) -> None:
        response = TestClient(app).get("/health")
        assert response.json() == {"status": "ok", "service": "api"}

    def test_lifecycle(self, data_dir: Path) -> None:
        with TestClient(app) as client:
            created = client.post(
                "/api/projects",
                data={"title": "Kiosk", "categories": ["objekte"]},
                files=[
                    ("image", ("lead.png", b"\x89PNG lead", "image/png")),
                    ("images", ("a.gif", b"GIF89a a", "image/gif")),
                ],
            )
            assert created.status_code == 201
            project = created.json()["project"]
            assert project["image"].startswith("http://testserver/media/project-images/")
            assert len(stored_files(data_dir)) == 2
            assert (data_dir / "projects.db").exists()

            updated = client.put(
                f"/api/projects/{project['id']}",
                data={"title": "Kiosk 2", "categories": ["objekte"]},
                files=[("image", ("new.jpg", b"jpeg new", "image/jpeg"))],
            )
            assert updated.status_code == 200
            assert updated.json()["project"]["images"] == project["images"]
            # Old primary gone, new primary and gallery kept
            assert len(stored_files(data_dir)) == 2

            deleted = client.delete(f"/api/projects/{project['id']}")
            assert deleted.status_code == 200
            assert stored_files(data_dir) == []
            assert client.get("/api/projects").json() == []

    def test_startup_fails_on_bad_config(
        self, data_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PROJECTS_BACKEND", "supabase")
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        get_settings.cache_clear()

        with pytest.raises(ConfigError):
            with TestClient(app):
                pass


class TestCli:
    def test_check_config(self, data_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert cli.main(["check-config"]) == 0
        assert "Configuration OK" in capsys.readouterr().out

    def test_list_stats_delete(self, data_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
        with TestClient(app) as client:
            project = client.post(
                "/api/projects",
                data={"title": "Depot"},
                files=[("image", ("lead.jpg", b"jpeg", "image/jpeg"))],
            ).json()["project"]

        assert cli.main(["list"]) == 0
        assert "Depot" in capsys.readouterr().out

        assert cli.main(["stats"]) == 0
        out = capsys.readouterr().out
        assert "Projects: 1" in out
        assert "Images:   1" in out

        assert cli.main(["delete", project["id"]]) == 0
        assert "1 objects removed" in capsys.readouterr().out
        assert stored_files(data_dir) == []

        assert cli.main(["delete", project["id"]]) == 0
        assert "already deleted" in capsys.readouterr().out
