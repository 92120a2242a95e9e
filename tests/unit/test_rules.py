"""
Rules loading and startup configuration tests.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from src.app_shell.config import ConfigError, Settings, check_ops_rules, validate_ops_rules
from src.rules.loader import load_rules, parse_rules
from src.rules.models import Rules


@pytest.fixture
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent.parent


class TestRulesFile:
    def test_repository_rules_load(self, project_root: Path) -> None:
        rules = load_rules(project_root / "rules.yaml")

        assert rules.storage.bucket == "project-images"
        assert rules.storage.public_path_prefix == "/storage/v1/object/public"
        assert rules.projects.category_ids() == [
            "energiestationen",
            "fassaden",
            "innenraume",
            "objekte",
            "leinwande",
        ]
        assert ".jpeg" in rules.uploads.allowlist_extensions

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_rules(tmp_path / "rules.yaml")

    def test_empty_document_uses_defaults(self) -> None:
        assert parse_rules("") == Rules()

    def test_fenced_block(self) -> None:
        content = "# Rules\n\n```yaml\nstorage:\n  bucket: media\n```\nnotes\n"
        assert parse_rules(content).storage.bucket == "media"

    def test_invalid_yaml(self) -> None:
        with pytest.raises(ValueError, match="Invalid YAML"):
            parse_rules("storage: [unclosed")

    def test_unknown_section_rejected(self) -> None:
        with pytest.raises(ValueError, match="validation failed"):
            parse_rules("blocks: {}\n")

    @pytest.mark.parametrize("bucket", ["", "a/b"])
    def test_bucket_must_be_single_segment(self, bucket: str) -> None:
        with pytest.raises(ValueError):
            parse_rules(f"storage:\n  bucket: '{bucket}'\n")

    def test_parallel_uploads_positive(self) -> None:
        with pytest.raises(ValueError):
            parse_rules("storage:\n  max_parallel_uploads: 0\n")


class TestOpsRules:
    def test_local_backend_needs_nothing(self) -> None:
        assert check_ops_rules(Rules(), "local", {}) == []

    def test_unknown_backend(self) -> None:
        problems = check_ops_rules(Rules(), "s3", {})
        assert "Unknown PROJECTS_BACKEND" in problems[0]

    def test_supabase_requires_url_and_key(self) -> None:
        problems = check_ops_rules(Rules(), "supabase", {})
        assert problems == [
            "Missing required environment variables: SUPABASE_ANON_KEY, SUPABASE_URL"
        ]

    def test_service_role_key_is_enough(self) -> None:
        env = {"SUPABASE_URL": "https://x.supabase.co", "SUPABASE_SERVICE_ROLE_KEY": "k"}
        assert check_ops_rules(Rules(), "supabase", env) == []

    def test_required_env_from_rules(self) -> None:
        rules = parse_rules("ops:\n  required_env: [ADMIN_TOKEN]\n")
        with pytest.raises(ConfigError, match="ADMIN_TOKEN"):
            validate_ops_rules(rules, "local", {})


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings({})
        assert settings.backend == "local"
        assert settings.db_path == str(Path("./data") / "projects.db")
        assert settings.public_base_url == "http://localhost:8000/media"
        assert settings.supabase.service_role_key is None

    def test_environment(self, tmp_path: Path) -> None:
        settings = Settings(
            {
                "PROJECTS_BACKEND": "supabase",
                "PROJECTS_DATA_DIR": str(tmp_path),
                "PROJECTS_RULES_PATH": str(tmp_path / "r.yaml"),
                "PROJECTS_PUBLIC_BASE_URL": "https://cdn.example.com/media/",
                "SUPABASE_URL": "https://x.supabase.co",
                "SUPABASE_ANON_KEY": "anon",
            }
        )
        assert settings.backend == "supabase"
        assert settings.media_dir == tmp_path / "media"
        assert settings.rules_path == tmp_path / "r.yaml"
        assert settings.public_base_url == "https://cdn.example.com/media"
        assert settings.supabase.anon_key == "anon"
