from pathlib import Path

import pytest

from src.components.projects import ProjectSyncService, create_project_service
from src.rules.loader import load_rules
from src.rules.models import Rules
from tests.fakes import MockObjectStore, MockPreviews, MockProjectRepo

RULES_PATH = Path(__file__).resolve().parent.parent / "rules.yaml"


@pytest.fixture
def rules() -> Rules:
    """Rules loaded from the repository's rules.yaml."""
    return load_rules(RULES_PATH)


@pytest.fixture
def repo() -> MockProjectRepo:
    return MockProjectRepo()


@pytest.fixture
def objects() -> MockObjectStore:
    return MockObjectStore()


@pytest.fixture
def previews() -> MockPreviews:
    return MockPreviews()


@pytest.fixture
def service(repo: MockProjectRepo, objects: MockObjectStore, rules: Rules) -> ProjectSyncService:
    return create_project_service(repo, objects, rules)
