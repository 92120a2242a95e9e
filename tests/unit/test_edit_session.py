"""
EditSession tests: field intents, preview release on every exit path.
"""

from __future__ import annotations

import pytest

from src.components.projects import (
    CreateProjectInput,
    PendingUpload,
    ProjectAttributes,
    ProjectSyncService,
    UpdateProjectInput,
)
from src.core.entities import ProjectRecord
from src.ui.state import EditSession, FieldIntent
from tests.fakes import MockObjectStore, MockPreviews, MockProjectRepo


def jpeg(name: str) -> PendingUpload:
    return PendingUpload(filename=name, data=name.encode(), content_type="image/jpeg")


@pytest.fixture
def record(repo: MockProjectRepo, objects: MockObjectStore) -> ProjectRecord:
    return repo.add(
        title="Bestand",
        image=objects.seed("1_lead.jpg"),
        images=[objects.seed("2_a.jpg"), objects.seed("3_b.jpg")],
    )


class TestIntents:
    def test_blank_session_keeps_everything(self, previews: MockPreviews) -> None:
        session = EditSession.blank(previews)
        assert session.is_new
        assert session.primary_intent is FieldIntent.KEEP
        assert session.gallery_intent is FieldIntent.KEEP

    def test_select_primary_is_replace(self, previews: MockPreviews) -> None:
        session = EditSession.blank(previews)
        session.select_primary(jpeg("lead.jpg"))

        assert session.primary_intent is FieldIntent.REPLACE
        assert session.primary is not None
        assert session.primary.upload.role == "primary"
        assert previews.acquired == 1

    def test_select_gallery_is_replace_all(self, previews: MockPreviews) -> None:
        session = EditSession.blank(previews)
        session.select_gallery([jpeg("a.jpg"), jpeg("b.jpg")])

        assert session.gallery_intent is FieldIntent.REPLACE_ALL
        assert [f.upload.role for f in session.gallery] == ["gallery", "gallery"]
        assert session.preview_uris() == ["preview://a.jpg", "preview://b.jpg"]

    @pytest.mark.parametrize("selection", [None, []])
    def test_null_and_empty_gallery_selection_mean_keep(
        self, previews: MockPreviews, selection: list[PendingUpload] | None
    ) -> None:
        session = EditSession.blank(previews)
        session.select_gallery([jpeg("a.jpg")])
        session.select_gallery(selection)

        assert session.gallery_intent is FieldIntent.KEEP
        assert previews.active == {}


class TestPreviewRelease:
    def test_replacing_primary_releases_old_preview(self, previews: MockPreviews) -> None:
        session = EditSession.blank(previews)
        session.select_primary(jpeg("one.jpg"))
        session.select_primary(jpeg("two.jpg"))

        assert previews.released == ["h1"]
        assert list(previews.active.values()) == ["two.jpg"]

    def test_clear_primary_releases(self, previews: MockPreviews) -> None:
        session = EditSession.blank(previews)
        session.select_primary(jpeg("one.jpg"))
        session.clear_primary()

        assert session.primary_intent is FieldIntent.KEEP
        assert previews.active == {}

    def test_reselecting_gallery_releases_all_previous(self, previews: MockPreviews) -> None:
        session = EditSession.blank(previews)
        session.select_gallery([jpeg("a.jpg"), jpeg("b.jpg")])
        session.select_gallery([jpeg("c.jpg")])

        assert sorted(previews.released) == ["h1", "h2"]
        assert list(previews.active.values()) == ["c.jpg"]

    def test_remove_gallery_file(self, previews: MockPreviews) -> None:
        session = EditSession.blank(previews)
        session.select_gallery([jpeg("a.jpg"), jpeg("b.jpg"), jpeg("c.jpg")])
        session.remove_gallery_file(1)

        assert [f.upload.filename for f in session.gallery] == ["a.jpg", "c.jpg"]
        assert previews.released == ["h2"]

    def test_close_releases_everything_once(self, previews: MockPreviews) -> None:
        session = EditSession.blank(previews)
        session.select_primary(jpeg("lead.jpg"))
        session.select_gallery([jpeg("a.jpg"), jpeg("b.jpg")])

        session.close()
        session.close()

        assert previews.active == {}
        assert len(previews.released) == 3
        assert session.closed

    def test_context_manager_releases_on_error(self, previews: MockPreviews) -> None:
        with pytest.raises(RuntimeError, match="navigated away"):
            with EditSession.blank(previews) as session:
                session.select_primary(jpeg("lead.jpg"))
                session.select_gallery([jpeg("a.jpg")])
                raise RuntimeError("navigated away")

        assert previews.active == {}

    def test_closed_session_rejects_edits(self, previews: MockPreviews) -> None:
        session = EditSession.blank(previews)
        session.close()
        with pytest.raises(RuntimeError):
            session.select_primary(jpeg("lead.jpg"))


class TestBuildInput:
    def test_blank_builds_create(self, previews: MockPreviews) -> None:
        session = EditSession.blank(previews)
        session.set_attributes(ProjectAttributes(title="Neu"))
        session.select_primary(jpeg("lead.jpg"))

        inp = session.build_input()

        assert isinstance(inp, CreateProjectInput)
        assert inp.primary is not None
        assert inp.primary.filename == "lead.jpg"
        assert inp.gallery == ()

    def test_record_builds_update(self, previews: MockPreviews, record: ProjectRecord) -> None:
        session = EditSession.for_record(record, previews)

        inp = session.build_input()

        assert isinstance(inp, UpdateProjectInput)
        assert inp.project_id == record.id
        assert inp.attributes.title == "Bestand"
        assert inp.primary is None
        assert inp.gallery == ()
        assert session.existing_images == tuple(record.images)


class TestSubmit:
    @pytest.mark.asyncio()
    async def test_successful_create_closes_session(
        self, previews: MockPreviews, service: ProjectSyncService, repo: MockProjectRepo
    ) -> None:
        session = EditSession.blank(previews)
        session.set_attributes(ProjectAttributes(title="Neu"))
        session.select_primary(jpeg("lead.jpg"))
        session.select_gallery([jpeg("a.jpg")])

        result = await session.submit(service)

        assert result.success
        assert session.closed
        assert previews.active == {}
        assert result.project is not None
        assert result.project.id in repo.records

    @pytest.mark.asyncio()
    async def test_failed_submit_keeps_selections(
        self, previews: MockPreviews, service: ProjectSyncService
    ) -> None:
        session = EditSession.blank(previews)
        session.select_primary(jpeg("lead.jpg"))

        result = await session.submit(service)

        assert [e.code for e in result.errors] == ["title_required"]
        assert not session.closed
        assert session.primary is not None
        assert len(previews.active) == 1

    @pytest.mark.asyncio()
    async def test_update_keeps_gallery_when_only_primary_selected(
        self,
        previews: MockPreviews,
        service: ProjectSyncService,
        repo: MockProjectRepo,
        record: ProjectRecord,
    ) -> None:
        session = EditSession.for_record(record, previews)
        session.select_primary(jpeg("new.jpg"))

        result = await session.submit(service)

        assert result.success
        assert repo.records[record.id].images == record.images
        assert repo.records[record.id].image != record.image
