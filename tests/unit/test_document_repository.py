"""Unit tests for the document repository over local-file storage."""

import asyncio
from typing import Any

import pytest
from prometheus_client import REGISTRY
from pydantic import ValidationError

from backend.studio.documents.repository import DocumentRepository
from backend.studio.errors import ConflictError, InvalidOperationError, NotFoundError
from backend.studio.models import (
    CreateDocument,
    CreateUser,
    DocumentStatus,
    DocumentUpdate,
    GeneratedContent,
    Platform,
    PreferencesUpdate,
    SessionCreate,
    SessionUpdate,
)
from backend.studio.storage.hybrid import HybridStorageService

OWNER = "owner-1"


async def _create(repository: DocumentRepository, title: str = "T", owner: str = OWNER) -> str:
    document = await repository.create_document(
        owner, CreateDocument(title=title, input_language="gu", output_language="en")
    )
    return document.id


async def _generate(repository: DocumentRepository, document_id: str) -> None:
    await repository.save_generated_content(
        document_id, GeneratedContent(blog="b", linkedin="l", twitter="t", podcast="p")
    )


class TestCreateDocument:
    @pytest.mark.asyncio
    async def test_creates_empty_draft(self, repository: DocumentRepository) -> None:
        document = await repository.create_document(OWNER, CreateDocument(title="  My Notes "))

        assert document.title == "My Notes"
        assert document.user_id == OWNER
        assert document.status == DocumentStatus.draft
        assert document.input_language == "en"
        assert document.output_language == "en"
        assert (document.total_sessions, document.total_duration, document.word_count) == (0, 0, 0)
        assert document.has_generated_content is False

        drafts = await repository.get_documents(OWNER, DocumentStatus.draft)
        assert [d.id for d in drafts] == [document.id]

    @pytest.mark.asyncio
    async def test_confirmation_poll_does_not_sleep_when_visible(
        self, repository: DocumentRepository, sleep_recorder: Any
    ) -> None:
        await _create(repository)

        assert sleep_recorder.delays == []

    @pytest.mark.asyncio
    async def test_duplicate_title_case_insensitive(self, repository: DocumentRepository) -> None:
        await _create(repository, "Weekly Update")

        with pytest.raises(ConflictError, match="already exists"):
            await _create(repository, "weekly update")

    @pytest.mark.asyncio
    async def test_other_owner_may_reuse_title(self, repository: DocumentRepository) -> None:
        await _create(repository, "Shared", owner="a")

        document_id = await _create(repository, "Shared", owner="b")

        assert (await repository.get_document(document_id)).user_id == "b"

    @pytest.mark.asyncio
    async def test_title_unique_across_partitions(self, repository: DocumentRepository) -> None:
        document_id = await _create(repository, "Done")
        await _generate(repository, document_id)
        await repository.set_status(document_id, DocumentStatus.completed)

        assert await repository.is_title_unique(OWNER, "DONE") is False
        with pytest.raises(ConflictError):
            await _create(repository, "done")


class TestReads:
    @pytest.mark.asyncio
    async def test_missing_document_raises_after_retries(
        self, repository: DocumentRepository, sleep_recorder: Any
    ) -> None:
        with pytest.raises(NotFoundError, match="Document not found"):
            await repository.get_document("missing")

        assert sleep_recorder.delays == [0.5, 1.0, 2.0]

    @pytest.mark.asyncio
    async def test_missing_document_counts_read_retries(
        self, repository: DocumentRepository
    ) -> None:
        labels = {"operation": "get_document"}
        before = REGISTRY.get_sample_value("storage_read_retries_total", labels) or 0.0

        with pytest.raises(NotFoundError):
            await repository.get_document("missing")

        after = REGISTRY.get_sample_value("storage_read_retries_total", labels)
        assert after == before + 3

    @pytest.mark.asyncio
    async def test_missing_session_raises(self, repository: DocumentRepository) -> None:
        with pytest.raises(NotFoundError, match="Session not found"):
            await repository.get_session("missing")

    @pytest.mark.asyncio
    async def test_documents_scoped_to_owner(self, repository: DocumentRepository) -> None:
        await _create(repository, "Mine", owner="a")
        await _create(repository, "Theirs", owner="b")

        titles = [d.title for d in await repository.get_documents("a")]

        assert titles == ["Mine"]


class TestUpdateDocument:
    @pytest.mark.asyncio
    async def test_rename_and_languages(self, repository: DocumentRepository) -> None:
        document_id = await _create(repository, "Old")

        updated = await repository.update_document(
            document_id, DocumentUpdate(title="New", output_language="hi")
        )

        assert updated.title == "New"
        assert updated.input_language == "gu"
        assert updated.output_language == "hi"

    @pytest.mark.asyncio
    async def test_rename_to_own_title_with_new_case(self, repository: DocumentRepository) -> None:
        document_id = await _create(repository, "Title")

        updated = await repository.update_document(document_id, DocumentUpdate(title="TITLE"))

        assert updated.title == "TITLE"

    @pytest.mark.asyncio
    async def test_rename_clash_rejected(self, repository: DocumentRepository) -> None:
        await _create(repository, "First")
        second = await _create(repository, "Second")

        with pytest.raises(ConflictError):
            await repository.update_document(second, DocumentUpdate(title="first"))

    @pytest.mark.asyncio
    async def test_blank_rename_rejected(self, repository: DocumentRepository) -> None:
        document_id = await _create(repository, "Keep")

        with pytest.raises(ValidationError):
            await repository.update_document(document_id, DocumentUpdate(title="   "))

        assert (await repository.get_document(document_id)).title == "Keep"

    def test_update_title_is_stripped_and_optional(self) -> None:
        assert DocumentUpdate(title="  New  ").title == "New"
        assert DocumentUpdate(output_language="hi").title is None


class TestSessions:
    @pytest.mark.asyncio
    async def test_add_session_recomputes_aggregates(self, repository: DocumentRepository) -> None:
        document_id = await _create(repository)

        session = await repository.add_session(
            document_id, SessionCreate(transcript="hello world", duration=5)
        )
        document = await repository.get_document(document_id)

        assert session.session_number == 1
        assert (document.total_sessions, document.total_duration, document.word_count) == (1, 5, 2)

    @pytest.mark.asyncio
    async def test_aggregates_after_edit_append_and_delete(
        self, repository: DocumentRepository
    ) -> None:
        document_id = await _create(repository)
        first = await repository.add_session(
            document_id, SessionCreate(transcript="one two", duration=3)
        )
        second = await repository.add_session(
            document_id, SessionCreate(transcript="three", duration=4)
        )

        await repository.update_session(first.id, SessionUpdate(transcript="one two three four"))
        appended = await repository.append_to_session(second.id, "  five six ", 2)
        document = await repository.get_document(document_id)

        assert appended.transcript == "three five six"
        assert appended.duration == 6
        assert (document.total_sessions, document.total_duration, document.word_count) == (2, 9, 7)

        await repository.delete_session(first.id)
        document = await repository.get_document(document_id)

        assert (document.total_sessions, document.total_duration, document.word_count) == (1, 6, 3)

    @pytest.mark.asyncio
    async def test_session_numbers_never_collide_after_delete(
        self, repository: DocumentRepository
    ) -> None:
        document_id = await _create(repository)
        sessions = [
            await repository.add_session(document_id, SessionCreate(transcript=f"s{i}"))
            for i in range(3)
        ]

        await repository.delete_session(sessions[1].id)
        newest = await repository.add_session(document_id, SessionCreate(transcript="s3"))

        assert newest.session_number == 4

    @pytest.mark.asyncio
    async def test_ordering_and_combined_transcript(self, repository: DocumentRepository) -> None:
        document_id = await _create(repository)
        for text in ("first", "second", "third"):
            await repository.add_session(document_id, SessionCreate(transcript=text))

        ascending = await repository.get_sessions(document_id)
        history = await repository.history(document_id)

        assert [s.session_number for s in ascending] == [1, 2, 3]
        assert [s.session_number for s in history] == [3, 2, 1]
        assert await repository.combined_transcript(document_id) == "first second third"

    @pytest.mark.asyncio
    async def test_session_edit_marks_content_stale_but_keeps_it(
        self, repository: DocumentRepository
    ) -> None:
        document_id = await _create(repository)
        session = await repository.add_session(document_id, SessionCreate(transcript="a"))
        await _generate(repository, document_id)

        fresh = await repository.get_document(document_id)
        assert fresh.requires_regeneration is False
        assert fresh.generated_at is not None

        await repository.update_session(session.id, SessionUpdate(notes="edited"))
        stale = await repository.get_document(document_id)

        assert stale.requires_regeneration is True
        assert stale.has_generated_content is True
        assert stale.generated_content == fresh.generated_content

    @pytest.mark.asyncio
    async def test_add_session_to_missing_document(self, repository: DocumentRepository) -> None:
        with pytest.raises(NotFoundError):
            await repository.add_session("missing", SessionCreate(transcript="x"))

    @pytest.mark.asyncio
    async def test_concurrent_adds_do_not_lose_updates(
        self, repository: DocumentRepository
    ) -> None:
        document_id = await _create(repository)

        await asyncio.gather(
            *(
                repository.add_session(document_id, SessionCreate(transcript="w", duration=1))
                for _ in range(5)
            )
        )
        document = await repository.get_document(document_id)
        numbers = sorted(s.session_number for s in await repository.get_sessions(document_id))

        assert document.total_sessions == 5
        assert numbers == [1, 2, 3, 4, 5]


class TestStatus:
    @pytest.mark.asyncio
    async def test_completing_without_content_fails(self, repository: DocumentRepository) -> None:
        document_id = await _create(repository)

        with pytest.raises(InvalidOperationError, match="generated content"):
            await repository.set_status(document_id, "completed")

    @pytest.mark.asyncio
    async def test_invalid_status_rejected(self, repository: DocumentRepository) -> None:
        document_id = await _create(repository)

        with pytest.raises(InvalidOperationError, match="Invalid status"):
            await repository.set_status(document_id, "archived")

    @pytest.mark.asyncio
    async def test_migration_moves_document_and_sessions(
        self, repository: DocumentRepository, storage: HybridStorageService
    ) -> None:
        document_id = await _create(repository)
        await repository.add_session(document_id, SessionCreate(transcript="a b", duration=2))
        await repository.add_session(document_id, SessionCreate(transcript="c", duration=1))
        await _generate(repository, document_id)

        completed = await repository.set_status(document_id, "completed")

        assert completed.status == DocumentStatus.completed
        assert await repository.get_documents(OWNER, DocumentStatus.draft) == []
        assert [d.id for d in await repository.get_documents(OWNER, DocumentStatus.completed)] == [
            document_id
        ]
        draft_data = await storage.load_collection(DocumentStatus.draft)
        completed_data = await storage.load_collection(DocumentStatus.completed)
        assert draft_data.voice_sessions == []
        assert len(completed_data.voice_sessions) == 2

        # Sessions stay reachable and editable in the completed partition
        assert await repository.combined_transcript(document_id) == "a b c"

        reopened = await repository.set_status(document_id, DocumentStatus.draft)

        assert reopened.status == DocumentStatus.draft
        assert await repository.get_documents(OWNER, DocumentStatus.completed) == []
        assert len((await storage.load_collection(DocumentStatus.draft)).voice_sessions) == 2

    @pytest.mark.asyncio
    async def test_completing_with_stale_content_is_allowed(
        self, repository: DocumentRepository
    ) -> None:
        document_id = await _create(repository)
        await repository.add_session(document_id, SessionCreate(transcript="a"))
        await _generate(repository, document_id)
        await repository.add_session(document_id, SessionCreate(transcript="b"))

        document = await repository.set_status(document_id, "completed")

        assert document.requires_regeneration is True
        assert document.status == DocumentStatus.completed

    @pytest.mark.asyncio
    async def test_same_status_is_in_place(self, repository: DocumentRepository) -> None:
        document_id = await _create(repository)

        document = await repository.set_status(document_id, "draft")

        assert document.status == DocumentStatus.draft
        assert len(await repository.get_documents(OWNER)) == 1

    @pytest.mark.asyncio
    async def test_session_mutation_in_completed_partition(
        self, repository: DocumentRepository, storage: HybridStorageService
    ) -> None:
        document_id = await _create(repository)
        session = await repository.add_session(document_id, SessionCreate(transcript="a"))
        await _generate(repository, document_id)
        await repository.set_status(document_id, "completed")

        await repository.append_to_session(session.id, "more words", 3)

        completed_data = await storage.load_collection(DocumentStatus.completed)
        assert completed_data.user_documents[0].word_count == 3
        assert completed_data.user_documents[0].requires_regeneration is True


class TestDeleteAndContent:
    @pytest.mark.asyncio
    async def test_delete_removes_sessions(
        self, repository: DocumentRepository, storage: HybridStorageService
    ) -> None:
        keep = await _create(repository, "Keep")
        drop = await _create(repository, "Drop")
        await repository.add_session(keep, SessionCreate(transcript="k"))
        await repository.add_session(drop, SessionCreate(transcript="d"))

        await repository.delete_document(drop)

        data = await storage.load_collection(DocumentStatus.draft)
        assert [d.id for d in data.user_documents] == [keep]
        assert [s.document_id for s in data.voice_sessions] == [keep]
        with pytest.raises(NotFoundError):
            await repository.delete_document(drop)

    @pytest.mark.asyncio
    async def test_patch_single_platform(self, repository: DocumentRepository) -> None:
        document_id = await _create(repository)
        await _generate(repository, document_id)

        document = await repository.patch_generated_content(
            document_id, Platform.linkedin, "edited"
        )

        assert document.generated_content is not None
        assert document.generated_content.linkedin == "edited"
        assert document.generated_content.blog == "b"

    @pytest.mark.asyncio
    async def test_document_with_sessions(self, repository: DocumentRepository) -> None:
        document_id = await _create(repository)
        await repository.add_session(document_id, SessionCreate(transcript="x"))

        document = await repository.get_document_with_sessions(document_id)

        assert document.id == document_id
        assert [s.transcript for s in document.sessions] == ["x"]


class TestUsers:
    @pytest.mark.asyncio
    async def test_create_user_assigns_next_id_and_defaults(
        self, repository: DocumentRepository
    ) -> None:
        first = await repository.create_user(CreateUser())
        second = await repository.create_user(
            CreateUser(username="asha", default_input_language="gu", theme="dark")
        )

        assert (first.id, first.username, first.email) == (1, "user_1", "user1@example.com")
        assert (first.first_name, first.last_name, first.role) == ("New", "User", "user")
        assert first.preferences.default_input_language == "en"
        assert first.preferences.theme == "light"
        assert second.id == 2
        assert second.username == "asha"
        assert second.preferences.default_input_language == "gu"
        assert second.preferences.default_output_language == "en"
        assert second.preferences.theme == "dark"
        assert [u.id for u in await repository.list_users()] == [1, 2]

    @pytest.mark.asyncio
    async def test_next_id_follows_highest_existing(
        self, repository: DocumentRepository, storage: HybridStorageService
    ) -> None:
        await storage.put_json(
            "db.json",
            {"users": [{"id": 7, "nickname": "ash"}], "userDocuments": [], "voiceSessions": []},
        )

        user = await repository.create_user(CreateUser())

        assert user.id == 8
        raw = await storage.get_json("db.json")
        assert raw is not None
        assert raw["users"][0]["nickname"] == "ash"

    @pytest.mark.asyncio
    async def test_update_preferences_merges(self, repository: DocumentRepository) -> None:
        user = await repository.create_user(CreateUser(theme="dark"))

        updated = await repository.update_preferences(
            str(user.id), PreferencesUpdate(default_output_language="hi")
        )

        assert updated.preferences.default_output_language == "hi"
        assert updated.preferences.theme == "dark"
        assert (await repository.get_user(str(user.id))).preferences.default_output_language == "hi"

    @pytest.mark.asyncio
    async def test_missing_user(self, repository: DocumentRepository) -> None:
        with pytest.raises(NotFoundError, match="User not found"):
            await repository.get_user("99")

    @pytest.mark.asyncio
    async def test_new_documents_use_owner_preferences(
        self, repository: DocumentRepository
    ) -> None:
        user = await repository.create_user(
            CreateUser(default_input_language="gu", default_output_language="hi")
        )

        preferred = await repository.create_document(str(user.id), CreateDocument(title="A"))
        explicit = await repository.create_document(
            str(user.id), CreateDocument(title="B", output_language="en")
        )

        assert (preferred.input_language, preferred.output_language) == ("gu", "hi")
        assert (explicit.input_language, explicit.output_language) == ("gu", "en")
