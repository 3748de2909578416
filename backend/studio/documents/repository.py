"""Document and voice-session persistence over the two partitions.

Documents live, together with all of their sessions, in exactly one of
two collections: "draft" or "completed". Session mutations recompute the
parent document's aggregates in the same collection write, and mark any
generated content stale without discarding it.

Locking: every mutation holds both partition locks, always acquired in
the order draft then completed, so operations that touch two partitions
(status changes, cross-partition title checks) cannot interleave.
"""

import logging
import uuid
from collections.abc import AsyncIterator, Callable
from contextlib import AsyncExitStack, asynccontextmanager

from backend.studio.config import Settings
from backend.studio.documents.stats import (
    chronological,
    combine_transcripts,
    compute_stats,
    most_recent_first,
    next_session_number,
)
from backend.studio.errors import ConflictError, InvalidOperationError, NotFoundError
from backend.studio.models import (
    CollectionData,
    CreateDocument,
    CreateUser,
    Document,
    DocumentStatus,
    DocumentUpdate,
    DocumentWithSessions,
    GeneratedContent,
    Platform,
    PreferencesUpdate,
    SessionCreate,
    SessionUpdate,
    User,
    UserPreferences,
    VoiceSession,
    utcnow,
)
from backend.studio.models.users import DEFAULT_AVATAR_URL
from backend.studio.storage.hybrid import HybridStorageService
from backend.studio.storage.retry import (
    DEFAULT_CONFIRM_POLICY,
    DEFAULT_READ_POLICY,
    BackoffPolicy,
    SleepFn,
    confirm_readable,
    with_read_retry,
)
from backend.studio.utils.metrics import PrometheusStorageMetrics

logger = logging.getLogger(__name__)

_PARTITION_ORDER = (DocumentStatus.draft, DocumentStatus.completed)


def _new_id() -> str:
    return str(uuid.uuid4())


class DocumentRepository:
    """Document database contract used by the rest of the system."""

    def __init__(
        self,
        storage: HybridStorageService,
        *,
        read_policy: BackoffPolicy = DEFAULT_READ_POLICY,
        confirm_policy: BackoffPolicy = DEFAULT_CONFIRM_POLICY,
        sleep_fn: SleepFn | None = None,
        id_factory: Callable[[], str] = _new_id,
        metrics: PrometheusStorageMetrics | None = None,
    ) -> None:
        """Initialize repository.

        Args:
            storage: Collection store
            read_policy: Backoff for eventually consistent reads
            confirm_policy: Backoff for the post-create readability poll
            sleep_fn: Injectable sleep function (default: asyncio.sleep)
            id_factory: Generates ids for new documents and sessions
            metrics: Records read retries (default: Prometheus collectors)
        """
        self.storage = storage
        self._read_policy = read_policy
        self._confirm_policy = confirm_policy
        self._sleep = sleep_fn
        self._new_id = id_factory
        self._metrics = metrics or PrometheusStorageMetrics()

    @classmethod
    def from_settings(
        cls, storage: HybridStorageService, settings: Settings
    ) -> "DocumentRepository":
        return cls(
            storage,
            read_policy=BackoffPolicy.for_reads(settings),
            confirm_policy=BackoffPolicy.for_create_confirmation(settings),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _locked(self) -> AsyncIterator[None]:
        async with AsyncExitStack() as stack:
            for partition in _PARTITION_ORDER:
                await stack.enter_async_context(self.storage.partition_lock(partition))
            yield

    async def _load_all(self) -> dict[DocumentStatus, CollectionData]:
        return {p: await self.storage.load_collection(p) for p in _PARTITION_ORDER}

    @staticmethod
    def _find_document(
        collections: dict[DocumentStatus, CollectionData], document_id: str
    ) -> tuple[DocumentStatus, int]:
        """Locate a document, draft partition first."""
        for partition in _PARTITION_ORDER:
            for index, doc in enumerate(collections[partition].user_documents):
                if doc.id == document_id:
                    return partition, index
        raise NotFoundError(f"Document not found: {document_id}")

    @staticmethod
    def _find_session(
        collections: dict[DocumentStatus, CollectionData], session_id: str
    ) -> tuple[DocumentStatus, int]:
        for partition in _PARTITION_ORDER:
            for index, session in enumerate(collections[partition].voice_sessions):
                if session.id == session_id:
                    return partition, index
        raise NotFoundError(f"Session not found: {session_id}")

    @staticmethod
    def _sessions_of(data: CollectionData, document_id: str) -> list[VoiceSession]:
        return [s for s in data.voice_sessions if s.document_id == document_id]

    @staticmethod
    def _merged_sessions(
        collections: dict[DocumentStatus, CollectionData], document_id: str
    ) -> list[VoiceSession]:
        """Sessions for a document from both partitions, deduplicated by id."""
        seen: set[str] = set()
        merged: list[VoiceSession] = []
        for partition in _PARTITION_ORDER:
            for session in collections[partition].voice_sessions:
                if session.document_id == document_id and session.id not in seen:
                    seen.add(session.id)
                    merged.append(session)
        return merged

    def _refresh_document(self, data: CollectionData, document_id: str) -> None:
        """Recompute aggregates for one document and mark its content stale."""
        for index, doc in enumerate(data.user_documents):
            if doc.id != document_id:
                continue
            stats = compute_stats(self._sessions_of(data, document_id))
            data.user_documents[index] = doc.model_copy(
                update={
                    "total_sessions": stats.total_sessions,
                    "total_duration": stats.total_duration,
                    "word_count": stats.word_count,
                    "requires_regeneration": True,
                    "updated_at": utcnow(),
                }
            )
            return
        logger.warning(f"Session mutated for document {document_id} missing from its partition")

    @staticmethod
    def _titles_clash(
        collections: dict[DocumentStatus, CollectionData],
        owner_id: str,
        title: str,
        exclude_document_id: str | None = None,
    ) -> bool:
        wanted = title.lower()
        for partition in _PARTITION_ORDER:
            for doc in collections[partition].user_documents:
                if doc.user_id != owner_id or doc.id == exclude_document_id:
                    continue
                if doc.title.lower() == wanted:
                    return True
        return False

    @staticmethod
    def _find_user(data: CollectionData, user_id: str) -> int:
        for index, user in enumerate(data.users):
            if str(user.id) == str(user_id):
                return index
        raise NotFoundError(f"User not found: {user_id}")

    def _preferences_of(self, data: CollectionData, owner_id: str) -> UserPreferences:
        try:
            return data.users[self._find_user(data, owner_id)].preferences
        except NotFoundError:
            return UserPreferences()

    async def _read_document(self, document_id: str) -> Document:
        collections = await self._load_all()
        partition, index = self._find_document(collections, document_id)
        return collections[partition].user_documents[index]

    # ------------------------------------------------------------------
    # Reads (retry-wrapped)
    # ------------------------------------------------------------------

    async def get_document(self, document_id: str) -> Document:
        """Get a document from either partition.

        Raises:
            NotFoundError: If the document is still missing after retries
        """
        return await with_read_retry(
            lambda: self._read_document(document_id),
            operation="get_document",
            policy=self._read_policy,
            sleep_fn=self._sleep,
            metrics=self._metrics,
        )

    async def get_documents(
        self, owner_id: str, partition: DocumentStatus = DocumentStatus.draft
    ) -> list[Document]:
        """List one owner's documents in a partition."""

        async def _read() -> list[Document]:
            data = await self.storage.load_collection(partition)
            return [doc for doc in data.user_documents if doc.user_id == str(owner_id)]

        return await with_read_retry(
            _read,
            operation="get_documents",
            policy=self._read_policy,
            sleep_fn=self._sleep,
            metrics=self._metrics,
        )

    async def get_sessions(self, document_id: str) -> list[VoiceSession]:
        """All sessions of a document in ascending order, merged across partitions."""

        async def _read() -> list[VoiceSession]:
            return chronological(self._merged_sessions(await self._load_all(), document_id))

        return await with_read_retry(
            _read,
            operation="get_sessions",
            policy=self._read_policy,
            sleep_fn=self._sleep,
            metrics=self._metrics,
        )

    async def get_session(self, session_id: str) -> VoiceSession:
        """Get one session from either partition."""

        async def _read() -> VoiceSession:
            collections = await self._load_all()
            partition, index = self._find_session(collections, session_id)
            return collections[partition].voice_sessions[index]

        return await with_read_retry(
            _read,
            operation="get_session",
            policy=self._read_policy,
            sleep_fn=self._sleep,
            metrics=self._metrics,
        )

    async def get_document_with_sessions(self, document_id: str) -> DocumentWithSessions:
        """Document plus its sessions in logical flow order."""
        document = await self.get_document(document_id)
        sessions = await self.get_sessions(document_id)
        return DocumentWithSessions.model_validate({**document.model_dump(), "sessions": sessions})

    async def history(self, document_id: str) -> list[VoiceSession]:
        """Sessions most recent first."""
        return most_recent_first(await self.get_sessions(document_id))

    async def combined_transcript(self, document_id: str) -> str:
        """Transcripts of all sessions in ascending order joined by spaces."""
        return combine_transcripts(await self.get_sessions(document_id))

    async def is_title_unique(
        self, owner_id: str, title: str, exclude_document_id: str | None = None
    ) -> bool:
        """Case-insensitive title check across both partitions."""
        collections = await self._load_all()
        return not self._titles_clash(collections, str(owner_id), title, exclude_document_id)

    # ------------------------------------------------------------------
    # Document writes
    # ------------------------------------------------------------------

    async def create_document(self, owner_id: str, data: CreateDocument) -> Document:
        """Create an empty draft document.

        Raises:
            ConflictError: If the owner already has a document with this title
        """
        owner_id = str(owner_id)
        async with self._locked():
            collections = await self._load_all()
            if self._titles_clash(collections, owner_id, data.title):
                raise ConflictError(
                    f"Document with title '{data.title}' already exists for this user"
                )

            prefs = self._preferences_of(collections[DocumentStatus.draft], owner_id)
            now = utcnow()
            document = Document(
                id=self._new_id(),
                user_id=owner_id,
                title=data.title,
                input_language=data.input_language or prefs.default_input_language,
                output_language=data.output_language or prefs.default_output_language,
                created_at=now,
                updated_at=now,
            )
            draft = collections[DocumentStatus.draft]
            draft.user_documents.append(document)
            await self.storage.save_collection(DocumentStatus.draft, draft)

        logger.info(f"Created document {document.id} for owner {owner_id}")

        # The object store may not serve the new record yet; poll, then
        # return the created record whether or not it became visible.
        await confirm_readable(
            lambda: self._read_document(document.id),
            operation="create_document",
            policy=self._confirm_policy,
            sleep_fn=self._sleep,
        )
        return document

    async def update_document(self, document_id: str, update: DocumentUpdate) -> Document:
        """Change title or languages of a document."""
        async with self._locked():
            collections = await self._load_all()
            partition, index = self._find_document(collections, document_id)
            data = collections[partition]
            document = data.user_documents[index]

            changes = update.model_dump(exclude_none=True)
            if "title" in changes:
                changes["title"] = changes["title"].strip()
                if self._titles_clash(collections, document.user_id, changes["title"], document_id):
                    raise ConflictError(
                        f"Document with title '{changes['title']}' already exists for this user"
                    )

            updated = document.model_copy(update={**changes, "updated_at": utcnow()})
            data.user_documents[index] = updated
            await self.storage.save_collection(partition, data)
        return updated

    async def save_document(self, document: Document) -> Document:
        """Upsert a document record in the partition that holds it.

        New documents go to the partition matching their status.
        """
        async with self._locked():
            collections = await self._load_all()
            try:
                partition, index = self._find_document(collections, document.id)
            except NotFoundError:
                partition = document.status
                collections[partition].user_documents.append(document)
            else:
                collections[partition].user_documents[index] = document
            await self.storage.save_collection(partition, collections[partition])
        return document

    async def delete_document(self, document_id: str) -> None:
        """Delete a document and every session referencing it."""
        async with self._locked():
            collections = await self._load_all()
            self._find_document(collections, document_id)

            for partition in _PARTITION_ORDER:
                data = collections[partition]
                docs = [d for d in data.user_documents if d.id != document_id]
                sessions = [s for s in data.voice_sessions if s.document_id != document_id]
                if len(docs) == len(data.user_documents) and len(sessions) == len(
                    data.voice_sessions
                ):
                    continue
                data.user_documents = docs
                data.voice_sessions = sessions
                await self.storage.save_collection(partition, data)

        logger.info(f"Deleted document {document_id} and its sessions")

    async def set_status(self, document_id: str, status: DocumentStatus | str) -> Document:
        """Change a document's status, migrating it and its sessions.

        Raises:
            NotFoundError: If the document does not exist
            InvalidOperationError: On an unknown status, or when completing
                a document that has no generated content
        """
        try:
            target = DocumentStatus(status)
        except ValueError as e:
            raise InvalidOperationError(
                'Invalid status. Must be "draft" or "completed"'
            ) from e

        async with self._locked():
            collections = await self._load_all()
            source, index = self._find_document(collections, document_id)
            document = collections[source].user_documents[index]

            if target is DocumentStatus.completed and not document.has_generated_content:
                raise InvalidOperationError(
                    "Document must have generated content to be marked as completed"
                )

            updated = document.model_copy(update={"status": target, "updated_at": utcnow()})

            if source is target:
                collections[source].user_documents[index] = updated
                await self.storage.save_collection(source, collections[source])
                return updated

            sessions = self._merged_sessions(collections, document_id)
            src = collections[source]
            dst = collections[target]

            src.user_documents = [d for d in src.user_documents if d.id != document_id]
            src.voice_sessions = [s for s in src.voice_sessions if s.document_id != document_id]
            dst.user_documents = [d for d in dst.user_documents if d.id != document_id] + [updated]
            dst.voice_sessions = [
                s for s in dst.voice_sessions if s.document_id != document_id
            ] + sessions

            # Two independent writes. Destination first: a failure in
            # between leaves a duplicate, never a lost document.
            await self.storage.save_collection(target, dst)
            await self.storage.save_collection(source, src)

        logger.info(
            f"Moved document {document_id} with {len(sessions)} sessions "
            f"from {source.value} to {target.value}"
        )
        return updated

    async def save_generated_content(
        self, document_id: str, content: GeneratedContent
    ) -> Document:
        """Store a freshly generated bundle and clear the stale flag."""
        now = utcnow()
        return await self._update_document_fields(
            document_id,
            generated_content=content,
            has_generated_content=True,
            requires_regeneration=False,
            generated_at=now,
            updated_at=now,
        )

    async def patch_generated_content(
        self, document_id: str, platform: Platform, text: str
    ) -> Document:
        """Replace one platform's output, leaving the other slots untouched."""
        async with self._locked():
            collections = await self._load_all()
            partition, index = self._find_document(collections, document_id)
            data = collections[partition]
            document = data.user_documents[index]
            bundle = (document.generated_content or GeneratedContent()).with_platform(
                platform, text
            )
            updated = document.model_copy(
                update={
                    "generated_content": bundle,
                    "has_generated_content": True,
                    "updated_at": utcnow(),
                }
            )
            data.user_documents[index] = updated
            await self.storage.save_collection(partition, data)
        return updated

    async def _update_document_fields(self, document_id: str, **fields: object) -> Document:
        async with self._locked():
            collections = await self._load_all()
            partition, index = self._find_document(collections, document_id)
            data = collections[partition]
            updated = data.user_documents[index].model_copy(update=fields)
            data.user_documents[index] = updated
            await self.storage.save_collection(partition, data)
        return updated

    # ------------------------------------------------------------------
    # Session writes
    # ------------------------------------------------------------------

    async def add_session(self, document_id: str, data: SessionCreate) -> VoiceSession:
        """Record a new session and recompute the document's aggregates."""
        async with self._locked():
            collections = await self._load_all()
            partition, _ = self._find_document(collections, document_id)
            collection = collections[partition]

            session = VoiceSession(
                id=self._new_id(),
                document_id=document_id,
                session_number=next_session_number(self._sessions_of(collection, document_id)),
                transcript=data.transcript,
                duration=data.duration,
                notes=data.notes,
            )
            collection.voice_sessions.append(session)
            self._refresh_document(collection, document_id)
            await self.storage.save_collection(partition, collection)

        logger.info(f"Added session {session.session_number} to document {document_id}")
        return session

    async def update_session(self, session_id: str, update: SessionUpdate) -> VoiceSession:
        """Edit a session's transcript, duration or notes."""
        return await self._mutate_session(
            session_id, lambda s: s.model_copy(update=update.model_dump(exclude_none=True))
        )

    async def append_to_session(
        self, session_id: str, text: str, extra_duration: float = 0
    ) -> VoiceSession:
        """Append newly recorded text to a session and extend its duration."""

        def _append(session: VoiceSession) -> VoiceSession:
            transcript = f"{session.transcript.rstrip()} {text.strip()}".strip()
            return session.model_copy(
                update={"transcript": transcript, "duration": session.duration + extra_duration}
            )

        return await self._mutate_session(session_id, _append)

    async def _mutate_session(
        self, session_id: str, change: Callable[[VoiceSession], VoiceSession]
    ) -> VoiceSession:
        async with self._locked():
            collections = await self._load_all()
            partition, index = self._find_session(collections, session_id)
            collection = collections[partition]
            updated = change(collection.voice_sessions[index])
            collection.voice_sessions[index] = updated
            self._refresh_document(collection, updated.document_id)
            await self.storage.save_collection(partition, collection)
        return updated

    async def delete_session(self, session_id: str) -> VoiceSession:
        """Delete one session and recompute the document's aggregates."""
        async with self._locked():
            collections = await self._load_all()
            partition, index = self._find_session(collections, session_id)
            collection = collections[partition]
            removed = collection.voice_sessions.pop(index)
            self._refresh_document(collection, removed.document_id)
            await self.storage.save_collection(partition, collection)

        logger.info(f"Deleted session {session_id} from document {removed.document_id}")
        return removed

    # ------------------------------------------------------------------
    # Users (stored in the draft collection)
    # ------------------------------------------------------------------

    async def list_users(self) -> list[User]:
        data = await self.storage.load_collection(DocumentStatus.draft)
        return data.users

    async def get_user(self, user_id: str) -> User:
        """Get one user by id.

        Raises:
            NotFoundError: If no user has this id
        """
        data = await self.storage.load_collection(DocumentStatus.draft)
        return data.users[self._find_user(data, user_id)]

    async def create_user(self, data: CreateUser) -> User:
        """Register a user under the next free numeric id.

        Missing fields get generated defaults (``user_<id>``,
        ``user<id>@example.com``, English languages, light theme).
        """
        async with self._locked():
            draft = await self.storage.load_collection(DocumentStatus.draft)
            next_id = max((user.id for user in draft.users), default=0) + 1
            now = utcnow()
            user = User(
                id=next_id,
                username=data.username or f"user_{next_id}",
                email=data.email or f"user{next_id}@example.com",
                first_name=data.first_name or "New",
                last_name=data.last_name or "User",
                role=data.role or "user",
                avatar=data.avatar or DEFAULT_AVATAR_URL,
                created_at=now,
                last_login=now,
                is_active=True,
                preferences=UserPreferences(
                    default_input_language=data.default_input_language or "en",
                    default_output_language=data.default_output_language or "en",
                    theme=data.theme or "light",
                ),
            )
            draft.users.append(user)
            await self.storage.save_collection(DocumentStatus.draft, draft)

        logger.info(f"Created user {user.id} ({user.username})")
        return user

    async def update_preferences(self, user_id: str, update: PreferencesUpdate) -> User:
        """Merge a partial preferences update into a user's preferences."""
        async with self._locked():
            draft = await self.storage.load_collection(DocumentStatus.draft)
            index = self._find_user(draft, user_id)
            user = draft.users[index]
            preferences = user.preferences.model_copy(
                update=update.model_dump(exclude_none=True)
            )
            updated = user.model_copy(update={"preferences": preferences})
            draft.users[index] = updated
            await self.storage.save_collection(DocumentStatus.draft, draft)
        return updated
