"""Persistence gateway contract consumed by the services."""
from typing import Protocol

from learnhub.models.entities import (
    PlaylistItemRecord,
    PlaylistKind,
    PlaylistRecord,
    ProgressRecord,
    QuestionRecord,
    TestRecord,
    VariantRecord,
)


class PersistenceGateway(Protocol):
    """
    Query/command interface over tests, playlists and progress.

    Every operation is awaitable. Lookups return ``None`` when the row is
    absent; backend failures raise ``GatewayError``.
    """

    async def get_test(self, test_id: str) -> TestRecord | None: ...

    async def get_questions(self, test_id: str) -> list[QuestionRecord]:
        """Questions of a test ordered by ``order_index`` (variants not filled)."""
        ...

    async def get_variants(self, question_ids: list[str]) -> list[VariantRecord]:
        """Variants of the given questions; callers group and order them."""
        ...

    async def get_playlist(self, playlist_id: str) -> PlaylistRecord | None: ...

    async def get_playlist_items(
        self, playlist_id: str
    ) -> tuple[PlaylistKind, list[PlaylistItemRecord]]:
        """Ordered items plus the kind inferred from which junction has rows."""
        ...

    async def get_playlists_for_course(self, course_id: str) -> list[str]: ...

    async def get_progress(
        self, playlist_id: str, student_id: str
    ) -> ProgressRecord | None: ...

    async def get_progress_for_student(
        self, student_id: str, playlist_ids: list[str]
    ) -> list[ProgressRecord]: ...

    async def upsert_progress(
        self,
        playlist_id: str,
        student_id: str,
        completed_item_ids: list[str],
        current_item_id: str | None = None,
    ) -> None: ...

    async def insert_rating(
        self, test_id: str, user_id: str, rating: int, comment: str | None = None
    ) -> None: ...
