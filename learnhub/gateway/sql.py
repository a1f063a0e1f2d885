"""SQLAlchemy implementation of the persistence gateway."""
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import TypeVar

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session as DbSession, sessionmaker

from learnhub.database import SessionLocal
from learnhub.errors import GatewayError
from learnhub.models.db import (
    AccessMode,
    Course,
    CoursePlaylist,
    Playlist,
    PlaylistProgress,
    PlaylistTest,
    Question,
    Test,
    TestRating,
    Variant,
)
from learnhub.models.entities import (
    PlaylistItemRecord,
    PlaylistKind,
    PlaylistRecord,
    ProgressRecord,
    QuestionRecord,
    TestRecord,
    VariantRecord,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _progress_record(row: PlaylistProgress) -> ProgressRecord:
    return ProgressRecord(
        playlist_id=row.playlist_id,
        student_id=row.student_id,
        completed_item_ids=row.completed_item_ids,
        current_item_id=row.current_item_id,
    )


class SqlGateway:
    """
    Runs each operation in its own ORM session on a worker thread so the
    event loop is never blocked by database I/O.
    """

    def __init__(self, session_factory: sessionmaker | None = None):
        self._session_factory = session_factory or SessionLocal

    async def _run(self, operation: Callable[[DbSession], T]) -> T:
        def _work() -> T:
            db = self._session_factory()
            try:
                return operation(db)
            except SQLAlchemyError as e:
                db.rollback()
                raise GatewayError(str(e)) from e
            finally:
                db.close()

        return await run_in_threadpool(_work)

    # --- Tests ---

    async def get_test(self, test_id: str) -> TestRecord | None:
        def _get(db: DbSession) -> TestRecord | None:
            test = db.get(Test, test_id)
            if test is None:
                return None
            return TestRecord(
                id=test.id,
                title=test.title,
                teacher_id=test.teacher_id,
                time_limit_minutes=test.time_minutes,
                description=test.description,
                source_document_ref=test.file_url,
            )

        return await self._run(_get)

    async def get_questions(self, test_id: str) -> list[QuestionRecord]:
        def _get(db: DbSession) -> list[QuestionRecord]:
            rows = db.execute(
                select(Question)
                .where(Question.test_id == test_id)
                .order_by(Question.order_index)
            ).scalars().all()
            return [
                QuestionRecord(
                    id=row.id,
                    test_id=row.test_id,
                    text=row.question_text,
                    order_index=row.order_index,
                )
                for row in rows
            ]

        return await self._run(_get)

    async def get_variants(self, question_ids: list[str]) -> list[VariantRecord]:
        if not question_ids:
            return []

        def _get(db: DbSession) -> list[VariantRecord]:
            rows = db.execute(
                select(Variant)
                .where(Variant.question_id.in_(question_ids))
                .order_by(Variant.order_index)
            ).scalars().all()
            return [
                VariantRecord(
                    id=row.id,
                    question_id=row.question_id,
                    text=row.variant_text,
                    is_correct=row.is_correct,
                    order_index=row.order_index,
                )
                for row in rows
            ]

        return await self._run(_get)

    # --- Playlists ---

    async def get_playlist(self, playlist_id: str) -> PlaylistRecord | None:
        def _get(db: DbSession) -> PlaylistRecord | None:
            playlist = db.get(Playlist, playlist_id)
            if playlist is None:
                return None
            return PlaylistRecord(
                id=playlist.id,
                title=playlist.title,
                teacher_id=playlist.teacher_id,
                access_mode=AccessMode(playlist.access_mode),
                description=playlist.description,
            )

        return await self._run(_get)

    async def get_playlist_items(
        self, playlist_id: str
    ) -> tuple[PlaylistKind, list[PlaylistItemRecord]]:
        def _get(db: DbSession) -> tuple[PlaylistKind, list[PlaylistItemRecord]]:
            test_rows = db.execute(
                select(PlaylistTest, Test)
                .join(Test, Test.id == PlaylistTest.test_id)
                .where(PlaylistTest.playlist_id == playlist_id)
                .order_by(PlaylistTest.order_index)
            ).all()
            if test_rows:
                return PlaylistKind.TEST, [
                    PlaylistItemRecord(
                        item_id=test.id,
                        order_index=link.order_index,
                        title=test.title,
                        description=test.description,
                    )
                    for link, test in test_rows
                ]

            course_rows = db.execute(
                select(CoursePlaylist, Course)
                .join(Course, Course.id == CoursePlaylist.course_id)
                .where(CoursePlaylist.playlist_id == playlist_id)
                .order_by(CoursePlaylist.order_index, CoursePlaylist.created_at)
            ).all()
            if course_rows:
                return PlaylistKind.LESSON, [
                    PlaylistItemRecord(
                        item_id=course.id,
                        order_index=link.order_index,
                        title=course.title,
                        description=course.description,
                    )
                    for link, course in course_rows
                ]

            # Empty playlist
            return PlaylistKind.TEST, []

        return await self._run(_get)

    async def get_playlists_for_course(self, course_id: str) -> list[str]:
        def _get(db: DbSession) -> list[str]:
            return list(
                db.execute(
                    select(CoursePlaylist.playlist_id)
                    .where(CoursePlaylist.course_id == course_id)
                    .order_by(CoursePlaylist.created_at)
                ).scalars().all()
            )

        return await self._run(_get)

    # --- Progress ---

    async def get_progress(
        self, playlist_id: str, student_id: str
    ) -> ProgressRecord | None:
        def _get(db: DbSession) -> ProgressRecord | None:
            row = db.execute(
                select(PlaylistProgress).where(
                    PlaylistProgress.playlist_id == playlist_id,
                    PlaylistProgress.student_id == student_id,
                )
            ).scalar_one_or_none()
            return _progress_record(row) if row else None

        return await self._run(_get)

    async def get_progress_for_student(
        self, student_id: str, playlist_ids: list[str]
    ) -> list[ProgressRecord]:
        if not playlist_ids:
            return []

        def _get(db: DbSession) -> list[ProgressRecord]:
            rows = db.execute(
                select(PlaylistProgress).where(
                    PlaylistProgress.student_id == student_id,
                    PlaylistProgress.playlist_id.in_(playlist_ids),
                )
            ).scalars().all()
            return [_progress_record(row) for row in rows]

        return await self._run(_get)

    async def upsert_progress(
        self,
        playlist_id: str,
        student_id: str,
        completed_item_ids: list[str],
        current_item_id: str | None = None,
    ) -> None:
        def _find(db: DbSession) -> PlaylistProgress | None:
            return db.execute(
                select(PlaylistProgress).where(
                    PlaylistProgress.playlist_id == playlist_id,
                    PlaylistProgress.student_id == student_id,
                )
            ).scalar_one_or_none()

        def _apply(row: PlaylistProgress) -> None:
            row.completed_item_ids = completed_item_ids
            row.current_item_id = current_item_id
            row.updated_at = datetime.now(timezone.utc)

        def _upsert(db: DbSession) -> None:
            row = _find(db)
            if row is None:
                row = PlaylistProgress(playlist_id=playlist_id, student_id=student_id)
                db.add(row)
            _apply(row)
            try:
                db.commit()
            except IntegrityError:
                # Another writer inserted the row first; update it instead.
                db.rollback()
                row = _find(db)
                if row is None:
                    raise
                _apply(row)
                db.commit()

        await self._run(_upsert)

    # --- Ratings ---

    async def insert_rating(
        self, test_id: str, user_id: str, rating: int, comment: str | None = None
    ) -> None:
        def _insert(db: DbSession) -> None:
            db.add(
                TestRating(
                    test_id=test_id, user_id=user_id, rating=rating, comment=comment
                )
            )
            db.commit()

        await self._run(_insert)
        logger.info("Stored rating %s for test %s by %s", rating, test_id, user_id)
