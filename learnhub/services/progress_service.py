"""
Student progress through playlists.

All writes to a (playlist, student) progress row go through
``ProgressRecorder``. Each write is a read-modify-write against the gateway;
writes for the same row are serialized by a per-row ``asyncio.Lock`` so two
completions racing inside this process cannot overwrite each other. Writers
in other processes are not covered by that lock.
"""

import asyncio
import logging
import weakref

from learnhub.errors import GatewayError, ItemLockedError, LoadError, NotFoundError, RecordError
from learnhub.events import CompletionBus
from learnhub.gateway.base import PersistenceGateway
from learnhub.models.entities import (
    CompletionEvent,
    LessonCompletion,
    PlaylistKind,
    Viewer,
)
from learnhub.services.access_service import require_available_item

logger = logging.getLogger(__name__)


class ProgressRecorder:
    """Idempotent completion recording shared by tests and lessons."""

    def __init__(self, gateway: PersistenceGateway, bus: CompletionBus):
        self._gateway = gateway
        self._bus = bus
        self._locks: weakref.WeakValueDictionary[tuple[str, str], asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, playlist_id: str, student_id: str) -> asyncio.Lock:
        key = (playlist_id, student_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def get_completed_ids(self, playlist_id: str, student_id: str) -> frozenset[str]:
        """Completed item ids; a missing progress row means nothing completed."""
        progress = await self._gateway.get_progress(playlist_id, student_id)
        if progress is None:
            return frozenset()
        return frozenset(progress.completed_item_ids)

    async def record_completion(
        self,
        playlist_id: str,
        student_id: str,
        item_id: str,
        kind: PlaylistKind = PlaylistKind.TEST,
    ) -> frozenset[str]:
        """
        Add ``item_id`` to the student's completed set for the playlist.

        Creates the progress row when absent and skips the write when the item
        is already recorded. Subscribers are notified only after a write has
        been acknowledged.

        Raises:
            RecordError: if reading or writing the progress row failed.
        """
        async with self._lock_for(playlist_id, student_id):
            try:
                progress = await self._gateway.get_progress(playlist_id, student_id)
                completed = list(progress.completed_item_ids) if progress else []
                if item_id in completed:
                    logger.debug(
                        "Item %s already completed in playlist %s by %s",
                        item_id,
                        playlist_id,
                        student_id,
                    )
                    return frozenset(completed)

                completed.append(item_id)
                await self._gateway.upsert_progress(
                    playlist_id,
                    student_id,
                    completed,
                    current_item_id=progress.current_item_id if progress else None,
                )
            except GatewayError as e:
                raise RecordError(
                    f"Failed to record completion of {item_id} in playlist {playlist_id}"
                ) from e

        updated = frozenset(completed)
        logger.info(
            "Recorded completion of %s %s in playlist %s for %s",
            kind.value,
            item_id,
            playlist_id,
            student_id,
        )
        await self._bus.publish(
            CompletionEvent(
                playlist_id=playlist_id,
                student_id=student_id,
                item_id=item_id,
                kind=kind,
                completed_item_ids=updated,
            )
        )
        return updated

    async def mark_current_item(
        self, playlist_id: str, student_id: str, item_id: str
    ) -> None:
        """Remember the item the student opened last, keeping completions."""
        async with self._lock_for(playlist_id, student_id):
            try:
                progress = await self._gateway.get_progress(playlist_id, student_id)
                completed = list(progress.completed_item_ids) if progress else []
                await self._gateway.upsert_progress(
                    playlist_id, student_id, completed, current_item_id=item_id
                )
            except GatewayError as e:
                raise RecordError(
                    f"Failed to update current item in playlist {playlist_id}"
                ) from e

    async def open_item(self, playlist_id: str, viewer: Viewer, item_id: str) -> None:
        """
        Open a playlist item for the viewer.

        Students may only open available items, and opening one records it as
        their current item. Owners and teachers only view, nothing is written.
        """
        view = await require_available_item(self._gateway, playlist_id, viewer, item_id)
        if view.viewer_is_owner or not viewer.is_student:
            return
        await self.mark_current_item(playlist_id, viewer.user_id, item_id)

    async def complete_lesson(
        self, course_id: str, student_id: str
    ) -> dict[str, frozenset[str]]:
        """
        Mark a lesson completed in every playlist that contains it and where
        it is unlocked for the student. Playlists where the lesson is still
        locked are skipped.

        Raises:
            NotFoundError: if the lesson is part of no playlist.
            ItemLockedError: if the lesson is locked in all of its playlists.
        """
        try:
            playlist_ids = await self._gateway.get_playlists_for_course(course_id)
        except GatewayError as e:
            raise RecordError(f"Failed to look up playlists of lesson {course_id}") from e
        if not playlist_ids:
            raise NotFoundError(f"Lesson {course_id} is not part of any playlist")

        viewer = Viewer(student_id)
        updated = {}
        locked = []
        for playlist_id in playlist_ids:
            try:
                await require_available_item(
                    self._gateway, playlist_id, viewer, course_id, kind=PlaylistKind.LESSON
                )
            except ItemLockedError:
                locked.append(playlist_id)
                continue
            updated[playlist_id] = await self.record_completion(
                playlist_id, student_id, course_id, kind=PlaylistKind.LESSON
            )

        if locked:
            logger.info(
                "Lesson %s is still locked for %s in playlists %s",
                course_id,
                student_id,
                ", ".join(locked),
            )
            if not updated:
                raise ItemLockedError(f"Lesson {course_id} is locked")
        return updated

    async def lesson_completion(self, course_id: str, student_id: str) -> LessonCompletion:
        """Which of the lesson's playlists already count it as completed."""
        try:
            playlist_ids = await self._gateway.get_playlists_for_course(course_id)
            records = await self._gateway.get_progress_for_student(student_id, playlist_ids)
        except GatewayError as e:
            raise LoadError(f"Failed to load completion of lesson {course_id}") from e
        completed_in = {
            record.playlist_id
            for record in records
            if course_id in record.completed_item_ids
        }
        return LessonCompletion(
            course_id=course_id,
            playlist_ids=list(playlist_ids),
            completed_playlist_ids=[pid for pid in playlist_ids if pid in completed_in],
        )
