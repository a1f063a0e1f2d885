import asyncio
import copy

import pytest

from learnhub.errors import GatewayError
from learnhub.events import CompletionBus
from learnhub.models.db.playlist import AccessMode
from learnhub.models.entities import (
    PlaylistItemRecord,
    PlaylistKind,
    PlaylistRecord,
    ProgressRecord,
    QuestionRecord,
    TestRecord,
    VariantRecord,
)
from learnhub.services.progress_service import ProgressRecorder


class InMemoryGateway:
    """Dict-backed gateway with switchable failures and call counters."""

    def __init__(self) -> None:
        self.tests: dict[str, TestRecord] = {}
        self.questions: dict[str, list[QuestionRecord]] = {}
        self.variants: list[VariantRecord] = []
        self.playlists: dict[str, PlaylistRecord] = {}
        self.playlist_items: dict[str, tuple[PlaylistKind, list[PlaylistItemRecord]]] = {}
        self.progress: dict[tuple[str, str], ProgressRecord] = {}
        self.ratings: list[tuple[str, str, int, str | None]] = []
        self.fail_loads = False
        self.fail_writes = 0
        self.upsert_calls = 0
        # When set, writes wait on this event before completing
        self.write_gate: asyncio.Event | None = None

    # --- seeding helpers ---

    def add_test(self, test_id, correct_positions, time_limit_minutes=1, teacher_id="teacher-1"):
        """Add a test whose question i has three variants, correct at correct_positions[i]."""
        self.tests[test_id] = TestRecord(
            id=test_id,
            title=f"Test {test_id}",
            teacher_id=teacher_id,
            time_limit_minutes=time_limit_minutes,
        )
        questions = []
        for q_index, correct in enumerate(correct_positions):
            question_id = f"{test_id}-q{q_index}"
            questions.append(
                QuestionRecord(
                    id=question_id, test_id=test_id, text=f"Question {q_index}", order_index=q_index
                )
            )
            for v_index in range(3):
                self.variants.append(
                    VariantRecord(
                        id=f"{question_id}-v{v_index}",
                        question_id=question_id,
                        text=f"Variant {v_index}",
                        is_correct=v_index == correct,
                        order_index=v_index,
                    )
                )
        self.questions[test_id] = questions
        return self.tests[test_id]

    def add_playlist(
        self,
        playlist_id,
        item_ids,
        access_mode=AccessMode.SEQUENTIAL,
        kind=PlaylistKind.TEST,
        teacher_id="teacher-1",
    ):
        self.playlists[playlist_id] = PlaylistRecord(
            id=playlist_id, title=f"Playlist {playlist_id}", teacher_id=teacher_id, access_mode=access_mode
        )
        self.playlist_items[playlist_id] = (
            kind,
            [
                PlaylistItemRecord(item_id=item_id, order_index=index, title=item_id)
                for index, item_id in enumerate(item_ids)
            ],
        )
        return self.playlists[playlist_id]

    # --- gateway contract ---

    def _check_load(self) -> None:
        if self.fail_loads:
            raise GatewayError("backend unreachable")

    async def get_test(self, test_id):
        self._check_load()
        return self.tests.get(test_id)

    async def get_questions(self, test_id):
        self._check_load()
        return [copy.copy(q) for q in self.questions.get(test_id, [])]

    async def get_variants(self, question_ids):
        self._check_load()
        wanted = set(question_ids)
        return [v for v in self.variants if v.question_id in wanted]

    async def get_playlist(self, playlist_id):
        self._check_load()
        return self.playlists.get(playlist_id)

    async def get_playlist_items(self, playlist_id):
        self._check_load()
        kind, items = self.playlist_items.get(playlist_id, (PlaylistKind.TEST, []))
        return kind, list(items)

    async def get_playlists_for_course(self, course_id):
        self._check_load()
        return [
            playlist_id
            for playlist_id, (kind, items) in self.playlist_items.items()
            if kind == PlaylistKind.LESSON and any(i.item_id == course_id for i in items)
        ]

    async def get_progress(self, playlist_id, student_id):
        self._check_load()
        # Suspend like a real round trip so concurrent writers interleave
        await asyncio.sleep(0)
        record = self.progress.get((playlist_id, student_id))
        return copy.deepcopy(record)

    async def get_progress_for_student(self, student_id, playlist_ids):
        self._check_load()
        return [
            copy.deepcopy(record)
            for (playlist_id, sid), record in self.progress.items()
            if sid == student_id and playlist_id in playlist_ids
        ]

    async def upsert_progress(self, playlist_id, student_id, completed_item_ids, current_item_id=None):
        await asyncio.sleep(0)
        if self.write_gate is not None:
            await self.write_gate.wait()
        self.upsert_calls += 1
        if self.fail_writes:
            self.fail_writes -= 1
            raise GatewayError("write rejected")
        self.progress[(playlist_id, student_id)] = ProgressRecord(
            playlist_id=playlist_id,
            student_id=student_id,
            completed_item_ids=list(completed_item_ids),
            current_item_id=current_item_id,
        )

    async def insert_rating(self, test_id, user_id, rating, comment=None):
        self.ratings.append((test_id, user_id, rating, comment))


class ManualTimer:
    """Timer driven by the test: call ``fire`` to simulate one interval."""

    def __init__(self, interval, callback):
        self.interval = interval
        self.callback = callback
        self.active = False
        self.started = 0
        self.cancelled = 0

    def start(self):
        self.active = True
        self.started += 1

    def cancel(self):
        self.active = False
        self.cancelled += 1

    def fire(self, times=1):
        for _ in range(times):
            if not self.active:
                return
            self.callback()


class ManualTimerFactory:
    def __init__(self):
        self.timers: list[ManualTimer] = []

    def __call__(self, interval, callback):
        timer = ManualTimer(interval, callback)
        self.timers.append(timer)
        return timer

    @property
    def last(self) -> ManualTimer:
        return self.timers[-1]


@pytest.fixture
def gateway() -> InMemoryGateway:
    return InMemoryGateway()


@pytest.fixture
def bus() -> CompletionBus:
    return CompletionBus()


@pytest.fixture
def recorder(gateway, bus) -> ProgressRecorder:
    return ProgressRecorder(gateway, bus)


@pytest.fixture
def timers() -> ManualTimerFactory:
    return ManualTimerFactory()


@pytest.fixture(autouse=True)
def fast_retries(monkeypatch):
    monkeypatch.setattr("learnhub.config.RECORD_RETRY_DELAY_SECONDS", 0)
