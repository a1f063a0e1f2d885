"""
Test-taking sessions.

A ``TestSession`` owns one attempt at a test: the countdown timer, the
position-addressed answer map and the one-time scoring on finish. When the
attempt was started from a playlist, finishing it records the completion in
the background; the score is available immediately either way.
"""

import asyncio
import enum
import logging
import time
import uuid
from collections.abc import Mapping

from learnhub import config
from learnhub.errors import GatewayError, LoadError, NotFoundError, RecordError, SessionStateError
from learnhub.gateway.base import PersistenceGateway
from learnhub.models.entities import (
    PlaylistKind,
    QuestionRecord,
    ScoreResult,
    TestRecord,
    Viewer,
)
from learnhub.services.access_service import require_available_item
from learnhub.services.progress_service import ProgressRecorder
from learnhub.services.scoring_service import find_malformed_questions, score_answers
from learnhub.services.timer import IntervalTimer, TimerFactory
from learnhub.utils.time_utils import format_clock
from learnhub.utils.validation import validate_answer_map

logger = logging.getLogger(__name__)


class SessionState(str, enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


async def load_questions(
    gateway: PersistenceGateway, test_id: str
) -> tuple[TestRecord, list[QuestionRecord]]:
    """
    Load a test with its ordered questions, each carrying its ordered variants.

    Raises:
        NotFoundError: if the test id does not resolve.
        LoadError: if the gateway failed.
    """
    try:
        test = await gateway.get_test(test_id)
        if test is None:
            raise NotFoundError(f"Test {test_id} not found")
        questions = await gateway.get_questions(test_id)
        variants = await gateway.get_variants([q.id for q in questions])
    except GatewayError as e:
        raise LoadError(f"Failed to load test {test_id}") from e

    by_question: dict[str, list] = {}
    for variant in variants:
        by_question.setdefault(variant.question_id, []).append(variant)
    for question in questions:
        question.variants = sorted(
            by_question.get(question.id, []), key=lambda v: v.order_index
        )
    questions.sort(key=lambda q: q.order_index)
    return test, questions


class TestSession:
    """
    State machine for one attempt: NOT_STARTED -> IN_PROGRESS -> FINISHED.

    FINISHED is terminal. ``finish`` is idempotent: whichever of the timeout
    and the user's submit arrives first wins, later calls return the same
    result without scoring or recording again.
    """

    __test__ = False

    def __init__(
        self,
        gateway: PersistenceGateway,
        recorder: ProgressRecorder,
        viewer: Viewer,
        playlist_id: str | None = None,
        timer_factory: TimerFactory = IntervalTimer,
        tick_interval: float | None = None,
        session_id: str | None = None,
    ):
        self.id = session_id or uuid.uuid4().hex
        self._gateway = gateway
        self._recorder = recorder
        self.viewer = viewer
        self.playlist_id = playlist_id
        self._timer_factory = timer_factory
        self._tick_interval = (
            config.TICK_INTERVAL_SECONDS if tick_interval is None else tick_interval
        )
        self._timer = None

        self.state = SessionState.NOT_STARTED
        self.test: TestRecord | None = None
        self.questions: list[QuestionRecord] = []
        self.answers: dict[int, int] = {}
        self.initial_seconds = 0
        self.remaining_seconds = 0
        self.result: ScoreResult | None = None
        self.finished_at: float | None = None
        self.record_task: asyncio.Task | None = None
        self.record_error: RecordError | None = None

    @property
    def remaining_display(self) -> str:
        return format_clock(self.remaining_seconds)

    @property
    def timer_active(self) -> bool:
        return self._timer is not None and self._timer.active

    @property
    def record_pending(self) -> bool:
        return self.record_task is not None and not self.record_task.done()

    async def load(self, test_id: str) -> None:
        """Fetch the test and start the countdown."""
        if self.state != SessionState.NOT_STARTED:
            raise SessionStateError(f"Session already {self.state.value}")

        test, questions = await load_questions(self._gateway, test_id)
        for position, reason in find_malformed_questions(questions):
            logger.warning(
                "Test %s question %d (%s) has %s",
                test.id,
                position,
                questions[position].id,
                reason,
            )

        self.test = test
        self.questions = questions
        minutes = test.time_limit_minutes or config.DEFAULT_TIME_LIMIT_MINUTES
        self.initial_seconds = minutes * 60
        self.remaining_seconds = self.initial_seconds
        self.state = SessionState.IN_PROGRESS

        self._timer = self._timer_factory(self._tick_interval, self.tick)
        self._timer.start()
        logger.info(
            "Session %s started test %s for %s (%d questions, %ds)",
            self.id,
            test.id,
            self.viewer.user_id,
            len(questions),
            self.initial_seconds,
        )

    def tick(self) -> None:
        """One second elapsed; finishes the attempt when time runs out."""
        if self.state != SessionState.IN_PROGRESS:
            self._stop_timer()
            return
        self.remaining_seconds = max(0, self.remaining_seconds - 1)
        if self.remaining_seconds == 0:
            logger.info("Session %s ran out of time", self.id)
            self.finish()

    def set_answer(self, question_position: int, variant_position: int) -> None:
        if self.state != SessionState.IN_PROGRESS:
            raise SessionStateError(f"Cannot answer in state {self.state.value}")
        self.answers[question_position] = variant_position

    def merge_answers(self, partial: Mapping[object, object]) -> dict[int, int]:
        """
        Merge an answer map built elsewhere (e.g. while reading the source
        document). Positions present in ``partial`` overwrite; others are kept.
        """
        if self.state != SessionState.IN_PROGRESS:
            raise SessionStateError(f"Cannot resume in state {self.state.value}")
        self.answers.update(validate_answer_map(partial))
        return dict(self.answers)

    async def resume(self, test_id: str, partial: Mapping[object, object]) -> dict[int, int]:
        """Start (if needed) and continue the attempt with carried-over answers."""
        validated = validate_answer_map(partial)
        if self.state == SessionState.NOT_STARTED:
            await self.load(test_id)
        elif self.test is not None and self.test.id != test_id:
            raise SessionStateError(f"Session is for test {self.test.id}, not {test_id}")
        return self.merge_answers(validated)

    def finish(self) -> ScoreResult:
        """
        Score the current answers at the current remaining time.

        Must be called from inside the event loop when the session has a
        playlist context, since progress is recorded in a background task.
        """
        if self.state == SessionState.FINISHED:
            return self.result
        if self.state != SessionState.IN_PROGRESS:
            raise SessionStateError("Session has not started")

        self._stop_timer()
        self.result = score_answers(
            self.questions, self.answers, self.initial_seconds, self.remaining_seconds
        )
        self.state = SessionState.FINISHED
        self.finished_at = time.monotonic()
        logger.info(
            "Session %s finished: %d/%d correct in %ds",
            self.id,
            self.result.correct,
            self.result.total,
            self.result.time_taken,
        )

        if self.playlist_id and self.viewer.is_student:
            self.record_task = asyncio.get_running_loop().create_task(
                self._record_completion()
            )
        return self.result

    async def wait_recorded(self, timeout: float | None = None) -> RecordError | None:
        """
        Wait for the background progress write and return its error, if any.

        With a ``timeout`` the wait gives up early and leaves the write
        running; ``record_pending`` then stays true until it completes.
        """
        if self.record_task is None:
            return self.record_error
        if timeout is None:
            await self.record_task
        else:
            try:
                await asyncio.wait_for(asyncio.shield(self.record_task), timeout)
            except asyncio.TimeoutError:
                logger.info("Session %s is still recording progress", self.id)
        return self.record_error

    async def _record_completion(self) -> None:
        attempts = max(1, config.RECORD_RETRY_ATTEMPTS)
        for attempt in range(1, attempts + 1):
            try:
                await self._recorder.record_completion(
                    self.playlist_id,
                    self.viewer.user_id,
                    self.test.id,
                    kind=PlaylistKind.TEST,
                )
                self.record_error = None
                return
            except RecordError as e:
                self.record_error = e
                if attempt < attempts:
                    logger.warning(
                        "Recording progress for session %s failed (attempt %d/%d), retrying",
                        self.id,
                        attempt,
                        attempts,
                    )
                    await asyncio.sleep(config.RECORD_RETRY_DELAY_SECONDS)
            except Exception as e:
                logger.exception(
                    "Unexpected failure recording progress for session %s", self.id
                )
                self.record_error = RecordError(f"Failed to record completion: {e}")
                return
        logger.error(
            "Could not record completion of test %s in playlist %s for %s: %s",
            self.test.id,
            self.playlist_id,
            self.viewer.user_id,
            self.record_error,
        )

    def close(self) -> None:
        """Tear down: stop the timer. An unfinished attempt is not recorded."""
        self._stop_timer()

    def _stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


class SessionManager:
    """
    Live test sessions of the running application, by id.

    Finished sessions are kept for ``FINISHED_SESSION_TTL_SECONDS`` so their
    result can still be read, then dropped once their progress write is done.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        recorder: ProgressRecorder,
        timer_factory: TimerFactory = IntervalTimer,
    ):
        self._gateway = gateway
        self._recorder = recorder
        self._timer_factory = timer_factory
        self._sessions: dict[str, TestSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    async def start(
        self, test_id: str, viewer: Viewer, playlist_id: str | None = None
    ) -> TestSession:
        """
        Start a session. A student starting from a playlist may only take a
        test of that playlist which is unlocked for them.
        """
        self.prune_finished()
        if playlist_id and viewer.is_student:
            await require_available_item(
                self._gateway, playlist_id, viewer, test_id, kind=PlaylistKind.TEST
            )

        session = TestSession(
            self._gateway,
            self._recorder,
            viewer,
            playlist_id=playlist_id,
            timer_factory=self._timer_factory,
        )
        await session.load(test_id)
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> TestSession | None:
        return self._sessions.get(session_id)

    def discard(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.close()
        return True

    def prune_finished(self) -> int:
        """Drop finished sessions past their retention time; returns how many."""
        now = time.monotonic()
        expired = [
            session.id
            for session in self._sessions.values()
            if session.state == SessionState.FINISHED
            and not session.record_pending
            and now - session.finished_at >= config.FINISHED_SESSION_TTL_SECONDS
        ]
        for session_id in expired:
            self.discard(session_id)
        if expired:
            logger.debug("Dropped %d finished sessions", len(expired))
        return len(expired)

    def close_all(self) -> None:
        """Shutdown: stop every timer and abandon progress writes still running."""
        for session_id in list(self._sessions):
            session = self._sessions[session_id]
            if session.record_pending:
                logger.warning("Session %s closed while recording progress", session_id)
                session.record_task.cancel()
            self.discard(session_id)
