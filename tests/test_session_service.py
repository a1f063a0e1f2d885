import asyncio

import pytest

from learnhub.errors import (
    InvalidAnswerMapError,
    ItemLockedError,
    LoadError,
    NotFoundError,
    RecordError,
    SessionStateError,
)
from learnhub.models.entities import PlaylistKind, Role, Viewer
from learnhub.services.access_service import PlaylistMonitor
from learnhub.services.session_service import SessionManager, SessionState, TestSession

STUDENT = Viewer("student-1")


def make_session(gateway, recorder, timers, playlist_id=None, viewer=STUDENT) -> TestSession:
    return TestSession(
        gateway, recorder, viewer, playlist_id=playlist_id, timer_factory=timers
    )


def test_load_starts_countdown(gateway, recorder, timers) -> None:
    gateway.add_test("t1", [0, 1], time_limit_minutes=1)
    session = make_session(gateway, recorder, timers)

    asyncio.run(session.load("t1"))

    assert session.state == SessionState.IN_PROGRESS
    assert session.initial_seconds == 60
    assert session.remaining_seconds == 60
    assert session.remaining_display == "1:00"
    assert [q.id for q in session.questions] == ["t1-q0", "t1-q1"]
    assert [v.order_index for v in session.questions[0].variants] == [0, 1, 2]
    assert timers.last.active
    assert timers.last.interval == 1.0


def test_missing_time_limit_uses_default(gateway, recorder, timers, monkeypatch) -> None:
    monkeypatch.setattr("learnhub.config.DEFAULT_TIME_LIMIT_MINUTES", 60)
    gateway.add_test("t1", [0], time_limit_minutes=None)
    session = make_session(gateway, recorder, timers)

    asyncio.run(session.load("t1"))

    assert session.initial_seconds == 3600


def test_load_unknown_test(gateway, recorder, timers) -> None:
    session = make_session(gateway, recorder, timers)

    with pytest.raises(NotFoundError):
        asyncio.run(session.load("missing"))

    assert session.state == SessionState.NOT_STARTED
    assert timers.timers == []


def test_load_backend_failure(gateway, recorder, timers) -> None:
    gateway.add_test("t1", [0])
    gateway.fail_loads = True
    session = make_session(gateway, recorder, timers)

    with pytest.raises(LoadError):
        asyncio.run(session.load("t1"))

    assert session.state == SessionState.NOT_STARTED


def test_manual_finish_scores_answers(gateway, recorder, timers) -> None:
    gateway.add_test("t1", [0, 1], time_limit_minutes=1)
    session = make_session(gateway, recorder, timers)

    async def scenario():
        await session.load("t1")
        session.set_answer(0, 0)
        session.set_answer(1, 2)
        session.set_answer(1, 1)
        timers.last.fire(10)
        return session.finish()

    result = asyncio.run(scenario())

    assert (result.total, result.correct, result.wrong, result.time_taken) == (2, 2, 0, 10)
    assert session.state == SessionState.FINISHED
    assert not timers.last.active


def test_timeout_finishes_exactly_once(gateway, recorder, timers) -> None:
    gateway.add_test("t1", [0, 1], time_limit_minutes=1)
    gateway.add_playlist("p1", ["t1"])
    session = make_session(gateway, recorder, timers, playlist_id="p1")

    async def scenario():
        await session.load("t1")
        timers.last.fire(59)
        assert session.state == SessionState.IN_PROGRESS
        assert session.remaining_display == "0:01"
        timers.last.fire(1)
        assert session.state == SessionState.FINISHED
        first = session.result
        # a late tick and a late submit change nothing
        session.tick()
        second = session.finish()
        await session.wait_recorded()
        return first, second

    first, second = asyncio.run(scenario())

    assert (first.total, first.correct, first.wrong, first.time_taken) == (2, 0, 2, 60)
    assert second is first
    assert session.remaining_seconds == 0
    assert timers.last.cancelled >= 1
    assert gateway.upsert_calls == 1


def test_second_finish_does_not_record_again(gateway, recorder, timers) -> None:
    gateway.add_test("t1", [0], time_limit_minutes=1)
    gateway.add_playlist("p1", ["t1"])
    session = make_session(gateway, recorder, timers, playlist_id="p1")

    async def scenario():
        await session.load("t1")
        session.set_answer(0, 0)
        first = session.finish()
        task = session.record_task
        second = session.finish()
        await session.wait_recorded()
        return first, second, task

    first, second, task = asyncio.run(scenario())

    assert second is first
    assert session.record_task is task
    assert gateway.upsert_calls == 1
    assert gateway.progress[("p1", "student-1")].completed_item_ids == ["t1"]


def test_answers_rejected_after_finish(gateway, recorder, timers) -> None:
    gateway.add_test("t1", [0])
    session = make_session(gateway, recorder, timers)

    async def scenario():
        await session.load("t1")
        session.finish()
        with pytest.raises(SessionStateError):
            session.set_answer(0, 0)
        with pytest.raises(SessionStateError):
            session.merge_answers({0: 0})

    asyncio.run(scenario())

    assert session.answers == {}


def test_answer_before_load_is_rejected(gateway, recorder, timers) -> None:
    session = make_session(gateway, recorder, timers)

    with pytest.raises(SessionStateError):
        session.set_answer(0, 0)
    with pytest.raises(SessionStateError):
        session.finish()


def test_record_failure_keeps_result(gateway, recorder, timers, monkeypatch) -> None:
    monkeypatch.setattr("learnhub.config.RECORD_RETRY_ATTEMPTS", 2)
    gateway.add_test("t1", [0])
    gateway.add_playlist("p1", ["t1"])
    gateway.fail_writes = 5
    session = make_session(gateway, recorder, timers, playlist_id="p1")

    async def scenario():
        await session.load("t1")
        session.set_answer(0, 0)
        result = session.finish()
        error = await session.wait_recorded()
        return result, error

    result, error = asyncio.run(scenario())

    assert result.correct == 1
    assert session.state == SessionState.FINISHED
    assert session.result is result
    assert error is not None
    assert session.record_error is error
    assert gateway.upsert_calls == 2
    assert ("p1", "student-1") not in gateway.progress


def test_record_retry_succeeds(gateway, recorder, timers, monkeypatch) -> None:
    monkeypatch.setattr("learnhub.config.RECORD_RETRY_ATTEMPTS", 3)
    gateway.add_test("t1", [0])
    gateway.add_playlist("p1", ["t1"])
    gateway.fail_writes = 1
    session = make_session(gateway, recorder, timers, playlist_id="p1")

    async def scenario():
        await session.load("t1")
        session.finish()
        return await session.wait_recorded()

    assert asyncio.run(scenario()) is None
    assert gateway.progress[("p1", "student-1")].completed_item_ids == ["t1"]


def test_no_recording_without_playlist_or_for_teachers(gateway, recorder, timers) -> None:
    gateway.add_test("t1", [0])
    gateway.add_playlist("p1", ["t1"])
    plain = make_session(gateway, recorder, timers)
    teacher = make_session(
        gateway, recorder, timers, playlist_id="p1", viewer=Viewer("teacher-1", Role.TEACHER)
    )

    async def scenario():
        for session in (plain, teacher):
            await session.load("t1")
            session.finish()
            await session.wait_recorded()

    asyncio.run(scenario())

    assert plain.record_task is None
    assert teacher.record_task is None
    assert gateway.upsert_calls == 0


def test_close_cancels_timer_without_recording(gateway, recorder, timers) -> None:
    gateway.add_test("t1", [0])
    gateway.add_playlist("p1", ["t1"])
    session = make_session(gateway, recorder, timers, playlist_id="p1")

    async def scenario():
        await session.load("t1")
        session.set_answer(0, 0)
        session.close()

    asyncio.run(scenario())

    assert not timers.last.active
    assert not session.timer_active
    assert session.state == SessionState.IN_PROGRESS
    assert session.result is None
    assert gateway.upsert_calls == 0


def test_resume_merges_carried_answers(gateway, recorder, timers) -> None:
    gateway.add_test("t1", [0, 1, 2])
    session = make_session(gateway, recorder, timers)

    async def scenario():
        await session.load("t1")
        session.set_answer(0, 2)
        session.set_answer(1, 1)
        return await session.resume("t1", {"0": 0, "2": "2"})

    merged = asyncio.run(scenario())

    assert merged == {0: 0, 1: 1, 2: 2}
    assert session.answers == merged


def test_resume_from_document_view_starts_session(gateway, recorder, timers) -> None:
    gateway.add_test("t1", [0, 1])
    session = make_session(gateway, recorder, timers)

    async def scenario():
        await session.resume("t1", {0: 0, 1: 1})
        return session.finish()

    result = asyncio.run(scenario())

    assert result.correct == 2
    assert timers.last.started == 1


@pytest.mark.parametrize(
    "partial",
    [{"a": 1}, {0: -1}, {-2: 0}, {0: "x"}, {0: None}, {0: True}, [(0, 1)]],
)
def test_resume_rejects_malformed_answer_maps(gateway, recorder, timers, partial) -> None:
    gateway.add_test("t1", [0, 1])
    session = make_session(gateway, recorder, timers)

    async def scenario():
        await session.load("t1")
        session.set_answer(0, 1)
        with pytest.raises(InvalidAnswerMapError):
            await session.resume("t1", partial)

    asyncio.run(scenario())

    assert session.answers == {0: 1}


def test_resume_other_test_is_rejected(gateway, recorder, timers) -> None:
    gateway.add_test("t1", [0])
    session = make_session(gateway, recorder, timers)

    async def scenario():
        await session.load("t1")
        with pytest.raises(SessionStateError):
            await session.resume("t2", {})

    asyncio.run(scenario())


def test_finished_test_unlocks_next_playlist_item(gateway, bus, recorder, timers) -> None:
    gateway.add_test("testA", [0])
    gateway.add_test("testB", [1])
    gateway.add_playlist("p1", ["testA", "testB"])
    session = make_session(gateway, recorder, timers, playlist_id="p1")
    monitor = PlaylistMonitor(gateway, bus, "p1", STUDENT)

    async def scenario():
        before = await monitor.open()
        await session.load("testA")
        session.set_answer(0, 0)
        session.finish()
        await session.wait_recorded()
        return before, monitor.view

    before, after = asyncio.run(scenario())
    monitor.close()

    assert not before.find("testB").is_available
    assert after.find("testA").is_completed
    assert after.find("testB").is_available
    assert gateway.progress[("p1", "student-1")].completed_item_ids == ["testA"]


def test_session_manager_lifecycle(gateway, recorder, timers) -> None:
    gateway.add_test("t1", [0])
    manager = SessionManager(gateway, recorder, timer_factory=timers)

    async def scenario():
        session = await manager.start("t1", STUDENT)
        other = await manager.start("t1", STUDENT)
        return session, other

    session, other = asyncio.run(scenario())

    assert manager.get(session.id) is session
    assert manager.discard(session.id)
    assert manager.get(session.id) is None
    assert not manager.discard(session.id)
    assert not timers.timers[0].active

    manager.close_all()
    assert manager.get(other.id) is None
    assert not timers.timers[1].active


def test_manager_refuses_locked_or_foreign_tests(gateway, recorder, timers) -> None:
    for test_id in ("testA", "testB", "stray"):
        gateway.add_test(test_id, [0])
    gateway.add_playlist("p1", ["testA", "testB"])
    gateway.add_playlist("lessons", ["testA"], kind=PlaylistKind.LESSON)
    manager = SessionManager(gateway, recorder, timer_factory=timers)

    with pytest.raises(ItemLockedError):
        asyncio.run(manager.start("testB", STUDENT, playlist_id="p1"))
    with pytest.raises(NotFoundError):
        asyncio.run(manager.start("stray", STUDENT, playlist_id="p1"))
    with pytest.raises(NotFoundError):
        asyncio.run(manager.start("testA", STUDENT, playlist_id="lessons"))

    assert len(manager) == 0
    assert timers.timers == []


def test_manager_starts_test_once_predecessor_is_completed(gateway, recorder, timers) -> None:
    gateway.add_test("testA", [0])
    gateway.add_test("testB", [0])
    gateway.add_playlist("p1", ["testA", "testB"])
    manager = SessionManager(gateway, recorder, timer_factory=timers)

    async def scenario():
        first = await manager.start("testA", STUDENT, playlist_id="p1")
        first.finish()
        await first.wait_recorded()
        return await manager.start("testB", STUDENT, playlist_id="p1")

    second = asyncio.run(scenario())

    assert second.state == SessionState.IN_PROGRESS
    assert gateway.progress[("p1", "student-1")].completed_item_ids == ["testA"]


def test_teacher_may_start_any_playlist_test(gateway, recorder, timers) -> None:
    gateway.add_test("testB", [0])
    gateway.add_playlist("p1", ["testA", "testB"], teacher_id="teacher-1")
    manager = SessionManager(gateway, recorder, timer_factory=timers)

    session = asyncio.run(
        manager.start("testB", Viewer("teacher-2", Role.TEACHER), playlist_id="p1")
    )

    assert session.state == SessionState.IN_PROGRESS


def test_bounded_wait_returns_while_write_is_slow(gateway, recorder, timers) -> None:
    gateway.add_test("t1", [0])
    gateway.add_playlist("p1", ["t1"])
    session = make_session(gateway, recorder, timers, playlist_id="p1")

    async def scenario():
        gateway.write_gate = asyncio.Event()
        await session.load("t1")
        session.set_answer(0, 0)
        result = session.finish()
        error = await session.wait_recorded(timeout=0.01)
        pending = session.record_pending
        gateway.write_gate.set()
        await session.wait_recorded()
        return result, error, pending

    result, error, pending = asyncio.run(scenario())

    assert result.correct == 1
    assert error is None
    assert pending
    assert not session.record_pending
    assert gateway.progress[("p1", "student-1")].completed_item_ids == ["t1"]


def test_unexpected_record_failure_is_reported(gateway, recorder, timers, monkeypatch) -> None:
    gateway.add_test("t1", [0])
    gateway.add_playlist("p1", ["t1"])
    session = make_session(gateway, recorder, timers, playlist_id="p1")

    async def crash(*args, **kwargs):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(recorder, "record_completion", crash)

    async def scenario():
        await session.load("t1")
        session.finish()
        return await session.wait_recorded()

    error = asyncio.run(scenario())

    assert isinstance(error, RecordError)
    assert "connection reset" in str(error)
    assert session.state == SessionState.FINISHED
    assert not session.record_pending


def test_finished_sessions_are_dropped_after_retention(gateway, recorder, timers, monkeypatch) -> None:
    monkeypatch.setattr("learnhub.config.FINISHED_SESSION_TTL_SECONDS", 0)
    gateway.add_test("t1", [0])
    manager = SessionManager(gateway, recorder, timer_factory=timers)

    async def scenario():
        running = await manager.start("t1", STUDENT)
        for _ in range(50):
            session = await manager.start("t1", STUDENT)
            session.finish()
        return running, session

    running, last = asyncio.run(scenario())

    # the unfinished session is kept, only the newest finished one remains
    assert len(manager) == 2
    assert manager.get(running.id) is running
    assert manager.get(last.id) is last
    assert manager.prune_finished() == 1
    assert manager.get(running.id) is running


def test_finished_sessions_kept_within_retention(gateway, recorder, timers, monkeypatch) -> None:
    monkeypatch.setattr("learnhub.config.FINISHED_SESSION_TTL_SECONDS", 3600)
    gateway.add_test("t1", [0])
    manager = SessionManager(gateway, recorder, timer_factory=timers)

    async def scenario():
        for _ in range(3):
            session = await manager.start("t1", STUDENT)
            session.finish()

    asyncio.run(scenario())

    assert manager.prune_finished() == 0
    assert len(manager) == 3


def test_session_still_recording_is_not_dropped(gateway, recorder, timers, monkeypatch) -> None:
    monkeypatch.setattr("learnhub.config.FINISHED_SESSION_TTL_SECONDS", 0)
    gateway.add_test("t1", [0])
    gateway.add_playlist("p1", ["t1"])
    manager = SessionManager(gateway, recorder, timer_factory=timers)

    async def scenario():
        gateway.write_gate = asyncio.Event()
        session = await manager.start("t1", STUDENT, playlist_id="p1")
        session.finish()
        await asyncio.sleep(0)
        kept = manager.prune_finished()
        gateway.write_gate.set()
        await session.wait_recorded()
        return kept, manager.prune_finished()

    assert asyncio.run(scenario()) == (0, 1)
    assert len(manager) == 0
