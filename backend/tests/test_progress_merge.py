from datetime import datetime, timedelta, timezone

from cryptoacademy.services.progress_merge import ProgressEvent, ProgressState, merge_progress

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
T1 = T0 + timedelta(minutes=5)
T2 = T0 + timedelta(minutes=10)


def test_first_non_quiz_event_creates_state():
    out = merge_progress(None, ProgressEvent(completed=True, time_spent=3), now=T0)
    assert out.completed is True
    assert out.time_spent == 3
    assert out.completed_at == T0
    assert out.last_accessed == T0
    assert out.score is None


def test_completion_is_sticky_for_non_quiz_events():
    done = merge_progress(None, ProgressEvent(completed=True), now=T0)
    out = merge_progress(done, ProgressEvent(completed=False, time_spent=2), now=T1)
    assert out.completed is True
    assert out.completed_at == T0
    assert out.last_accessed == T1


def test_completed_at_is_written_once():
    done = merge_progress(None, ProgressEvent(completed=True), now=T0)
    again = merge_progress(done, ProgressEvent(completed=True), now=T2)
    assert again.completed_at == T0


def test_incomplete_visit_leaves_completed_at_empty():
    out = merge_progress(None, ProgressEvent(completed=False, time_spent=4), now=T0)
    assert out.completed is False
    assert out.completed_at is None


def test_time_spent_is_the_sum_of_deltas():
    state = None
    for delta in (3, 0, 7, 1):
        state = merge_progress(state, ProgressEvent(time_spent=delta), now=T0)
    assert state.time_spent == 11


def test_negative_delta_never_shrinks_time_spent():
    state = merge_progress(None, ProgressEvent(time_spent=5), now=T0)
    out = merge_progress(state, ProgressEvent(time_spent=-3), now=T1)
    assert out.time_spent == 5


def test_failed_quiz_records_score_without_completion():
    out = merge_progress(None, ProgressEvent(quiz_score=40, passed=False), now=T0)
    assert out.completed is False
    assert out.score == 40
    assert out.completed_at is None


def test_passed_quiz_after_failure_sets_completed_at():
    failed = merge_progress(None, ProgressEvent(quiz_score=40, passed=False), now=T0)
    passed = merge_progress(failed, ProgressEvent(quiz_score=80, passed=True), now=T1)
    assert passed.completed is True
    assert passed.score == 80
    assert passed.completed_at == T1


def test_failed_retake_keeps_completed_at():
    passed = merge_progress(None, ProgressEvent(quiz_score=90, passed=True), now=T0)
    retake = merge_progress(passed, ProgressEvent(quiz_score=30, passed=False), now=T1)
    assert retake.completed is False
    assert retake.score == 30
    assert retake.completed_at == T0


def test_non_quiz_event_keeps_previous_score():
    quiz = merge_progress(None, ProgressEvent(quiz_score=75, passed=True), now=T0)
    visit = merge_progress(quiz, ProgressEvent(completed=False, time_spent=1), now=T1)
    assert visit.score == 75
    assert visit.completed is True


def test_merge_does_not_mutate_old_state():
    old = ProgressState(completed=False, time_spent=2)
    merge_progress(old, ProgressEvent(completed=True, time_spent=3), now=T0)
    assert old.completed is False
    assert old.time_spent == 2


def test_time_spent_saturates_at_the_column_limit():
    from cryptoacademy.services.progress_merge import MAX_TIME_SPENT

    near = ProgressState(time_spent=MAX_TIME_SPENT - 5)
    out = merge_progress(near, ProgressEvent(time_spent=60), now=T0)
    assert out.time_spent == MAX_TIME_SPENT
