import logging
import random
from itertools import combinations

from classplanner.services.conflict_service import sessions_conflict
from classplanner.services.stacking import assign_stack_positions, partition_tracks, stack_sessions
from classplanner.services.time_interval import TimeInterval, format_time


def _max_simultaneous(intervals):
    events = []
    for interval in intervals:
        events.append((interval.start_minutes, 1))
        events.append((interval.end_minutes, -1))
    # Ends sort before starts at the same minute (half-open ranges).
    events.sort(key=lambda event: (event[0], event[1]))
    current = best = 0
    for _, delta in events:
        current += delta
        best = max(best, current)
    return best


def _assert_no_conflict_shares_a_track(sessions, positions):
    for first, second in combinations(sessions, 2):
        if sessions_conflict(first, second):
            assert positions[first.id] != positions[second.id], (first.id, second.id, positions)


def test_touching_session_reuses_first_track(make_spec):
    sessions = [
        make_spec("s1", {"S1"}, 1, "09:00", "10:00"),
        make_spec("s2", {"S1"}, 1, "09:30", "10:30"),
        make_spec("s3", {"S1"}, 1, "10:00", "11:00"),
    ]
    assert assign_stack_positions(sessions) == {"s1": 0, "s2": 1, "s3": 0}


def test_input_order_does_not_change_layout(make_spec):
    sessions = [
        make_spec("s3", {"S1"}, 1, "10:00", "11:00"),
        make_spec("s2", {"S1"}, 1, "09:30", "10:30"),
        make_spec("s1", {"S1"}, 1, "09:00", "10:00"),
    ]
    assert assign_stack_positions(sessions) == {"s1": 0, "s2": 1, "s3": 0}


def test_equal_start_times_are_ordered_by_id(make_spec):
    sessions = [
        make_spec("b", {"S1"}, 0, "09:00", "10:00"),
        make_spec("a", {"S1"}, 0, "09:00", "09:30"),
    ]
    assert assign_stack_positions(sessions) == {"a": 0, "b": 1}


def test_rows_are_independent_per_student_and_weekday(make_spec):
    sessions = [
        make_spec("mon-s1", {"S1"}, 0, "09:00", "10:00"),
        make_spec("mon-s2", {"S2"}, 0, "09:00", "10:00"),
        make_spec("tue-s1", {"S1"}, 1, "09:00", "10:00"),
    ]
    result = stack_sessions(sessions)
    assert result.positions == {"mon-s1": 0, "mon-s2": 0, "tue-s1": 0}
    assert result.depth_for(0, "S1") == 1
    assert result.depth_for(0, "S2") == 1
    assert result.depth_for(1, "S1") == 1
    assert result.depth_for(2, "S1") == 0


def test_group_session_appears_in_each_students_row(make_spec):
    sessions = [
        make_spec("solo", {"S2"}, 3, "14:00", "15:00"),
        make_spec("group", {"S1", "S2"}, 3, "14:30", "15:30"),
    ]
    result = stack_sessions(sessions)
    # Same track in both rows, free in each of them.
    assert result.buckets[(3, "S1")] == {"group": 1}
    assert result.buckets[(3, "S2")] == {"solo": 0, "group": 1}
    assert result.positions["group"] == 1
    assert result.depth_for(3, "S1") == 2
    assert result.depth_for(3, "S2") == 2


def test_group_session_never_shares_a_track_with_a_conflicting_session(make_spec):
    sessions = [
        make_spec("a", {"S1"}, 1, "09:00", "10:00"),
        make_spec("g", {"S1", "S2"}, 1, "09:30", "10:30"),
        make_spec("b", {"S2"}, 1, "09:45", "11:00"),
    ]
    positions = assign_stack_positions(sessions)
    assert positions == {"a": 0, "g": 1, "b": 0}
    _assert_no_conflict_shares_a_track(sessions, positions)


def test_random_group_layouts_keep_conflicting_sessions_apart(make_spec):
    rng = random.Random(20241019)
    students = ["S1", "S2", "S3", "S4"]
    for _ in range(40):
        sessions = []
        for index in range(rng.randint(1, 20)):
            start = rng.randrange(480, 1320, 15)
            owners = set(rng.sample(students, rng.choice([1, 1, 1, 2, 3])))
            sessions.append(
                make_spec(f"s{index:02d}", owners, rng.randrange(0, 2), format_time(start), format_time(start + 60))
            )

        result = stack_sessions(sessions)
        _assert_no_conflict_shares_a_track(sessions, result.positions)
        for assignment in result.buckets.values():
            for session_id, track in assignment.items():
                assert result.positions[session_id] == track


def test_invalid_session_is_reported_not_raised(make_spec, caplog):
    sessions = [
        make_spec("ok", {"S1"}, 1, "09:00", "10:00"),
        make_spec("broken", {"S1"}, 1, "9 o'clock", "10:00"),
        make_spec("inverted", {"S1"}, 1, "11:00", "10:00"),
    ]
    with caplog.at_level(logging.WARNING, logger="classplanner.services.stacking"):
        result = stack_sessions(sessions)

    assert result.positions == {"ok": 0}
    assert [warning.session_id for warning in result.warnings] == ["broken", "inverted"]
    assert "broken" in caplog.text


def test_duplicate_ids_are_skipped(make_spec):
    sessions = [
        make_spec("dup", {"S1"}, 1, "09:00", "10:00"),
        make_spec("dup", {"S1"}, 1, "09:00", "10:00"),
    ]
    result = stack_sessions(sessions)
    assert result.positions == {"dup": 0}
    assert result.warnings[0].reason == "duplicate session id"


def test_session_without_students_still_gets_a_track(make_spec):
    result = stack_sessions([make_spec("unowned", set(), 5, "09:00", "10:00")])
    assert result.positions == {"unowned": 0}
    assert result.depth_for(5, None) == 1


def test_empty_input():
    result = stack_sessions([])
    assert result.positions == {}
    assert result.warnings == []


def test_track_count_matches_maximum_overlap():
    rng = random.Random(20240601)
    for _ in range(50):
        items = []
        for index in range(rng.randint(1, 25)):
            start = rng.randrange(0, 1380, 15)
            end = min(start + rng.choice([15, 30, 45, 60, 90, 120]), 1439)
            items.append((f"s{index:02d}", TimeInterval(weekday=0, start_minutes=start, end_minutes=end)))

        assignment, track_count = partition_tracks(items)
        by_id = dict(items)
        assert track_count == _max_simultaneous(by_id.values())
        assert len(set(assignment.values())) == track_count

        # No two sessions placed on the same track overlap.
        for track in set(assignment.values()):
            placed = sorted(
                (by_id[session_id] for session_id, value in assignment.items() if value == track),
                key=lambda interval: interval.start_minutes,
            )
            for previous, following in zip(placed, placed[1:]):
                assert previous.end_minutes <= following.start_minutes


def test_stacking_through_specs_matches_overlap_depth(make_spec):
    starts = [540, 555, 570, 600, 600, 660, 690]
    sessions = [
        make_spec(f"s{index}", {"S1"}, 2, format_time(start), format_time(start + 60))
        for index, start in enumerate(starts)
    ]
    result = stack_sessions(sessions)
    intervals = [spec.interval() for spec in sessions]
    assert len(set(result.positions.values())) == _max_simultaneous(intervals)
    assert result.depth_for(2, "S1") == _max_simultaneous(intervals)
