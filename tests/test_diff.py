from vaccine_watch.diff import diff_snapshots
from vaccine_watch.zip_filter import filter_by_zip


def ids(records):
    return [r.location_id for r in records]


def test_became_available(make_record, make_snapshot):
    """Scenario A: unavailable -> available is reported."""
    previous = make_snapshot(make_record(1, is_available=False))
    current = make_snapshot(make_record(1, is_available=True))
    assert ids(diff_snapshots(previous, current)) == [1]


def test_still_available(make_record, make_snapshot):
    """Scenario B: available -> available is not reported."""
    previous = make_snapshot(make_record(1))
    current = make_snapshot(make_record(1))
    assert diff_snapshots(previous, current) == []


def test_first_poll_is_baseline(make_record, make_snapshot):
    """Scenario C: nothing is new without a previous snapshot."""
    current = make_snapshot(make_record(1), make_record(2))
    assert diff_snapshots(None, current) == []


def test_empty_previous_is_not_first_poll(make_record, make_snapshot):
    current = make_snapshot(make_record(2), make_record(1))
    assert ids(diff_snapshots({}, current)) == [1, 2]


def test_out_of_scope_location_is_ignored(make_record, make_snapshot):
    """Scenario D: filtering happens before diffing."""
    allow_list = frozenset({"00001"})
    previous = filter_by_zip(make_snapshot(make_record(1, zip_code="00001")), allow_list)
    current = make_snapshot(make_record(1, zip_code="00001"), make_record(2, zip_code="99999"))

    filtered = filter_by_zip(current, allow_list)
    assert set(filtered) == {1}
    assert diff_snapshots(previous, filtered) == []


def test_became_unavailable_is_never_reported(make_record, make_snapshot):
    previous = make_snapshot(make_record(1, is_available=True))
    current = make_snapshot(make_record(1, is_available=False))
    assert diff_snapshots(previous, current) == []


def test_new_unavailable_location_is_not_reported(make_record, make_snapshot):
    previous = make_snapshot(make_record(1))
    current = make_snapshot(make_record(1), make_record(2, is_available=False))
    assert diff_snapshots(previous, current) == []


def test_new_available_location_is_reported(make_record, make_snapshot):
    previous = make_snapshot(make_record(1))
    current = make_snapshot(make_record(1), make_record(2))
    assert ids(diff_snapshots(previous, current)) == [2]


def test_disappeared_then_reappeared_is_reported(make_record, make_snapshot):
    previous = make_snapshot(make_record(1))
    current = make_snapshot(make_record(2))
    assert ids(diff_snapshots(previous, current)) == [2]
    assert ids(diff_snapshots(current, make_snapshot(make_record(1), make_record(2)))) == [1]


def test_result_is_sorted_by_location_id(make_record, make_snapshot):
    previous = make_snapshot(*(make_record(i, is_available=False) for i in (5, 3, 9)))
    current = make_snapshot(*(make_record(i) for i in (9, 5, 3, 12)))
    assert ids(diff_snapshots(previous, current)) == [3, 5, 9, 12]


def test_diff_matches_definition(make_record, make_snapshot):
    previous = make_snapshot(
        make_record(1, is_available=True),
        make_record(2, is_available=False),
        make_record(3, is_available=True),
        make_record(4, is_available=False),
    )
    current = make_snapshot(
        make_record(1, is_available=True),
        make_record(2, is_available=True),
        make_record(3, is_available=False),
        make_record(4, is_available=False),
        make_record(5, is_available=True),
        make_record(6, is_available=False),
    )
    expected = [
        loc for loc, r in current.items()
        if r.is_available and (loc not in previous or not previous[loc].is_available)
    ]
    assert ids(diff_snapshots(previous, current)) == sorted(expected) == [2, 5]
