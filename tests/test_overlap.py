from datetime import datetime

from assignment_models import AssignmentRecord, PairOverlap
from csv_io import parse_fields
from overlap import (
    compute_overlaps,
    find_best_pair,
    group_by_project,
    pairs_for_employee,
    project_pair_overlaps,
    validate_pairs,
)

from conftest import FIXED_NOW


def rec(emp, proj, start, end):
    return AssignmentRecord(
        employee_id=emp,
        project_id=proj,
        start_date=datetime.fromisoformat(start),
        end_date=datetime.fromisoformat(end),
    )


def test_two_employees_partial_overlap():
    result = compute_overlaps([
        rec(1, 1, "2023-01-01", "2023-06-01"),
        rec(2, 1, "2023-02-01", "2023-07-01"),
    ])
    assert result.all_pairs == [PairOverlap(employee_a=1, employee_b=2, project_id=1, overlap_days=120)]
    assert result.maximal == result.all_pairs
    assert result.best_ids == (1, 2)


def test_identical_ranges_first_pair_wins_tie():
    records = [rec(e, 1, "2023-01-01", "2023-06-01") for e in (1, 2, 3)]
    result = compute_overlaps(records)

    assert [(p.employee_a, p.employee_b) for p in result.all_pairs] == [(1, 2), (1, 3), (2, 3)]
    assert len({p.overlap_days for p in result.all_pairs}) == 1
    # (1, 3) and (2, 3) tie the maximum but are a different pair of people
    assert [(p.employee_a, p.employee_b) for p in result.maximal] == [(1, 2)]


def test_same_employee_twice_is_not_paired():
    result = compute_overlaps([
        rec(7, 1, "2023-01-01", "2023-06-01"),
        rec(7, 1, "2023-03-01", "2023-09-01"),
    ])
    assert result.all_pairs == []
    assert result.maximal == []
    assert result.best is None


def test_null_end_date_uses_clock(fixed_clock):
    records = [
        parse_fields(["1", "1", "2024-03-01", "NULL"], clock=fixed_clock),
        parse_fields(["2", "1", "2024-03-05", "null"], clock=fixed_clock),
    ]
    assert records[0].end_date == FIXED_NOW
    result = compute_overlaps(records)
    # 2024-03-05 00:00 -> 2024-03-15 12:00 is 10.5 days, rounded up
    assert result.all_pairs[0].overlap_days == 11


def test_empty_input():
    result = compute_overlaps([])
    assert result.all_pairs == []
    assert result.maximal == []
    assert result.best is None


def test_non_overlapping_ranges():
    result = compute_overlaps([
        rec(1, 1, "2023-01-01", "2023-02-01"),
        rec(2, 1, "2023-03-01", "2023-04-01"),
    ])
    assert result.all_pairs == []


def test_single_record_project_contributes_nothing():
    assert project_pair_overlaps(5, [rec(1, 5, "2023-01-01", "2023-12-31")]) == []


def test_grouping_keeps_first_seen_order():
    records = [
        rec(1, 20, "2023-01-01", "2023-02-01"),
        rec(2, 10, "2023-01-01", "2023-02-01"),
        rec(3, 20, "2023-01-01", "2023-02-01"),
        rec(4, 10, "2023-01-01", "2023-02-01"),
    ]
    grouped = group_by_project(records)
    assert list(grouped) == [20, 10]
    assert [r.employee_id for r in grouped[20]] == [1, 3]
    assert [r.employee_id for r in grouped[10]] == [2, 4]


def test_canonical_order_follows_projects_then_nested_scan():
    records = [
        rec(1, 20, "2023-01-01", "2023-03-01"),
        rec(2, 10, "2023-01-01", "2023-03-01"),
        rec(3, 20, "2023-01-01", "2023-03-01"),
        rec(4, 10, "2023-01-01", "2023-03-01"),
        rec(5, 20, "2023-01-01", "2023-03-01"),
    ]
    result = compute_overlaps(records)
    assert [(p.project_id, p.employee_a, p.employee_b) for p in result.all_pairs] == [
        (20, 1, 3),
        (20, 1, 5),
        (20, 3, 5),
        (10, 2, 4),
    ]


def test_overlap_is_symmetric_in_record_order():
    a = rec(1, 1, "2023-01-10", "2023-05-20")
    b = rec(2, 1, "2023-03-01", "2023-08-01")
    forward = compute_overlaps([a, b]).all_pairs[0]
    backward = compute_overlaps([b, a]).all_pairs[0]
    assert forward.overlap_days == backward.overlap_days
    assert forward.pair_key == backward.pair_key


def test_no_self_pairs_across_mixed_groups():
    records = [
        rec(1, 1, "2023-01-01", "2023-12-31"),
        rec(2, 1, "2023-01-01", "2023-12-31"),
        rec(1, 1, "2023-06-01", "2023-12-31"),
        rec(2, 2, "2023-01-01", "2023-12-31"),
        rec(2, 2, "2023-01-01", "2023-12-31"),
    ]
    result = compute_overlaps(records)
    ok, msg = validate_pairs(result.all_pairs)
    assert ok, msg
    assert all(p.employee_a != p.employee_b for p in result.all_pairs)


def test_runs_are_deterministic(fixed_clock):
    rows = [
        ["1", "1", "2023-01-01", "NULL"],
        ["2", "1", "2023-05-01", "2023-11-30"],
        ["3", "2", "2022-01-01", "2023-06-01"],
        ["1", "2", "2023-01-01", ""],
    ]
    first = compute_overlaps([parse_fields(r, clock=fixed_clock) for r in rows])
    second = compute_overlaps([parse_fields(r, clock=fixed_clock) for r in rows])
    assert first == second
    assert [p.model_dump_json() for p in first.all_pairs] == [p.model_dump_json() for p in second.all_pairs]


def test_maximal_entries_match_global_maximum():
    records = [
        rec(1, 1, "2023-01-01", "2023-03-01"),
        rec(2, 1, "2023-02-01", "2023-03-01"),
        rec(3, 2, "2023-01-01", "2023-12-01"),
        rec(4, 2, "2023-01-01", "2023-10-01"),
        rec(5, 3, "2023-01-01", "2023-02-01"),
        rec(6, 3, "2023-01-01", "2023-02-01"),
    ]
    result = compute_overlaps(records)
    top = max(p.overlap_days for p in result.all_pairs)
    assert result.best.overlap_days == top
    assert [p.overlap_days for p in result.maximal] == [top]
    assert all(p in result.maximal for p in result.all_pairs if p.pair_key == frozenset((3, 4)))


def test_winning_pair_is_listed_on_every_shared_project():
    records = [
        rec(1, 1, "2023-01-01", "2023-12-31"),
        rec(2, 1, "2023-01-01", "2023-12-31"),
        # Same two people, shorter overlap elsewhere, listed in reverse order
        rec(2, 2, "2023-01-01", "2023-02-01"),
        rec(1, 2, "2023-01-15", "2023-03-01"),
        rec(3, 2, "2023-01-01", "2023-02-01"),
    ]
    result = compute_overlaps(records)
    assert [(p.project_id, p.employee_a, p.employee_b) for p in result.maximal] == [
        (1, 1, 2),
        (2, 2, 1),
    ]
    assert result.maximal[0].overlap_days == 364
    assert result.maximal[1].overlap_days == 17


def test_later_equal_value_does_not_replace_best():
    pairs = [
        PairOverlap(employee_a=5, employee_b=6, project_id=1, overlap_days=30),
        PairOverlap(employee_a=1, employee_b=2, project_id=2, overlap_days=30),
        PairOverlap(employee_a=3, employee_b=4, project_id=3, overlap_days=10),
    ]
    best = find_best_pair(pairs)
    assert (best.employee_a, best.employee_b, best.overlap_days) == (5, 6, 30)
    assert find_best_pair([]) is None


def test_inverted_range_contributes_nothing():
    result = compute_overlaps([
        rec(1, 1, "2023-06-01", "2023-01-01"),
        rec(2, 1, "2023-01-01", "2023-12-31"),
    ])
    assert result.all_pairs == []


def test_pairs_for_employee():
    result = compute_overlaps([
        rec(1, 1, "2023-01-01", "2023-06-01"),
        rec(2, 1, "2023-02-01", "2023-07-01"),
        rec(3, 2, "2023-01-01", "2023-06-01"),
        rec(2, 2, "2023-02-01", "2023-07-01"),
    ])
    assert [p.project_id for p in pairs_for_employee(result, 2)] == [1, 2]
    assert pairs_for_employee(result, 99) == []


def test_validate_pairs_flags_bad_entries():
    bad = PairOverlap.model_construct(employee_a=1, employee_b=1, project_id=4, overlap_days=3)
    ok, msg = validate_pairs([bad])
    assert not ok
    assert "project=4" in msg
