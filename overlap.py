from __future__ import annotations

from collections.abc import Iterable
from functools import reduce
from typing import Dict, List, Optional, Tuple

from assignment_models import AssignmentRecord, BestPair, OverlapResult, PairOverlap
from date_utils import overlap_days
from logger import get_logger

log = get_logger("overlap")


def group_by_project(records: Iterable[AssignmentRecord]) -> Dict[int, List[AssignmentRecord]]:
    """
    Groups records by project id.

    Within a group, records keep the order they were read in. Dict insertion
    order gives the first-encountered project order across groups.
    """
    grouped: Dict[int, List[AssignmentRecord]] = {}
    for r in records:
        grouped.setdefault(r.project_id, []).append(r)
    return grouped


def project_pair_overlaps(project_id: int, group: List[AssignmentRecord]) -> List[PairOverlap]:
    """
    Every pair (i, j), i < j, of the group that shares at least one day.

    Rows for the same employee are never paired with each other, so duplicate
    rows for one person don't produce a self-pair.
    """
    out: List[PairOverlap] = []
    for i in range(len(group)):
        a = group[i]
        for j in range(i + 1, len(group)):
            b = group[j]
            if a.employee_id == b.employee_id:
                continue
            days = overlap_days(a.start_date, a.end_date, b.start_date, b.end_date)
            if days > 0:
                out.append(
                    PairOverlap(
                        employee_a=a.employee_id,
                        employee_b=b.employee_id,
                        project_id=project_id,
                        overlap_days=days,
                    )
                )
    return out


def _keep_longest(best: Optional[BestPair], pair: PairOverlap) -> Optional[BestPair]:
    # Strictly greater only: the first pair to reach a value keeps it.
    if best is None or pair.overlap_days > best.overlap_days:
        return BestPair(pair.employee_a, pair.employee_b, pair.overlap_days)
    return best


def find_best_pair(pairs: Iterable[PairOverlap]) -> Optional[BestPair]:
    """The first pair, in scan order, to reach the largest overlap_days (None if no pairs)."""
    return reduce(_keep_longest, pairs, None)


def compute_overlaps(records: Iterable[AssignmentRecord]) -> OverlapResult:
    """
    Pairs of employees who worked on the same project at the same time.

    ``all_pairs`` is in canonical order: projects in first-seen order, then
    the nested (i, j) scan within each project. ``maximal`` holds every entry
    for the winning pair of employees, on any project. Other pairs that merely
    tie the winning day count are left out.
    """
    all_pairs: List[PairOverlap] = []
    for project_id, group in group_by_project(records).items():
        all_pairs.extend(project_pair_overlaps(project_id, group))

    best = find_best_pair(all_pairs)
    maximal = [p for p in all_pairs if best is not None and best.matches(p)]

    if best is not None:
        log.info(
            "Found %d overlapping pair(s); longest: employees %s and %s, %d day(s)",
            len(all_pairs),
            best.employee_a,
            best.employee_b,
            best.overlap_days,
        )
    else:
        log.info("No overlapping pairs found")

    return OverlapResult(all_pairs=all_pairs, maximal=maximal, best=best)


def pairs_for_employee(result: OverlapResult, employee_id: int) -> List[PairOverlap]:
    """All entries of ``result.all_pairs`` involving ``employee_id``, in canonical order."""
    return [p for p in result.all_pairs if employee_id in (p.employee_a, p.employee_b)]


def validate_pairs(pairs: Iterable[PairOverlap]) -> Tuple[bool, str]:
    """
    Utility for tests/debug: confirms no self-pairs and only positive day counts.

    Returns (ok, message).
    """
    for p in pairs:
        if p.employee_a == p.employee_b:
            return False, f"Self-pair detected on project={p.project_id}: employee {p.employee_a}"
        if p.overlap_days <= 0:
            return False, f"Non-positive overlap on project={p.project_id}: {p.employee_a} vs {p.employee_b}"
    return True, "ok"
