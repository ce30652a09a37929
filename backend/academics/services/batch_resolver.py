"""Resolve students to GFM batch definitions.

All functions are pure: they take already-loaded records (see
``academics.services.records``) and return derived lists. Nothing is cached
and nothing is written, so callers may re-run them on every filter change.
"""
import logging
from collections import OrderedDict
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .batch_matching import in_range, ranges_overlap
from .records import BatchRecord, StudentRecord
from .year_aliases import years_match

logger = logging.getLogger(__name__)


def division_prefix(value) -> str:
    """Leading character of a division, upper-cased ('A1' -> 'A')."""
    raw = str(value or '').strip()
    return raw[:1].upper()


def scope_matches(student: StudentRecord, batch: BatchRecord, aliases: Optional[Mapping[str, str]] = None) -> bool:
    """Department, year (alias-normalized) and main division agree."""
    if (student.branch or '').strip() != (batch.department or '').strip():
        return False
    if not years_match(student.year_of_study, batch.year, aliases):
        return False
    prefix = division_prefix(student.division)
    return bool(prefix) and prefix == division_prefix(batch.division)


def roll_key(student: StudentRecord) -> str:
    return student.roll_no or student.prn


def resolve_batches_for_student(student: StudentRecord, batches: Iterable[BatchRecord], aliases: Optional[Mapping[str, str]] = None) -> List[BatchRecord]:
    """Every batch covering `student`, in input order."""
    key = roll_key(student)
    return [
        b for b in batches
        if scope_matches(student, b, aliases) and in_range(key, b.rbt_from, b.rbt_to)
    ]


def resolve_batch_for_student(student: StudentRecord, batches: Iterable[BatchRecord], aliases: Optional[Mapping[str, str]] = None) -> Optional[BatchRecord]:
    """The first batch covering `student`, or None when the student is unassigned.

    Overlapping definitions are a data-entry problem, not an error: the first
    match in input order wins and a warning is logged.
    """
    matches = resolve_batches_for_student(student, batches, aliases)
    if not matches:
        return None
    if len(matches) > 1:
        logger.warning(
            'Ambiguous batch match prn=%s roll=%s batches=%s; using %s',
            student.prn,
            student.roll_no,
            [b.id for b in matches],
            matches[0].id,
        )
    return matches[0]


def resolve_students_for_batch(batch: BatchRecord, students: Iterable[StudentRecord], aliases: Optional[Mapping[str, str]] = None) -> List[StudentRecord]:
    return [
        s for s in students
        if scope_matches(s, batch, aliases) and in_range(roll_key(s), batch.rbt_from, batch.rbt_to)
    ]


def partition_students(batches: Sequence[BatchRecord], students: Iterable[StudentRecord], aliases: Optional[Mapping[str, str]] = None) -> Tuple[Dict[object, List[StudentRecord]], List[StudentRecord]]:
    """Assign every student to at most one batch.

    Returns ({batch_id: [students]}, unassigned). Every batch id appears in the
    mapping, possibly with an empty list.
    """
    assigned: Dict[object, List[StudentRecord]] = OrderedDict((b.id, []) for b in batches)
    unassigned: List[StudentRecord] = []
    for student in students:
        batch = resolve_batch_for_student(student, batches, aliases)
        if batch is None:
            unassigned.append(student)
        else:
            assigned[batch.id].append(student)
    return assigned, unassigned


def same_scope(a: BatchRecord, b: BatchRecord, aliases: Optional[Mapping[str, str]] = None) -> bool:
    return (
        (a.department or '').strip() == (b.department or '').strip()
        and years_match(a.year, b.year, aliases)
        and division_prefix(a.division) == division_prefix(b.division)
    )


def find_overlapping_batches(batches: Sequence[BatchRecord], aliases: Optional[Mapping[str, str]] = None) -> List[Tuple[BatchRecord, BatchRecord]]:
    """Pairs of batches in the same department/year/division whose ranges intersect."""
    pairs = []
    for i, a in enumerate(batches):
        for b in batches[i + 1:]:
            if same_scope(a, b, aliases) and ranges_overlap(a.rbt_from, a.rbt_to, b.rbt_from, b.rbt_to):
                pairs.append((a, b))
    return pairs
