"""GFM compliance audit.

For every absence in a snapshot, decide whether the student's GFM followed
up: a logged call on the day of the absence, or a pre-informed absence
(leave note) covering that day. Rows are computed fresh on every call from
the records passed in; nothing is read from or written to the database.

Malformed or orphaned rows (absence without a session or student, roll
numbers without digits) are dropped rather than raising. Only a missing
input collection (None) is an error.
"""
import datetime
import logging
from collections import OrderedDict, defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from academics.services.batch_resolver import division_prefix, resolve_batch_for_student
from academics.services.records import (
    AttendanceEntry,
    AuditItem,
    BatchRecord,
    CallRecord,
    ComplianceBucket,
    IncompleteSnapshotError,
    LeaveNote,
    SessionRecord,
    StudentRecord,
)
from academics.services.year_aliases import normalize_year

logger = logging.getLogger(__name__)

ALL = 'All'

STATUS_CALLED = 'Called'
STATUS_PRE_INFORMED = 'Pre-Informed'
STATUS_PENDING = 'Pending'

NO_CALL_REASON = 'No Call Logged'
UNKNOWN_GFM = 'Unknown'
PROOF_SUFFIX = ' (Proof Uploaded)'


@dataclass(frozen=True)
class AuditFilters:
    dept: str = ALL
    year: str = ALL
    div: str = ALL
    start_date: Optional[datetime.date] = None
    end_date: Optional[datetime.date] = None
    gfm_search: str = ''

    @property
    def narrows_division(self) -> bool:
        return bool(self.div) and self.div != ALL


def _is_all(value) -> bool:
    return not value or value == ALL


def _naive_utc(value: datetime.datetime) -> datetime.datetime:
    if value.tzinfo is not None:
        return value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return value


def session_in_scope(session: SessionRecord, filters: AuditFilters, aliases: Optional[Mapping[str, str]] = None) -> bool:
    """Department, year (any spelling) and division filters against a session."""
    if not _is_all(filters.dept) and (session.department or '').strip() != filters.dept.strip():
        return False
    if not _is_all(filters.year) and normalize_year(session.year_of_study, aliases) != normalize_year(filters.year, aliases):
        return False
    if not _is_all(filters.div):
        div = (session.division or '').strip()
        wanted = filters.div.strip()
        # 'A' selects A, A1, A2 ...
        if div.upper() != wanted.upper() and division_prefix(div) != wanted.upper():
            return False
    if filters.start_date and session.date < filters.start_date:
        return False
    if filters.end_date and session.date > filters.end_date:
        return False
    return True


def _first_calls(calls: Iterable[CallRecord]) -> Dict[Tuple[str, datetime.date], CallRecord]:
    index: Dict[Tuple[str, datetime.date], CallRecord] = {}
    for call in calls:
        if call.communication_type != 'call' or call.created_at is None:
            continue
        index.setdefault((call.student_prn, call.created_at.date()), call)
    return index


def _leave_notes_by_prn(leave_notes: Iterable[LeaveNote]) -> Dict[str, List[LeaveNote]]:
    index: Dict[str, List[LeaveNote]] = defaultdict(list)
    for note in leave_notes:
        index[note.student_prn].append(note)
    return index


def leave_note_text(note: Optional[LeaveNote]) -> str:
    if note is None:
        return '-'
    return f"{note.reason}{PROOF_SUFFIX if note.proof_url else ''}"


def build_audit_rows(
    absences: Optional[Sequence[AttendanceEntry]],
    calls: Optional[Sequence[CallRecord]],
    leave_notes: Optional[Sequence[LeaveNote]],
    sessions: Optional[Sequence[SessionRecord]],
    batches: Optional[Sequence[BatchRecord]],
    students: Optional[Sequence[StudentRecord]],
    filters: Optional[AuditFilters] = None,
    aliases: Optional[Mapping[str, str]] = None,
) -> List[AuditItem]:
    """One audit row per absence that survives the joins and filters, newest first."""
    inputs = {
        'absences': absences,
        'calls': calls,
        'leave_notes': leave_notes,
        'sessions': sessions,
        'batches': batches,
        'students': students,
    }
    missing = [name for name, value in inputs.items() if value is None]
    if missing:
        raise IncompleteSnapshotError(f"Missing snapshot collections: {', '.join(missing)}")

    filters = filters or AuditFilters()
    sessions_by_id = {s.id: s for s in sessions}
    students_by_prn: Dict[str, StudentRecord] = {}
    for s in students:
        students_by_prn.setdefault(s.prn, s)
    call_index = _first_calls(calls)
    leave_index = _leave_notes_by_prn(leave_notes)
    search = (filters.gfm_search or '').strip().lower()

    rows: List[AuditItem] = []
    skipped = 0
    for absence in absences:
        if absence.status != 'Absent':
            continue
        session = sessions_by_id.get(absence.session_id)
        student = students_by_prn.get(absence.student_prn)
        if session is None or student is None:
            skipped += 1
            continue
        if not session_in_scope(session, filters, aliases):
            continue

        day = session.date
        call = call_index.get((student.prn, day))
        note = next((n for n in leave_index.get(student.prn, ()) if n.covers(day)), None)
        batch = resolve_batch_for_student(student, batches, aliases)

        gfm_name = (call.teacher_name if call else '') or (batch.teacher_name if batch else '') or UNKNOWN_GFM
        if search and search not in gfm_name.lower():
            continue

        if call is not None:
            status = STATUS_CALLED
        elif note is not None:
            status = STATUS_PRE_INFORMED
        else:
            status = STATUS_PENDING

        timestamp = absence.created_at or datetime.datetime.combine(day, datetime.time.min)
        rows.append(AuditItem(
            dept=session.department or '-',
            year=normalize_year(session.year_of_study, aliases) or '-',
            div=session.division or '-',
            batch=batch.batch_name if batch else '-',
            name=student.full_name or student.prn,
            roll_no=student.roll_no or student.prn,
            prn=student.prn,
            date=day.isoformat(),
            status=status,
            gfm_name=gfm_name,
            call_time=call.created_at.strftime('%H:%M') if call else '-',
            reason=(call.reason or NO_CALL_REASON) if call else NO_CALL_REASON,
            leave_note=leave_note_text(note),
            leave_proof_url=note.proof_url if note else None,
            is_compliant=call is not None or note is not None,
            full_date=timestamp.isoformat(),
            timestamp=timestamp,
        ))

    if skipped:
        logger.info('Skipped %d absence(s) with no matching session or student', skipped)
    rows.sort(key=lambda r: _naive_utc(r.timestamp), reverse=True)
    return rows


def _bucket_key(dept: str, year: str, div: str, batch: str, by_batch: bool, aliases) -> Tuple[str, str, str, str]:
    year = normalize_year(year, aliases)
    if by_batch:
        return (dept, year, division_prefix(div), batch or '-')
    return (dept, year, division_prefix(div), '')


def _bucket_label(key: Tuple[str, str, str, str], filters: AuditFilters) -> str:
    dept, year, div, batch = key
    if batch:
        return 'Unassigned' if batch == '-' else f'Batch {batch}'
    parts = []
    if _is_all(filters.dept):
        parts.append(dept)
    if _is_all(filters.year):
        parts.append(year)
    parts.append(f'Div {div or "-"}')
    return ' '.join(parts)


def aggregate_compliance(
    rows: Iterable[AuditItem],
    batches: Iterable[BatchRecord] = (),
    filters: Optional[AuditFilters] = None,
    aliases: Optional[Mapping[str, str]] = None,
) -> List[ComplianceBucket]:
    """Absence counts per division, or per batch when one division is selected.

    Buckets come out in the order of the batch definitions, followed by any
    bucket only the rows produced. Buckets without absences are left out.
    """
    filters = filters or AuditFilters()
    by_batch = filters.narrows_division
    counts: 'OrderedDict[Tuple[str, str, str, str], List[int]]' = OrderedDict()

    for b in batches:
        probe = SessionRecord(id=None, date=datetime.date.min, department=b.department, year_of_study=b.year, division=b.division)
        if not session_in_scope(probe, AuditFilters(dept=filters.dept, year=filters.year, div=filters.div), aliases):
            continue
        counts.setdefault(_bucket_key(b.department, b.year, b.division, b.batch_name, by_batch, aliases), [0, 0])

    for row in rows:
        tally = counts.setdefault(_bucket_key(row.dept, row.year, row.div, row.batch, by_batch, aliases), [0, 0])
        tally[0] += 1
        if row.is_compliant:
            tally[1] += 1

    buckets = []
    for key, (population, compliant) in counts.items():
        if population == 0:
            continue
        dept, year, div, batch = key
        buckets.append(ComplianceBucket(
            label=_bucket_label(key, filters),
            department=dept,
            year=year,
            division=div,
            batch=batch,
            population=population,
            compliant=compliant,
            pending=population - compliant,
        ))
    return buckets
