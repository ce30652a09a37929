import datetime
import logging
from typing import Iterable, Mapping, Tuple

from django.core.exceptions import ValidationError
from django.db import transaction

from academics.models import Student
from academics.services.rosters import configured_aliases, year_filter
from academics.services.year_aliases import normalize_year
from attendance.models import AttendanceRecord, AttendanceSession

logger = logging.getLogger(__name__)

VALID_STATUSES = (AttendanceRecord.PRESENT, AttendanceRecord.ABSENT)


def open_session(date: datetime.date, department: str, year_of_study: str, division: str, taken_by=None) -> Tuple[AttendanceSession, bool]:
    """Get or create the session for a day and class. Returns (session, created)."""
    department = (department or '').strip()
    division = (division or '').strip().upper()
    year_of_study = normalize_year(year_of_study, configured_aliases())
    if not (date and department and year_of_study and division):
        raise ValidationError('Date, department, year and division are required to open a session.')
    session, created = AttendanceSession.objects.get_or_create(
        date=date,
        department=department,
        year_of_study=year_of_study,
        division=division,
        defaults={'taken_by': taken_by},
    )
    if created:
        logger.info('Attendance session opened id=%s %s', session.pk, session)
    return session, created


def students_for_session(session: AttendanceSession):
    """Active students of the session's department, year and division.

    A main division (e.g. 'A') includes its sub-batches ('A1', 'A2').
    """
    qs = Student.objects.filter(is_active=True, branch=session.department).filter(year_filter('year_of_study', session.year_of_study))
    division = (session.division or '').strip()
    if len(division) == 1:
        qs = qs.filter(division__istartswith=division)
    else:
        qs = qs.filter(division__iexact=division)
    return qs.order_by('roll_no', 'prn')


def submit_attendance(session: AttendanceSession, records: Iterable[Mapping], taken_by=None, mark_rest_present: bool = False) -> int:
    """Store one record per student and lock the session.

    `records` holds mappings with `prn`, `status` and optional `remark`.
    With `mark_rest_present`, students of the session that are not listed are
    stored as Present. Raises ValidationError if the session is already
    locked, a status is invalid or a PRN is unknown; nothing is written then.
    Returns the number of records stored.
    """
    records = list(records)
    with transaction.atomic():
        session = AttendanceSession.objects.select_for_update().get(pk=session.pk)
        if session.locked:
            raise ValidationError('Attendance for this session has already been submitted and is locked.')

        wanted = {}
        for row in records:
            prn = str(row.get('prn') or '').strip()
            status = row.get('status') or AttendanceRecord.ABSENT
            if not prn:
                raise ValidationError({'records': 'Every record needs a PRN.'})
            if status not in VALID_STATUSES:
                raise ValidationError({'records': f'Invalid status {status!r} for {prn}.'})
            wanted[prn] = (status, (row.get('remark') or '').strip())

        students = {s.prn: s for s in Student.objects.filter(prn__in=list(wanted))}
        unknown = sorted(set(wanted) - set(students))
        if unknown:
            logger.warning('Attendance submit for session=%s rejected, unknown PRNs: %s', session.pk, unknown)
            raise ValidationError({'records': f"Unknown PRN(s): {', '.join(unknown)}"})

        if mark_rest_present:
            for student in students_for_session(session):
                if student.prn not in wanted:
                    wanted[student.prn] = (AttendanceRecord.PRESENT, '')
                    students[student.prn] = student

        for prn, (status, remark) in wanted.items():
            AttendanceRecord.objects.update_or_create(
                session=session,
                student=students[prn],
                defaults={'status': status, 'remark': remark},
            )

        session.locked = True
        if taken_by is not None:
            session.taken_by = taken_by
        session.save(update_fields=['locked', 'taken_by'])

    absent = sum(1 for status, _ in wanted.values() if status == AttendanceRecord.ABSENT)
    logger.info('Attendance submitted session=%s records=%d absent=%d', session.pk, len(wanted), absent)
    return len(wanted)
