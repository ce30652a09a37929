"""Load attendance and communication snapshots from the database as core records."""
import datetime
from typing import List, Optional

from django.utils import timezone

from academics.services.records import AttendanceEntry, CallRecord, LeaveNote, SessionRecord
from academics.services.rosters import year_filter
from attendance.models import AttendanceRecord, AttendanceSession, CommunicationLog, PreInformedAbsence


def local_datetime(value: Optional[datetime.datetime]) -> Optional[datetime.datetime]:
    # calls are matched to absences by local calendar day
    if value is None:
        return None
    if timezone.is_aware(value):
        return timezone.localtime(value)
    return value


def load_sessions(start_date: Optional[datetime.date] = None, end_date: Optional[datetime.date] = None, department: Optional[str] = None, year: Optional[str] = None, division: Optional[str] = None) -> List[SessionRecord]:
    qs = AttendanceSession.objects.all()
    if start_date:
        qs = qs.filter(date__gte=start_date)
    if end_date:
        qs = qs.filter(date__lte=end_date)
    if department and department != 'All':
        qs = qs.filter(department=department)
    if year and year != 'All':
        qs = qs.filter(year_filter('year_of_study', year))
    if division and division != 'All':
        qs = qs.filter(division__istartswith=division[:1])
    return [
        SessionRecord(
            id=s.pk,
            date=s.date,
            department=s.department,
            year_of_study=s.year_of_study,
            division=s.division,
            locked=s.locked,
        )
        for s in qs.order_by('date', 'pk')
    ]


def load_absences(session_ids) -> List[AttendanceEntry]:
    qs = (
        AttendanceRecord.objects
        .filter(session_id__in=list(session_ids), status=AttendanceRecord.ABSENT)
        .select_related('student')
        .order_by('pk')
    )
    return [
        AttendanceEntry(
            session_id=r.session_id,
            student_prn=r.student.prn,
            status=r.status,
            remark=r.remark,
            created_at=local_datetime(r.created_at),
        )
        for r in qs
    ]


def load_records(session_ids) -> List[AttendanceEntry]:
    """Every record (present and absent) of the given sessions."""
    qs = AttendanceRecord.objects.filter(session_id__in=list(session_ids)).select_related('student').order_by('pk')
    return [
        AttendanceEntry(session_id=r.session_id, student_prn=r.student.prn, status=r.status, remark=r.remark, created_at=local_datetime(r.created_at))
        for r in qs
    ]


def load_calls(start_date: Optional[datetime.date] = None, end_date: Optional[datetime.date] = None) -> List[CallRecord]:
    """Communication logs whose local day falls in [start_date, end_date], oldest first."""
    qs = CommunicationLog.objects.select_related('student', 'gfm').order_by('created_at', 'pk')
    if start_date:
        qs = qs.filter(created_at__date__gte=start_date)
    if end_date:
        qs = qs.filter(created_at__date__lte=end_date)
    return [
        CallRecord(
            student_prn=c.student.prn,
            created_at=local_datetime(c.created_at),
            communication_type=c.communication_type,
            gfm_id=c.gfm_id,
            teacher_name=c.gfm.display_name if c.gfm else '',
            reason=c.reason,
            custom_description=c.custom_description,
        )
        for c in qs
    ]


def load_leave_notes(start_date: Optional[datetime.date] = None, end_date: Optional[datetime.date] = None) -> List[LeaveNote]:
    """Pre-informed absences overlapping [start_date, end_date], oldest first."""
    qs = PreInformedAbsence.objects.select_related('student').order_by('created_at', 'pk')
    if start_date:
        qs = qs.filter(end_date__gte=start_date)
    if end_date:
        qs = qs.filter(start_date__lte=end_date)
    return [
        LeaveNote(
            student_prn=n.student.prn,
            start_date=n.start_date,
            end_date=n.end_date,
            reason=n.reason,
            proof_url=n.proof_url or None,
            gfm_id=n.gfm_id,
            informed_by=n.informed_by,
            contact_method=n.contact_method,
        )
        for n in qs
    ]
