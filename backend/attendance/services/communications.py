import datetime
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Iterable, List, Optional

from django.core.exceptions import ValidationError

from academics.models import Student
from academics.services.records import CallRecord
from attendance.models import CommunicationLog, PreInformedAbsence

logger = logging.getLogger(__name__)

_TARGET_PHONE_FIELDS = {
    'student': 'mobile_no',
    'father': 'father_mobile',
    'mother': 'mother_mobile',
}


def log_communication(gfm, student: Student, communication_type: str = 'call', call_target: str = 'student', phone_number: str = '', reason: str = '', custom_description: str = '') -> CommunicationLog:
    """Record a call or WhatsApp message. Logs are never edited afterwards.

    When no phone number is given the student's number for `call_target` is
    used.
    """
    if communication_type not in dict(CommunicationLog.TYPE_CHOICES):
        raise ValidationError({'communication_type': f'Unknown communication type {communication_type!r}.'})
    if call_target not in _TARGET_PHONE_FIELDS:
        raise ValidationError({'call_target': f'Unknown call target {call_target!r}.'})
    if not phone_number:
        phone_number = getattr(student, _TARGET_PHONE_FIELDS[call_target], '') or ''
    entry = CommunicationLog.objects.create(
        gfm=gfm,
        student=student,
        communication_type=communication_type,
        call_target=call_target,
        phone_number=phone_number,
        reason=reason or '',
        custom_description=custom_description or '',
    )
    logger.info('Communication logged type=%s prn=%s target=%s gfm=%s', communication_type, student.prn, call_target, getattr(gfm, 'username', None))
    return entry


def save_pre_informed_absence(student: Student, gfm, start_date: datetime.date, end_date: datetime.date, reason: str, proof_url: Optional[str] = None, informed_by: str = '', contact_method: str = '') -> PreInformedAbsence:
    absence = PreInformedAbsence(
        student=student,
        gfm=gfm,
        start_date=start_date,
        end_date=end_date,
        reason=reason,
        proof_url=proof_url or None,
        informed_by=informed_by or '',
        contact_method=contact_method or '',
    )
    absence.full_clean()
    absence.save()
    logger.info('Pre-informed absence saved prn=%s %s..%s', student.prn, start_date, end_date)
    return absence


def find_pre_informed_absence(prn: str, day: datetime.date) -> Optional[PreInformedAbsence]:
    """The earliest-recorded pre-informed absence of `prn` covering `day`, or None."""
    return (
        PreInformedAbsence.objects
        .select_related('student')
        .filter(student__prn=prn, start_date__lte=day, end_date__gte=day)
        .order_by('created_at', 'pk')
        .first()
    )


@dataclass(frozen=True)
class GfmActivity:
    gfm_id: object
    teacher_name: str
    calls: int
    whatsapp: int

    @property
    def total(self) -> int:
        return self.calls + self.whatsapp

    def as_dict(self):
        return {
            'gfmId': self.gfm_id,
            'teacherName': self.teacher_name,
            'calls': self.calls,
            'whatsapp': self.whatsapp,
            'total': self.total,
        }


def summarize_communications(calls: Iterable[CallRecord]) -> List[GfmActivity]:
    """Call / WhatsApp counts per GFM, busiest first."""
    tallies = OrderedDict()
    for c in calls:
        key = c.gfm_id
        if key not in tallies:
            tallies[key] = [c.teacher_name or 'Unknown', 0, 0]
        if c.communication_type == 'call':
            tallies[key][1] += 1
        elif c.communication_type == 'whatsapp':
            tallies[key][2] += 1
    activity = [
        GfmActivity(gfm_id=gfm_id, teacher_name=name, calls=n_calls, whatsapp=n_whatsapp)
        for gfm_id, (name, n_calls, n_whatsapp) in tallies.items()
    ]
    activity.sort(key=lambda a: (-a.total, a.teacher_name))
    return activity
