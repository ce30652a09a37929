from django.contrib.admin.views.decorators import staff_member_required
from django.db.models import Count
from django.http import JsonResponse
from django.utils import timezone

from academics.models import BatchDefinition, Student, TeacherBatchConfig
from attendance.models import AttendanceRecord, AttendanceSession, CommunicationLog


@staff_member_required
def dashboard_counts(request):
    """Return the live numbers shown on the admin index dashboard.

    Allocation counts are keyed by status; `absent_today` and `calls_today`
    let the index show how far today's follow-up has got.
    """
    today = timezone.localdate()
    allocations = {status: 0 for status, _ in TeacherBatchConfig.STATUS_CHOICES}
    for row in TeacherBatchConfig.objects.values('status').annotate(n=Count('id')):
        allocations[row['status']] = row['n']

    absent_today = (
        AttendanceRecord.objects.filter(session__date=today, status=AttendanceRecord.ABSENT)
        .values('student_id').distinct().count()
    )
    called_today = (
        CommunicationLog.objects.filter(created_at__date=today, communication_type='call')
        .values('student_id').distinct().count()
    )

    return JsonResponse({
        'students': Student.objects.filter(is_active=True).count(),
        'batches': BatchDefinition.objects.count(),
        'allocations': allocations,
        'sessions_today': AttendanceSession.objects.filter(date=today).count(),
        'absent_today': absent_today,
        'calls_today': called_today,
    })
