import dataclasses
import logging

from django.http import HttpResponse
from django.utils import timezone
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsAdminRole, IsStaffRole, user_is_admin

from .models import AttendanceSession, CommunicationLog, PreInformedAbsence
from .renderers import CSVRenderer, XLSXRenderer
from .serializers import (
    AttendanceSessionSerializer,
    OpenSessionSerializer,
    SubmitAttendanceSerializer,
    AttendanceRecordSerializer,
    CommunicationLogSerializer,
    PreInformedAbsenceSerializer,
    AuditFiltersSerializer,
    DateRangeSerializer,
)
from .services.communications import find_pre_informed_absence, log_communication, save_pre_informed_absence
from .services.exports import audit_rows_to_csv, audit_rows_to_xlsx, division_summary_to_csv
from .services.reports import build_audit_report, build_communication_report, build_division_summary
from .services.sessions import open_session, students_for_session, submit_attendance

logger = logging.getLogger(__name__)


class AttendanceSessionViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Open, list and submit daily attendance sessions."""
    serializer_class = AttendanceSessionSerializer
    permission_classes = (IsAuthenticated, IsStaffRole)

    def get_queryset(self):
        qs = AttendanceSession.objects.select_related('taken_by').order_by('-date', 'department', 'year_of_study', 'division')
        params = self.request.query_params
        if params.get('date'):
            qs = qs.filter(date=params.get('date'))
        if params.get('department') and params.get('department') != 'All':
            qs = qs.filter(department=params.get('department'))
        if params.get('division') and params.get('division') != 'All':
            qs = qs.filter(division__istartswith=params.get('division')[:1])
        return qs

    def create(self, request, *args, **kwargs):
        ser = OpenSessionSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        session, created = open_session(taken_by=request.user, **ser.validated_data)
        roster = students_for_session(session)
        return Response({
            'session': AttendanceSessionSerializer(session).data,
            'students': [
                {'prn': s.prn, 'roll_no': s.roll_no, 'full_name': s.full_name, 'division': s.division}
                for s in roster
            ],
        }, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)

    @action(detail=True, methods=['post'], url_path='submit')
    def submit(self, request, pk=None):
        session = self.get_object()
        ser = SubmitAttendanceSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        stored = submit_attendance(
            session,
            ser.validated_data['records'],
            taken_by=request.user,
            mark_rest_present=ser.validated_data['mark_rest_present'],
        )
        session.refresh_from_db()
        return Response({'stored': stored, 'session': AttendanceSessionSerializer(session).data})

    @action(detail=True, methods=['get'], url_path='records')
    def records(self, request, pk=None):
        session = self.get_object()
        qs = session.records.select_related('student').order_by('student__roll_no', 'student__prn')
        if request.query_params.get('status'):
            qs = qs.filter(status=request.query_params.get('status'))
        return Response(AttendanceRecordSerializer(qs, many=True).data)


class CommunicationLogViewSet(mixins.CreateModelMixin, mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Call / WhatsApp log. Entries are created and read, never edited or removed."""
    serializer_class = CommunicationLogSerializer
    permission_classes = (IsAuthenticated, IsStaffRole)

    def get_queryset(self):
        qs = CommunicationLog.objects.select_related('student', 'gfm')
        user = self.request.user
        if not user_is_admin(user):
            qs = qs.filter(gfm=user)
        params = self.request.query_params
        if params.get('prn'):
            qs = qs.filter(student__prn=params.get('prn'))
        if params.get('start_date'):
            qs = qs.filter(created_at__date__gte=params.get('start_date'))
        if params.get('end_date'):
            qs = qs.filter(created_at__date__lte=params.get('end_date'))
        return qs.order_by('-created_at')

    def perform_create(self, serializer):
        data = serializer.validated_data
        serializer.instance = log_communication(
            self.request.user,
            data['student'],
            communication_type=data.get('communication_type', 'call'),
            call_target=data.get('call_target', 'student'),
            phone_number=data.get('phone_number', ''),
            reason=data.get('reason', ''),
            custom_description=data.get('custom_description', ''),
        )


class PreInformedAbsenceViewSet(mixins.CreateModelMixin, mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    serializer_class = PreInformedAbsenceSerializer
    permission_classes = (IsAuthenticated, IsStaffRole)

    def get_queryset(self):
        qs = PreInformedAbsence.objects.select_related('student', 'gfm')
        user = self.request.user
        if not user_is_admin(user):
            qs = qs.filter(gfm=user)
        if self.request.query_params.get('active') in ('1', 'true'):
            qs = qs.filter(end_date__gte=timezone.localdate())
        return qs.order_by('-start_date')

    def perform_create(self, serializer):
        data = serializer.validated_data
        serializer.instance = save_pre_informed_absence(
            data['student'],
            self.request.user,
            data['start_date'],
            data['end_date'],
            data['reason'],
            proof_url=data.get('proof_url'),
            informed_by=data.get('informed_by', ''),
            contact_method=data.get('contact_method', ''),
        )

    @action(detail=False, methods=['get'], url_path='check')
    def check(self, request):
        """Is the student covered by a pre-informed absence on `date` (default today)?"""
        prn = (request.query_params.get('prn') or '').strip()
        if not prn:
            return Response({'detail': 'prn is required.'}, status=status.HTTP_400_BAD_REQUEST)
        ser = DateRangeSerializer(data={'start_date': request.query_params.get('date') or timezone.localdate()})
        ser.is_valid(raise_exception=True)
        absence = find_pre_informed_absence(prn, ser.validated_data['start_date'])
        return Response({
            'pre_informed': absence is not None,
            'absence': PreInformedAbsenceSerializer(absence).data if absence else None,
        })


def _bucket_dict(bucket):
    return dataclasses.asdict(bucket)


class GfmAuditReportView(APIView):
    """Per-absence GFM follow-up audit plus the chart buckets."""
    permission_classes = (IsAuthenticated, IsAdminRole)

    def get(self, request):
        ser = AuditFiltersSerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)
        try:
            report = build_audit_report(ser.to_filters())
        except Exception as e:
            logger.exception('GFM audit report failed: %s', e)
            return Response({'detail': 'Failed to build the GFM audit report.'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return Response({
            'start_date': report.filters.start_date,
            'end_date': report.filters.end_date,
            'total': len(report.rows),
            'compliant': report.compliant,
            'pending': report.pending,
            'rows': [r.as_export_dict() for r in report.rows],
            'buckets': [_bucket_dict(b) for b in report.buckets],
        })


class GfmAuditExportView(APIView):
    """The audit as a CSV (default) or XLSX download: ?format=csv|xlsx."""
    permission_classes = (IsAuthenticated, IsAdminRole)
    renderer_classes = (CSVRenderer, XLSXRenderer)

    def get(self, request):
        ser = AuditFiltersSerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)
        fmt = getattr(request.accepted_renderer, 'format', 'csv')
        report = build_audit_report(ser.to_filters())
        stamp = f"{report.filters.start_date:%Y%m%d}-{report.filters.end_date:%Y%m%d}"
        if fmt == 'xlsx':
            content = audit_rows_to_xlsx(report.rows)
            response = HttpResponse(content, content_type=XLSXRenderer.media_type)
        else:
            content = audit_rows_to_csv(report.rows)
            response = HttpResponse(content, content_type='text/csv; charset=utf-8')
        response['Content-Disposition'] = f'attachment; filename="gfm-audit-{stamp}.{fmt}"'
        logger.info('GFM audit exported format=%s rows=%d by=%s', fmt, len(report.rows), request.user)
        return response


class DivisionSummaryView(APIView):
    """Present / absent totals per division for one day. ?export=csv downloads it."""
    permission_classes = (IsAuthenticated, IsStaffRole)

    def get(self, request):
        ser = DateRangeSerializer(data={'start_date': request.query_params.get('date') or timezone.localdate()})
        ser.is_valid(raise_exception=True)
        day = ser.validated_data['start_date']
        summaries = build_division_summary(day, request.query_params.get('department'), request.query_params.get('year'))
        if request.query_params.get('export') == 'csv':
            response = HttpResponse(division_summary_to_csv(summaries), content_type='text/csv; charset=utf-8')
            response['Content-Disposition'] = f'attachment; filename="attendance-{day:%Y%m%d}.csv"'
            return response
        return Response({'date': day, 'divisions': [s.as_dict() for s in summaries]})


class CommunicationReportView(APIView):
    """Call / WhatsApp activity per GFM over a date range."""
    permission_classes = (IsAuthenticated, IsAdminRole)

    def get(self, request):
        ser = DateRangeSerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)
        activity = build_communication_report(ser.validated_data.get('start_date'), ser.validated_data.get('end_date'))
        return Response({
            'total': sum(a.total for a in activity),
            'gfms': [a.as_dict() for a in activity],
        })
