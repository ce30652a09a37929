import logging

from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsAdminOrReadOnly, IsAdminRole, IsStaffRole, user_is_admin

from .models import Student, BatchDefinition, TeacherBatchConfig
from .serializers import (
    StudentSerializer,
    StudentRecordSerializer,
    BatchDefinitionSerializer,
    TeacherBatchConfigSerializer,
    AssignBatchSerializer,
    AllocationStatusSerializer,
    SuggestRangeSerializer,
)
from .services.allocation import (
    assign_batch_to_teacher,
    delete_batch_definition,
    set_allocation_status,
    suggest_next_range,
)
from .services.batch_resolver import partition_students, resolve_students_for_batch
from .services.records import BatchRecord
from .services.rosters import batch_record, configured_aliases, load_batches, load_students, year_filter

logger = logging.getLogger(__name__)


class StudentViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = StudentSerializer
    permission_classes = (IsAuthenticated, IsStaffRole)

    def get_queryset(self):
        qs = Student.objects.filter(is_active=True)
        params = self.request.query_params
        branch = params.get('branch')
        year = params.get('year')
        division = params.get('division')
        q = (params.get('q') or '').strip()
        if branch and branch != 'All':
            qs = qs.filter(branch=branch)
        if year and year != 'All':
            qs = qs.filter(year_filter('year_of_study', year))
        if division and division != 'All':
            qs = qs.filter(division__istartswith=division[:1])
        if q:
            qs = qs.filter(Q(full_name__icontains=q) | Q(prn__icontains=q) | Q(roll_no__icontains=q))
        return qs.order_by('roll_no', 'prn')


class BatchDefinitionViewSet(viewsets.ModelViewSet):
    """Batch definitions. Everyone signed in may read; admins write."""
    serializer_class = BatchDefinitionSerializer
    permission_classes = (IsAuthenticated, IsAdminOrReadOnly)

    def get_queryset(self):
        qs = BatchDefinition.objects.all().order_by('department', 'year', 'division', 'sub_batch')
        params = self.request.query_params
        department = params.get('department')
        year = params.get('year')
        division = params.get('division')
        if department and department != 'All':
            qs = qs.filter(department=department)
        if year and year != 'All':
            qs = qs.filter(year_filter('year', year))
        if division and division != 'All':
            qs = qs.filter(division__istartswith=division[:1])
        return qs

    def perform_create(self, serializer):
        batch = serializer.save()
        logger.info('Batch definition created id=%s by=%s', batch.pk, self.request.user)

    def perform_destroy(self, instance):
        delete_batch_definition(instance)

    @action(detail=True, methods=['get'], url_path='students')
    def students(self, request, pk=None):
        """Students whose roll number falls inside this batch's range."""
        batch = self.get_object()
        aliases = configured_aliases()
        candidates = load_students(branch=batch.department, division=batch.division)
        roster = resolve_students_for_batch(batch_record(batch), candidates, aliases)
        return Response({
            'batch': BatchDefinitionSerializer(batch).data,
            'count': len(roster),
            'students': StudentRecordSerializer(roster, many=True).data,
        })

    @action(detail=False, methods=['get'], url_path='suggest-range')
    def suggest_range(self, request):
        ser = SuggestRangeSerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        suggestion = suggest_next_range(
            data['department'],
            data['year'],
            data['division'],
            academic_year=data.get('academic_year') or None,
            size=data.get('size'),
        )
        return Response(suggestion)

    @action(detail=False, methods=['get'], url_path='unassigned-students')
    def unassigned_students(self, request):
        """Students in scope that no batch definition covers."""
        params = request.query_params
        department = params.get('department')
        students = load_students(branch=department, year=params.get('year'), division=params.get('division'))
        batches = load_batches(department)
        _, unassigned = partition_students(batches, students, configured_aliases())
        return Response({
            'count': len(unassigned),
            'students': StudentRecordSerializer(unassigned, many=True).data,
        })


class AllocationViewSet(viewsets.ReadOnlyModelViewSet):
    """GFM allocations. Admins see all of them, a GFM only their own."""
    serializer_class = TeacherBatchConfigSerializer
    permission_classes = (IsAuthenticated, IsStaffRole)

    def get_queryset(self):
        qs = TeacherBatchConfig.objects.select_related('teacher', 'batch_definition').order_by('department', 'year', 'division')
        user = self.request.user
        if not user_is_admin(user):
            qs = qs.filter(teacher=user)
        status_filter = self.request.query_params.get('status')
        if status_filter:
            qs = qs.filter(status=status_filter)
        return qs

    @action(detail=False, methods=['post'], url_path='assign', permission_classes=(IsAuthenticated, IsAdminRole))
    def assign(self, request):
        ser = AssignBatchSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        config = assign_batch_to_teacher(ser.validated_data['teacher'], ser.validated_data['batch_definition'])
        return Response(TeacherBatchConfigSerializer(config).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=['post'], url_path='status', permission_classes=(IsAuthenticated, IsAdminRole))
    def set_status(self, request, pk=None):
        config = get_object_or_404(TeacherBatchConfig, pk=pk)
        ser = AllocationStatusSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        config = set_allocation_status(config, ser.validated_data['status'])
        return Response(TeacherBatchConfigSerializer(config).data)


def allocation_batch(config: TeacherBatchConfig) -> BatchRecord:
    # the allocation's own copy of the range, not the (possibly edited) definition
    return BatchRecord(
        id=config.batch_definition_id,
        department=config.department,
        year=config.year,
        division=config.division,
        rbt_from=config.rbt_from,
        rbt_to=config.rbt_to,
        academic_year=config.academic_year,
        teacher_name=config.teacher.display_name,
    )


class MyBatchStudentsView(APIView):
    """Roster of the signed-in GFM's allocated batch."""
    permission_classes = (IsAuthenticated,)

    def get(self, request):
        user = request.user
        if getattr(user, 'role', None) != 'GFM' and not user_is_admin(user):
            raise PermissionDenied('Only GFM teachers have an allocated batch.')
        config = TeacherBatchConfig.objects.select_related('teacher').filter(teacher=user).first()
        if config is None:
            return Response({'detail': 'No batch has been allocated to you yet.', 'students': []}, status=status.HTTP_404_NOT_FOUND)
        batch = allocation_batch(config)
        candidates = load_students(branch=config.department, division=config.division)
        roster = resolve_students_for_batch(batch, candidates, configured_aliases())
        return Response({
            'allocation': TeacherBatchConfigSerializer(config).data,
            'count': len(roster),
            'students': StudentRecordSerializer(roster, many=True).data,
        })
