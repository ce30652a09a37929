"""Load roster snapshots (students, batch definitions, allocations) from the database."""
from typing import Dict, List, Optional

from django.conf import settings
from django.db.models import Q

from academics.models import BatchDefinition, Student, TeacherBatchConfig

from .records import AllocationRecord, BatchRecord, StudentRecord
from .year_aliases import build_aliases, year_spellings


def configured_aliases() -> Dict[str, str]:
    return build_aliases(getattr(settings, 'GFM_YEAR_ALIASES', None))


def year_filter(field: str, year: str) -> Q:
    """Q matching `field` against every spelling of `year`."""
    query = Q()
    for spelling in year_spellings(year, configured_aliases()):
        query |= Q(**{f'{field}__iexact': spelling})
    return query


def student_record(student: Student) -> StudentRecord:
    return StudentRecord(
        prn=student.prn,
        roll_no=student.roll_no or '',
        branch=student.branch or '',
        year_of_study=student.year_of_study or '',
        division=student.division or '',
        full_name=student.full_name or '',
    )


def batch_record(batch: BatchDefinition, teacher_name: str = '') -> BatchRecord:
    return BatchRecord(
        id=batch.pk,
        department=batch.department,
        year=batch.year,
        division=batch.division,
        sub_batch=batch.sub_batch or '',
        rbt_from=batch.rbt_from,
        rbt_to=batch.rbt_to,
        academic_year=batch.academic_year,
        teacher_name=teacher_name,
    )


def load_students(branch: Optional[str] = None, year: Optional[str] = None, division: Optional[str] = None, include_inactive: bool = False) -> List[StudentRecord]:
    """Students filtered by department, year (any spelling) and main division."""
    qs = Student.objects.all()
    if not include_inactive:
        qs = qs.filter(is_active=True)
    if branch and branch != 'All':
        qs = qs.filter(branch=branch)
    if division and division != 'All':
        qs = qs.filter(division__istartswith=division[:1])
    if year and year != 'All':
        qs = qs.filter(year_filter('year_of_study', year))
    return [student_record(s) for s in qs.order_by('roll_no', 'prn')]


def _teacher_names_by_batch() -> Dict[int, str]:
    names: Dict[int, str] = {}
    configs = (
        TeacherBatchConfig.objects
        .filter(batch_definition__isnull=False)
        .exclude(status='Rejected')
        .select_related('teacher')
        .order_by('updated_at')
    )
    for cfg in configs:
        # latest assignment wins when several teachers share a batch
        names[cfg.batch_definition_id] = cfg.teacher.display_name
    return names


def load_batches(department: Optional[str] = None) -> List[BatchRecord]:
    """Batch definitions in id order, each carrying its assigned teacher's name."""
    qs = BatchDefinition.objects.all().order_by('pk')
    if department and department != 'All':
        qs = qs.filter(department=department)
    names = _teacher_names_by_batch()
    return [batch_record(b, names.get(b.pk, '')) for b in qs]


def load_allocations() -> List[AllocationRecord]:
    qs = TeacherBatchConfig.objects.select_related('teacher').order_by('pk')
    return [
        AllocationRecord(
            teacher_id=cfg.teacher_id,
            batch_definition_id=cfg.batch_definition_id,
            rbt_from=cfg.rbt_from,
            rbt_to=cfg.rbt_to,
            department=cfg.department,
            division=cfg.division,
            academic_year=cfg.academic_year,
            status=cfg.status,
            teacher_name=cfg.teacher.display_name,
        )
        for cfg in qs
    ]
