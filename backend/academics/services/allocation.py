import logging
from typing import Dict, Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction

from academics.models import BatchDefinition, TeacherBatchConfig

from .batch_matching import SEQUENCE_MODULUS
from .roll_keys import extract_sequence
from .year_aliases import normalize_year

logger = logging.getLogger(__name__)


def allocation_label(batch: BatchDefinition) -> str:
    return (
        f"{batch.department} {normalize_year(batch.year)} Div {batch.batch_name} "
        f"({batch.rbt_from}-{batch.rbt_to})"
    )


def create_batch_definition(**fields) -> BatchDefinition:
    """Validate and store a new batch definition."""
    batch = BatchDefinition(**fields)
    batch.full_clean()
    batch.save()
    logger.info('Batch definition created id=%s %s', batch.pk, batch)
    return batch


@transaction.atomic
def assign_batch_to_teacher(teacher, batch: BatchDefinition) -> TeacherBatchConfig:
    """Make `batch` the teacher's only live allocation.

    Upserts on the teacher: an existing allocation is overwritten with a copy
    of the batch's current range and scope, and its status goes back to
    Pending for admin approval.
    """
    if teacher is None or batch is None:
        raise ValidationError('Teacher and batch definition are required.')
    config, created = TeacherBatchConfig.objects.update_or_create(
        teacher=teacher,
        defaults={
            'batch_definition': batch,
            'batch_name': allocation_label(batch),
            'department': batch.department,
            'year': batch.year,
            'division': batch.batch_name,
            'rbt_from': batch.rbt_from,
            'rbt_to': batch.rbt_to,
            'academic_year': batch.academic_year,
            'status': 'Pending',
        },
    )
    logger.info(
        'GFM allocation %s teacher=%s batch=%s range=%s-%s',
        'created' if created else 'replaced',
        getattr(teacher, 'username', teacher),
        batch.pk,
        batch.rbt_from,
        batch.rbt_to,
    )
    return config


def set_allocation_status(config: TeacherBatchConfig, status: str) -> TeacherBatchConfig:
    allowed = {value for value, _ in TeacherBatchConfig.STATUS_CHOICES}
    if status not in allowed:
        raise ValidationError({'status': f'Status must be one of {sorted(allowed)}.'})
    config.status = status
    config.save(update_fields=['status', 'updated_at'])
    logger.info('GFM allocation id=%s status=%s', config.pk, status)
    return config


def delete_batch_definition(batch: BatchDefinition) -> int:
    """Remove a batch definition.

    Attendance history has no link to batch definitions and allocations keep
    their copied range with a null reference, so nothing else is deleted.
    Returns the number of allocations left without a definition.
    """
    orphaned = TeacherBatchConfig.objects.filter(batch_definition=batch).count()
    batch_id = batch.pk
    batch.delete()
    logger.info('Batch definition deleted id=%s orphaned_allocations=%d', batch_id, orphaned)
    return orphaned


def _intake_suffix(academic_year: str) -> str:
    # '2025-26' -> '25'
    head = str(academic_year or '').split('-')[0].strip()
    return head[-2:] if len(head) >= 2 else head


def suggest_next_range(department: str, year: str, division: str, academic_year: Optional[str] = None, prefix: Optional[str] = None, size: Optional[int] = None) -> Dict[str, str]:
    """Propose the next free roll range after the existing batches of a division.

    Looks at every batch in the same department/year (any spelling)/main
    division, takes the highest end sequence and starts right after it.
    """
    academic_year = academic_year or getattr(settings, 'GFM_DEFAULT_ACADEMIC_YEAR', '')
    prefix = prefix if prefix is not None else getattr(settings, 'GFM_RANGE_PREFIX', 'CS')
    size = int(size or getattr(settings, 'GFM_RANGE_SIZE', 20))
    if size < 1:
        raise ValidationError({'size': 'Range size must be at least 1.'})

    wanted_year = normalize_year(year)
    main_div = str(division or '')[:1].upper()
    highest = 0
    for b in BatchDefinition.objects.filter(department=department, division__istartswith=main_div):
        if normalize_year(b.year) != wanted_year:
            continue
        end = extract_sequence(b.rbt_to)
        if end is None:
            continue
        # 'CS2420' carries the intake year before a two-digit sequence
        seq = end
        if seq > SEQUENCE_MODULUS:
            seq = seq % SEQUENCE_MODULUS
        if seq > 100:
            seq = seq % 100
        highest = max(highest, seq)

    start = highest + 1
    end = start + size - 1
    head = f"{prefix}{_intake_suffix(academic_year)}"
    return {
        'rbt_from': f"{head}{start:02d}",
        'rbt_to': f"{head}{end:02d}",
        'academic_year': academic_year,
    }
