from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from .services.batch_matching import is_valid_range
from .services.roll_keys import extract_sequence


class Student(models.Model):
    prn = models.CharField('PRN', max_length=32, unique=True, db_index=True)
    roll_no = models.CharField(max_length=32, blank=True, db_index=True)
    full_name = models.CharField(max_length=150)
    branch = models.CharField(max_length=128, help_text='Department name, e.g. Computer Engineering')
    year_of_study = models.CharField(max_length=32)
    division = models.CharField(max_length=8, help_text='Division or sub-batch, e.g. A or A1')
    mobile_no = models.CharField(max_length=32, blank=True)
    father_mobile = models.CharField(max_length=32, blank=True)
    mother_mobile = models.CharField(max_length=32, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ('branch', 'year_of_study', 'division', 'roll_no')

    def __str__(self):
        return f"{self.prn} - {self.full_name}"

    def save(self, *args, **kwargs):
        # PRN is the student's identity and never changes after enrollment
        if self.pk:
            old_prn = Student.objects.filter(pk=self.pk).values_list('prn', flat=True).first()
            if old_prn is not None and old_prn != self.prn:
                raise ValidationError({'prn': 'Student PRN is immutable and cannot be changed.'})
        super().save(*args, **kwargs)


class BatchDefinition(models.Model):
    """A contiguous roll-number range inside one department/year/division.

    Example: Computer Engineering, Second Year, division A, sub-batch 1,
    CS2401..CS2420. Ranges compare on the sequence modulo 1000 so the same
    definition keeps working for later intakes.
    """
    department = models.CharField(max_length=128)
    year = models.CharField('Class', max_length=32)
    division = models.CharField(max_length=8)
    sub_batch = models.CharField(max_length=8, blank=True)
    rbt_from = models.CharField('RBT from', max_length=32)
    rbt_to = models.CharField('RBT to', max_length=32)
    academic_year = models.CharField(max_length=16)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'Batch Definition'
        verbose_name_plural = 'Batch Definitions'
        ordering = ('department', 'year', 'division', 'sub_batch')

    def __str__(self):
        return f"{self.department} {self.year} Div {self.batch_name} ({self.rbt_from}-{self.rbt_to})"

    @property
    def batch_name(self) -> str:
        return f"{self.division}{self.sub_batch or ''}"

    def clean(self):
        errors = {}
        if extract_sequence(self.rbt_from) is None:
            errors['rbt_from'] = 'Range start must end in digits (e.g. CS2401).'
        if extract_sequence(self.rbt_to) is None:
            errors['rbt_to'] = 'Range end must end in digits (e.g. CS2420).'
        if not errors and not is_valid_range(self.rbt_from, self.rbt_to):
            errors['rbt_to'] = 'Range end must not be before range start.'
        if errors:
            raise ValidationError(errors)


class TeacherBatchConfig(models.Model):
    """The batch a GFM teacher is currently responsible for.

    One row per teacher: assigning a new batch replaces the old one. The
    range/department/division fields are copies taken at assignment time.
    """
    STATUS_CHOICES = (
        ('Pending', 'Pending'),
        ('Approved', 'Approved'),
        ('Rejected', 'Rejected'),
    )

    teacher = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='batch_config')
    # Deleting a batch definition leaves the allocation (and all attendance) in place.
    batch_definition = models.ForeignKey(BatchDefinition, on_delete=models.SET_NULL, null=True, blank=True, related_name='allocations')
    batch_name = models.CharField(max_length=255, blank=True)
    department = models.CharField(max_length=128)
    year = models.CharField('Class', max_length=32)
    division = models.CharField(max_length=8)
    rbt_from = models.CharField('RBT from', max_length=32)
    rbt_to = models.CharField('RBT to', max_length=32)
    academic_year = models.CharField(max_length=16)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default='Pending')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Teacher Batch Config'
        verbose_name_plural = 'Teacher Batch Configs'

    def __str__(self):
        return f"{self.teacher} -> {self.batch_name or self.division} ({self.status})"
