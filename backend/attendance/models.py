from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from academics.models import Student


class AttendanceSession(models.Model):
    """One day's attendance for one department/year/division.

    `year_of_study` holds the class (e.g. Second Year or SE) and is compared
    with batch definitions through the year aliases.
    """
    date = models.DateField(db_index=True)
    department = models.CharField(max_length=128)
    year_of_study = models.CharField(max_length=32)
    division = models.CharField(max_length=8)
    taken_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='attendance_sessions')
    locked = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ('-date', 'department', 'year_of_study', 'division')
        constraints = [
            models.UniqueConstraint(fields=['date', 'department', 'year_of_study', 'division'], name='unique_attendance_session'),
        ]

    def __str__(self):
        return f"{self.date} {self.department} {self.year_of_study} {self.division}"


class AttendanceRecord(models.Model):
    PRESENT = 'Present'
    ABSENT = 'Absent'
    STATUS_CHOICES = (
        (PRESENT, 'Present'),
        (ABSENT, 'Absent'),
    )

    session = models.ForeignKey(AttendanceSession, on_delete=models.CASCADE, related_name='records')
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name='attendance_records')
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=ABSENT)
    remark = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['session', 'student'], name='unique_attendance_record'),
        ]

    def __str__(self):
        return f"{self.session} {self.student.prn}: {self.status}"


class CommunicationLog(models.Model):
    """A call or WhatsApp message from a GFM about a student. Append-only."""
    TYPE_CHOICES = (
        ('call', 'Call'),
        ('whatsapp', 'WhatsApp'),
    )
    TARGET_CHOICES = (
        ('student', 'Student'),
        ('father', 'Father'),
        ('mother', 'Mother'),
    )

    gfm = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='communication_logs')
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name='communication_logs')
    communication_type = models.CharField(max_length=16, choices=TYPE_CHOICES, default='call')
    call_target = models.CharField(max_length=16, choices=TARGET_CHOICES, default='student')
    phone_number = models.CharField(max_length=32, blank=True)
    reason = models.CharField(max_length=255, blank=True)
    custom_description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ('-created_at',)

    def __str__(self):
        return f"{self.communication_type} {self.student.prn} @ {self.created_at:%Y-%m-%d %H:%M}"


class PreInformedAbsence(models.Model):
    """Leave the family told the GFM about in advance. Ranges may overlap."""
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name='pre_informed_absences')
    gfm = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='pre_informed_absences')
    start_date = models.DateField()
    end_date = models.DateField()
    reason = models.CharField(max_length=255)
    proof_url = models.URLField(max_length=500, blank=True, null=True)
    informed_by = models.CharField(max_length=32, blank=True, help_text='student, father, mother, ...')
    contact_method = models.CharField(max_length=32, blank=True, help_text='call, whatsapp, in person, ...')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ('-start_date',)
        verbose_name = 'Pre-informed Absence'
        verbose_name_plural = 'Pre-informed Absences'

    def __str__(self):
        return f"{self.student.prn} {self.start_date}..{self.end_date}"

    def clean(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError({'end_date': 'End date must not be before start date.'})
