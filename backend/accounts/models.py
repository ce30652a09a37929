from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """
    Base user model.
    Admins, GFM teachers, attendance takers and students are all users;
    what they may do is decided by `role`.
    """

    class Role(models.TextChoices):
        ADMIN = 'ADMIN', 'Administrator'
        GFM = 'GFM', 'Guardian Faculty Mentor'
        ATTENDANCE_TAKER = 'ATTENDANCE_TAKER', 'Attendance Taker'
        STUDENT = 'STUDENT', 'Student'

    role = models.CharField(max_length=20, choices=Role.choices, default=Role.GFM)
    full_name = models.CharField(max_length=150, blank=True)
    department = models.CharField(max_length=128, blank=True)
    mobile_no = models.CharField(
        'Mobile no',
        max_length=32,
        blank=True,
        default='',
        help_text='Optional mobile number (leave empty if unknown).',
    )

    def __str__(self):
        return self.username

    @property
    def display_name(self) -> str:
        return self.full_name or self.get_full_name() or self.username

    @property
    def is_admin_role(self) -> bool:
        return self.is_superuser or self.role == self.Role.ADMIN
