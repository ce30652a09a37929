"""Typed, read-only snapshots of the rows the batch and compliance logic works on.

These records are plain frozen dataclasses so the resolver and aggregator
stay independent of the ORM. Loaders in ``academics.services.rosters`` and
``attendance.services.snapshots`` build them from model instances;
``record_from_mapping`` builds them from external rows (JSON exports from the
hosted store use camelCase or snake_case keys interchangeably).
"""
import dataclasses
import datetime
import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Type, TypeVar, Union, get_args, get_origin


class IncompleteSnapshotError(ValueError):
    """A required input collection was not supplied at all."""


@dataclass(frozen=True)
class StudentRecord:
    prn: str
    roll_no: str = ''
    branch: str = ''
    year_of_study: str = ''
    division: str = ''
    full_name: str = ''


@dataclass(frozen=True)
class BatchRecord:
    id: Any
    department: str
    year: str
    division: str
    rbt_from: str
    rbt_to: str
    sub_batch: str = ''
    academic_year: str = ''
    teacher_name: str = ''
    # stored batch name from an external row, e.g. "A1"
    label: str = ''

    @property
    def batch_name(self) -> str:
        return self.label or f"{self.division}{self.sub_batch or ''}"


@dataclass(frozen=True)
class AllocationRecord:
    teacher_id: Any
    batch_definition_id: Any
    rbt_from: str
    rbt_to: str
    department: str = ''
    division: str = ''
    academic_year: str = ''
    status: str = 'Pending'
    teacher_name: str = ''


@dataclass(frozen=True)
class SessionRecord:
    id: Any
    date: datetime.date
    department: str
    year_of_study: str
    division: str
    locked: bool = False


@dataclass(frozen=True)
class AttendanceEntry:
    session_id: Any
    student_prn: str
    status: str = 'Absent'
    remark: str = ''
    created_at: Optional[datetime.datetime] = None


@dataclass(frozen=True)
class CallRecord:
    student_prn: str
    created_at: datetime.datetime
    communication_type: str = 'call'
    gfm_id: Any = None
    teacher_name: str = ''
    reason: str = ''
    custom_description: str = ''


@dataclass(frozen=True)
class LeaveNote:
    student_prn: str
    start_date: datetime.date
    end_date: datetime.date
    reason: str = ''
    proof_url: Optional[str] = None
    gfm_id: Any = None
    informed_by: str = ''
    contact_method: str = ''

    def covers(self, day: datetime.date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class AuditItem:
    dept: str
    year: str
    div: str
    batch: str
    name: str
    roll_no: str
    prn: str
    date: str
    status: str
    gfm_name: str
    call_time: str
    reason: str
    leave_note: str
    leave_proof_url: Optional[str]
    is_compliant: bool
    full_date: str
    timestamp: datetime.datetime = dataclasses.field(repr=False, compare=False, default=None)

    def as_export_dict(self) -> Dict[str, Any]:
        """Keys as consumed by the report screens and CSV/PDF exporters."""
        return {
            'dept': self.dept,
            'year': self.year,
            'div': self.div,
            'batch': self.batch,
            'name': self.name,
            'rollNo': self.roll_no,
            'prn': self.prn,
            'date': self.date,
            'status': self.status,
            'gfmName': self.gfm_name,
            'callTime': self.call_time,
            'reason': self.reason,
            'leaveNote': self.leave_note,
            'leaveProofUrl': self.leave_proof_url,
            'isCompliant': self.is_compliant,
            'fullDate': self.full_date,
        }


@dataclass(frozen=True)
class ComplianceBucket:
    label: str
    department: str
    year: str
    division: str
    batch: str = ''
    population: int = 0
    compliant: int = 0
    pending: int = 0


# ---------------------------------------------------------------------------
# boundary adapter
# ---------------------------------------------------------------------------

R = TypeVar('R')

_CAMEL_BOUNDARY = re.compile(r'(?<=[a-z0-9])([A-Z])')

# External column names that differ from the record field names.
_FIELD_ALIASES = {
    'class': 'year',
    'proof': 'proof_url',
}

# Sessions store the year of study in a column the hosted schema calls
# `academic_year`; attendance rows may carry the PRN under `prn`.
_RECORD_ALIASES = {
    SessionRecord: {'academic_year': 'year_of_study'},
    BatchRecord: {'batch_name': 'label'},
    AttendanceEntry: {'prn': 'student_prn'},
    CallRecord: {'prn': 'student_prn'},
    LeaveNote: {'prn': 'student_prn'},
}


def to_snake(key: str) -> str:
    return _CAMEL_BOUNDARY.sub(r'_\1', str(key)).lower()


def _unwrap_optional(field_type):
    if get_origin(field_type) is Union:
        args = [a for a in get_args(field_type) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return field_type


def _coerce(value, field_type):
    if value is None:
        return None
    field_type = _unwrap_optional(field_type)
    if field_type is datetime.datetime:
        if isinstance(value, datetime.datetime):
            return value
        return datetime.datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    if field_type is datetime.date:
        if isinstance(value, datetime.datetime):
            return value.date()
        if isinstance(value, datetime.date):
            return value
        return datetime.date.fromisoformat(str(value)[:10])
    if field_type is bool:
        if isinstance(value, str):
            return value.strip().lower() in ('1', 'true', 'yes')
        return bool(value)
    if field_type is str:
        return str(value)
    return value


def record_from_mapping(cls: Type[R], row: Mapping[str, Any], **overrides) -> R:
    """Build a record of type ``cls`` from an external row.

    Keys may be camelCase or snake_case; unknown keys are ignored and missing
    optional fields keep their defaults. Dates and datetimes given as ISO
    strings are parsed.
    """
    aliases = dict(_FIELD_ALIASES)
    aliases.update(_RECORD_ALIASES.get(cls, {}))
    fields = {f.name: f for f in dataclasses.fields(cls) if f.init}
    values: Dict[str, Any] = {}
    for raw_key, value in dict(row).items():
        key = to_snake(raw_key)
        key = aliases.get(key, key)
        if key not in fields or key in values:
            continue
        if value is None and fields[key].default is not dataclasses.MISSING:
            continue
        values[key] = _coerce(value, fields[key].type)
    for key, value in overrides.items():
        if key in fields:
            values[key] = value
    return cls(**values)
