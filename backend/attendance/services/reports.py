import datetime
import logging
from dataclasses import dataclass
from typing import List, Optional

from django.utils import timezone

from academics.services.records import AuditItem, ComplianceBucket
from academics.services.rosters import configured_aliases, load_batches, load_students

from .communications import GfmActivity, summarize_communications
from .compliance import AuditFilters, aggregate_compliance, build_audit_rows
from .snapshots import load_absences, load_calls, load_leave_notes, load_records, load_sessions
from .summary import DivisionSummary, summarize_sessions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditReport:
    filters: AuditFilters
    rows: List[AuditItem]
    buckets: List[ComplianceBucket]

    @property
    def compliant(self) -> int:
        return sum(1 for r in self.rows if r.is_compliant)

    @property
    def pending(self) -> int:
        return len(self.rows) - self.compliant


def with_default_dates(filters: AuditFilters) -> AuditFilters:
    """No dates means today; a single date means that one day."""
    start, end = filters.start_date, filters.end_date
    if start is None and end is None:
        start = end = timezone.localdate()
    elif start is None:
        start = end
    elif end is None:
        end = start
    return AuditFilters(dept=filters.dept, year=filters.year, div=filters.div, start_date=start, end_date=end, gfm_search=filters.gfm_search)


def build_audit_report(filters: Optional[AuditFilters] = None) -> AuditReport:
    """Load everything the audit needs for the filter window and run it."""
    filters = with_default_dates(filters or AuditFilters())
    aliases = configured_aliases()
    sessions = load_sessions(filters.start_date, filters.end_date, filters.dept, filters.year, filters.div)
    absences = load_absences([s.id for s in sessions])
    calls = load_calls(filters.start_date, filters.end_date)
    leave_notes = load_leave_notes(filters.start_date, filters.end_date)
    batches = load_batches(filters.dept)
    students = load_students(branch=filters.dept, include_inactive=True)

    rows = build_audit_rows(absences, calls, leave_notes, sessions, batches, students, filters, aliases)
    buckets = aggregate_compliance(rows, batches, filters, aliases)
    logger.info(
        'GFM audit %s..%s dept=%s year=%s div=%s: %d absences, %d rows',
        filters.start_date, filters.end_date, filters.dept, filters.year, filters.div, len(absences), len(rows),
    )
    return AuditReport(filters=filters, rows=rows, buckets=buckets)


def build_division_summary(day: Optional[datetime.date] = None, department: Optional[str] = None, year: Optional[str] = None) -> List[DivisionSummary]:
    day = day or timezone.localdate()
    sessions = load_sessions(day, day, department, year)
    records = load_records([s.id for s in sessions])
    return summarize_sessions(sessions, records, configured_aliases())


def build_communication_report(start_date: Optional[datetime.date] = None, end_date: Optional[datetime.date] = None) -> List[GfmActivity]:
    return summarize_communications(load_calls(start_date, end_date))
