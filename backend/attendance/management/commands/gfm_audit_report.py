"""
Management command to print or export the GFM compliance audit
Usage: python manage.py gfm_audit_report --start 2025-01-06 --end 2025-01-10 [--format csv --output audit.csv]
       python manage.py gfm_audit_report --snapshot export.json
"""
import dataclasses
import datetime
import json

from django.core.management.base import BaseCommand, CommandError

from academics.services.records import (
    AttendanceEntry,
    BatchRecord,
    CallRecord,
    IncompleteSnapshotError,
    LeaveNote,
    SessionRecord,
    StudentRecord,
    record_from_mapping,
)
from academics.services.rosters import configured_aliases
from attendance.services.compliance import ALL, AuditFilters, aggregate_compliance, build_audit_rows
from attendance.services.exports import audit_rows_to_csv, audit_rows_to_xlsx
from attendance.services.reports import build_audit_report
from attendance.services.snapshots import local_datetime

# snapshot key -> (record type, accepted key spellings)
SNAPSHOT_COLLECTIONS = {
    'absences': (AttendanceEntry, ('absences', 'absentRecords', 'absent_records')),
    'calls': (CallRecord, ('calls', 'communicationLogs', 'communication_logs')),
    'leave_notes': (LeaveNote, ('leaveNotes', 'leave_notes', 'preInformedAbsences', 'pre_informed_absences')),
    'sessions': (SessionRecord, ('sessions',)),
    'batches': (BatchRecord, ('batches', 'batchConfigs', 'batch_configs')),
    'students': (StudentRecord, ('students',)),
}


def _parse_date(value, option):
    if not value:
        return None
    try:
        return datetime.date.fromisoformat(value)
    except ValueError:
        raise CommandError(f'{option} must be a date like 2025-01-31, got {value!r}')


def load_snapshot(path):
    """Read a JSON export of the hosted tables into core records.

    A collection missing from the file stays None so the audit reports it.
    """
    try:
        with open(path, encoding='utf-8') as fh:
            raw = json.load(fh)
    except (OSError, ValueError) as e:
        raise CommandError(f'Cannot read snapshot {path}: {e}')
    if not isinstance(raw, dict):
        raise CommandError('Snapshot must be a JSON object of table name -> rows.')

    snapshot = {}
    for name, (record_type, keys) in SNAPSHOT_COLLECTIONS.items():
        rows = next((raw[k] for k in keys if k in raw), None)
        if rows is None:
            snapshot[name] = None
            continue
        records = []
        for row in rows:
            try:
                record = record_from_mapping(record_type, row)
            except (TypeError, ValueError):
                # incomplete rows are left out like any orphaned record
                continue
            if getattr(record, 'created_at', None) is not None:
                # matched to absences by local calendar day, like the database path
                record = dataclasses.replace(record, created_at=local_datetime(record.created_at))
            records.append(record)
        snapshot[name] = records
    return snapshot


class Command(BaseCommand):
    help = 'Print or export the GFM compliance audit from the database or a JSON snapshot'

    def add_arguments(self, parser):
        parser.add_argument('--start', help='First day (YYYY-MM-DD); defaults to today')
        parser.add_argument('--end', help='Last day (YYYY-MM-DD); defaults to --start')
        parser.add_argument('--dept', default=ALL)
        parser.add_argument('--year', default=ALL)
        parser.add_argument('--div', default=ALL)
        parser.add_argument('--gfm', default='', help='Only rows whose GFM name contains this text')
        parser.add_argument('--format', choices=('table', 'csv', 'xlsx'), default='table')
        parser.add_argument('--output', help='File to write csv/xlsx output to')
        parser.add_argument('--snapshot', help='JSON file with absences, calls, leaveNotes, sessions, batches, students')

    def handle(self, *args, **options):
        start = _parse_date(options.get('start'), '--start')
        end = _parse_date(options.get('end'), '--end') or start
        filters = AuditFilters(
            dept=options['dept'],
            year=options['year'],
            div=options['div'],
            start_date=start,
            end_date=end,
            gfm_search=options.get('gfm') or '',
        )

        if options.get('snapshot'):
            snapshot = load_snapshot(options['snapshot'])
            aliases = configured_aliases()
            try:
                rows = build_audit_rows(
                    snapshot['absences'], snapshot['calls'], snapshot['leave_notes'],
                    snapshot['sessions'], snapshot['batches'], snapshot['students'],
                    filters, aliases,
                )
            except IncompleteSnapshotError as e:
                raise CommandError(str(e))
            buckets = aggregate_compliance(rows, snapshot['batches'], filters, aliases)
        else:
            report = build_audit_report(filters)
            rows, buckets = report.rows, report.buckets

        fmt = options['format']
        if fmt in ('csv', 'xlsx'):
            content = audit_rows_to_csv(rows) if fmt == 'csv' else audit_rows_to_xlsx(rows)
            if not options.get('output'):
                if fmt == 'xlsx':
                    raise CommandError('--output is required for xlsx')
                self.stdout.write(content.decode('utf-8-sig'))
                return
            with open(options['output'], 'wb') as fh:
                fh.write(content)
            self.stdout.write(self.style.SUCCESS(f"Wrote {len(rows)} audit rows to {options['output']}"))
            return

        if not rows:
            self.stdout.write(self.style.WARNING('No absences found for the selected filters.'))
            return

        self.stdout.write('-' * 100)
        for r in rows:
            line = f'{r.date}  {r.dept} {r.year} {r.div}  {r.batch:<4} {r.roll_no:<12} {r.name:<28} {r.status:<13} {r.gfm_name}'
            if r.is_compliant:
                self.stdout.write(line)
            else:
                self.stdout.write(self.style.WARNING(line))
        self.stdout.write('-' * 100)
        for b in buckets:
            self.stdout.write(f'  {b.label}: {b.population} absent, {b.compliant} followed up, {b.pending} pending')
        compliant = sum(1 for r in rows if r.is_compliant)
        self.stdout.write(self.style.SUCCESS(f'\n{compliant}/{len(rows)} absences followed up.'))
