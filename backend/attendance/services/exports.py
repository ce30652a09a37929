"""CSV and Excel renderings of the GFM audit and the daily attendance summary."""
import csv
from collections import OrderedDict
from io import BytesIO, StringIO
from typing import Iterable, List, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill

from academics.services.records import AuditItem

from .summary import DivisionSummary

SUMMARY_HEADER = ['Department', 'Year', 'Division', 'Batch', 'Total Absents', 'Compliant', 'Pending']
DETAIL_HEADER = [
    'Department', 'Year', 'Division', 'Batch', 'Student Name', 'Roll No', 'PRN', 'Date', 'Status',
    'GFM Name', 'GFM Called', 'Call Time', 'Call Reason', 'Leave Note', 'Proof Link',
]
DIVISION_HEADER = ['Department', 'Year', 'Division', 'Present', 'Absent', 'Total', 'Attendance %']

_PENDING_FILL = PatternFill(start_color='FFF2CC', end_color='FFF2CC', fill_type='solid')


def batch_summary(rows: Iterable[AuditItem]) -> List[List]:
    """[dept, year, div, batch, absents, compliant, pending] per batch, in first-seen order."""
    summaries = OrderedDict()
    for r in rows:
        key = (r.dept, r.year, r.div, r.batch)
        tally = summaries.setdefault(key, [0, 0])
        tally[0] += 1
        if r.is_compliant:
            tally[1] += 1
    return [list(key) + [total, ok, total - ok] for key, (total, ok) in summaries.items()]


def _one_line(value) -> str:
    return str(value or '').replace('\r', ' ').replace('\n', ' ')


def detail_row(r: AuditItem) -> List:
    return [
        r.dept, r.year, r.div, r.batch, r.name, r.roll_no, r.prn, r.date, r.status,
        r.gfm_name, 'Yes' if r.is_compliant else 'No', r.call_time,
        _one_line(r.reason), _one_line(r.leave_note), r.leave_proof_url or '',
    ]


def audit_rows_to_csv(rows: Sequence[AuditItem]) -> bytes:
    """Batch summary block, a blank line, then one detail line per audit row."""
    sio = StringIO()
    writer = csv.writer(sio)
    writer.writerow(['--- BATCH SUMMARY ---'])
    writer.writerow(SUMMARY_HEADER)
    for line in batch_summary(rows):
        writer.writerow(line)
    writer.writerow([])
    writer.writerow(['--- DETAILED STUDENT RECORDS ---'])
    writer.writerow(DETAIL_HEADER)
    for r in rows:
        writer.writerow(detail_row(r))
    return sio.getvalue().encode('utf-8-sig')


def audit_rows_to_xlsx(rows: Sequence[AuditItem]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = 'Summary'
    ws.append(SUMMARY_HEADER)
    for line in batch_summary(rows):
        ws.append(line)

    details = wb.create_sheet('Details')
    details.append(DETAIL_HEADER)
    for r in rows:
        details.append(detail_row(r))
        if not r.is_compliant:
            for cell in details[details.max_row]:
                cell.fill = _PENDING_FILL

    for sheet in (ws, details):
        for cell in sheet[1]:
            cell.font = Font(bold=True)
        sheet.freeze_panes = 'A2'

    buf = BytesIO()
    wb.save(buf)
    buf.seek(0)
    return buf.getvalue()


def division_summary_to_csv(summaries: Iterable[DivisionSummary]) -> bytes:
    sio = StringIO()
    writer = csv.writer(sio)
    writer.writerow(DIVISION_HEADER)
    for s in summaries:
        writer.writerow([s.department, s.year, s.division, s.present, s.absent, s.total, f'{s.percentage:.1f}%'])
    return sio.getvalue().encode('utf-8-sig')
