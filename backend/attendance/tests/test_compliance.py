import datetime

from django.test import SimpleTestCase

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
from attendance.services.compliance import AuditFilters, aggregate_compliance, build_audit_rows

CE = 'Computer Engineering'
DAY = datetime.date(2025, 1, 6)
NEXT_DAY = datetime.date(2025, 1, 7)


class AuditFixture(SimpleTestCase):
    def setUp(self):
        self.sessions = [
            SessionRecord(id=1, date=DAY, department=CE, year_of_study='SE', division='A'),
            SessionRecord(id=2, date=NEXT_DAY, department=CE, year_of_study='Second Year', division='A'),
            SessionRecord(id=3, date=DAY, department=CE, year_of_study='Second Year', division='B'),
        ]
        self.batches = [
            BatchRecord(id=10, department=CE, year='Second Year', division='A', sub_batch='1', rbt_from='CS2401', rbt_to='CS2420', teacher_name='Prof. Rao'),
            BatchRecord(id=11, department=CE, year='Second Year', division='A', sub_batch='2', rbt_from='CS2421', rbt_to='CS2440', teacher_name='Prof. Shah'),
            BatchRecord(id=12, department=CE, year='Second Year', division='B', rbt_from='CS2401', rbt_to='CS2440'),
            BatchRecord(id=13, department=CE, year='Second Year', division='C', rbt_from='CS2401', rbt_to='CS2440', teacher_name='Prof. Idle'),
        ]
        self.students = [
            StudentRecord(prn='P1', roll_no='CS2405', branch=CE, year_of_study='SE', division='A1', full_name='Asha'),
            StudentRecord(prn='P2', roll_no='CS2425', branch=CE, year_of_study='SE', division='A2', full_name='Bhavin'),
            StudentRecord(prn='P3', roll_no='CS2410', branch=CE, year_of_study='SE', division='B', full_name='Chitra'),
            StudentRecord(prn='P4', roll_no='CS2499', branch=CE, year_of_study='SE', division='A2', full_name='Dev'),
        ]
        self.absences = [
            AttendanceEntry(session_id=1, student_prn='P1', created_at=datetime.datetime(2025, 1, 6, 9, 0)),
            AttendanceEntry(session_id=1, student_prn='P2', created_at=datetime.datetime(2025, 1, 6, 9, 1)),
            AttendanceEntry(session_id=3, student_prn='P3', created_at=datetime.datetime(2025, 1, 6, 9, 30)),
            AttendanceEntry(session_id=2, student_prn='P1', created_at=datetime.datetime(2025, 1, 7, 9, 0)),
            AttendanceEntry(session_id=1, student_prn='P4', created_at=datetime.datetime(2025, 1, 6, 9, 2)),
        ]
        self.calls = [
            CallRecord(student_prn='P1', created_at=datetime.datetime(2025, 1, 6, 11, 15), teacher_name='Prof. Rao', reason='Fever'),
            CallRecord(student_prn='P2', created_at=datetime.datetime(2025, 1, 6, 12, 0), communication_type='whatsapp', teacher_name='Prof. Shah'),
        ]
        self.leave_notes = [
            LeaveNote(student_prn='P1', start_date=DAY, end_date=DAY, reason='Family function', proof_url='https://example.org/p.jpg'),
            LeaveNote(student_prn='P3', start_date=datetime.date(2025, 1, 5), end_date=NEXT_DAY, reason='Hospitalised'),
        ]

    def rows(self, filters=None, **overrides):
        args = dict(
            absences=self.absences, calls=self.calls, leave_notes=self.leave_notes,
            sessions=self.sessions, batches=self.batches, students=self.students,
        )
        args.update(overrides)
        return build_audit_rows(filters=filters, **args)


class BuildAuditRowsTests(AuditFixture):
    def test_status_precedence(self):
        rows = {(r.prn, r.date): r for r in self.rows()}

        called = rows[('P1', '2025-01-06')]
        self.assertEqual(called.status, 'Called')
        self.assertEqual(called.call_time, '11:15')
        self.assertEqual(called.reason, 'Fever')
        # the leave note is reported even though the call wins
        self.assertEqual(called.leave_note, 'Family function (Proof Uploaded)')
        self.assertEqual(called.leave_proof_url, 'https://example.org/p.jpg')
        self.assertTrue(called.is_compliant)

        pre_informed = rows[('P3', '2025-01-06')]
        self.assertEqual(pre_informed.status, 'Pre-Informed')
        self.assertEqual(pre_informed.reason, 'No Call Logged')
        self.assertEqual(pre_informed.leave_note, 'Hospitalised')
        self.assertTrue(pre_informed.is_compliant)

        # a WhatsApp message is not a call
        pending = rows[('P2', '2025-01-06')]
        self.assertEqual(pending.status, 'Pending')
        self.assertEqual(pending.call_time, '-')
        self.assertEqual(pending.leave_note, '-')
        self.assertFalse(pending.is_compliant)

        next_day = rows[('P1', '2025-01-07')]
        self.assertEqual(next_day.status, 'Pending')

    def test_batch_and_gfm_resolution(self):
        rows = {(r.prn, r.date): r for r in self.rows()}
        self.assertEqual(rows[('P1', '2025-01-06')].batch, 'A1')
        self.assertEqual(rows[('P2', '2025-01-06')].batch, 'A2')
        self.assertEqual(rows[('P2', '2025-01-06')].gfm_name, 'Prof. Shah')
        self.assertEqual(rows[('P1', '2025-01-07')].gfm_name, 'Prof. Rao')
        # out of every range, no teacher configured
        self.assertEqual(rows[('P4', '2025-01-06')].batch, '-')
        self.assertEqual(rows[('P4', '2025-01-06')].gfm_name, 'Unknown')
        self.assertEqual(rows[('P3', '2025-01-06')].gfm_name, 'Unknown')

    def test_newest_first(self):
        stamps = [r.full_date for r in self.rows()]
        self.assertEqual(stamps, sorted(stamps, reverse=True))
        self.assertEqual(stamps[0], '2025-01-07T09:00:00')

    def test_orphans_are_dropped(self):
        absences = self.absences + [
            AttendanceEntry(session_id=99, student_prn='P1'),
            AttendanceEntry(session_id=1, student_prn='GHOST'),
            AttendanceEntry(session_id=1, student_prn='P3', status='Present'),
        ]
        rows = self.rows(absences=absences)
        self.assertEqual(len(rows), len(self.absences))
        self.assertLessEqual(len(rows), len(absences))

    def test_missing_collection_raises(self):
        with self.assertRaises(IncompleteSnapshotError):
            self.rows(calls=None)
        self.assertEqual(self.rows(calls=[], leave_notes=[], batches=[])[0].status, 'Pending')

    def test_filters(self):
        by_div = self.rows(AuditFilters(div='A'))
        self.assertEqual({r.div for r in by_div}, {'A'})
        by_year = self.rows(AuditFilters(year='SE'))
        self.assertEqual(len(by_year), 5)
        self.assertEqual(self.rows(AuditFilters(year='TE')), [])
        one_day = self.rows(AuditFilters(start_date=NEXT_DAY, end_date=NEXT_DAY))
        self.assertEqual([r.prn for r in one_day], ['P1'])
        shah = self.rows(AuditFilters(gfm_search='shah'))
        self.assertEqual([r.prn for r in shah], ['P2'])
        self.assertEqual(self.rows(AuditFilters(dept='Mechanical Engineering')), [])

    def test_oversized_roll_number_is_unassigned(self):
        students = self.students + [StudentRecord(prn='P5', roll_no='CS' + '1' * 5000, branch=CE, year_of_study='SE', division='A1', full_name='Esha')]
        absences = [AttendanceEntry(session_id=1, student_prn='P5', created_at=datetime.datetime(2025, 1, 6, 9, 3))]
        rows = self.rows(absences=absences, students=students)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].batch, '-')
        self.assertEqual(rows[0].status, 'Pending')

    def test_session_without_timestamp_uses_session_day(self):
        rows = self.rows(absences=[AttendanceEntry(session_id=2, student_prn='P2')])
        self.assertEqual(rows[0].full_date, '2025-01-07T00:00:00')

    def test_mixed_timezones_sort(self):
        aware = datetime.datetime(2025, 1, 6, 10, 0, tzinfo=datetime.timezone.utc)
        absences = [
            AttendanceEntry(session_id=1, student_prn='P1', created_at=aware),
            AttendanceEntry(session_id=1, student_prn='P2', created_at=datetime.datetime(2025, 1, 6, 9, 0)),
        ]
        self.assertEqual([r.prn for r in self.rows(absences=absences)], ['P1', 'P2'])

    def test_export_keys(self):
        row = self.rows()[0].as_export_dict()
        self.assertEqual(
            set(row),
            {'dept', 'year', 'div', 'batch', 'name', 'rollNo', 'prn', 'date', 'status', 'gfmName',
             'callTime', 'reason', 'leaveNote', 'leaveProofUrl', 'isCompliant', 'fullDate'},
        )


class AggregateComplianceTests(AuditFixture):
    def test_by_division_drops_empty(self):
        buckets = aggregate_compliance(self.rows(), self.batches, AuditFilters(dept=CE, year='Second Year'))
        labels = [b.label for b in buckets]
        # division C has a batch but no absences
        self.assertEqual(labels, ['Div A', 'Div B'])
        div_a = buckets[0]
        self.assertEqual((div_a.population, div_a.compliant, div_a.pending), (4, 1, 3))
        self.assertTrue(all(b.population > 0 for b in buckets))

    def test_by_batch_when_division_selected(self):
        filters = AuditFilters(div='A')
        buckets = aggregate_compliance(self.rows(filters), self.batches, filters)
        self.assertEqual([(b.label, b.population) for b in buckets], [('Batch A1', 2), ('Batch A2', 1), ('Unassigned', 1)])

    def test_no_rows_no_buckets(self):
        self.assertEqual(aggregate_compliance([], self.batches), [])


class RecordFromMappingTests(SimpleTestCase):
    def test_camel_case_rows(self):
        batch = record_from_mapping(BatchRecord, {
            'id': 'b1', 'department': CE, 'class': 'SE', 'division': 'A',
            'rbtFrom': 'CS2401', 'rbtTo': 'CS2420', 'batchName': 'A', 'teacherName': None,
        })
        self.assertEqual(batch.year, 'SE')
        self.assertEqual(batch.rbt_to, 'CS2420')
        self.assertEqual(batch.teacher_name, '')

        named = record_from_mapping(BatchRecord, {
            'id': 'b2', 'department': CE, 'class': 'SE', 'division': 'A',
            'rbtFrom': 'CS2401', 'rbtTo': 'CS2420', 'batchName': 'A1',
        })
        self.assertEqual(named.batch_name, 'A1')
        unnamed = record_from_mapping(BatchRecord, {
            'id': 'b3', 'department': CE, 'class': 'SE', 'division': 'A',
            'subBatch': '2', 'rbtFrom': 'CS2421', 'rbtTo': 'CS2440',
        })
        self.assertEqual(unnamed.batch_name, 'A2')

        session = record_from_mapping(SessionRecord, {'id': 's1', 'date': '2025-01-06', 'department': CE, 'academicYear': 'SE', 'division': 'A'})
        self.assertEqual(session.date, DAY)
        self.assertEqual(session.year_of_study, 'SE')

        call = record_from_mapping(CallRecord, {'studentPrn': 'P1', 'createdAt': '2025-01-06T11:15:00Z', 'communicationType': 'call'})
        self.assertEqual(call.created_at.hour, 11)
        self.assertIsNotNone(call.created_at.tzinfo)

        note = record_from_mapping(LeaveNote, {'student_prn': 'P1', 'start_date': '2025-01-06', 'end_date': '2025-01-08', 'reason': 'x', 'proof_url': None})
        self.assertTrue(note.covers(NEXT_DAY))
        self.assertIsNone(note.proof_url)
