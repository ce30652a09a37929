import csv
import datetime
from io import BytesIO, StringIO

from django.contrib.auth import get_user_model
from openpyxl import load_workbook
from rest_framework import status
from rest_framework.test import APITestCase

from academics.models import BatchDefinition, Student, TeacherBatchConfig
from attendance.models import AttendanceRecord, AttendanceSession, CommunicationLog

CE = 'Computer Engineering'
DAY = datetime.date(2025, 1, 6)


class AttendanceApiTests(APITestCase):
    def setUp(self):
        User = get_user_model()
        self.admin = User.objects.create_user(username='admin', role='ADMIN')
        self.gfm = User.objects.create_user(username='gfm', full_name='Prof. Rao', role='GFM')
        self.taker = User.objects.create_user(username='taker', role='ATTENDANCE_TAKER')
        self.student_user = User.objects.create_user(username='stud', role='STUDENT')
        self.batch = BatchDefinition.objects.create(department=CE, year='Second Year', division='A', rbt_from='CS2401', rbt_to='CS2420', academic_year='2025-26')
        TeacherBatchConfig.objects.create(
            teacher=self.gfm, batch_definition=self.batch, batch_name='A', department=CE, year='Second Year',
            division='A', rbt_from='CS2401', rbt_to='CS2420', academic_year='2025-26', status='Approved',
        )
        self.p1 = Student.objects.create(prn='P1', roll_no='CS2401', full_name='Asha', branch=CE, year_of_study='SE', division='A1', mobile_no='900')
        self.p2 = Student.objects.create(prn='P2', roll_no='CS2402', full_name='Bhavin', branch=CE, year_of_study='SE', division='A1')

    def open_and_submit(self):
        self.client.force_authenticate(self.taker)
        res = self.client.post('/api/attendance/sessions/', {'date': DAY.isoformat(), 'department': CE, 'year_of_study': 'SE', 'division': 'A'}, format='json')
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        session_id = res.data['session']['id']
        self.assertEqual([s['prn'] for s in res.data['students']], ['P1', 'P2'])
        res = self.client.post(f'/api/attendance/sessions/{session_id}/submit/', {
            'records': [{'prn': 'P1', 'status': 'Absent'}, {'prn': 'P2', 'status': 'Absent'}],
        }, format='json')
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertTrue(res.data['session']['locked'])
        return session_id

    def test_student_role_cannot_open_sessions(self):
        self.client.force_authenticate(self.student_user)
        res = self.client.post('/api/attendance/sessions/', {'date': DAY.isoformat(), 'department': CE, 'year_of_study': 'SE', 'division': 'A'}, format='json')
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_resubmit_locked_session_is_rejected(self):
        session_id = self.open_and_submit()
        res = self.client.post(f'/api/attendance/sessions/{session_id}/submit/', {'records': [{'prn': 'P1', 'status': 'Present'}]}, format='json')
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data['status_code'], 400)

        res = self.client.get(f'/api/attendance/sessions/{session_id}/records/', {'status': 'Absent'})
        self.assertEqual([r['prn'] for r in res.data], ['P1', 'P2'])

    def test_communications_are_append_only(self):
        self.client.force_authenticate(self.gfm)
        res = self.client.post('/api/attendance/communications/', {'student_prn': 'P1', 'communication_type': 'call', 'reason': 'Fever'}, format='json')
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data['gfm_name'], 'Prof. Rao')
        self.assertEqual(res.data['phone_number'], '900')
        log_id = res.data['id']
        self.assertEqual(self.client.delete(f'/api/attendance/communications/{log_id}/').status_code, status.HTTP_405_METHOD_NOT_ALLOWED)
        self.assertEqual(self.client.patch(f'/api/attendance/communications/{log_id}/', {'reason': 'x'}, format='json').status_code, status.HTTP_405_METHOD_NOT_ALLOWED)
        self.assertEqual(CommunicationLog.objects.get(pk=log_id).reason, 'Fever')

    def test_pre_informed_check(self):
        self.client.force_authenticate(self.gfm)
        res = self.client.post('/api/attendance/pre-informed/', {
            'student_prn': 'P2', 'start_date': '2025-01-06', 'end_date': '2025-01-05', 'reason': 'Trip',
        }, format='json')
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        res = self.client.post('/api/attendance/pre-informed/', {
            'student_prn': 'P2', 'start_date': '2025-01-06', 'end_date': '2025-01-07', 'reason': 'Trip', 'informed_by': 'father',
        }, format='json')
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        res = self.client.get('/api/attendance/pre-informed/check/', {'prn': 'P2', 'date': '2025-01-07'})
        self.assertTrue(res.data['pre_informed'])
        res = self.client.get('/api/attendance/pre-informed/check/', {'prn': 'P2', 'date': '2025-01-08'})
        self.assertFalse(res.data['pre_informed'])

    def seed_audit(self):
        session_id = self.open_and_submit()
        self.client.force_authenticate(self.gfm)
        self.client.post('/api/attendance/communications/', {'student_prn': 'P1', 'reason': 'Fever'}, format='json')
        # the call must fall on the absence day
        CommunicationLog.objects.update(created_at=datetime.datetime(2025, 1, 6, 11, 0, tzinfo=datetime.timezone.utc))
        AttendanceRecord.objects.filter(session_id=session_id).update(created_at=datetime.datetime(2025, 1, 6, 9, 0, tzinfo=datetime.timezone.utc))
        return session_id

    def test_gfm_audit_report(self):
        self.seed_audit()
        self.client.force_authenticate(self.gfm)
        self.assertEqual(self.client.get('/api/attendance/reports/gfm-audit/').status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.admin)
        res = self.client.get('/api/attendance/reports/gfm-audit/', {'date': '2025-01-06', 'dept': CE, 'year': 'Second Year'})
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data['total'], 2)
        self.assertEqual(res.data['compliant'], 1)
        rows = {r['prn']: r for r in res.data['rows']}
        self.assertEqual(rows['P1']['status'], 'Called')
        self.assertEqual(rows['P1']['callTime'], '11:00')
        self.assertEqual(rows['P2']['status'], 'Pending')
        self.assertEqual(rows['P2']['gfmName'], 'Prof. Rao')
        self.assertEqual(rows['P2']['batch'], 'A')
        self.assertEqual([(b['label'], b['population'], b['pending']) for b in res.data['buckets']], [('Div A', 2, 1)])

    def test_gfm_audit_bad_dates(self):
        self.client.force_authenticate(self.admin)
        res = self.client.get('/api/attendance/reports/gfm-audit/', {'start_date': '2025-01-07', 'end_date': '2025-01-06'})
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_gfm_audit_export(self):
        self.seed_audit()
        self.client.force_authenticate(self.admin)
        res = self.client.get('/api/attendance/reports/gfm-audit/export/', {'date': '2025-01-06', 'format': 'csv'})
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertIn('attachment;', res['Content-Disposition'])
        lines = list(csv.reader(StringIO(res.content.decode('utf-8-sig'))))
        self.assertEqual(lines[0], ['--- BATCH SUMMARY ---'])
        self.assertEqual(len(lines[lines.index(['--- DETAILED STUDENT RECORDS ---']) + 2:]), 2)

        res = self.client.get('/api/attendance/reports/gfm-audit/export/', {'date': '2025-01-06', 'format': 'xlsx'})
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        wb = load_workbook(BytesIO(res.content))
        self.assertEqual(wb['Details'].max_row, 3)

    def test_division_summary_and_activity(self):
        self.seed_audit()
        self.client.force_authenticate(self.taker)
        res = self.client.get('/api/attendance/reports/division-summary/', {'date': '2025-01-06'})
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data['divisions'][0]['absent'], 2)
        self.assertEqual(res.data['divisions'][0]['percentage'], 0.0)

        self.client.force_authenticate(self.admin)
        res = self.client.get('/api/attendance/reports/communications/', {'start_date': '2025-01-06', 'end_date': '2025-01-06'})
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data['gfms'], [{'gfmId': self.gfm.pk, 'teacherName': 'Prof. Rao', 'calls': 1, 'whatsapp': 0, 'total': 1}])
        self.assertEqual(AttendanceSession.objects.count(), 1)
