from django.test import SimpleTestCase

from academics.services.batch_resolver import (
    find_overlapping_batches,
    partition_students,
    resolve_batch_for_student,
    resolve_batches_for_student,
    resolve_students_for_batch,
    scope_matches,
)
from academics.services.records import BatchRecord, StudentRecord
from academics.services.year_aliases import build_aliases, normalize_year, year_spellings, years_match

CE = 'Computer Engineering'


def make_batch(id, rbt_from='CS2401', rbt_to='CS2420', division='A', year='Second Year', department=CE, sub_batch=''):
    return BatchRecord(id=id, department=department, year=year, division=division, sub_batch=sub_batch, rbt_from=rbt_from, rbt_to=rbt_to)


def make_student(prn, roll_no='', division='A1', year='Second Year', branch=CE):
    return StudentRecord(prn=prn, roll_no=roll_no, branch=branch, year_of_study=year, division=division, full_name=f'Student {prn}')


class YearAliasTests(SimpleTestCase):
    def test_short_and_long_names(self):
        self.assertEqual(normalize_year('SE'), 'Second Year')
        self.assertEqual(normalize_year('se'), 'Second Year')
        self.assertEqual(normalize_year('4th'), 'Final Year')
        self.assertEqual(normalize_year(' Third Year '), 'Third Year')
        self.assertEqual(normalize_year('Diploma'), 'Diploma')
        self.assertTrue(years_match('FE', 'First Year'))
        self.assertFalse(years_match('FE', 'SE'))
        self.assertFalse(years_match('', ''))

    def test_extra_aliases(self):
        aliases = build_aliases({'SY': 'Second Year'})
        self.assertEqual(normalize_year('SY', aliases), 'Second Year')
        self.assertIn('SY', year_spellings('Second Year', aliases))
        self.assertIn('SE', year_spellings('SY', aliases))


class ResolverTests(SimpleTestCase):
    def setUp(self):
        self.batch = make_batch(1)

    def test_sub_batch_matches_division_prefix(self):
        student = make_student('P1', roll_no='CS2410', division='A1')
        self.assertEqual(resolve_batch_for_student(student, [self.batch]), self.batch)

    def test_out_of_range(self):
        student = make_student('P2', roll_no='CS2430')
        self.assertIsNone(resolve_batch_for_student(student, [self.batch]))

    def test_year_alias(self):
        student = make_student('P3', roll_no='CS2405', year='SE')
        self.assertEqual(resolve_batch_for_student(student, [self.batch]), self.batch)

    def test_scope_is_always_checked(self):
        others = [
            make_batch(2, division='B'),
            make_batch(3, year='Third Year'),
            make_batch(4, department='Mechanical Engineering'),
        ]
        student = make_student('P4', roll_no='CS2405', division='A')
        self.assertIsNone(resolve_batch_for_student(student, others))
        for b in others:
            self.assertFalse(scope_matches(student, b))

    def test_empty_division_never_matches(self):
        student = make_student('P5', roll_no='CS2405', division='')
        self.assertIsNone(resolve_batch_for_student(student, [self.batch]))

    def test_falls_back_to_prn(self):
        student = make_student('CS2411', roll_no='')
        self.assertEqual(resolve_batch_for_student(student, [self.batch]), self.batch)

    def test_ambiguous_match_uses_first_and_warns(self):
        overlapping = make_batch(2, rbt_from='CS2415', rbt_to='CS2440')
        student = make_student('P6', roll_no='CS2416')
        with self.assertLogs('academics.services.batch_resolver', level='WARNING') as logs:
            chosen = resolve_batch_for_student(student, [overlapping, self.batch])
        self.assertEqual(chosen, overlapping)
        self.assertIn('Ambiguous batch match', logs.output[0])
        self.assertEqual(len(resolve_batches_for_student(student, [overlapping, self.batch])), 2)

    def test_students_for_batch(self):
        students = [
            make_student('P1', roll_no='CS2401'),
            make_student('P2', roll_no='CS2421'),
            make_student('P3', roll_no='CS2420', division='B'),
            make_student('P4', roll_no='CS1405'),
        ]
        roster = resolve_students_for_batch(self.batch, students)
        self.assertEqual([s.prn for s in roster], ['P1', 'P4'])

    def test_partition(self):
        second = make_batch(2, rbt_from='CS2421', rbt_to='CS2440', sub_batch='2')
        empty = make_batch(3, division='C')
        students = [
            make_student('P1', roll_no='CS2401'),
            make_student('P2', roll_no='CS2425'),
            make_student('P3', roll_no='CS2470'),
        ]
        assigned, unassigned = partition_students([self.batch, second, empty], students)
        self.assertEqual([s.prn for s in assigned[1]], ['P1'])
        self.assertEqual([s.prn for s in assigned[2]], ['P2'])
        self.assertEqual(assigned[3], [])
        self.assertEqual([s.prn for s in unassigned], ['P3'])

    def test_overlapping_definitions(self):
        overlapping = make_batch(2, rbt_from='CS2415', rbt_to='CS2440', sub_batch='2')
        other_division = make_batch(3, division='B')
        pairs = find_overlapping_batches([self.batch, overlapping, other_division])
        self.assertEqual([(a.id, b.id) for a, b in pairs], [(1, 2)])
