from django.test import SimpleTestCase

from academics.services.batch_matching import in_range, is_valid_range, ranges_overlap, sequence_of
from academics.services.roll_keys import extract_sequence


class ExtractSequenceTests(SimpleTestCase):
    def test_trailing_digits(self):
        self.assertEqual(extract_sequence('CS2401'), 2401)
        self.assertEqual(extract_sequence('045'), 45)
        # the digit run must end the string
        self.assertIsNone(extract_sequence('CS2401 '))
        self.assertIsNone(extract_sequence('CS2401\n'))

    def test_no_trailing_digits(self):
        self.assertIsNone(extract_sequence('RBT21CS045X'))
        # PRNs with a checksum letter must be stripped by the caller
        self.assertIsNone(extract_sequence('72200001K'))
        self.assertIsNone(extract_sequence(''))
        self.assertIsNone(extract_sequence(None))

    def test_only_trailing_run_is_used(self):
        self.assertEqual(extract_sequence('RBT21CS045'), 45)
        self.assertEqual(extract_sequence('A1B22'), 22)

    def test_repeatable(self):
        self.assertEqual(extract_sequence('CS2405'), extract_sequence('CS2405'))

    def test_very_long_digit_run(self):
        roll = 'CS' + '1' * 4997 + '405'
        self.assertEqual(extract_sequence(roll) % 1000, 405)
        self.assertTrue(in_range(roll, 'CS2401', 'CS2420'))
        self.assertFalse(in_range('CS' + '1' * 5000, 'CS2401', 'CS2420'))


class InRangeTests(SimpleTestCase):
    def test_inclusive_bounds(self):
        self.assertTrue(in_range('CS2401', 'CS2401', 'CS2420'))
        self.assertTrue(in_range('CS2420', 'CS2401', 'CS2420'))
        self.assertFalse(in_range('CS2421', 'CS2401', 'CS2420'))

    def test_year_agnostic(self):
        # 1401 and 2401 both reduce to 401
        self.assertTrue(in_range('CS1401', 'CS2401', 'CS2420'))
        self.assertEqual(sequence_of('CS1401'), 401)

    def test_fails_closed(self):
        self.assertFalse(in_range('CS24XX', 'CS2401', 'CS2420'))
        self.assertFalse(in_range('CS2405', 'CS24A', 'CS2420'))
        self.assertFalse(in_range('CS2405', 'CS2401', None))

    def test_inverted_range_never_matches(self):
        self.assertFalse(in_range('CS2410', 'CS2420', 'CS2401'))
        self.assertFalse(is_valid_range('CS2420', 'CS2401'))
        self.assertTrue(is_valid_range('CS2401', 'CS2420'))
        self.assertFalse(is_valid_range('CS2401', 'CS24'))

    def test_overlap(self):
        self.assertTrue(ranges_overlap('CS2401', 'CS2420', 'CS2415', 'CS2440'))
        self.assertFalse(ranges_overlap('CS2401', 'CS2420', 'CS2421', 'CS2440'))
        self.assertFalse(ranges_overlap('CS2401', 'CS2420', 'X', 'CS2440'))
