"""
Management command to audit GFM batch definitions
Usage: python manage.py check_batches [--department "Computer Engineering"]
"""
from django.core.management.base import BaseCommand

from academics.services.batch_matching import is_valid_range
from academics.services.batch_resolver import find_overlapping_batches, partition_students
from academics.services.rosters import configured_aliases, load_allocations, load_batches, load_students


class Command(BaseCommand):
    help = 'List malformed ranges, overlapping batch definitions, stale allocations and unassigned students'

    def add_arguments(self, parser):
        parser.add_argument('--department', default=None, help='Only check this department')
        parser.add_argument('--show-students', action='store_true', help='Print every unassigned student')

    def handle(self, *args, **options):
        department = options.get('department')
        aliases = configured_aliases()
        batches = load_batches(department)

        if not batches:
            self.stdout.write(self.style.WARNING('No batch definitions found in database!'))
            return

        self.stdout.write(self.style.SUCCESS(f'\nChecking {len(batches)} batch definitions:\n'))
        self.stdout.write('-' * 80)

        problems = 0
        malformed = [b for b in batches if not is_valid_range(b.rbt_from, b.rbt_to)]
        for b in malformed:
            problems += 1
            self.stdout.write(self.style.ERROR(
                f'  Malformed range: #{b.id} {b.department} {b.year} Div {b.batch_name} ({b.rbt_from}-{b.rbt_to})'
            ))

        for a, b in find_overlapping_batches(batches, aliases):
            problems += 1
            self.stdout.write(self.style.WARNING(
                f'  Overlap: #{a.id} {a.batch_name} ({a.rbt_from}-{a.rbt_to}) and '
                f'#{b.id} {b.batch_name} ({b.rbt_from}-{b.rbt_to}) in {a.department} {a.year}'
            ))

        by_id = {b.id: b for b in batches}
        for alloc in load_allocations():
            if department and alloc.department != department:
                continue
            if alloc.batch_definition_id is None:
                self.stdout.write(f'  Allocation for {alloc.teacher_name} has no batch definition (kept range {alloc.rbt_from}-{alloc.rbt_to})')
                continue
            current = by_id.get(alloc.batch_definition_id)
            if current and (current.rbt_from, current.rbt_to) != (alloc.rbt_from, alloc.rbt_to):
                problems += 1
                self.stdout.write(self.style.WARNING(
                    f'  Stale allocation: {alloc.teacher_name} holds {alloc.rbt_from}-{alloc.rbt_to}, '
                    f'definition #{current.id} is now {current.rbt_from}-{current.rbt_to}'
                ))

        students = load_students(branch=department)
        assigned, unassigned = partition_students(batches, students, aliases)
        self.stdout.write('\n' + '-' * 80)
        for batch_id, members in assigned.items():
            b = by_id[batch_id]
            self.stdout.write(f'  {b.department} :: {b.year} :: {b.batch_name} -> {len(members)} students')
        self.stdout.write(f'\nUnassigned students: {len(unassigned)}')
        if options.get('show_students'):
            for s in unassigned:
                self.stdout.write(f'  {s.prn} {s.roll_no or "-"} {s.full_name} ({s.branch} {s.year_of_study} {s.division})')

        if problems:
            self.stdout.write(self.style.WARNING(f'\n{problems} problem(s) found.'))
        else:
            self.stdout.write(self.style.SUCCESS('\nNo problems found.'))
