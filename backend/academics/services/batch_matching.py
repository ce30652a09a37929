"""Roll-number range matching for batch definitions.

Roll numbers and PRNs embed a two-digit admission year before the per-year
sequence, so "CS2401" and "CS1401" both reduce to sequence 401 once the
modulus is applied. Comparing on the value modulo SEQUENCE_MODULUS lets one
batch range stay valid across intakes.

Constraint: a division/year may not hold 1000 or more students, otherwise
sequences alias onto each other.
"""
from typing import Optional

from .roll_keys import extract_sequence

SEQUENCE_MODULUS = 1000


def sequence_of(value) -> Optional[int]:
    """The year-agnostic sequence of a roll number / PRN, or None."""
    extracted = extract_sequence(value)
    if extracted is None:
        return None
    return extracted % SEQUENCE_MODULUS


def in_range(roll_or_prn, range_from, range_to) -> bool:
    """True when `roll_or_prn` falls inside [range_from, range_to].

    Fails closed: if any of the three values lacks a trailing digit run the
    result is False. The order of the bounds is not checked here; a range
    whose start sequence exceeds its end simply never matches.
    """
    seq = sequence_of(roll_or_prn)
    f_seq = sequence_of(range_from)
    t_seq = sequence_of(range_to)
    if seq is None or f_seq is None or t_seq is None:
        return False
    return f_seq <= seq <= t_seq


def is_valid_range(range_from, range_to) -> bool:
    """Both bounds parse and the start sequence does not exceed the end."""
    f_seq = sequence_of(range_from)
    t_seq = sequence_of(range_to)
    if f_seq is None or t_seq is None:
        return False
    return f_seq <= t_seq


def ranges_overlap(a_from, a_to, b_from, b_to) -> bool:
    bounds = [sequence_of(v) for v in (a_from, a_to, b_from, b_to)]
    if any(b is None for b in bounds):
        return False
    af, at, bf, bt = bounds
    if af > at or bf > bt:
        return False
    return af <= bt and bf <= at
