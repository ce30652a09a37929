"""Year-of-study spellings.

Student rows, batch definitions and attendance sessions have used both the
short codes (FE/SE/TE/BE, sometimes 1st..4th) and the long names over time.
Everything is compared on the long name.
"""
from typing import Dict, List, Mapping, Optional

FIRST_YEAR = 'First Year'
SECOND_YEAR = 'Second Year'
THIRD_YEAR = 'Third Year'
FINAL_YEAR = 'Final Year'

DEFAULT_YEAR_ALIASES: Dict[str, str] = {
    'FE': FIRST_YEAR,
    'SE': SECOND_YEAR,
    'TE': THIRD_YEAR,
    'BE': FINAL_YEAR,
    '1st': FIRST_YEAR,
    '2nd': SECOND_YEAR,
    '3rd': THIRD_YEAR,
    '4th': FINAL_YEAR,
    FIRST_YEAR: FIRST_YEAR,
    SECOND_YEAR: SECOND_YEAR,
    THIRD_YEAR: THIRD_YEAR,
    FINAL_YEAR: FINAL_YEAR,
}


def build_aliases(extra: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Return the default table merged with `extra`, keyed case-insensitively."""
    table = {k.strip().upper(): v for k, v in DEFAULT_YEAR_ALIASES.items()}
    for key, value in (extra or {}).items():
        table[str(key).strip().upper()] = str(value).strip()
        # the long name always maps to itself
        table.setdefault(str(value).strip().upper(), str(value).strip())
    return table


_DEFAULT_TABLE = build_aliases()


def normalize_year(value, aliases: Optional[Mapping[str, str]] = None) -> str:
    """Map any known spelling to its long name; unknown values pass through trimmed.

    `aliases` is a table produced by build_aliases(); None uses the defaults.
    """
    if value is None:
        return ''
    raw = str(value).strip()
    table = _DEFAULT_TABLE if aliases is None else aliases
    return table.get(raw.upper(), raw)


def years_match(left, right, aliases: Optional[Mapping[str, str]] = None) -> bool:
    a = normalize_year(left, aliases)
    b = normalize_year(right, aliases)
    return bool(a) and a.upper() == b.upper()


def year_spellings(value, aliases: Optional[Mapping[str, str]] = None) -> List[str]:
    """Every known spelling of `value`'s year, for case-insensitive lookups."""
    table = _DEFAULT_TABLE if aliases is None else aliases
    wanted = normalize_year(value, table)
    if not wanted:
        return []
    spellings = {key for key, long_name in table.items() if long_name.upper() == wanted.upper()}
    spellings.add(wanted.upper())
    return sorted(spellings)
