"""Per-division attendance totals (the daily attendance report)."""
from collections import OrderedDict
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional

from academics.services.records import AttendanceEntry, SessionRecord
from academics.services.year_aliases import normalize_year


@dataclass(frozen=True)
class DivisionSummary:
    department: str
    year: str
    division: str
    present: int
    absent: int

    @property
    def total(self) -> int:
        return self.present + self.absent

    @property
    def percentage(self) -> float:
        if not self.total:
            return 0.0
        return round(self.present * 100.0 / self.total, 1)

    def as_dict(self):
        return {
            'department': self.department,
            'year': self.year,
            'division': self.division,
            'present': self.present,
            'absent': self.absent,
            'total': self.total,
            'percentage': self.percentage,
        }


def summarize_sessions(sessions: Iterable[SessionRecord], records: Iterable[AttendanceEntry], aliases: Optional[Mapping[str, str]] = None) -> List[DivisionSummary]:
    """Present/absent counts per (department, year, division), in session order.

    Records whose session is not among `sessions` are ignored. Sessions with
    no records still appear with zero counts.
    """
    keys = {}
    counts = OrderedDict()
    for s in sessions:
        key = ((s.department or '').strip(), normalize_year(s.year_of_study, aliases), (s.division or '').strip().upper())
        keys[s.id] = key
        counts.setdefault(key, [0, 0])
    for r in records:
        key = keys.get(r.session_id)
        if key is None:
            continue
        if r.status == 'Present':
            counts[key][0] += 1
        elif r.status == 'Absent':
            counts[key][1] += 1
    return [
        DivisionSummary(department=d, year=y, division=v, present=p, absent=a)
        for (d, y, v), (p, a) in counts.items()
    ]
