"""
🔍 CONFLICT AUDITOR
===================
Looks at a finished class_wise grid from scratch and asks one question:
is any teacher in two classes at the same (day, period)?

The solver never writes such a grid, so a clean run gives an empty report.
The auditor is for grids that came from somewhere else (loaded from disk,
edited by hand) and for telling the user "zero conflicts".
"""

from dataclasses import dataclass
from typing import Dict, List

from models import SchoolConfig, get_all_slots
from timetable import Timetable, class_sort_key


@dataclass(frozen=True)
class Conflict:
    teacher_id: str
    teacher_name: str
    day: int
    period: int
    first_class: str
    other_class: str


def _period_label(period: int) -> str:
    return f"period {period + 1}"


def find_conflicts(timetable: Timetable, config: SchoolConfig) -> List[Conflict]:
    """
    One Conflict per (teacher, day, period) that has two or more classes.
    The first class seen (in grade order) is kept as `first_class`.
    """
    conflicts = []
    class_keys = sorted(timetable.class_wise, key=class_sort_key)
    for d, p in get_all_slots(config):
        first_seen: Dict[str, str] = {}
        reported = set()
        for ckey in class_keys:
            slot = timetable.class_wise[ckey].get(d, {}).get(p)
            if slot is None:
                continue
            if slot.teacher_id not in first_seen:
                first_seen[slot.teacher_id] = ckey
            elif slot.teacher_id not in reported:
                reported.add(slot.teacher_id)
                conflicts.append(
                    Conflict(
                        teacher_id=slot.teacher_id,
                        teacher_name=slot.teacher_name,
                        day=d,
                        period=p,
                        first_class=first_seen[slot.teacher_id],
                        other_class=ckey,
                    )
                )
    return conflicts


def describe_conflict(conflict: Conflict, config: SchoolConfig) -> str:
    day = config.days[conflict.day] if conflict.day < len(config.days) else f"day {conflict.day + 1}"
    return (
        f'Teacher "{conflict.teacher_name}" is in two classes at the same time: '
        f"{day}, {_period_label(conflict.period)} "
        f"(class {conflict.first_class} and {conflict.other_class})"
    )


def detect_conflicts(timetable: Timetable, config: SchoolConfig) -> List[str]:
    """Human-readable conflict list. Empty list = clean routine."""
    return [describe_conflict(c, config) for c in find_conflicts(timetable, config)]
