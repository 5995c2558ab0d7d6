"""
🧠 TIMETABLE GRID — Baby-level explanation
==========================================
The same week seen three ways:
1. class_wise: class -> day -> period -> slot   (the ONLY one we ever write to)
2. teacher_wise: teacher -> day -> period -> slot   (rebuilt from class_wise)
3. full_schedule: day -> period -> [slots of every class]   (rebuilt from class_wise)

Breaks have no boxes at all, so nothing can ever be written into a break.
"""

import copy
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from models import SchoolConfig, ScheduleSlot, teaching_periods

ClassGrid = Dict[str, Dict[int, Dict[int, Optional[ScheduleSlot]]]]
TeacherGrid = Dict[str, Dict[int, Dict[int, Optional[ScheduleSlot]]]]
FullSchedule = Dict[int, Dict[int, List[ScheduleSlot]]]


@dataclass
class Timetable:
    class_wise: ClassGrid = field(default_factory=dict)
    teacher_wise: TeacherGrid = field(default_factory=dict)
    full_schedule: FullSchedule = field(default_factory=dict)

    def class_slot(self, class_key: str, day: int, period: int) -> Optional[ScheduleSlot]:
        """Who is in this class at (day, period)? None if empty."""
        return self.class_wise.get(class_key, {}).get(day, {}).get(period)

    def teacher_slot(self, teacher_id: str, day: int, period: int) -> Optional[ScheduleSlot]:
        """Where is this teacher at (day, period)? None if free."""
        return self.teacher_wise.get(teacher_id, {}).get(day, {}).get(period)

    def slots_at(self, day: int, period: int) -> List[ScheduleSlot]:
        """Every class's slot at (day, period), ordered by class."""
        return list(self.full_schedule.get(day, {}).get(period, []))

    def has_cell(self, class_key: str, day: int, period: int) -> bool:
        return period in self.class_wise.get(class_key, {}).get(day, {})

    def copy(self) -> "Timetable":
        return copy.deepcopy(self)


def _empty_days(config: SchoolConfig) -> Dict[int, Dict[int, Optional[ScheduleSlot]]]:
    periods = teaching_periods(config)
    return {d: {p: None for p in periods} for d in range(len(config.days))}


def init_timetable(
    config: SchoolConfig,
    class_keys: Iterable[str],
    teacher_ids: Iterable[str],
) -> Timetable:
    """
    Fresh empty week. Calling it again just gives a new blank one.
    """
    periods = teaching_periods(config)
    return Timetable(
        class_wise={ckey: _empty_days(config) for ckey in class_keys},
        teacher_wise={tid: _empty_days(config) for tid in teacher_ids},
        full_schedule={d: {p: [] for p in periods} for d in range(len(config.days))},
    )


def class_sort_key(class_key: str) -> Tuple[int, int, str]:
    """Numeric grades in number order ("2" before "10"); anything else after, by name."""
    if class_key.isdigit():
        return (0, int(class_key), class_key)
    return (1, 0, class_key)


# ---------------------------------------------------------------------------
# PROJECTIONS (pure functions of class_wise)
# ---------------------------------------------------------------------------


def build_teacher_wise(
    class_wise: ClassGrid,
    config: SchoolConfig,
    teacher_ids: Iterable[str] = (),
) -> TeacherGrid:
    """
    "Inverts" the class timetable: for each teacher, the slot they teach at every (day, period).
    Teachers with nothing scheduled still get an empty week.
    """
    ids = list(dict.fromkeys(teacher_ids))
    seen = set(ids)
    for ckey in sorted(class_wise, key=class_sort_key):
        for days in class_wise[ckey].values():
            for slot in days.values():
                if slot is not None and slot.teacher_id not in seen:
                    seen.add(slot.teacher_id)
                    ids.append(slot.teacher_id)

    class_keys = sorted(class_wise, key=class_sort_key)
    teacher_wise: TeacherGrid = {}
    for tid in ids:
        week = _empty_days(config)
        for d, periods in week.items():
            for p in periods:
                for ckey in class_keys:
                    slot = class_wise[ckey].get(d, {}).get(p)
                    if slot is not None and slot.teacher_id == tid:
                        periods[p] = slot
                        break
        teacher_wise[tid] = week
    return teacher_wise


def build_full_schedule(class_wise: ClassGrid, config: SchoolConfig) -> FullSchedule:
    """Day -> period -> every class's slot, sorted by class grade."""
    class_keys = sorted(class_wise, key=class_sort_key)
    full: FullSchedule = {}
    for d in range(len(config.days)):
        full[d] = {}
        for p in teaching_periods(config):
            full[d][p] = [
                class_wise[ckey][d][p]
                for ckey in class_keys
                if class_wise[ckey].get(d, {}).get(p) is not None
            ]
    return full


def refresh_projections(
    timetable: Timetable,
    config: SchoolConfig,
    teacher_ids: Iterable[str] = (),
) -> Timetable:
    """Rebuild teacher_wise and full_schedule from class_wise. Returns the same object."""
    timetable.teacher_wise = build_teacher_wise(timetable.class_wise, config, teacher_ids)
    timetable.full_schedule = build_full_schedule(timetable.class_wise, config)
    return timetable


# ---------------------------------------------------------------------------
# FLAT FORM
# ---------------------------------------------------------------------------


def to_flat(class_wise: ClassGrid) -> Dict[Tuple[str, int, int], ScheduleSlot]:
    """(class_key, day_idx, period_idx) -> slot, filled cells only."""
    flat = {}
    for ckey, days in class_wise.items():
        for d, periods in days.items():
            for p, slot in periods.items():
                if slot is not None:
                    flat[(ckey, d, p)] = slot
    return flat


def from_flat(
    flat: Dict[Tuple[str, int, int], ScheduleSlot],
    config: SchoolConfig,
    class_keys: Iterable[str] = (),
) -> ClassGrid:
    """
    Put flat cells back into a class_wise grid. Cells that fall on a break or
    outside the week are dropped.
    """
    keys = list(dict.fromkeys(list(class_keys) + [k[0] for k in flat]))
    class_wise: ClassGrid = {ckey: _empty_days(config) for ckey in keys}
    for (ckey, d, p), slot in flat.items():
        if p in class_wise[ckey].get(d, {}):
            class_wise[ckey][d][p] = slot
    return class_wise
