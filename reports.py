"""
📊 REPORTS
==========
Summary tables for the report screen: teacher workload, class distribution,
weekly overview, a teacher x day load matrix, and one class's weekly grid.
Everything comes back as a pandas DataFrame; drawing it is the UI's job.
"""

from typing import List

import pandas as pd

from models import SchoolConfig, Teacher, get_break_name, teaching_periods
from timetable import Timetable, class_sort_key, to_flat


def teacher_load_matrix(timetable: Timetable, config: SchoolConfig) -> pd.DataFrame:
    """Rows=teachers, Cols=days. Number of scheduled periods per day."""
    counts = {}
    for (_, d, _), slot in to_flat(timetable.class_wise).items():
        row = counts.setdefault(slot.teacher_id, [0] * len(config.days))
        row[d] += 1
    teachers = sorted(counts)
    data = [counts[tid] for tid in teachers]
    return pd.DataFrame(data, index=pd.Index(teachers, name="teacher_id"), columns=config.days, dtype="int64")


def teacher_workload_report(
    teachers: List[Teacher],
    timetable: Timetable,
    config: SchoolConfig,
) -> pd.DataFrame:
    """
    One row per teacher: rank, days per week asked for, periods actually
    scheduled, and the subjects with their day pattern.
    """
    scheduled = {}
    for slot in to_flat(timetable.class_wise).values():
        scheduled[slot.teacher_id] = scheduled.get(slot.teacher_id, 0) + 1

    rows = []
    for t in teachers:
        rows.append(
            {
                "teacher_id": t.teacher_id,
                "name": t.name,
                "rank": t.rank.value,
                "requested_days": sum(a.day_constraint.days_per_week for a in t.assignments),
                "scheduled_periods": scheduled.get(t.teacher_id, 0),
                "subjects": ", ".join(
                    f"{a.subject} ({a.day_constraint.label})" for a in t.assignments
                ),
            }
        )
    columns = ["teacher_id", "name", "rank", "requested_days", "scheduled_periods", "subjects"]
    return pd.DataFrame(rows, columns=columns).set_index("teacher_id")


def class_distribution_report(teachers: List[Teacher]) -> pd.DataFrame:
    """One row per class: how many subjects it takes and which."""
    per_class = {}
    for t in teachers:
        for a in t.assignments:
            per_class.setdefault(a.class_key, []).append(
                f"{a.subject} ({a.day_constraint.label}, {t.name})"
            )

    rows = [
        {"class": ckey, "subject_count": len(per_class[ckey]), "subjects": ", ".join(per_class[ckey])}
        for ckey in sorted(per_class, key=class_sort_key)
    ]
    return pd.DataFrame(rows, columns=["class", "subject_count", "subjects"]).set_index("class")


def weekly_overview_report(timetable: Timetable, config: SchoolConfig) -> pd.DataFrame:
    """One row per day: occupied class periods and how many teachers are working."""
    rows = []
    for d, day in enumerate(config.days):
        classes = 0
        active = set()
        for days in timetable.class_wise.values():
            for p in teaching_periods(config):
                slot = days.get(d, {}).get(p)
                if slot is not None:
                    classes += 1
                    active.add(slot.teacher_id)
        rows.append({"day": day, "class_periods": classes, "active_teachers": len(active)})
    return pd.DataFrame(rows, columns=["day", "class_periods", "active_teachers"]).set_index("day")


def class_routine_grid(timetable: Timetable, config: SchoolConfig, class_key: str) -> pd.DataFrame:
    """
    One class's week, the way it is printed on the notice board.
    Rows=days, Cols=periods ("P1".."P8"). Breaks show their name, free boxes are "".
    """
    columns = [f"P{p + 1}" for p in range(config.periods_per_day)]
    days = timetable.class_wise.get(class_key, {})
    data = []
    for d in range(len(config.days)):
        row = []
        for p in range(config.periods_per_day):
            if p in config.break_periods:
                row.append(get_break_name(config, p))
                continue
            slot = days.get(d, {}).get(p)
            row.append(f"{slot.subject} ({slot.teacher_name})" if slot is not None else "")
        data.append(row)
    return pd.DataFrame(data, index=pd.Index(config.days, name="day"), columns=columns)
