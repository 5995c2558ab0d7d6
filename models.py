"""
🧠 DATA MODELS — Baby-level explanation
========================================
These are like little boxes that hold info about teachers, their assignments,
and the slots they end up in.
Think of them as forms you fill out: "Teacher name? What rank? Which subject,
which class, and on which days?"
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Tuple


class Rank(str, Enum):
    """Teacher rank. Heads and assistant heads keep the first periods free."""

    TEACHER = "teacher"
    ASSISTANT_HEAD = "assistant_head"
    HEAD = "head"


# ---------------------------------------------------------------------------
# DAY CONSTRAINTS
# ---------------------------------------------------------------------------

RANGE = "range"
SINGLE = "single"
QUOTA = "quota"

_RANGE_RE = re.compile(r"^\s*(\d+)\s*-\s*(\d+)\s*$")
_SINGLE_RE = re.compile(r"^\s*(\d+)\s*$")
_QUOTA_RE = re.compile(r"^\s*(?:(\d+)\s*[xX]|[xX]\s*(\d+))\s*$")


@dataclass(frozen=True)
class DayConstraint:
    """
    Which days an assignment must take. Days are 1-based (1 = first school day).
    - range: every day from start to end, at the SAME period each day
    - single: exactly one period on one day
    - quota: N periods a week, the solver picks the days
    """

    kind: str
    start: int = 0
    end: int = 0
    count: int = 0

    def __post_init__(self):
        if self.kind == RANGE:
            if self.start < 1 or self.end < self.start:
                raise ValueError(f"Invalid day range: {self.start}-{self.end}")
        elif self.kind == SINGLE:
            if self.start < 1:
                raise ValueError(f"Invalid day: {self.start}")
            if self.end == 0:
                object.__setattr__(self, "end", self.start)
            elif self.end != self.start:
                raise ValueError(f"A single day cannot span days {self.start}-{self.end}")
        elif self.kind == QUOTA:
            if self.count < 1:
                raise ValueError(f"Invalid weekly quota: {self.count}")
        else:
            raise ValueError(f"Unknown day constraint kind: {self.kind!r}")

    @classmethod
    def range(cls, start: int, end: int) -> "DayConstraint":
        return cls(RANGE, start=start, end=end)

    @classmethod
    def single(cls, day: int) -> "DayConstraint":
        return cls(SINGLE, start=day, end=day)

    @classmethod
    def quota(cls, count: int) -> "DayConstraint":
        return cls(QUOTA, count=count)

    @classmethod
    def parse(cls, text: str) -> "DayConstraint":
        """
        Read the roster notation: "1-3" (range), "2" (single day), "3x" (3 per week).
        """
        m = _RANGE_RE.match(text)
        if m:
            return cls.range(int(m.group(1)), int(m.group(2)))
        m = _SINGLE_RE.match(text)
        if m:
            return cls.single(int(m.group(1)))
        m = _QUOTA_RE.match(text)
        if m:
            return cls.quota(int(m.group(1) or m.group(2)))
        raise ValueError(f"Cannot parse day constraint: {text!r}")

    @property
    def days_per_week(self) -> int:
        if self.kind == RANGE:
            return self.end - self.start + 1
        if self.kind == SINGLE:
            return 1
        return self.count

    def day_indices(self) -> List[int]:
        """0-based day indices this constraint pins. Empty for quotas."""
        if self.kind == QUOTA:
            return []
        return list(range(self.start - 1, self.end))

    @property
    def label(self) -> str:
        if self.kind == RANGE:
            return f"{self.start}-{self.end}"
        if self.kind == SINGLE:
            return str(self.start)
        return f"{self.count}x"

    def __str__(self) -> str:
        return self.label


# ---------------------------------------------------------------------------
# ROSTER
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Assignment:
    """
    One thing a teacher teaches.
    - subject: Name (e.g. "Math")
    - class_grade: Which class (e.g. 6)
    - day_constraint: On which days (see DayConstraint)
    """

    subject: str
    class_grade: int
    day_constraint: DayConstraint

    @property
    def class_key(self) -> str:
        return str(self.class_grade)


@dataclass
class Teacher:
    """
    One teacher in the school.
    - teacher_id: Unique code (e.g. "T1")
    - name: Display name (e.g. "Mr. Rahman")
    - rank: Rank.TEACHER, Rank.ASSISTANT_HEAD or Rank.HEAD
    - assignments: What they teach, in the order they were entered
    """

    teacher_id: str
    name: str
    rank: Rank = Rank.TEACHER
    assignments: List[Assignment] = field(default_factory=list)


# ---------------------------------------------------------------------------
# DERIVED ENTITIES
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SchoolClass:
    grade: int
    capacity: int = 40

    @property
    def key(self) -> str:
        return str(self.grade)


@dataclass(frozen=True)
class Subject:
    """A subject is identified by its lower-cased name, never by a generated id."""

    name: str
    color: str

    @property
    def key(self) -> str:
        return subject_key(self.name)


@dataclass(frozen=True)
class Room:
    """Virtual room made up from class + subject. Not a real tracked resource."""

    key: str
    name: str
    building: str = "Main Building"
    capacity: int = 40

    @property
    def full_name(self) -> str:
        return f"{self.name} ({self.building})"


def subject_key(name: str) -> str:
    return name.strip().lower()


def room_key(class_grade: int, subject: str) -> str:
    return f"room-{class_grade}-{subject_key(subject)}"


def room_label(class_grade: int, subject: str) -> str:
    """'Room 6M' for Math in class 6."""
    return f"Room {class_grade}{subject.strip()[:1]}"


# ---------------------------------------------------------------------------
# SCHEDULE
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScheduleSlot:
    """
    One filled box on the weekly grid: this class has this subject with this teacher.
    Teacher name and rank are copied in, so the slot still reads right if the
    roster is edited later.
    """

    class_key: str
    subject_key: str
    subject: str
    teacher_id: str
    teacher_name: str
    teacher_rank: Rank
    room: str
    day_constraint: DayConstraint


# ---------------------------------------------------------------------------
# SCHOOL CONFIG
# ---------------------------------------------------------------------------

DEFAULT_DAYS = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday"]
DEFAULT_BREAK_PERIODS = {4: "Break"}
DEFAULT_CORE_SUBJECTS = ("Math", "Bangla", "English", "Science", "Physics", "Chemistry", "Biology")
DEFAULT_GROUP_SUBJECTS = ("Physics", "Chemistry", "Biology", "Higher Math")


@dataclass
class SchoolConfig:
    """
    School-wide settings: days, periods, named breaks, and the subject/rank rules.
    - days: e.g. ["Sunday", ..., "Thursday"]
    - periods_per_day: e.g. 8 (breaks included)
    - break_periods: period_index (0-based) -> name, e.g. {4: "Break"}
    - core_subjects: get a priority boost so they are placed first
    - group_subjects: never go in the first periods of the day
    - leadership_ranks: ranks that never teach the first periods of the day
    - restricted_leading_periods: how many first periods those rules block
    """

    days: List[str] = field(default_factory=lambda: list(DEFAULT_DAYS))
    periods_per_day: int = 8
    break_periods: Dict[int, str] = field(default_factory=lambda: dict(DEFAULT_BREAK_PERIODS))
    core_subjects: Tuple[str, ...] = DEFAULT_CORE_SUBJECTS
    group_subjects: Tuple[str, ...] = DEFAULT_GROUP_SUBJECTS
    leadership_ranks: FrozenSet[Rank] = frozenset({Rank.HEAD, Rank.ASSISTANT_HEAD})
    restricted_leading_periods: int = 2
    class_capacity: int = 40


def teaching_periods(config: SchoolConfig) -> List[int]:
    """All period indices that are NOT breaks, in order."""
    return [p for p in range(config.periods_per_day) if p not in config.break_periods]


def get_all_slots(config: SchoolConfig) -> List[tuple]:
    """
    Returns all (day_idx, period_idx) slots that are NOT breaks.
    Like getting all empty boxes on a weekly grid.
    """
    slots = []
    for d in range(len(config.days)):
        for p in teaching_periods(config):
            slots.append((d, p))
    return slots


def get_break_name(config: SchoolConfig, period_idx: int) -> str:
    """Return the name for a break period, or 'Break' if unnamed."""
    return config.break_periods.get(period_idx, "Break")


def matches_subject_set(subject: str, names) -> bool:
    """Case-insensitive: does any configured name appear inside the subject name?"""
    s = subject_key(subject)
    return any(subject_key(n) in s for n in names if n.strip())
