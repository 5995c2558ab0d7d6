"""
🧠 ROUTINE SOLVER — Baby-level explanation
==========================================
A greedy helper that puts subjects into time slots, one request at a time.
Rules:
1. A teacher can't be in two places at once.
2. A class can't have two subjects at the same time.
3. A day range takes the SAME period on every day of the range.
4. Heads, assistant heads and group subjects stay out of the first periods.
5. Breaks stay empty.

Hard requests go first (long ranges, core subjects, senior classes), so they
grab slots before the easy ones. Once a request is placed it is never moved.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from audit import detect_conflicts
from entities import DerivedEntities, derive_entities
from errors import (
    DiscardedRequest,
    InvariantViolation,
    MissingSubjectReference,
    SchedulingError,
    UnplaceableRequest,
)
from models import (
    QUOTA,
    Assignment,
    DayConstraint,
    Rank,
    SchoolConfig,
    ScheduleSlot,
    Teacher,
    matches_subject_set,
    room_label,
    subject_key,
    teaching_periods,
)
from timetable import Timetable, init_timetable, refresh_projections

logger = logging.getLogger(__name__)

Cell = Tuple[int, int]


@dataclass
class AllocationRequest:
    """One (teacher, assignment) pair waiting in the queue."""

    teacher_id: str
    teacher_name: str
    teacher_rank: Rank
    subject: str
    class_grade: int
    day_constraint: DayConstraint
    priority: int = 0
    order: int = 0  # position in the roster

    @property
    def class_key(self) -> str:
        return str(self.class_grade)

    def describe(self) -> str:
        return (
            f"{self.subject} for class {self.class_key} "
            f"by {self.teacher_name} ({self.teacher_id}), days {self.day_constraint.label}"
        )


@dataclass
class RequestOutcome:
    request: AllocationRequest
    committed: bool
    cells: List[Cell] = field(default_factory=list)
    error_kind: str = ""
    message: str = ""


@dataclass
class RunResult:
    """
    Everything a run produced.
    - success: True only if every request was placed
    - outcomes: one per request, in queue order
    - conflicts: what the auditor found (should be empty)
    """

    timetable: Timetable
    entities: DerivedEntities
    outcomes: List[RequestOutcome] = field(default_factory=list)
    conflicts: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(o.committed for o in self.outcomes)

    @property
    def failures(self) -> List[RequestOutcome]:
        return [o for o in self.outcomes if not o.committed]


# ---------------------------------------------------------------------------
# PHASE 1: PRIORITY QUEUE
# ---------------------------------------------------------------------------


def calculate_priority(assignment: Assignment, config: SchoolConfig) -> int:
    """
    Bigger number = placed earlier.
    10 per day a week, +50 for a core subject, +5 per class grade.
    """
    priority = assignment.day_constraint.days_per_week * 10
    if matches_subject_set(assignment.subject, config.core_subjects):
        priority += 50
    priority += assignment.class_grade * 5
    return priority


def build_request_queue(
    teachers: List[Teacher],
    config: SchoolConfig,
    seed: Optional[int] = None,
) -> List[AllocationRequest]:
    """
    Flattens every teacher's assignments into one queue, highest priority first.
    Ties go by teacher id, then subject, then class, then roster order.
    With a seed, ties are shuffled instead (same seed -> same order).
    """
    queue = []
    for t in teachers:
        for a in t.assignments:
            queue.append(
                AllocationRequest(
                    teacher_id=t.teacher_id,
                    teacher_name=t.name,
                    teacher_rank=t.rank,
                    subject=a.subject,
                    class_grade=a.class_grade,
                    day_constraint=a.day_constraint,
                    priority=calculate_priority(a, config),
                    order=len(queue),
                )
            )

    if seed is None:
        return sorted(
            queue,
            key=lambda r: (-r.priority, r.teacher_id, subject_key(r.subject), r.class_grade, r.order),
        )

    rng = random.Random(seed)
    jitter = {r.order: rng.random() for r in queue}
    return sorted(queue, key=lambda r: (-r.priority, jitter[r.order]))


# ---------------------------------------------------------------------------
# PHASE 2: AVAILABILITY SEARCH
# ---------------------------------------------------------------------------


def eligible_periods(request: AllocationRequest, config: SchoolConfig) -> List[int]:
    """
    Teaching periods this request may use.
    Leadership ranks lose the first periods; group subjects lose them too.
    """
    periods = teaching_periods(config)
    leading = set(periods[: config.restricted_leading_periods])
    blocked = set()
    if request.teacher_rank in config.leadership_ranks:
        blocked |= leading
    if matches_subject_set(request.subject, config.group_subjects):
        blocked |= leading
    return [p for p in periods if p not in blocked]


def is_teacher_busy(timetable: Timetable, teacher_id: str, day: int, period: int) -> bool:
    """Look through every class at (day, period) for this teacher."""
    for days in timetable.class_wise.values():
        slot = days.get(day, {}).get(period)
        if slot is not None and slot.teacher_id == teacher_id:
            return True
    return False


def is_cell_free(timetable: Timetable, request: AllocationRequest, day: int, period: int) -> bool:
    """The class box exists and is empty, and the teacher is not elsewhere."""
    if not timetable.has_cell(request.class_key, day, period):
        return False
    if timetable.class_slot(request.class_key, day, period) is not None:
        return False
    return not is_teacher_busy(timetable, request.teacher_id, day, period)


def find_cells(timetable: Timetable, request: AllocationRequest, config: SchoolConfig) -> Optional[List[Cell]]:
    """
    First fitting set of (day, period) boxes for the request, or None.
    Periods are tried in order, so earlier periods win.
    """
    dc = request.day_constraint
    periods = eligible_periods(request, config)

    if dc.kind == QUOTA:
        needed = dc.days_per_week
        for p in periods:
            free_days = [d for d in range(len(config.days)) if is_cell_free(timetable, request, d, p)]
            if len(free_days) >= needed:
                return [(d, p) for d in free_days[:needed]]
        return None

    # Range and single day: the same period on every pinned day
    days = dc.day_indices()
    if not days:
        return None
    for p in periods:
        if all(is_cell_free(timetable, request, d, p) for d in days):
            return [(d, p) for d in days]
    return None


# ---------------------------------------------------------------------------
# PHASE 3: COMMIT
# ---------------------------------------------------------------------------


def commit_request(
    timetable: Timetable,
    request: AllocationRequest,
    cells: List[Cell],
    entities: DerivedEntities,
) -> None:
    """
    Write the request into every chosen class box. Checks every box first, so
    either all boxes are written or none.
    """
    subject = entities.get_subject(request.subject)
    if subject is None:
        raise MissingSubjectReference(f"Subject {request.subject!r} is not in the derived subject set")

    for d, p in cells:
        if not is_cell_free(timetable, request, d, p):
            raise InvariantViolation(
                f"Cell day {d + 1} period {p + 1} for class {request.class_key} "
                f"is no longer free for {request.subject}"
            )

    for d, p in cells:
        timetable.class_wise[request.class_key][d][p] = ScheduleSlot(
            class_key=request.class_key,
            subject_key=subject.key,
            subject=request.subject,
            teacher_id=request.teacher_id,
            teacher_name=request.teacher_name,
            teacher_rank=request.teacher_rank,
            room=room_label(request.class_grade, request.subject),
            day_constraint=request.day_constraint,
        )


def allocate_request(
    timetable: Timetable,
    request: AllocationRequest,
    entities: DerivedEntities,
    config: SchoolConfig,
) -> List[Cell]:
    """
    Find boxes for one request and write it in. Returns the boxes used.
    Raises a SchedulingError if the request cannot be placed.
    """
    if entities.get_subject(request.subject) is None:
        raise MissingSubjectReference(f"Subject {request.subject!r} is not in the derived subject set")

    cells = find_cells(timetable, request, config)
    if cells is None:
        raise UnplaceableRequest(f"No free period for {request.describe()}")

    commit_request(timetable, request, cells, entities)
    return cells


# ---------------------------------------------------------------------------
# PHASE 4: FULL RUN
# ---------------------------------------------------------------------------


def _discard(outcome: RequestOutcome) -> RequestOutcome:
    # The working grid is gone, so the cells it held are too
    return RequestOutcome(
        outcome.request,
        False,
        error_kind=DiscardedRequest.kind,
        message=f"Discarded with the incomplete routine: {outcome.request.describe()}",
    )


def run_schedule(
    teachers: List[Teacher],
    config: Optional[SchoolConfig] = None,
    seed: Optional[int] = None,
    strict: bool = False,
) -> RunResult:
    """
    Builds a whole week from scratch.
    Derive entities -> blank grid -> queue -> place each request -> rebuild views -> audit.
    A failed request is written down and skipped; it never undoes earlier ones.
    In strict mode the grid is only kept if every request was placed.
    """
    config = config or SchoolConfig()
    entities = derive_entities(teachers, config)
    teacher_ids = [t.teacher_id for t in teachers]
    blank = init_timetable(config, entities.class_keys(), teacher_ids)
    working = blank.copy() if strict else blank

    queue = build_request_queue(teachers, config, seed=seed)
    logger.info("Scheduling %d requests for %d teachers", len(queue), len(teachers))

    outcomes: List[RequestOutcome] = []
    for request in queue:
        try:
            cells = allocate_request(working, request, entities, config)
        except UnplaceableRequest as e:
            logger.warning("Could not assign %s", request.describe())
            outcomes.append(RequestOutcome(request, False, error_kind=e.kind, message=str(e)))
            continue
        except SchedulingError as e:
            logger.error("%s: %s", e.kind, e)
            outcomes.append(RequestOutcome(request, False, error_kind=e.kind, message=str(e)))
            continue
        logger.debug("Placed %s at %s", request.describe(), cells)
        outcomes.append(RequestOutcome(request, True, cells=cells))

    failed = sum(1 for o in outcomes if not o.committed)
    if strict and failed:
        logger.info("Strict mode: %d requests failed, discarding the working grid", failed)
        published = blank
        outcomes = [_discard(o) if o.committed else o for o in outcomes]
    else:
        published = working

    refresh_projections(published, config, teacher_ids)
    conflicts = detect_conflicts(published, config)
    placed = sum(1 for o in outcomes if o.committed)
    logger.info(
        "Run finished: %d placed, %d failed, %d conflicts",
        placed, len(outcomes) - placed, len(conflicts),
    )
    return RunResult(timetable=published, entities=entities, outcomes=outcomes, conflicts=conflicts)


def outcome_summary(result: RunResult) -> Dict[str, int]:
    """Counts per outcome kind, e.g. {"committed": 12, "unplaceable": 1}."""
    counts: Dict[str, int] = {}
    for o in result.outcomes:
        k = "committed" if o.committed else o.error_kind
        counts[k] = counts.get(k, 0) + 1
    return counts
