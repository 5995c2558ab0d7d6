import pytest

from conftest import make_teacher
from entities import derive_entities
from errors import InvariantViolation, MissingSubjectReference, UnplaceableRequest
from models import Assignment, DayConstraint, Rank, SchoolConfig, Teacher
from solver import (
    AllocationRequest,
    allocate_request,
    build_request_queue,
    calculate_priority,
    commit_request,
    eligible_periods,
    find_cells,
    outcome_summary,
    run_schedule,
)
from timetable import init_timetable, to_flat

FILLER_SUBJECTS = ["Art", "Music", "Drawing", "Religion", "Agriculture", "Sports", "History"]


def request(subject="Art", grade=6, dc="1", teacher_id="T1", rank=Rank.TEACHER):
    return AllocationRequest(
        teacher_id=teacher_id,
        teacher_name=f"Teacher {teacher_id}",
        teacher_rank=rank,
        subject=subject,
        class_grade=grade,
        day_constraint=DayConstraint.parse(dc),
    )


def cells_of(tt, class_key, teacher_id=None, subject=None):
    return sorted(
        (d, p)
        for (c, d, p), s in to_flat(tt.class_wise).items()
        if c == class_key
        and (teacher_id is None or s.teacher_id == teacher_id)
        and (subject is None or s.subject == subject)
    )


# ---------------------------------------------------------------------------
# Priority queue
# ---------------------------------------------------------------------------


class TestPriority:
    def test_formula(self, config):
        assert calculate_priority(Assignment("Math", 6, DayConstraint.range(1, 3)), config) == 30 + 50 + 30
        assert calculate_priority(Assignment("Art", 10, DayConstraint.single(2)), config) == 10 + 50
        assert calculate_priority(Assignment("art", 7, DayConstraint.quota(4)), config) == 40 + 35

    def test_core_subject_boost_uses_configured_names(self):
        config = SchoolConfig(core_subjects=("Art",))
        assert calculate_priority(Assignment("Fine Art", 6, DayConstraint.single(1)), config) == 10 + 50 + 30

    def test_queue_is_sorted_by_priority(self, config, school_roster):
        queue = build_request_queue(school_roster, config)
        assert len(queue) == sum(len(t.assignments) for t in school_roster)
        priorities = [r.priority for r in queue]
        assert priorities == sorted(priorities, reverse=True)
        assert (queue[0].subject, queue[0].class_grade) == ("Science", 8)

    def test_ties_break_by_teacher_then_subject(self, config):
        teachers = [
            make_teacher("T2", ("Music", 6, "1")),
            make_teacher("T1", ("Sports", 6, "1"), ("Art", 6, "2")),
        ]
        queue = build_request_queue(teachers, config)
        assert [(r.teacher_id, r.subject) for r in queue] == [("T1", "Art"), ("T1", "Sports"), ("T2", "Music")]
        assert [r.order for r in queue] == [2, 1, 0]

    def test_seeded_ties_are_reproducible(self, config, school_roster):
        first = build_request_queue(school_roster, config, seed=11)
        second = build_request_queue(school_roster, config, seed=11)
        assert [(r.teacher_id, r.subject, r.class_grade) for r in first] == [
            (r.teacher_id, r.subject, r.class_grade) for r in second
        ]
        priorities = [r.priority for r in first]
        assert priorities == sorted(priorities, reverse=True)


# ---------------------------------------------------------------------------
# Eligible periods
# ---------------------------------------------------------------------------


class TestEligiblePeriods:
    def test_ordinary_teacher_gets_every_teaching_period(self, config):
        assert eligible_periods(request(), config) == [0, 1, 2, 3, 5, 6, 7]

    @pytest.mark.parametrize("rank", [Rank.HEAD, Rank.ASSISTANT_HEAD])
    def test_leadership_loses_first_two(self, config, rank):
        assert eligible_periods(request(rank=rank), config) == [2, 3, 5, 6, 7]

    def test_group_subject_loses_first_two(self, config):
        assert eligible_periods(request(subject="Physics"), config) == [2, 3, 5, 6, 7]

    def test_rules_compose(self, config):
        assert eligible_periods(request(subject="Chemistry", rank=Rank.HEAD), config) == [2, 3, 5, 6, 7]

    def test_leading_count_is_configurable(self):
        config = SchoolConfig(restricted_leading_periods=3, break_periods={2: "Tiffin"})
        assert eligible_periods(request(rank=Rank.HEAD), config) == [4, 5, 6, 7]


# ---------------------------------------------------------------------------
# Search and commit
# ---------------------------------------------------------------------------


def test_single_day_takes_first_eligible_period(config):
    teachers = [make_teacher("A", ("Math", 6, "1"), name="A")]
    result = run_schedule(teachers, config)
    tt = result.timetable

    assert result.success
    first = eligible_periods(result.outcomes[0].request, config)[0]
    s = tt.class_slot("6", 0, first)
    assert s.teacher_name == "A" and s.subject == "Math"
    assert cells_of(tt, "6") == [(0, first)]
    assert result.conflicts == []


def test_single_day_built_without_end_fills_one_box(config):
    teacher = Teacher("T1", "A", assignments=[Assignment("Art", 6, DayConstraint("single", start=2))])
    result = run_schedule([teacher], config)

    assert result.success
    assert result.outcomes[0].cells == [(1, 0)]
    assert cells_of(result.timetable, "6") == [(1, 0)]


def test_two_teachers_same_class_same_day_get_different_periods(config):
    teachers = [
        make_teacher("T1", ("Science", 7, "2")),
        make_teacher("T2", ("Science", 7, "2")),
    ]
    result = run_schedule(teachers, config)

    assert result.success
    assert cells_of(result.timetable, "7", "T1") == [(1, 0)]
    assert cells_of(result.timetable, "7", "T2") == [(1, 1)]


def test_saturated_class_reports_unplaceable_and_keeps_commitments(config):
    busy = make_teacher("A", *[(s, 8, "1-5") for s in FILLER_SUBJECTS], name="A")
    extra = make_teacher("B", ("Music", 8, "1x"), name="B")
    result = run_schedule([busy, extra], config)

    assert not result.success
    assert len(result.failures) == 1
    failure = result.failures[0]
    assert failure.request.teacher_id == "B"
    assert failure.error_kind == UnplaceableRequest.kind
    assert "Music" in failure.message
    assert len(cells_of(result.timetable, "8", "A")) == 5 * 7
    assert outcome_summary(result) == {"committed": 7, "unplaceable": 1}


def test_range_takes_same_period_every_day_and_skips_busy_teacher(config):
    teachers = [make_teacher("T1", ("Math", 6, "1-5"), ("Math", 7, "1-5"))]
    result = run_schedule(teachers, config)
    tt = result.timetable

    assert result.success
    assert cells_of(tt, "7") == [(d, 0) for d in range(5)]
    assert cells_of(tt, "6") == [(d, 1) for d in range(5)]


def test_range_is_all_or_nothing(config):
    # Day 3 period 0 is taken for class 6, so the 2-4 range moves to period 1.
    teachers = [
        make_teacher("T1", ("Math", 6, "3"), name="first"),
        make_teacher("T2", ("Art", 6, "2-4"), name="second"),
    ]
    result = run_schedule(teachers, config)
    assert result.success
    assert cells_of(result.timetable, "6", "T2") == [(1, 1), (2, 1), (3, 1)]


def test_range_outside_the_week_is_unplaceable(config):
    result = run_schedule([make_teacher("T1", ("Art", 6, "4-6"))], config)
    assert not result.success
    assert result.failures[0].error_kind == "unplaceable"
    assert cells_of(result.timetable, "6") == []


def test_quota_takes_n_distinct_days_at_one_period(config):
    teachers = [
        make_teacher("T1", ("Math", 6, "1-2")),
        make_teacher("T2", ("Art", 6, "3x")),
        make_teacher("T3", ("Music", 6, "5x")),
    ]
    result = run_schedule(teachers, config)
    tt = result.timetable

    assert result.success
    assert cells_of(tt, "6", "T1") == [(0, 0), (1, 0)]
    assert cells_of(tt, "6", "T2") == [(2, 0), (3, 0), (4, 0)]
    assert cells_of(tt, "6", "T3") == [(d, 1) for d in range(5)]


def test_quota_larger_than_week_is_unplaceable(config):
    result = run_schedule([make_teacher("T1", ("Art", 6, "6x"))], config)
    assert not result.success


def test_head_teacher_avoids_first_periods(config):
    result = run_schedule([make_teacher("H", ("Art", 6, "1"), rank=Rank.HEAD)], config)
    assert cells_of(result.timetable, "6") == [(0, 2)]


def test_nothing_is_written_into_a_break(config):
    teachers = [make_teacher("T1", *[(s, 6, "1-5") for s in FILLER_SUBJECTS])]
    tt = run_schedule(teachers, config).timetable
    assert all(p != 4 for _, p in cells_of(tt, "6"))


def test_find_cells_returns_none_when_full(config):
    teachers = [make_teacher("X", *[(s, 6, "1-5") for s in FILLER_SUBJECTS])]
    tt = run_schedule(teachers, config).timetable
    assert find_cells(tt, request(), config) is None


def test_missing_subject_reference(config):
    entities = derive_entities([make_teacher("T1", ("Art", 6, "1"))])
    tt = init_timetable(config, ["6"], ["T1"])
    with pytest.raises(MissingSubjectReference):
        allocate_request(tt, request(subject="Music"), entities, config)
    assert cells_of(tt, "6") == []


def test_commit_refuses_taken_cell_and_writes_nothing(config):
    teachers = [make_teacher("T1", ("Art", 6, "1-2")), make_teacher("T2", ("Music", 6, "2"))]
    entities = derive_entities(teachers)
    tt = init_timetable(config, ["6"], ["T1", "T2"])
    allocate_request(tt, request(subject="Music", dc="2", teacher_id="T2"), entities, config)

    with pytest.raises(InvariantViolation):
        commit_request(tt, request(subject="Art", dc="1-2"), [(0, 0), (1, 0)], entities)
    assert tt.class_slot("6", 0, 0) is None
    assert tt.class_slot("6", 1, 0).teacher_id == "T2"


def test_strict_mode_publishes_nothing_on_failure(config):
    busy = make_teacher("A", *[(s, 8, "1-5") for s in FILLER_SUBJECTS])
    extra = make_teacher("B", ("Music", 8, "1x"))
    result = run_schedule([busy, extra], config, strict=True)

    assert not result.success
    assert to_flat(result.timetable.class_wise) == {}
    assert all(v == [] for d in result.timetable.full_schedule.values() for v in d.values())

    for o in result.outcomes:
        for d, p in o.cells:
            assert result.timetable.class_slot(o.request.class_key, d, p) is not None
    assert outcome_summary(result) == {"discarded": 7, "unplaceable": 1}
    assert all(o.cells == [] for o in result.outcomes)
    assert result.failures[0].message.startswith("Discarded with the incomplete routine")


def test_strict_mode_publishes_complete_run(config, school_roster):
    strict = run_schedule(school_roster, config, strict=True)
    relaxed = run_schedule(school_roster, config)
    assert strict.success == relaxed.success
    if strict.success:
        assert strict.timetable.class_wise == relaxed.timetable.class_wise


def test_runs_are_deterministic(config, school_roster):
    first = run_schedule(school_roster, config)
    second = run_schedule(school_roster, config)
    assert first.timetable == second.timetable


# ---------------------------------------------------------------------------
# Whole-school properties
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("seed", [None, 1, 2, 3])
def test_school_roster_properties(config, school_roster, seed):
    result = run_schedule(school_roster, config, seed=seed)
    tt = result.timetable

    # No teacher twice at the same (day, period)
    seen = set()
    for (c, d, p), s in to_flat(tt.class_wise).items():
        assert (s.teacher_id, d, p) not in seen
        seen.add((s.teacher_id, d, p))
    assert result.conflicts == []

    # Every committed request covers exactly its days
    for o in result.outcomes:
        dc = o.request.day_constraint
        if not o.committed:
            assert o.cells == []
            continue
        assert len(o.cells) == dc.days_per_week
        assert len({d for d, _ in o.cells}) == dc.days_per_week
        assert len({p for _, p in o.cells}) == 1
        if dc.kind != "quota":
            assert [d for d, _ in o.cells] == dc.day_indices()
        for d, p in o.cells:
            s = tt.class_slot(o.request.class_key, d, p)
            assert s.teacher_id == o.request.teacher_id
            assert s.subject == o.request.subject
            assert p in eligible_periods(o.request, config)

    placed = sum(len(o.cells) for o in result.outcomes if o.committed)
    assert placed == len(to_flat(tt.class_wise))
