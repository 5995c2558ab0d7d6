import pytest

from models import Assignment, DayConstraint, Rank, SchoolConfig, Teacher


def make_teacher(teacher_id, *assignments, name=None, rank=Rank.TEACHER):
    """make_teacher("T1", ("Math", 6, "1-3"), ("Art", 7, "2x"))"""
    return Teacher(
        teacher_id=teacher_id,
        name=name or f"Teacher {teacher_id}",
        rank=rank,
        assignments=[Assignment(s, g, DayConstraint.parse(dc)) for s, g, dc in assignments],
    )


@pytest.fixture
def config():
    return SchoolConfig()


@pytest.fixture
def school_roster():
    """A small but busy school: grades 6-10, mixed ranks and day patterns."""
    return [
        make_teacher("T01", ("Math", 6, "1-5"), ("Math", 7, "1-5"), name="Karim"),
        make_teacher("T02", ("Bangla", 6, "1-4"), ("Bangla", 8, "2-5"), name="Rahima"),
        make_teacher("T03", ("English", 9, "1-3"), ("English", 10, "3-5"), name="Jamal"),
        make_teacher("T04", ("Physics", 9, "3x"), ("Chemistry", 10, "3x"), name="Nasrin"),
        make_teacher("T05", ("Biology", 9, "2"), ("Higher Math", 10, "4"), name="Sohel"),
        make_teacher("T06", ("Religion", 6, "2x"), ("Religion", 7, "2x"), ("Religion", 8, "2x"), name="Abdul"),
        make_teacher("T07", ("Art", 6, "1"), ("Music", 7, "5"), ("Sports", 8, "3"), name="Mitu"),
        make_teacher("H01", ("History", 10, "1-2"), ("Science", 8, "1-5"), name="Head Sir", rank=Rank.HEAD),
        make_teacher("A01", ("Geography", 9, "4-5"), ("ICT", 7, "2x"), name="Asst Head", rank=Rank.ASSISTANT_HEAD),
    ]
