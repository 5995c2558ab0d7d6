"""
🧠 ENTITY DERIVER — Baby-level explanation
==========================================
We never keep a separate list of classes, subjects or rooms.
We read the teachers' assignments and collect them: "Someone teaches Math to
class 6" means class 6 exists, Math exists, and Room 6M exists.

Keys are natural (grade, lower-cased name), so deriving twice gives the same keys.
"""

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from models import (
    Room,
    SchoolClass,
    SchoolConfig,
    Subject,
    Teacher,
    room_key,
    room_label,
    subject_key,
)

logger = logging.getLogger(__name__)

SUBJECT_COLORS = [
    "#3498db",
    "#e74c3c",
    "#9b59b6",
    "#f39c12",
    "#27ae60",
    "#34495e",
    "#16a085",
    "#e67e22",
    "#f1c40f",
    "#8e44ad",
    "#2ecc71",
    "#95a5a6",
    "#d35400",
    "#c0392b",
    "#7f8c8d",
]


@dataclass
class DerivedEntities:
    """Classes, subjects and rooms found in the roster, keyed by natural key."""

    classes: Dict[str, SchoolClass] = field(default_factory=dict)
    subjects: Dict[str, Subject] = field(default_factory=dict)
    rooms: Dict[str, Room] = field(default_factory=dict)

    def class_keys(self) -> List[str]:
        """Class keys ordered by grade (6, 7, ..., 10)."""
        return [c.key for c in sorted(self.classes.values(), key=lambda c: c.grade)]

    def get_subject(self, name: str) -> Optional[Subject]:
        return self.subjects.get(subject_key(name))


def subject_color(name: str) -> str:
    """Same subject -> same color, every run."""
    digest = hashlib.md5(subject_key(name).encode("utf-8")).hexdigest()
    return SUBJECT_COLORS[int(digest, 16) % len(SUBJECT_COLORS)]


def derive_entities(teachers: List[Teacher], config: Optional[SchoolConfig] = None) -> DerivedEntities:
    """
    Walk every assignment once and collect unique classes, subjects and rooms.
    The first spelling of a subject wins ("Math" and "math" are one subject).
    """
    capacity = config.class_capacity if config else 40
    entities = DerivedEntities()

    for t in teachers:
        for a in t.assignments:
            ckey = a.class_key
            if ckey not in entities.classes:
                entities.classes[ckey] = SchoolClass(grade=a.class_grade, capacity=capacity)

            skey = subject_key(a.subject)
            if skey not in entities.subjects:
                entities.subjects[skey] = Subject(name=a.subject.strip(), color=subject_color(a.subject))

            rkey = room_key(a.class_grade, a.subject)
            if rkey not in entities.rooms:
                entities.rooms[rkey] = Room(
                    key=rkey,
                    name=room_label(a.class_grade, a.subject),
                    capacity=capacity,
                )

    logger.debug(
        "Derived %d classes, %d subjects, %d rooms from %d teachers",
        len(entities.classes), len(entities.subjects), len(entities.rooms), len(teachers),
    )
    return entities
