"""
🧠 STORAGE — File-based persistence
===================================
The solver never touches the disk. This module turns the roster, the config
and the class_wise grid into plain JSON and back, and keeps them in a data folder.
Refresh → everything still there.

Only class_wise is stored. teacher_wise and full_schedule are rebuilt on load.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from entities import derive_entities
from models import (
    Assignment,
    DayConstraint,
    Rank,
    SchoolConfig,
    ScheduleSlot,
    Teacher,
)
from timetable import Timetable, from_flat, refresh_projections, to_flat

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"
TEACHERS_FILE = "teachers.json"
CONFIG_FILE = "config.json"
TIMETABLE_FILE = "timetable.json"
HISTORY_FILE = "history.json"

SNAPSHOT_VERSION = 1
HISTORY_LIMIT = 500


def _data_path(name: str, data_dir: Optional[Path] = None) -> Path:
    """Create data directory if it doesn't exist, and return the file path in it."""
    folder = Path(data_dir) if data_dir is not None else DATA_DIR
    folder.mkdir(parents=True, exist_ok=True)
    return folder / name


def _read_json(path: Path) -> Any:
    """None if the file is missing or broken."""
    if not path.exists():
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        logger.warning("Ignoring unreadable %s: %s", path, e)
        return None


def _write_json(path: Path, data: Any) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# DICT CONVERSION
# ---------------------------------------------------------------------------


def _teacher_to_dict(t: Teacher) -> dict:
    """Convert Teacher to JSON-serializable dict."""
    return {
        "teacher_id": t.teacher_id,
        "name": t.name,
        "rank": t.rank.value,
        "assignments": [
            {
                "subject": a.subject,
                "class_grade": a.class_grade,
                "day_constraint": a.day_constraint.label,
            }
            for a in t.assignments
        ],
    }


def _dict_to_teacher(d: dict) -> Teacher:
    """Convert dict from JSON back to Teacher."""
    return Teacher(
        teacher_id=d["teacher_id"],
        name=d.get("name", d["teacher_id"]),
        rank=Rank(d.get("rank", Rank.TEACHER.value)),
        assignments=[
            Assignment(
                subject=a["subject"],
                class_grade=int(a["class_grade"]),
                day_constraint=DayConstraint.parse(str(a["day_constraint"])),
            )
            for a in d.get("assignments", [])
        ],
    )


def _slot_to_dict(s: ScheduleSlot) -> dict:
    return {
        "class_key": s.class_key,
        "subject_key": s.subject_key,
        "subject": s.subject,
        "teacher_id": s.teacher_id,
        "teacher_name": s.teacher_name,
        "teacher_rank": s.teacher_rank.value,
        "room": s.room,
        "day_constraint": s.day_constraint.label,
    }


def _dict_to_slot(d: dict) -> ScheduleSlot:
    return ScheduleSlot(
        class_key=d["class_key"],
        subject_key=d.get("subject_key", d["subject"].strip().lower()),
        subject=d["subject"],
        teacher_id=d["teacher_id"],
        teacher_name=d.get("teacher_name", d["teacher_id"]),
        teacher_rank=Rank(d.get("teacher_rank", Rank.TEACHER.value)),
        room=d.get("room", ""),
        day_constraint=DayConstraint.parse(str(d["day_constraint"])),
    )


def config_to_dict(config: SchoolConfig) -> dict:
    return {
        "days": config.days,
        "periods_per_day": config.periods_per_day,
        "break_periods": {str(k): v for k, v in config.break_periods.items()},
        "core_subjects": list(config.core_subjects),
        "group_subjects": list(config.group_subjects),
        "leadership_ranks": sorted(r.value for r in config.leadership_ranks),
        "restricted_leading_periods": config.restricted_leading_periods,
        "class_capacity": config.class_capacity,
    }


def config_from_dict(d: dict) -> SchoolConfig:
    """Missing keys fall back to the defaults."""
    default = SchoolConfig()
    break_periods = {}
    for k, v in d.get("break_periods", {}).items():
        try:
            break_periods[int(k)] = str(v)
        except (ValueError, TypeError):
            logger.warning("Ignoring bad break period key %r", k)
    return SchoolConfig(
        days=list(d.get("days", default.days)),
        periods_per_day=int(d.get("periods_per_day", default.periods_per_day)),
        break_periods=break_periods if "break_periods" in d else default.break_periods,
        core_subjects=tuple(d.get("core_subjects", default.core_subjects)),
        group_subjects=tuple(d.get("group_subjects", default.group_subjects)),
        leadership_ranks=frozenset(Rank(r) for r in d.get("leadership_ranks", [r.value for r in default.leadership_ranks])),
        restricted_leading_periods=int(d.get("restricted_leading_periods", default.restricted_leading_periods)),
        class_capacity=int(d.get("class_capacity", default.class_capacity)),
    )


def _tt_key(cid: str, d: int, p: int) -> str:
    """Serialize timetable key for JSON."""
    return f"{cid}|{d}|{p}"


def _parse_key(k: str) -> Tuple[str, int, int]:
    cid, d, p = k.split("|")
    return (cid, int(d), int(p))


def serialize_timetable(timetable: Timetable) -> dict:
    """class_wise grid -> {"cls|day|period": slot dict}. Empty cells are left out."""
    return {_tt_key(c, d, p): _slot_to_dict(s) for (c, d, p), s in to_flat(timetable.class_wise).items()}


def deserialize_timetable(
    data: Dict[str, dict],
    config: SchoolConfig,
    teacher_ids: Sequence[str] = (),
    class_keys: Sequence[str] = (),
) -> Timetable:
    """Restore class_wise from JSON and rebuild the other two views from it."""
    flat = {_parse_key(k): _dict_to_slot(v) for k, v in data.items()}
    class_wise = from_flat(flat, config, class_keys)
    kept = len(to_flat(class_wise))
    if kept != len(flat):
        logger.warning("Dropped %d stored cells that fall outside the configured week", len(flat) - kept)
    return refresh_projections(Timetable(class_wise=class_wise), config, teacher_ids)


# ---------------------------------------------------------------------------
# SNAPSHOT
# ---------------------------------------------------------------------------


def snapshot_to_dict(
    teachers: List[Teacher],
    timetable: Optional[Timetable] = None,
    config: Optional[SchoolConfig] = None,
) -> dict:
    """{config, roster, grid} as plain JSON data, for whoever saves it."""
    return {
        "version": SNAPSHOT_VERSION,
        "config": config_to_dict(config or SchoolConfig()),
        "teachers": [_teacher_to_dict(t) for t in teachers],
        "timetable": serialize_timetable(timetable) if timetable is not None else {},
    }


def snapshot_from_dict(data: dict) -> Tuple[List[Teacher], Timetable, SchoolConfig]:
    config = config_from_dict(data.get("config", {}))
    teachers = [_dict_to_teacher(d) for d in data.get("teachers", [])]
    timetable = deserialize_timetable(
        data.get("timetable", {}),
        config,
        teacher_ids=[t.teacher_id for t in teachers],
        class_keys=derive_entities(teachers, config).class_keys(),
    )
    return teachers, timetable, config


# ---------------------------------------------------------------------------
# FILES
# ---------------------------------------------------------------------------


def load_teachers(data_dir: Optional[Path] = None) -> List[Teacher]:
    """Load all teachers from disk. Returns empty list if file doesn't exist."""
    data = _read_json(_data_path(TEACHERS_FILE, data_dir))
    if not data:
        return []
    if not isinstance(data, list):
        logger.warning("Ignoring teacher roster: expected a list, got %s", type(data).__name__)
        return []
    try:
        return [_dict_to_teacher(d) for d in data]
    except (KeyError, TypeError, ValueError) as e:
        logger.warning("Ignoring malformed teacher roster: %s", e)
        return []


def save_teachers(teachers: List[Teacher], data_dir: Optional[Path] = None) -> None:
    """Save all teachers to disk. Overwrites existing file."""
    _write_json(_data_path(TEACHERS_FILE, data_dir), [_teacher_to_dict(t) for t in teachers])


def load_config(data_dir: Optional[Path] = None) -> SchoolConfig:
    """Load school config from disk, or the default week if there is none."""
    data = _read_json(_data_path(CONFIG_FILE, data_dir))
    if not isinstance(data, dict):
        return SchoolConfig()
    try:
        return config_from_dict(data)
    except (ValueError, TypeError) as e:
        logger.warning("Ignoring malformed config: %s", e)
        return SchoolConfig()


def save_config(config: SchoolConfig, data_dir: Optional[Path] = None) -> None:
    """Save school config to disk."""
    _write_json(_data_path(CONFIG_FILE, data_dir), config_to_dict(config))


def load_timetable(
    config: SchoolConfig,
    teacher_ids: Sequence[str] = (),
    data_dir: Optional[Path] = None,
) -> Optional[Timetable]:
    """Load the saved grid. Returns None if not found."""
    data = _read_json(_data_path(TIMETABLE_FILE, data_dir))
    if data is None:
        return None
    try:
        return deserialize_timetable(data, config, teacher_ids)
    except (KeyError, ValueError) as e:
        logger.warning("Ignoring malformed timetable: %s", e)
        return None


def save_timetable(timetable: Timetable, data_dir: Optional[Path] = None) -> None:
    _write_json(_data_path(TIMETABLE_FILE, data_dir), serialize_timetable(timetable))


def clear_timetable(data_dir: Optional[Path] = None) -> None:
    """Remove the saved grid (e.g. when the roster changes)."""
    path = _data_path(TIMETABLE_FILE, data_dir)
    if path.exists():
        path.unlink()


def load_history(data_dir: Optional[Path] = None) -> List[dict]:
    """Load activity history. Newest first."""
    data = _read_json(_data_path(HISTORY_FILE, data_dir))
    return data if isinstance(data, list) else []


def append_history(
    action: str,
    target: str,
    summary: str,
    details: str = "",
    data_dir: Optional[Path] = None,
) -> None:
    """Append one history entry. Keeps last 500 entries."""
    history = load_history(data_dir)
    entry = {
        "ts": datetime.now().isoformat(),
        "action": action,
        "target": target,
        "summary": summary,
        "details": details,
    }
    history.insert(0, entry)
    _write_json(_data_path(HISTORY_FILE, data_dir), history[:HISTORY_LIMIT])
