"""
School Routine Command Line
===========================

Runs the scheduler against the roster kept in the data folder (or a snapshot file).

Usage:
    routine generate                      # build and save the weekly routine
    routine generate --seed 7 --strict    # shuffled ties, keep only a complete routine
    routine --snapshot week.json generate # read roster + config from a snapshot file
    routine audit                         # check the saved routine for teacher clashes
    routine --snapshot week.json audit    # check the routine stored in a snapshot
    routine report workload               # workload | classes | weekly
    routine report grid --class 6         # one class as a day x period table
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import reports
import storage
from audit import detect_conflicts
from solver import outcome_summary, run_schedule

logger = logging.getLogger(__name__)


def _load_inputs(args):
    """Roster, config and (snapshot only) the stored grid."""
    if args.snapshot:
        with open(args.snapshot, "r", encoding="utf-8") as f:
            return storage.snapshot_from_dict(json.load(f))
    return storage.load_teachers(args.data_dir), None, storage.load_config(args.data_dir)


def _load_routine(args, teachers, timetable, config):
    if args.snapshot:
        return timetable
    return storage.load_timetable(config, [t.teacher_id for t in teachers], args.data_dir)


def cmd_generate(args) -> int:
    teachers, _, config = _load_inputs(args)
    if not teachers:
        print("Please add teachers with their assignments before generating a routine.")
        return 1

    result = run_schedule(teachers, config, seed=args.seed, strict=args.strict)
    storage.save_timetable(result.timetable, args.data_dir)
    summary = outcome_summary(result)
    storage.append_history(
        "generate",
        "routine",
        f"{summary.get('committed', 0)} of {len(result.outcomes)} requests placed",
        details=json.dumps(summary),
        data_dir=args.data_dir,
    )

    for o in result.failures:
        print(f"[{o.error_kind}] {o.request.describe()}")
    for c in result.conflicts:
        print(f"Conflict: {c}")

    if result.success and not result.conflicts:
        print(f"Conflict-free routine generated: {len(result.outcomes)} requests placed.")
        return 0
    print(f"Routine incomplete: {len(result.failures)} of {len(result.outcomes)} requests could not be placed.")
    return 1


def cmd_audit(args) -> int:
    teachers, timetable, config = _load_inputs(args)
    timetable = _load_routine(args, teachers, timetable, config)
    if timetable is None:
        print("No saved routine. Run 'routine generate' first.")
        return 1
    conflicts = detect_conflicts(timetable, config)
    if not conflicts:
        print("Conflict-free routine: no teacher is in two classes at once.")
        return 0
    print(f"{len(conflicts)} conflicts found:")
    for c in conflicts:
        print(f"  {c}")
    return 1


def cmd_report(args) -> int:
    teachers, timetable, config = _load_inputs(args)
    if args.kind == "classes":
        df = reports.class_distribution_report(teachers)
    else:
        timetable = _load_routine(args, teachers, timetable, config)
        if timetable is None:
            print("No saved routine. Run 'routine generate' first.")
            return 1
        if args.kind == "workload":
            df = reports.teacher_workload_report(teachers, timetable, config)
        elif args.kind == "grid":
            if args.class_key not in timetable.class_wise:
                print(f"Unknown class {args.class_key!r}. Pass one with --class.")
                return 1
            df = reports.class_routine_grid(timetable, config, args.class_key)
        else:
            df = reports.weekly_overview_report(timetable, config)
    print(df.to_string())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="routine", description="Conflict-free weekly school routine generator")
    parser.add_argument("--data-dir", type=Path, default=None, help="Folder holding teachers.json, config.json, ...")
    parser.add_argument("--snapshot", type=Path, default=None, help="Read roster, config and saved routine from a snapshot file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Build and save the weekly routine")
    gen.add_argument("--seed", type=int, default=None, help="Shuffle priority ties with this seed")
    gen.add_argument("--strict", action="store_true", help="Keep the routine only if every request is placed")
    gen.set_defaults(func=cmd_generate)

    aud = sub.add_parser("audit", help="Check the saved routine for teacher clashes")
    aud.set_defaults(func=cmd_audit)

    rep = sub.add_parser("report", help="Print a summary table")
    rep.add_argument("kind", choices=["workload", "classes", "weekly", "grid"])
    rep.add_argument("--class", dest="class_key", default=None, help="Class for the grid report, e.g. 6")
    rep.set_defaults(func=cmd_report)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.debug("Running %s", args.command)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
