import argparse
import logging
import sys
from pathlib import Path
from typing import List

from timetabler.config import SchedulerConfig, load_config
from timetabler.data_loader import load_data
from timetabler.diagnostics import entries_frame
from timetabler.evaluation import EvaluationResult, evaluate
from timetabler.model import StudentType, Timetable, UnscheduledEntry
from timetabler.reports import lab_schedule_frame, roster_frame, timetable_frame, timetable_grid
from timetabler.resolver import diagnose_roster
from timetabler.session import SchedulingSession


def print_timetable(timetable: Timetable, cfg: SchedulerConfig):
    for batch in timetable.batches:
        print("\n" + "=" * 80)
        print(f"{cfg.batch_label(batch)} | Semester {timetable.semester} ({timetable.student_type.value})")
        print("=" * 80)
        print(timetable_grid(timetable, batch, cfg).to_string())


def print_summary(eval_res: EvaluationResult, entries: List[UnscheduledEntry]):
    print("\n--- AUDIT ---")
    print(
        f"double_bookings={eval_res.double_bookings} max_consecutive={eval_res.max_consecutive} "
        f"lunch_spanning={eval_res.lunch_spanning_blocks}"
    )
    for name, hours in sorted(eval_res.faculty_hours.items()):
        print(f"  {name:<24} {hours} h")
    for v in eval_res.violations:
        print(f"  ! {v}")
    if not entries:
        print("\nAll requirements scheduled.")
        return
    print(f"\n--- UNSCHEDULED ({len(entries)}) ---")
    for e in entries:
        where = f" @ {e.day} {e.slot}" if e.day is not None and e.slot is not None else ""
        print(f"  {e.course:<10} {e.batch:<4} {e.faculty:<20} {e.reason}{where}")


def export_outputs(timetable: Timetable, session: SchedulingSession, entries: List[UnscheduledEntry],
                   cfg: SchedulerConfig, out_dir: Path):
    out_dir.mkdir(parents=True, exist_ok=True)
    timetable_frame(timetable, cfg).to_csv(out_dir / "timetable.csv", index=False)
    lab_schedule_frame(session.lab_schedule).to_csv(out_dir / "lab_schedule.csv", index=False)
    entries_frame(entries).to_csv(out_dir / "unscheduled.csv", index=False)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Generate the weekly timetable of one semester")
    parser.add_argument("--config", default="config.yaml", help="Path to the configuration file")
    parser.add_argument("--data_dir", default="data", help="Directory holding the input CSV files")
    parser.add_argument("--semester", required=True, help="Semester to schedule, e.g. 3 or SEM-3")
    parser.add_argument("--student_type", default="UG", help="UG or PG")
    parser.add_argument("--out_dir", default=None, help="Write timetable/lab/unscheduled CSVs here")
    parser.add_argument("--roster", action="store_true", help="Print the roster check before scheduling")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING...)")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cfg = load_config(args.config)
    student_type = StudentType.parse(args.student_type)

    print("Loading data...")
    try:
        bundle = load_data(args.data_dir)
    except FileNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.roster:
        checks = diagnose_roster(
            bundle.courses, bundle.assignments, args.semester, cfg.batches_for(student_type.value)
        )
        print(roster_frame(checks).to_string(index=False))

    session = SchedulingSession(bundle.assignments, cfg)
    timetable, entries = session.schedule_semester(bundle.courses, args.semester, student_type)
    print(f"Courses: {len(bundle.courses)} | Sessions placed: {len(timetable)}")

    print_timetable(timetable, cfg)
    eval_res = evaluate(timetable, cfg)
    print_summary(eval_res, entries)

    if args.out_dir:
        out_dir = Path(args.out_dir)
        export_outputs(timetable, session, entries, cfg, out_dir)
        print(f"Results saved to {out_dir}/timetable.csv, lab_schedule.csv and unscheduled.csv")
    return 0


if __name__ == "__main__":
    sys.exit(main())
