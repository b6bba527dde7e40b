"""
CLI entry point for running the crowd-sensing simulation pipeline.

Stages:
    1. Generate user movements (random walk per user)
    2. Generate sensing tasks inside the movement extent
    3. Count candidate users per task

Saved runs:
    --save             store the run under saved_simulations/<YYYYMMDD_HHMMSS>
    --list-saved       list stored runs
    --load RUN_ID      print the summary of a stored run
    --delete RUN_ID    remove a stored run
"""

import argparse
import sys
from pathlib import Path

# Ensure project root is in sys.path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import get_settings
from crowdsense.logging_setup import setup_logging
from crowdsense.simulation_layer.engine import SimulationEngine
from crowdsense.simulation_layer.errors import SimulationError
from crowdsense.simulation_layer.models import (
    LocomotionType,
    PlatformType,
    SimulationParameters,
)


def build_parser() -> argparse.ArgumentParser:
    sim = get_settings().simulation
    parser = argparse.ArgumentParser(description="Crowd-sensing Simulation")
    parser.add_argument("--days", type=int, default=sim.days)
    parser.add_argument("--users", type=int, default=sim.number_of_users, help="Number of users")
    parser.add_argument(
        "--locomotion",
        default=str(sim.locomotion_type),
        help="walk|bike|drive or 1|2|3",
    )
    parser.add_argument("--tasks", type=int, default=sim.number_of_tasks, help="Number of tasks")
    parser.add_argument(
        "--range", dest="execution_range", type=int, default=sim.execution_range,
        help="Task execution range in meters",
    )
    parser.add_argument(
        "--duration", type=int, default=sim.task_duration, help="Task duration in minutes"
    )
    parser.add_argument(
        "--timeslot", type=int, default=sim.timeslot_duration, help="Timeslot duration in minutes"
    )
    parser.add_argument(
        "--platform", default=str(sim.platform_type), help="MCS|FOG-MCS|MEC-MCS or 1|2|3"
    )
    parser.add_argument("--seed", type=int, default=sim.seed, help="Random seed")
    parser.add_argument("--output-dir", type=Path, default=None, help="Working file directory")
    parser.add_argument("--save", action="store_true", help="Store the run after completion")
    parser.add_argument("--list-saved", action="store_true", help="List stored runs and exit")
    parser.add_argument("--load", metavar="RUN_ID", help="Show the summary of a stored run")
    parser.add_argument("--delete", metavar="RUN_ID", help="Delete a stored run")
    parser.add_argument("--log-level", default=None)
    return parser


def print_summary(engine: SimulationEngine) -> None:
    summary = engine.summary()
    print(f"  Movement events: {len(engine.get_user_movements())}")
    print(f"  Tasks: {summary.task_count}")
    if summary.task_count == 0:
        return
    print(f"  Candidates avg: {summary.average_candidates:.2f}")
    print(f"  Candidates max: {summary.max_candidates}")
    print(f"  Candidates min: {summary.min_candidates}")
    print("  Coverage:")
    for level, count in summary.coverage.items():
        pct = count / summary.task_count * 100
        print(f"    {level}: {count} ({pct:.1f}%)")


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    engine = SimulationEngine(seed=args.seed, output_dir=args.output_dir)

    if args.list_saved:
        runs = engine.list_saved_simulations()
        print(f"Saved simulations: {len(runs)}")
        for run_id in runs:
            print(f"  {run_id}")
        return 0

    if args.delete:
        deleted = engine.delete_simulation(args.delete)
        print(f"Deleted {args.delete}" if deleted else f"Not found: {args.delete}")
        return 0 if deleted else 1

    if args.load:
        try:
            engine.load_simulation(args.load)
        except SimulationError as e:
            print(f"Load failed: {e}")
            return 1
        print(f"Saved simulation {args.load}")
        print_summary(engine)
        return 0

    try:
        params = SimulationParameters(
            days=args.days,
            number_of_users=args.users,
            locomotion_type=LocomotionType.parse(args.locomotion),
            number_of_tasks=args.tasks,
            execution_range=args.execution_range,
            task_duration=args.duration,
            timeslot_duration=args.timeslot,
            platform_type=PlatformType.parse(args.platform),
        )
    except SimulationError as e:
        print(f"Invalid parameters: {e}")
        return 2
    engine.set_parameters(params)

    print("=" * 80)
    print("Crowd-sensing Simulation")
    print("=" * 80)
    print(f"Days: {params.days}")
    print(f"Users: {params.number_of_users} ({params.locomotion_type.name.lower()})")
    print(f"Tasks: {params.number_of_tasks}")
    print(f"Execution range: {params.execution_range} m")
    print(f"Task duration / timeslot: {params.task_duration} / {params.timeslot_duration} min")
    print(f"Platform: {params.platform_type.label}")
    print()

    print("[1/3] Generating user movements...")
    if not engine.generate_user_movements():
        print(f"  Failed: {engine.last_error}")
        return 1
    print(f"  {len(engine.get_user_movements())} events")

    print("[2/3] Generating tasks...")
    if not engine.generate_tasks():
        print(f"  Failed: {engine.last_error}")
        return 1
    print(f"  {len(engine.get_tasks())} tasks")

    print("[3/3] Computing candidates...")
    try:
        engine.compute_candidates_for_tasks()
    except SimulationError as e:
        print(f"  Failed: {e}")
        return 1
    engine.save_results_to_file()
    print(f"  Results -> {engine.output_dir / 'simulation_results.txt'}")
    print()

    print("=" * 80)
    print("Simulation complete!")
    print("=" * 80)
    print_summary(engine)

    if args.save:
        try:
            run_id = engine.save_simulation()
        except SimulationError as e:
            print(f"Save failed: {e}")
            return 1
        print(f"\nSaved as {run_id}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
