import argparse
import json
import logging
import pathlib
import sys
from collections import defaultdict

import matplotlib

# Headless backend before pyplot is ever imported
matplotlib.use('Agg')

# Add project root to sys.path to allow running as script
root_dir = str(pathlib.Path(__file__).parent.parent)
if root_dir not in sys.path:
    sys.path.append(root_dir)

from group_assigner.solver.cpsat_check import min_unassigned_count
from group_assigner.solver.normalizer import sorted_assignments
from group_assigner.solver.solver import GroupAssigner, load_search_config
from group_assigner.step_01_load_inputs import convert_inputs, load_processed
from group_assigner.step_03_export_csv import write_assignments_csv

logger = logging.getLogger(__name__)


def run_solver(groups_file=None, participants_file=None, config=None, results_dir=None):
    base_dir = pathlib.Path(__file__).parent.parent
    data_dir = base_dir / "data"
    results_dir = pathlib.Path(results_dir) if results_dir else data_dir / "results"

    # Ensure results directory exists
    results_dir.mkdir(parents=True, exist_ok=True)

    if config is None:
        config = load_search_config()
    scope = config.get("scope", {})
    source_prefix = scope.get("prefix", "group")

    groups_file = groups_file or data_dir / scope.get("groups_file", "groups.csv")
    participants_file = participants_file or data_dir / scope.get("participants_file", "participants.csv")
    # Same hand-off as running step 01 on its own: CSV -> processed JSON -> solver
    processed_path = convert_inputs(groups_file, participants_file, results_dir / f"{source_prefix}_inputs.json")
    groups, people = load_processed(processed_path)

    print("Initializing Solver...")
    solver = GroupAssigner(groups, people, config=config)

    print("Solving...")
    results = sorted_assignments(solver.find_assignments())

    print_report(results, solver)

    if config.get("verify_with_cpsat") and solver.min_size_possible and solver.minimize_unassigned:
        verify_minimum(solver, groups, people, results)

    output_path = results_dir / f"{source_prefix}_assignments.json"
    save_assignments(results, solver, output_path)
    print(f"Assignments saved to {output_path}")

    if not results:
        return results

    csv_path = results_dir / f"{source_prefix}-results.csv"
    write_assignments_csv(results, csv_path, include_unassigned=solver.minimize_unassigned)
    print(f"Results exported to {csv_path}")

    # Generate Person Report
    person_report_path = results_dir / f"{source_prefix}_assignments_by_person.json"
    save_person_report(results, people, person_report_path)
    print(f"Person report saved to {person_report_path}")

    chart_path = results_dir / f"{source_prefix}_group_chart.svg"
    generate_group_chart(results, people, chart_path)
    print(f"Group chart saved to {chart_path}")

    return results


def print_report(results, solver):
    if not results:
        if not solver.min_size_possible:
            print(f"Impossible group sizes: {', '.join(solver.infeasible_groups)}")
        print("No valid assignments found")
        return

    for assignment in results:
        print(f"{assignment}\n")
    print(f"Found {len(results)} valid assignments.")
    if solver.minimize_unassigned:
        print(f"Unassigned people per assignment: {solver.best_score}")
    if solver.aborted:
        print("Search budget exhausted: results may be incomplete.")


def verify_minimum(solver, groups, people, results):
    expected = min_unassigned_count(groups, people, mode=solver.mode)
    found = solver.best_score if results else None
    if solver.aborted:
        print(f"CP-SAT minimum: {expected} (search was cut short, not compared)")
    elif expected == found:
        print(f"CP-SAT agrees: minimum unassigned = {expected}")
    else:
        logger.error("CP-SAT minimum %s differs from search result %s", expected, found)
        print(f"Warning: CP-SAT minimum {expected} differs from search result {found}")


def save_assignments(results, solver, output_path):
    payload = {
        "mode": solver.mode,
        "minimize_unassigned": solver.minimize_unassigned,
        "feasible": solver.min_size_possible,
        "aborted": solver.aborted,
        "stats": dict(solver.stats),
        "assignments": [a.to_dict() for a in results],
    }
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(payload, f, indent=4, ensure_ascii=False)


def build_person_report(results, people):
    # person -> {"groups": {group: count}, "unassigned": count}
    person_data = {p.name: {"groups": defaultdict(int), "unassigned": 0} for p in people}

    for assignment in results:
        for group_name, members in assignment.groups:
            for name in members:
                person_data[name]["groups"][group_name] += 1
        for name in assignment.unassigned:
            person_data[name]["unassigned"] += 1

    return {
        name: {"groups": dict(sorted(info["groups"].items())), "unassigned": info["unassigned"]}
        for name, info in sorted(person_data.items())
    }


def save_person_report(results, people, output_path):
    person_data = build_person_report(results, people)
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(person_data, f, indent=4, ensure_ascii=False)


def generate_group_chart(results, people, output_path):
    import matplotlib.pyplot as plt
    import numpy as np

    report = build_person_report(results, people)
    people_sorted = sorted(report)
    if not people_sorted:
        print("No people to plot.")
        return

    group_names = sorted({g for info in report.values() for g in info["groups"]})

    # Vertical stacked bars: one layer per group, unassigned on top
    plt.figure(figsize=(12, 5))
    bottom = np.zeros(len(people_sorted))
    for group in group_names:
        vals = np.array([report[p]["groups"].get(group, 0) for p in people_sorted])
        plt.bar(people_sorted, vals, bottom=bottom, label=group)
        bottom += vals

    unassigned_vals = np.array([report[p]["unassigned"] for p in people_sorted])
    plt.bar(people_sorted, unassigned_vals, bottom=bottom, label="Unassigned", color='lightgray')

    plt.xticks(rotation=60, ha='right')
    plt.ylabel("Assignments")
    plt.title(f"Group placement per person across {len(results)} assignments")
    plt.legend()
    plt.tight_layout()
    plt.savefig(output_path, format='svg')
    plt.close('all')


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Enumerate valid group assignments")
    parser.add_argument("--groups", type=pathlib.Path, help="Groups CSV (GroupName,MinSize,MaxSize)")
    parser.add_argument("--participants", type=pathlib.Path, help="Participants CSV (Name,AllowedGroups,MaxGroups)")
    parser.add_argument("--config", type=pathlib.Path, help="Search config JSON")
    parser.add_argument("--mode", choices=["single", "multi"], help="Membership mode")
    parser.add_argument("--minimize-unassigned", dest="minimize_unassigned", action="store_true", default=None,
                        help="Keep only assignments with the fewest unassigned people")
    parser.add_argument("--all", dest="minimize_unassigned", action="store_false", default=None,
                        help="Keep every valid assignment")
    parser.add_argument("--results-dir", type=pathlib.Path, help="Output directory")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every solution found")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_search_config(args.config)
    if args.mode:
        config["mode"] = args.mode
    if args.minimize_unassigned is not None:
        config["minimize_unassigned"] = args.minimize_unassigned

    try:
        run_solver(args.groups, args.participants, config=config, results_dir=args.results_dir)
    except (OSError, ValueError) as e:
        print(f"Error processing files: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
