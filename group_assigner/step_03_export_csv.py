import csv
import json
import pathlib
import sys

import pandas as pd

root_dir = str(pathlib.Path(__file__).parent.parent)
if root_dir not in sys.path:
    sys.path.append(root_dir)

from group_assigner.solver.models import Assignment


def load_json(path):
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def build_results_frame(assignments, include_unassigned=False):
    """
    One row per assignment: 1-based index, one column per group (sorted
    members joined by "; "), optionally a trailing Unassigned column.
    """
    all_groups = sorted({name for a in assignments for name in a.group_names})

    rows = []
    for i, assignment in enumerate(assignments, start=1):
        row = {"Assignment": i}
        for group in all_groups:
            row[group] = "; ".join(assignment.members(group))
        if include_unassigned:
            row["Unassigned"] = "; ".join(assignment.unassigned)
        rows.append(row)

    columns = ["Assignment"] + all_groups + (["Unassigned"] if include_unassigned else [])
    return pd.DataFrame(rows, columns=columns)


def write_assignments_csv(assignments, output_path, include_unassigned=False):
    df = build_results_frame(assignments, include_unassigned)
    output_path = pathlib.Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    # Strings quoted with doubled-quote escaping, the row index left bare
    df.to_csv(output_path, index=False, quoting=csv.QUOTE_NONNUMERIC, encoding='utf-8')
    return output_path


def export_csv(source_prefix="group", results_dir=None):
    base_dir = pathlib.Path(__file__).parent.parent
    results_dir = pathlib.Path(results_dir) if results_dir else base_dir / "data" / "results"

    assignments_path = results_dir / f"{source_prefix}_assignments.json"
    if not assignments_path.exists():
        print(f"Error: Assignments file not found at {assignments_path}. Run solver first.")
        return None

    payload = load_json(assignments_path)
    assignments = [Assignment.from_dict(a) for a in payload["assignments"]]
    include_unassigned = payload.get("minimize_unassigned", False)

    output_path = results_dir / f"{source_prefix}-results.csv"
    write_assignments_csv(assignments, output_path, include_unassigned)
    print(f"Results exported to {output_path}")
    return output_path


if __name__ == "__main__":
    export_csv()
