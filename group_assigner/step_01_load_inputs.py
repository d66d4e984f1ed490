import json
import pathlib
import sys

import pandas as pd

# Add project root to sys.path to allow running as script
root_dir = str(pathlib.Path(__file__).parent.parent)
if root_dir not in sys.path:
    sys.path.append(root_dir)

from group_assigner.solver.models import GroupConstraint, Person

GROUP_COLUMNS = ["GroupName", "MinSize", "MaxSize"]
PARTICIPANT_COLUMNS = ["Name", "AllowedGroups", "MaxGroups"]


def read_csv(path, columns):
    name = pathlib.Path(path).name
    # Header read as a data row so a wide first row cannot turn into an index column
    try:
        raw = pd.read_csv(path, header=None, dtype=str, keep_default_na=False, skipinitialspace=True)
    except pd.errors.ParserError as e:
        raise ValueError(f"Invalid {name} format: {e}") from None

    header = [str(c).strip() for c in raw.iloc[0]] if len(raw) else []
    if header != columns:
        raise ValueError(f"Invalid {name} format: expected columns {columns}, got {header}")

    df = raw.iloc[1:].reset_index(drop=True)
    df.columns = columns
    # Short rows come back padded with NaN
    short = df.isna().any(axis=1)
    if short.any():
        row_number = int(short.to_numpy().argmax()) + 2
        raise ValueError(f"Invalid {name} format: row {row_number} does not have {len(columns)} fields")
    return df


def parse_int(value, path, row_number, column):
    text = str(value).strip()
    try:
        number = int(text)
    except ValueError:
        raise ValueError(f"{pathlib.Path(path).name} row {row_number}: {column} '{text}' is not a whole number") from None
    if number < 0:
        raise ValueError(f"{pathlib.Path(path).name} row {row_number}: {column} must not be negative")
    return number


def parse_allowed_groups(value):
    """Semicolon separated list; surrounding quotes are already removed by the CSV reader."""
    text = str(value).strip().strip('"')
    return frozenset(part.strip() for part in text.split(';') if part.strip())


def process_groups(groups_df, path="groups.csv"):
    groups = []
    seen = set()
    # Row numbers count the header as row 1
    for idx, row in enumerate(groups_df.itertuples(index=False), start=2):
        name = str(row[0]).strip()
        if not name:
            raise ValueError(f"{pathlib.Path(path).name} row {idx}: GroupName is empty")
        if name in seen:
            raise ValueError(f"{pathlib.Path(path).name} row {idx}: duplicate group '{name}'")
        seen.add(name)
        groups.append(GroupConstraint(
            name=name,
            min_size=parse_int(row[1], path, idx, "MinSize"),
            max_size=parse_int(row[2], path, idx, "MaxSize"),
        ))
    return groups


def process_participants(participants_df, path="participants.csv"):
    people = []
    for idx, row in enumerate(participants_df.itertuples(index=False), start=2):
        name = str(row[0]).strip()
        if not name:
            raise ValueError(f"{pathlib.Path(path).name} row {idx}: Name is empty")
        people.append(Person(
            name=name,
            allowed_groups=parse_allowed_groups(row[1]),
            max_groups=parse_int(row[2], path, idx, "MaxGroups"),
        ))
    return people


def load_groups(path):
    return process_groups(read_csv(path, GROUP_COLUMNS), path)


def load_participants(path):
    return process_participants(read_csv(path, PARTICIPANT_COLUMNS), path)


def load_inputs(groups_file, participants_file):
    print(f"Loading groups from {groups_file}...")
    groups = load_groups(groups_file)
    print(f"Loading participants from {participants_file}...")
    people = load_participants(participants_file)
    print(f"Loaded {len(groups)} groups and {len(people)} participants.")
    return groups, people


def save_processed(groups, people, output_path):
    """Dump the parsed inputs as JSON, mirroring what the solver step consumes."""
    payload = {
        "groups": [g.to_dict() for g in groups],
        "people": [p.to_dict() for p in people],
    }
    output_path = pathlib.Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(payload, f, indent=4, ensure_ascii=False)
    return output_path


def load_processed(path):
    with open(path, 'r', encoding='utf-8') as f:
        payload = json.load(f)
    groups = [GroupConstraint.from_dict(g) for g in payload.get("groups", [])]
    people = [Person.from_dict(p) for p in payload.get("people", [])]
    return groups, people


def convert_inputs(groups_file, participants_file, output_path):
    """CSV -> processed JSON, the file the solver step reads."""
    groups, people = load_inputs(groups_file, participants_file)
    out = save_processed(groups, people, output_path)
    print(f"Processed inputs saved to {out}")
    return out


if __name__ == "__main__":
    base_dir = pathlib.Path(__file__).parent.parent
    data_dir = base_dir / "data"
    convert_inputs(data_dir / "groups.csv", data_dir / "participants.csv", data_dir / "processed" / "group_inputs.json")
