from group_assigner.solver.models import Assignment


def normalize(group_members, people):
    """
    Collapse a completed search state into its canonical Assignment.

    group_members: group name -> list of Person, in push order
    people: every person in the problem, used to derive the unassigned list
    """
    placed = set()
    groups = {}
    for group_name, members in group_members.items():
        names = [p.name for p in members]
        placed.update(names)
        groups[group_name] = names

    unassigned = [p.name for p in people if p.name not in placed]
    return Assignment.from_mapping(groups, unassigned)


def sorted_assignments(results):
    """Deterministic output order for a result set."""
    return sorted(results, key=lambda a: a.sort_key())
