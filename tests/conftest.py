import itertools

import pytest

from group_assigner.solver.models import Assignment, GroupConstraint, Person


@pytest.fixture
def sample_groups_csv(tmp_path):
    p = tmp_path / "groups.csv"
    data = """GroupName,MinSize,MaxSize
A,1,2
B,1,1
C,1,3
D,0,1
"""
    p.write_text(data, encoding='utf-8')
    return p


@pytest.fixture
def sample_participants_csv(tmp_path):
    p = tmp_path / "participants.csv"
    data = """Name,AllowedGroups,MaxGroups
Jon,"A;B",1
Sia,"A;C;D",1
Ura,A;D,1
Mike,"A; D",1
"""
    p.write_text(data, encoding='utf-8')
    return p


@pytest.fixture
def sample_groups():
    return [
        GroupConstraint("A", 1, 2),
        GroupConstraint("B", 1, 1),
        GroupConstraint("C", 1, 3),
        GroupConstraint("D", 0, 1),
    ]


@pytest.fixture
def sample_people():
    return [
        Person("Jon", {"A", "B"}, 1),
        Person("Sia", {"A", "C", "D"}, 1),
        Person("Ura", {"A", "D"}, 1),
        Person("Mike", {"A", "D"}, 1),
    ]


@pytest.fixture
def multi_groups():
    return {"A": (1, 2), "B": (1, 2), "C": (0, 1)}


@pytest.fixture
def multi_people():
    return [
        Person("Ann", {"A", "B", "C"}, 2),
        Person("Ben", {"A", "B"}, 2),
        Person("Cal", {"B", "C"}, 1),
        Person("Dot", {"A"}, 1),
    ]


def brute_force(groups, people, mode="single"):
    """Every valid assignment, by trying every choice for every person independently."""
    bounds = {g.name: (g.min_size, g.max_size) for g in groups} if isinstance(groups, list) else dict(groups)

    per_person = []
    for person in people:
        allowed = sorted(g for g in person.allowed_groups if bounds.get(g, (0, 0))[1] > 0)
        quota = min(person.max_groups, 1) if mode == "single" else person.max_groups
        options = [c for k in range(quota + 1) for c in itertools.combinations(allowed, k)]
        per_person.append(options)

    found = set()
    for choice in itertools.product(*per_person):
        members = {g: [] for g in bounds}
        for person, combo in zip(people, choice):
            for g in combo:
                members[g].append(person.name)
        if all(lo <= len(members[g]) <= hi for g, (lo, hi) in bounds.items()):
            unassigned = [p.name for p, combo in zip(people, choice) if not combo]
            found.add(Assignment.from_mapping(members, unassigned))
    return found


@pytest.fixture
def brute():
    return brute_force
