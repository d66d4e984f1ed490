import threading

import pytest

from group_assigner.solver.models import Person
from group_assigner.solver.solver import GroupAssigner


@pytest.fixture
def wide_problem():
    groups = {"A": (1, 2), "B": (1, 2), "C": (0, 1), "D": (0, 1)}
    people = [Person(f"p{i}", {"A", "B", "C", "D"}, 2) for i in range(4)]
    return groups, people


@pytest.mark.parametrize("minimize", [False, True])
@pytest.mark.parametrize("mode", ["single", "multi"])
def test_parallel_matches_sequential(wide_problem, mode, minimize):
    groups, people = wide_problem
    config = {"mode": mode, "minimize_unassigned": minimize}
    sequential = GroupAssigner(groups, people, config=config).find_assignments()
    parallel = GroupAssigner(groups, people, config={**config, "workers": 4}).find_assignments()
    assert parallel == sequential
    assert sequential


def test_node_budget_stops_early(wide_problem):
    groups, people = wide_problem
    full = GroupAssigner(groups, people, config={"mode": "multi", "minimize_unassigned": False}).find_assignments()

    solver = GroupAssigner(groups, people, config={"mode": "multi", "minimize_unassigned": False, "max_nodes": 50})
    partial = solver.find_assignments()
    assert solver.aborted
    assert solver.stats["nodes"] <= 50
    assert partial < full


def test_abort_event_before_start(wide_problem):
    groups, people = wide_problem
    stop = threading.Event()
    stop.set()
    solver = GroupAssigner(groups, people, config={"minimize_unassigned": False}, abort_event=stop)
    assert solver.find_assignments() == set()
    assert solver.aborted


def test_abort_event_from_callback(wide_problem):
    groups, people = wide_problem
    stop = threading.Event()
    solver = GroupAssigner(
        groups, people,
        config={"minimize_unassigned": False},
        solution_callback=lambda assignment, score: stop.set(),
        abort_event=stop,
    )
    results = solver.find_assignments()
    assert solver.aborted
    assert len(results) == 1


def test_unlimited_budget_does_not_abort(sample_groups, sample_people):
    solver = GroupAssigner(sample_groups, sample_people, config={"time_limit_seconds": 0, "max_nodes": 0})
    solver.find_assignments()
    assert not solver.aborted


def test_negative_budget_rejected(sample_groups, sample_people):
    with pytest.raises(ValueError):
        GroupAssigner(sample_groups, sample_people, config={"max_nodes": -1})


class SteppingClock:
    """Stands in for the time module: every monotonic() call advances one second."""
    def __init__(self):
        self.now = 0.0

    def monotonic(self):
        self.now += 1.0
        return self.now


def test_time_limit_stops_search(wide_problem, monkeypatch):
    import group_assigner.solver.solver as solver_module

    groups, people = wide_problem
    solver = GroupAssigner(groups, people, config={"mode": "multi", "minimize_unassigned": False, "time_limit_seconds": 2.5})
    monkeypatch.setattr(solver_module, "time", SteppingClock())

    results = solver.find_assignments()
    # Deadline set at t=1 -> 3.5; nodes checked at t=2 and t=3, the third check trips it
    assert solver.aborted
    assert solver.stats["nodes"] == 2
    assert results == set()
