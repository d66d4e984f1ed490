"""
Independent CP-SAT model of the same problem.

Used to cross-check the backtracking search: the optimal objective here is the
smallest achievable number of unassigned people, which must equal the best
score of a minimizing search.
"""

import logging

from ortools.sat.python import cp_model

from group_assigner.solver.models import split_constraints

logger = logging.getLogger(__name__)


def build_model(groups, people, mode="single"):
    """
    Returns (model, assignments, unassigned_vars).

    assignments: (group_name, person_name) -> BoolVar
    unassigned_vars: person_name -> BoolVar, true when the person is in no group
    """
    min_sizes, max_sizes = split_constraints(groups)
    group_names = sorted(set(min_sizes) | set(max_sizes))

    model = cp_model.CpModel()
    assignments = {}
    unassigned_vars = {}

    for person in people:
        quota = min(person.max_groups, 1) if mode == "single" else person.max_groups
        person_vars = []
        for g in sorted(person.allowed_groups):
            if g not in group_names or max_sizes.get(g, 0) == 0:
                continue
            var = model.NewBoolVar(f"x_{g}_{person.name}")
            assignments[(g, person.name)] = var
            person_vars.append(var)

        unassigned = model.NewBoolVar(f"unassigned_{person.name}")
        unassigned_vars[person.name] = unassigned

        if person_vars:
            model.Add(sum(person_vars) <= quota)
            # unassigned <=> no membership
            model.Add(sum(person_vars) == 0).OnlyEnforceIf(unassigned)
            model.Add(sum(person_vars) >= 1).OnlyEnforceIf(unassigned.Not())
        else:
            model.Add(unassigned == 1)

    for g in group_names:
        members = [var for (group, _), var in assignments.items() if group == g]
        size = sum(members) if members else model.NewConstant(0)
        model.Add(size >= min_sizes.get(g, 0))
        model.Add(size <= max_sizes.get(g, 0))

    model.Minimize(sum(unassigned_vars.values()))
    return model, assignments, unassigned_vars


def min_unassigned_count(groups, people, mode="single", time_limit=0):
    """
    Smallest achievable unassigned count, or None when no assignment satisfies
    every bound.
    """
    model, _, _ = build_model(groups, people, mode)

    solver = cp_model.CpSolver()
    if time_limit > 0:
        solver.parameters.max_time_in_seconds = time_limit

    status = solver.Solve(model)
    if status == cp_model.OPTIMAL:
        logger.info("CP-SAT optimum: %d unassigned", int(solver.ObjectiveValue()))
        return int(solver.ObjectiveValue())
    if status == cp_model.INFEASIBLE:
        logger.info("CP-SAT: no feasible assignment")
        return None
    raise RuntimeError(f"CP-SAT could not prove an optimum (status {solver.StatusName(status)})")
