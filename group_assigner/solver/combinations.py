import itertools


def open_groups(allowed_groups, has_capacity):
    """Allowed groups in lexicographic order, keeping only those with a free seat."""
    return [g for g in sorted(allowed_groups) if has_capacity(g)]


def group_combinations(allowed_groups, max_groups, has_capacity):
    """
    Yield every combination of groups a person could join right now.

    Sizes run from 0 (the person sits this branch out) up to max_groups.
    Combinations, not permutations: ('A', 'B') is produced once.
    has_capacity(group) is evaluated once per call, the caller's state must not
    change between yields except for changes it undoes before asking for the
    next combination.
    """
    candidates = open_groups(allowed_groups, has_capacity)
    for k in range(0, min(max_groups, len(candidates)) + 1):
        yield from itertools.combinations(candidates, k)
