def infeasible_groups(min_sizes, max_sizes):
    """
    Return the names of groups whose minimum exceeds their maximum.

    A group missing from max_sizes has a maximum of 0.
    """
    bad = []
    for group_name, min_size in min_sizes.items():
        max_size = max_sizes.get(group_name, 0)
        if max_size < min_size:
            bad.append(group_name)
    return sorted(bad)


def min_sizes_possible(min_sizes, max_sizes):
    """Global admissibility test, checked once before any search starts."""
    for group_name, min_size in min_sizes.items():
        if max_sizes.get(group_name, 0) < min_size:
            return False
    return True
