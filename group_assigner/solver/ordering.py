def order_people(people):
    """
    Visitation order for the search: most constrained first.

    Fewer allowed groups come first so dead ends surface early. Within ties,
    people who can hold more groups go first while capacity is still free.
    Name is the last key so the order never depends on input order.
    """
    return sorted(people, key=lambda p: (len(p.allowed_groups), -p.max_groups, p.name))
