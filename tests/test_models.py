import pytest

from group_assigner.solver.models import Assignment, GroupConstraint, Person, split_constraints


def test_person_normalises_allowed_groups():
    p = Person("Alice", ["A", "B", "A"], 2)
    assert p.allowed_groups == frozenset({"A", "B"})
    assert hash(p) == hash(Person("Alice", {"B", "A"}, 2))


def test_person_rejects_negative_quota():
    with pytest.raises(ValueError):
        Person("Alice", {"A"}, -1)


def test_person_dict_round_trip():
    data = {"name": "Bob", "allowed_groups": ["B", "A"], "max_groups": 3}
    p = Person.from_dict(data)
    assert p.max_groups == 3
    assert p.to_dict() == {"name": "Bob", "allowed_groups": ["A", "B"], "max_groups": 3}


def test_group_constraint_dict_round_trip():
    g = GroupConstraint.from_dict({"name": "X", "min_size": 5, "max_size": 3})
    assert g == GroupConstraint("X", 5, 3)
    assert g.to_dict() == {"name": "X", "min_size": 5, "max_size": 3}
    with pytest.raises(ValueError):
        GroupConstraint("A", -1, 2)


def test_split_constraints_accepts_all_shapes():
    expected = ({"A": 1, "B": 0}, {"A": 2, "B": 1})
    assert split_constraints([GroupConstraint("A", 1, 2), GroupConstraint("B", 0, 1)]) == expected
    assert split_constraints({"A": (1, 2), "B": (0, 1)}) == expected
    assert split_constraints(({"A": 1, "B": 0}, {"A": 2, "B": 1})) == expected


def test_assignment_identity_ignores_input_order():
    a = Assignment.from_mapping({"B": ["Zed", "Amy"], "A": []}, ["Kim", "Bo"])
    b = Assignment.from_mapping({"A": [], "B": ["Amy", "Zed"]}, ["Bo", "Kim"])
    assert a == b
    assert len({a, b}) == 1
    assert a.groups == (("A", ()), ("B", ("Amy", "Zed")))
    assert a.unassigned == ("Bo", "Kim")


def test_assignment_unassigned_is_part_of_identity():
    a = Assignment.from_mapping({"A": ["Amy"]}, [])
    b = Assignment.from_mapping({"A": ["Amy"]}, ["Bo"])
    assert a != b


def test_assignment_accessors_and_str():
    a = Assignment.from_mapping({"A": ["Jon"], "B": [], "C": ["Sia", "Jon"]}, ["Ura"])
    assert a.members("C") == ("Jon", "Sia")
    assert a.members("missing") == ()
    assert a.groups_of("Jon") == ["A", "C"]
    assert a.unassigned_count == 1
    assert str(a) == "A: Jon\nC: Jon, Sia\nUnassigned: Ura"
    assert Assignment.from_dict(a.to_dict()) == a
