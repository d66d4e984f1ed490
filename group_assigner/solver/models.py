"""
Value types shared by the search engine and the file adapters.

People and group bounds come in from the CSV/JSON adapters, assignments go back
out to them. All three are frozen dataclasses so they can live in sets.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Tuple


@dataclass(frozen=True)
class Person:
    """
    A participant with eligibility and quota constraints.

    Attributes:
        name: Unique identifier
        allowed_groups: Groups this person may join
        max_groups: Maximum number of simultaneous memberships (0 = never assigned)
    """
    name: str
    allowed_groups: FrozenSet[str] = field(default_factory=frozenset)
    max_groups: int = 1

    def __post_init__(self):
        if not self.name:
            raise ValueError("Person must have a name")
        if self.max_groups < 0:
            raise ValueError(f"Person {self.name} has negative max_groups ({self.max_groups})")
        # Accept any iterable of group names, store as frozenset
        if not isinstance(self.allowed_groups, frozenset):
            object.__setattr__(self, 'allowed_groups', frozenset(self.allowed_groups))

    @classmethod
    def from_dict(cls, data):
        return cls(
            name=data['name'],
            allowed_groups=frozenset(data.get('allowed_groups', [])),
            max_groups=int(data.get('max_groups', 1)),
        )

    def to_dict(self):
        return {
            'name': self.name,
            'allowed_groups': sorted(self.allowed_groups),
            'max_groups': self.max_groups,
        }


@dataclass(frozen=True)
class GroupConstraint:
    """Size bounds for one group."""
    name: str
    min_size: int = 0
    max_size: int = 0

    def __post_init__(self):
        if not self.name:
            raise ValueError("Group must have a name")
        if self.min_size < 0 or self.max_size < 0:
            raise ValueError(f"Group {self.name} has negative size bounds")

    @classmethod
    def from_dict(cls, data):
        return cls(
            name=data['name'],
            min_size=int(data.get('min_size', 0)),
            max_size=int(data.get('max_size', 0)),
        )

    def to_dict(self):
        return {'name': self.name, 'min_size': self.min_size, 'max_size': self.max_size}


def split_constraints(groups) -> Tuple[Dict[str, int], Dict[str, int]]:
    """
    Normalise the accepted group inputs into (min_sizes, max_sizes).

    Accepts a list of GroupConstraint, a combined mapping name -> (min, max),
    or a pair of mappings (min_sizes, max_sizes).
    """
    if isinstance(groups, tuple) and len(groups) == 2 and all(isinstance(g, dict) for g in groups):
        min_sizes, max_sizes = groups
        return dict(min_sizes), dict(max_sizes)

    min_sizes = {}
    max_sizes = {}
    if isinstance(groups, dict):
        for name, bounds in groups.items():
            if isinstance(bounds, GroupConstraint):
                min_sizes[name], max_sizes[name] = bounds.min_size, bounds.max_size
            else:
                min_sizes[name], max_sizes[name] = bounds
        return min_sizes, max_sizes

    for constraint in groups:
        min_sizes[constraint.name] = constraint.min_size
        max_sizes[constraint.name] = constraint.max_size
    return min_sizes, max_sizes


@dataclass(frozen=True)
class Assignment:
    """
    One canonical result.

    groups holds (group_name, sorted member names) pairs ordered by group name,
    unassigned holds the sorted names of people placed in no group. Equality and
    hashing are by value, which is what the result set deduplicates on.
    """
    groups: Tuple[Tuple[str, Tuple[str, ...]], ...]
    unassigned: Tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, groups: Dict[str, Iterable[str]], unassigned: Iterable[str] = ()):
        canonical = tuple(
            (name, tuple(sorted(members)))
            for name, members in sorted(groups.items())
        )
        return cls(canonical, tuple(sorted(unassigned)))

    @property
    def group_names(self) -> List[str]:
        return [name for name, _ in self.groups]

    @property
    def unassigned_count(self) -> int:
        return len(self.unassigned)

    def members(self, group_name) -> Tuple[str, ...]:
        for name, members in self.groups:
            if name == group_name:
                return members
        return ()

    def as_dict(self) -> Dict[str, List[str]]:
        return {name: list(members) for name, members in self.groups}

    def groups_of(self, person_name) -> List[str]:
        return [name for name, members in self.groups if person_name in members]

    def to_dict(self):
        return {
            'groups': self.as_dict(),
            'unassigned': list(self.unassigned),
        }

    @classmethod
    def from_dict(cls, data):
        return cls.from_mapping(data.get('groups', {}), data.get('unassigned', []))

    def sort_key(self):
        return (self.groups, self.unassigned)

    def __str__(self):
        lines = [f"{name}: {', '.join(members)}" for name, members in self.groups if members]
        if self.unassigned:
            lines.append(f"Unassigned: {', '.join(self.unassigned)}")
        return "\n".join(lines)
