import json
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from group_assigner.solver.combinations import group_combinations, open_groups
from group_assigner.solver.feasibility import infeasible_groups, min_sizes_possible
from group_assigner.solver.models import split_constraints
from group_assigner.solver.normalizer import normalize
from group_assigner.solver.ordering import order_people
from group_assigner.solver.tracker import OptimizationTracker, ResultSet

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(__file__).parent.parent.parent / 'data' / 'search_config.json'

DEFAULT_CONFIG = {
    "mode": "single",
    "minimize_unassigned": True,
    "time_limit_seconds": 0,
    "max_nodes": 0,
    "workers": 1,
    "verify_with_cpsat": False,
}

MODES = ("single", "multi")


class SearchStateError(RuntimeError):
    """The search state broke an invariant. Always a bug, never an input problem."""


def load_search_config(path=None):
    """Read the JSON search config on top of DEFAULT_CONFIG. A missing file means defaults."""
    config = dict(DEFAULT_CONFIG)
    config_path = Path(path) if path else CONFIG_PATH
    if config_path.exists():
        with open(config_path, 'r', encoding='utf-8') as f:
            config.update(json.load(f))
    elif path:
        raise FileNotFoundError(f"Config file not found: {config_path}")
    return config


class SolutionPrinter:
    """Reports every kept leaf, then forwards it to an optional user callback."""
    def __init__(self, callback=None):
        self._lock = threading.Lock()
        self._solution_count = 0
        self._start = time.monotonic()
        self.callback = callback

    @property
    def solution_count(self):
        return self._solution_count

    def __call__(self, assignment, score):
        with self._lock:
            self._solution_count += 1
            count = self._solution_count
        logger.debug(
            "Solution %d, time = %.2f s, unassigned = %d",
            count, time.monotonic() - self._start, score,
        )
        if self.callback:
            self.callback(assignment, score)


class GroupAssigner:
    """
    Exhaustive backtracking search for group assignments.

    groups: list of GroupConstraint, mapping name -> (min, max), or a
            (min_sizes, max_sizes) pair of mappings
    people: iterable of Person
    config: dict overriding the JSON search config (see DEFAULT_CONFIG)
    """
    def __init__(self, groups, people, config=None, solution_callback=None, abort_event=None):
        self.min_sizes, self.max_sizes = split_constraints(groups)
        self.group_names = sorted(set(self.min_sizes) | set(self.max_sizes))

        if config is None:
            config = load_search_config()
        else:
            config = {**DEFAULT_CONFIG, **config}

        self.mode = config.get('mode', 'single')
        if self.mode not in MODES:
            raise ValueError(f"Unknown mode '{self.mode}', expected one of {MODES}")
        self.minimize_unassigned = bool(config.get('minimize_unassigned', True))
        self.time_limit = float(config.get('time_limit_seconds', 0) or 0)
        self.max_nodes = int(config.get('max_nodes', 0) or 0)
        self.workers = int(config.get('workers', 1))
        if self.time_limit < 0 or self.max_nodes < 0 or self.workers < 1:
            raise ValueError("time_limit_seconds and max_nodes must be >= 0, workers >= 1")

        people = list(people)
        names = [p.name for p in people]
        if len(set(names)) != len(names):
            dupes = sorted({n for n in names if names.count(n) > 1})
            raise ValueError(f"Duplicate person names: {', '.join(dupes)}")
        self.people = order_people(people)

        # Validated once, not per search node
        self.infeasible_groups = infeasible_groups(self.min_sizes, self.max_sizes)
        self.min_size_possible = min_sizes_possible(self.min_sizes, self.max_sizes)

        self._suffix_eligible = self._count_eligible_suffixes()

        self.solution_printer = SolutionPrinter(solution_callback)
        self.abort_event = abort_event
        self.tracker = None
        self.aborted = False
        self.stats = {"nodes": 0, "leaves": 0, "pruned": 0}
        self._stats_lock = threading.Lock()
        self._deadline = None

    def quota(self, person):
        if self.mode == "single":
            return min(person.max_groups, 1)
        return person.max_groups

    def _count_eligible_suffixes(self):
        # suffix[i][g]: people from index i on who could still be placed in g
        suffix = [dict() for _ in range(len(self.people) + 1)]
        for i in range(len(self.people) - 1, -1, -1):
            counts = dict(suffix[i + 1])
            person = self.people[i]
            if self.quota(person) > 0:
                for g in person.allowed_groups:
                    if self.max_sizes.get(g, 0) > 0:
                        counts[g] = counts.get(g, 0) + 1
            suffix[i] = counts
        return suffix

    def _new_state(self):
        return {g: [] for g in self.group_names}

    def find_assignments(self):
        """
        Run the search and return the set of canonical Assignments.

        Empty when the bounds are structurally infeasible or no complete
        assignment satisfies every minimum. Never raises for "no solution".
        """
        if not self.min_size_possible:
            logger.warning(
                "Group minimum exceeds maximum for %s; no assignment possible",
                ", ".join(self.infeasible_groups),
            )
            return set()

        self.tracker = OptimizationTracker() if self.minimize_unassigned else ResultSet()
        self.aborted = False
        self.stats = {"nodes": 0, "leaves": 0, "pruned": 0}
        self._deadline = time.monotonic() + self.time_limit if self.time_limit > 0 else None

        logger.info(
            "Searching %d people across %d groups (mode=%s, minimize_unassigned=%s, workers=%d)",
            len(self.people), len(self.group_names), self.mode, self.minimize_unassigned, self.workers,
        )

        if self.workers > 1 and self.people:
            self._search_parallel()
        else:
            state = self._new_state()
            self._backtrack(0, state, 0)
            self._check_restored(state)

        if self.aborted:
            logger.warning("Search stopped early, returning %d results found so far", len(self.tracker.results))

        results = self.tracker.snapshot()
        logger.info(
            "Search finished: %d results, %d nodes, %d pruned",
            len(results), self.stats["nodes"], self.stats["pruned"],
        )
        return results

    @property
    def best_score(self):
        return self.tracker.best_score if self.tracker else None

    # ----------------------
    # Search
    # ----------------------

    def _backtrack(self, person_index, state, unassigned):
        if self._should_abort():
            return
        self._count("nodes")

        # Branch-and-bound: the unassigned count never shrinks further down
        if not self.tracker.can_improve(unassigned):
            self._count("pruned")
            return

        if person_index == len(self.people):
            self._accept_leaf(state)
            return

        if self._minimums_unreachable(person_index, state):
            self._count("pruned")
            return

        person = self.people[person_index]
        for combo in self._choices(person, state):
            self._place(person, combo, state)
            self._backtrack(person_index + 1, state, unassigned + (0 if combo else 1))
            self._remove(person, combo, state)

    def _choices(self, person, state):
        """Group combinations to try for one person, the empty tuple meaning unassigned."""
        def has_capacity(g):
            return g in state and len(state[g]) < self.max_sizes.get(g, 0)

        quota = self.quota(person)
        if self.mode == "multi":
            return group_combinations(person.allowed_groups, quota, has_capacity)

        choices = []
        if quota > 0:
            choices = [(g,) for g in open_groups(person.allowed_groups, has_capacity)]
        choices.append(())
        return choices

    def _place(self, person, combo, state):
        for g in combo:
            state[g].append(person)

    def _remove(self, person, combo, state):
        for g in combo:
            popped = state[g].pop()
            if popped is not person:
                raise SearchStateError(f"Group {g} lost track of {person.name} (found {popped.name})")

    def _minimums_unreachable(self, person_index, state):
        remaining = self._suffix_eligible[person_index]
        for g, min_size in self.min_sizes.items():
            deficit = min_size - len(state[g])
            if deficit > 0 and remaining.get(g, 0) < deficit:
                return True
        return False

    def _accept_leaf(self, state):
        for g, members in state.items():
            if len(members) > self.max_sizes.get(g, 0):
                raise SearchStateError(f"Group {g} holds {len(members)} members, above its maximum")
            if len(members) < self.min_sizes.get(g, 0):
                return

        assignment = normalize(state, self.people)
        if self.tracker.offer(assignment):
            self._count("leaves")
            self.solution_printer(assignment, assignment.unassigned_count)

    def _check_restored(self, state):
        leftovers = {g: [p.name for p in members] for g, members in state.items() if members}
        if leftovers:
            raise SearchStateError(f"Search state not restored after backtracking: {leftovers}")

    def _search_parallel(self):
        """
        Split the first person's choices across worker threads.

        Every task gets its own state; only the tracker is shared.
        """
        first = self.people[0]
        root = self._new_state()
        self._count("nodes")
        if self._minimums_unreachable(0, root):
            self._count("pruned")
            return
        choices = list(self._choices(first, root))

        def run_branch(combo):
            state = self._new_state()
            self._place(first, combo, state)
            self._backtrack(1, state, 0 if combo else 1)
            self._remove(first, combo, state)
            self._check_restored(state)

        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            futures = [pool.submit(run_branch, combo) for combo in choices]
            for future in futures:
                future.result()

    # ----------------------
    # Budget
    # ----------------------

    def _count(self, key):
        with self._stats_lock:
            self.stats[key] += 1

    def _should_abort(self):
        if self.aborted:
            return True
        if self.abort_event is not None and self.abort_event.is_set():
            self.aborted = True
        elif self._deadline is not None and time.monotonic() > self._deadline:
            self.aborted = True
        elif self.max_nodes and self.stats["nodes"] >= self.max_nodes:
            self.aborted = True
        return self.aborted
