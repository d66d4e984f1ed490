import math
import threading


class ResultSet:
    """
    Collects every valid leaf. Set semantics drop duplicate search paths.

    Shares the offer/can_improve interface with OptimizationTracker so the
    search does not care which variant it is running.
    """
    def __init__(self):
        self._lock = threading.Lock()
        self.results = set()
        self.best_score = math.inf

    def offer(self, assignment):
        with self._lock:
            if assignment in self.results:
                return False
            self.results.add(assignment)
            self.best_score = min(self.best_score, assignment.unassigned_count)
            return True

    def can_improve(self, partial_unassigned):
        return True

    def snapshot(self):
        with self._lock:
            return set(self.results)


class OptimizationTracker:
    """
    Keeps the assignments with the fewest unassigned people seen so far.

    offer() and can_improve() are the only places best_score is read or
    written; both hold the lock so parallel workers never act on a stale score.
    """
    def __init__(self):
        self._lock = threading.Lock()
        self.results = set()
        self.best_score = math.inf

    def offer(self, assignment):
        score = assignment.unassigned_count
        with self._lock:
            if score < self.best_score:
                self.best_score = score
                self.results = {assignment}
                return True
            if score == self.best_score:
                if assignment in self.results:
                    return False
                self.results.add(assignment)
                return True
            # Worse than best: should have been pruned already
            return False

    def can_improve(self, partial_unassigned):
        # Unassigned count only grows as the search descends
        with self._lock:
            return partial_unassigned <= self.best_score

    def snapshot(self):
        with self._lock:
            return set(self.results)
