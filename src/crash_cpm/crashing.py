#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Time-cost trade-off (project crashing)
======================================

Iteratively shortens a project network one time unit at a time, always
crashing the cheapest set of tasks that shortens every current critical
path, and tracks direct, indirect and total cost of every step.

Selection strategy
------------------
1. A crashable task lying on every critical path (cheapest slope wins).
2. Otherwise the cheapest combination of tasks covering every critical
   path. Candidates are exhaustive combinations of up to
   ``max_combination`` tasks, the union of the cheapest task of every
   critical path and a greedy cover. Ranking: total slope, then larger
   duration reduction, then fewer tasks, then task list positions.
3. Otherwise the single cheapest crashable task. This is a degraded
   fallback, it can not shorten the project when some critical path has
   no crashable task left, and crashing stops with
   ``StopReason.DEGRADED``.

A step is committed only if it strictly shortens the project, so the loop
terminates: every committed step consumes remaining crash capacity.

Usage Example
-------------
>>> tasks = [
...     {'id': 'X', 'normal_time': 5, 'normal_cost': 100, 'crash_time': 3, 'crash_cost': 120},
...     {'id': 'Y', 'normal_time': 4, 'normal_cost': 50,  'crash_time': 2, 'crash_cost': 90,
...      'predecessors': ['X']},
... ]
>>> result = crash_project(tasks, indirect_cost=200, reduction_per_unit=15)
>>> [c.crashed_activities for c in result.cost_analysis]
[(), ('X',), ('X',), ('Y',), ('Y',)]
>>> result.optimum.project_duration
7.0
"""
#==============================================================================
"""
    CrashCPM
    Copyright (C) 2025 CrashCPM developers

    This program is free software: you can redistribute it and/or modify
    it under the terms of the GNU General Public License as published by
    the Free Software Foundation, either version 3 of the License, or
    (at your option) any later version.

    This program is distributed in the hope that it will be useful,
    but WITHOUT ANY WARRANTY; without even the implied warranty of
    MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
    GNU General Public License for more details.

    You should have received a copy of the GNU General Public License
    along with this program.  If not, see <http://www.gnu.org/licenses/>.

    Please report bugs through the CrashCPM issue tracker.
"""

#==============================================================================
from enum import Enum
import itertools
import logging

import numpy as np
import pandas as pd

from .errors import (CrashTimeError, EmptyNetworkError, InvalidDurationError,
                     NegativeCostError, ValidationError)
from .graph import (MAX_PATHS, duration_vector, find_routes, is_non_negative, path_incidence,
                    route_durations, validate_network)
from .scheduler import ProjectScheduler
from .task import CRASH_STEP, EPS, CostAnalysisResult, CrashPath, CrashTask, as_task

logger = logging.getLogger(__name__)

# Largest combination of tasks searched exhaustively
MAX_COMBINATION_SIZE = 3

#==============================================================================
class StopReason(Enum):
    """Why the crashing loop terminated."""
    EXHAUSTED    = 'exhausted'     # No crashable task left on the critical paths
    DEGRADED     = 'degraded'      # Fallback selection did not shorten the project
    NOT_IMPROVED = 'not_improved'  # Covering selection did not shorten the project

#==============================================================================
def _popcount(mask):
    return bin(mask).count('1')

#==============================================================================
def calculate_slack_times(tasks, eps=EPS):
    """
    Compute early/late dates, slack and criticality for one snapshot.

    Parameters
    ----------
    tasks : iterable
        ``CrashTask`` objects of one crashing iteration, never modified

    Returns
    -------
    list
        Annotated copies with the snapshot durations kept
    """
    return ProjectScheduler(tasks, eps=eps, max_paths=None).compute_dates()

#==============================================================================
def validate_crash_input(tasks, indirect_cost, reduction_per_unit):
    """
    Check crashing input before any iteration begins.

    Raises
    ------
    EmptyNetworkError
        If there are no tasks
    NegativeCostError
        If indirect cost, reduction per unit or any task cost is negative
        or not finite
    InvalidDurationError
        If a normal or crash time is negative or not finite
    CrashTimeError
        If a crash time exceeds the normal time
    ValidationError
        If a task has no crash estimates or the network is malformed
    """
    if not tasks:
        raise EmptyNetworkError("No tasks to crash")

    if not (is_non_negative(indirect_cost) and is_non_negative(reduction_per_unit)):
        raise NegativeCostError("Indirect cost and reduction per unit must be finite and non-negative. "
                                f"Got: {indirect_cost}, {reduction_per_unit}")

    for t in tasks:
        if not isinstance(t, CrashTask):
            raise ValidationError(f"Task {t.id} has no normal/crash time and cost estimates")
        if not (is_non_negative(t.normal_time) and is_non_negative(t.crash_time)):
            raise InvalidDurationError(f"Task {t.id}: times must be finite and non-negative. "
                                       f"Got: normal {t.normal_time}, crash {t.crash_time}")
        if t.crash_time > t.normal_time:
            raise CrashTimeError(f"Task {t.id}: crash time ({t.crash_time}) must be <= "
                                 f"normal time ({t.normal_time})")
        if not (is_non_negative(t.normal_cost) and is_non_negative(t.crash_cost)):
            raise NegativeCostError(f"Task {t.id}: costs must be finite and non-negative. "
                                    f"Got: normal {t.normal_cost}, crash {t.crash_cost}")

    validate_network(tasks)

#==============================================================================
class CrashResult:
    """
    Full crashing trajectory.

    Attributes
    ----------
    crashed_tasks_history : list
        One list of ``CrashTask`` per committed iteration, iteration 0 is
        the normal-time project
    paths : list
        Every start-to-end ``CrashPath`` with its duration per iteration
    critical_paths : list
        Paths critical at the last committed iteration
    cost_analysis : list
        One ``CostAnalysisResult`` per committed iteration
    stop_reason : StopReason
        Why crashing stopped
    """
    def __init__(self, crashed_tasks_history, paths, critical_paths, cost_analysis, stop_reason):
        self.crashed_tasks_history = crashed_tasks_history
        self.paths = paths
        self.critical_paths = critical_paths
        self.cost_analysis = cost_analysis
        self.stop_reason = stop_reason

    @property
    def iterations(self):
        """Number of committed crashing iterations."""
        return len(self.cost_analysis) - 1

    @property
    def project_duration(self):
        return self.cost_analysis[-1].project_duration

    @property
    def optimum(self):
        return next(c for c in self.cost_analysis if c.is_optimum)

    @property
    def crash_point(self):
        return next(c for c in self.cost_analysis if c.is_crash_point)

    def annotated_history(self):
        """Snapshots annotated with early/late dates and slack."""
        return [calculate_slack_times(s) for s in self.crashed_tasks_history]

    def __repr__(self):
        return str(self.to_dict())

    def to_dict(self):
        return {
            'crashed_tasks_history': [[t.to_dict() for t in s] for s in self.crashed_tasks_history],
            'paths'                : [p.to_dict() for p in self.paths],
            'critical_paths'       : [p.to_dict() for p in self.critical_paths],
            'cost_analysis'        : [c.to_dict() for c in self.cost_analysis],
            'stop_reason'          : self.stop_reason.value,
        }

    def to_dataframe(self):
        """
        Convert the trajectory to pandas DataFrames.

        Returns
        -------
        tuple
            (cost_df, paths_df) - cost table indexed by iteration and path
            durations with one column per iteration
        """
        rows = []
        for c in self.cost_analysis:
            row = c.to_dict()
            row['crashed_activities'] = '+'.join(c.crashed_activities)
            rows.append(row)
        cost_df = pd.DataFrame(rows)
        cost_df.index.name = 'iteration'

        paths_df = pd.DataFrame([p.durations for p in self.paths],
                                index=['-'.join(p.tasks) for p in self.paths],
                                columns=list(range(len(self.cost_analysis))))
        paths_df['is_critical'] = [p.is_critical for p in self.paths]
        paths_df.index.name = 'path'

        return cost_df, paths_df

#==============================================================================
class CrashEngine:
    """
    Time-cost trade-off engine.

    Parameters
    ----------
    tasks : iterable
        ``CrashTask`` objects or plain dictionaries, never modified.
        Durations are reset to normal times.
    indirect_cost : float
        Total indirect cost of the project at normal duration
    reduction_per_unit : float
        Indirect cost saved per time unit of project shortening
    eps : float, default=EPS
        Tolerance for duration and slope comparisons
    max_paths : int or None, default=MAX_PATHS
        Path enumeration ceiling
    max_combination : int, default=MAX_COMBINATION_SIZE
        Largest combination searched exhaustively

    Raises
    ------
    ValidationError
        If the input is malformed, see ``validate_crash_input``
    """

    def __init__(self, tasks, indirect_cost, reduction_per_unit, eps=EPS,
                 max_paths=MAX_PATHS, max_combination=MAX_COMBINATION_SIZE):
        try:
            self.indirect_cost = float(indirect_cost)
            self.reduction_per_unit = float(reduction_per_unit)
        except (TypeError, ValueError):
            raise ValidationError("Indirect cost and reduction per unit must be numbers") from None

        self.tasks = [self._initial(t) for t in tasks]
        self.eps = eps
        self.max_paths = max_paths
        self.max_combination = max_combination

        validate_crash_input(self.tasks, self.indirect_cost, self.reduction_per_unit)

        self._routes = None
        self._incidence = None
        self._lags = None

    @staticmethod
    def _initial(item):
        t = as_task(item)
        if isinstance(t, CrashTask):
            t.duration = t.normal_time
        t.reset()
        return t

    #----------------------------------------------------------------------------------------------
    def run(self):
        """
        Crash the project until no further shortening is possible.

        Returns
        -------
        CrashResult
        """
        self._routes = find_routes(self.tasks, self.max_paths)
        self._incidence, self._lags = path_incidence(self._routes, self.tasks)

        snapshot = [t.copy() for t in self.tasks]
        durations = [self._durations(snapshot)]

        initial_max = float(np.max(durations[0]))
        current_max = initial_max
        direct_cost = sum(t.normal_cost for t in snapshot)

        history = [snapshot]
        cost_analysis = [CostAnalysisResult(initial_max, (), 0.0, direct_cost, self.indirect_cost)]
        logger.info("Initial project duration %s, direct cost %s", initial_max, direct_cost)

        while True:
            iteration = len(history)
            crit = np.flatnonzero(np.abs(durations[-1] - current_max) < self.eps)
            logger.debug("Iteration %d: %d critical paths at duration %s",
                         iteration, len(crit), current_max)

            selected, degraded = self._select(snapshot, crit, current_max)
            if not selected:
                logger.info("Iteration %d: no crashable tasks on critical paths, stopping", iteration)
                stop_reason = StopReason.EXHAUSTED
                break

            nxt = self._apply(snapshot, selected)
            new_durations = self._durations(nxt)
            new_max = float(np.max(new_durations))

            if not new_max < current_max - self.eps:
                stop_reason = StopReason.DEGRADED if degraded else StopReason.NOT_IMPROVED
                logger.info("Iteration %d: crashing %s did not shorten the project (%s vs %s), stopping",
                            iteration, '+'.join(snapshot[j].id for j in selected), new_max, current_max)
                break

            crash_cost = sum(snapshot[j].slope for j in selected)
            direct_cost += crash_cost
            indirect_cost = self.indirect_cost - (initial_max - new_max) * self.reduction_per_unit

            cost_analysis.append(CostAnalysisResult(new_max, [snapshot[j].id for j in selected],
                                                    crash_cost, direct_cost, indirect_cost))
            history.append(nxt)
            durations.append(new_durations)
            logger.debug("Iteration %d: crashed %s, duration %s, total cost %s", iteration,
                         '+'.join(cost_analysis[-1].crashed_activities), new_max,
                         cost_analysis[-1].total_cost)

            snapshot = nxt
            current_max = new_max

        cost_analysis[-1].is_crash_point = True
        self._mark_optimum(cost_analysis)

        table = np.vstack(durations)
        paths = [CrashPath(r, table[:, i], abs(table[-1, i] - current_max) < self.eps)
                 for i, r in enumerate(self._routes)]
        critical_paths = [p for p in paths if p.is_critical]

        logger.info("Crashing finished after %d iterations (%s): duration %s -> %s",
                    len(history) - 1, stop_reason.value, initial_max, current_max)

        return CrashResult(history, paths, critical_paths, cost_analysis, stop_reason)

    def _mark_optimum(self, cost_analysis):
        # The first minimum wins
        best = cost_analysis[0]
        for c in cost_analysis[1:]:
            if c.total_cost < best.total_cost - self.eps:
                best = c
        best.is_optimum = True

    #----------------------------------------------------------------------------------------------
    def _durations(self, snapshot):
        return route_durations(self._incidence, self._lags, snapshot)

    def _simulate(self, snapshot, selected):
        """Maximum route duration after crashing ``selected``, tasks untouched."""
        dur = duration_vector(snapshot)
        for j in selected:
            dur[j] = max(dur[j] - CRASH_STEP, snapshot[j].crash_time)
        return float(np.max(self._incidence @ dur + self._lags))

    @staticmethod
    def _apply(snapshot, selected):
        """New snapshot with independent task copies."""
        return [t.crashed() if j in selected else t.copy() for j, t in enumerate(snapshot)]

    #----------------------------------------------------------------------------------------------
    def _select(self, snapshot, crit, current_max):
        """
        Choose the tasks to crash in this iteration.

        Returns
        -------
        tuple
            (selected, degraded) - sorted task positions, empty if nothing
            is crashable, and the degraded fallback flag
        """
        on_crit = self._incidence[crit]

        # Crashable tasks lying on at least one critical path
        candidates = [j for j, t in enumerate(snapshot) if t.is_crashable and on_crit[:, j].any()]
        if not candidates:
            return (), False

        slopes = [snapshot[j].slope for j in candidates]
        # Bit i of a mask is set if the candidate lies on critical path i
        masks = [sum(1 << int(i) for i in np.flatnonzero(on_crit[:, j])) for j in candidates]
        full = (1 << len(crit)) - 1

        for k, j in enumerate(candidates):
            logger.debug("  candidate %s: slope %s, covers %d of %d critical paths",
                         snapshot[j].id, slopes[k], _popcount(masks[k]), len(crit))

        common = [k for k in range(len(candidates)) if masks[k] == full]
        if common:
            k = self._cheapest(common, slopes)
            logger.debug("  common task %s selected", snapshot[candidates[k]].id)
            return (candidates[k],), False

        combos = self._combinations(masks, slopes, full)
        selected = self._best_combination(snapshot, combos, slopes, candidates, current_max)
        if selected:
            logger.debug("  combination %s selected", '+'.join(snapshot[j].id for j in selected))
            return selected, False

        k = self._cheapest(range(len(candidates)), slopes)
        logger.warning("No task combination covers all %d critical paths, "
                       "falling back to cheapest task %s", len(crit), snapshot[candidates[k]].id)
        return (candidates[k],), True

    def _cheapest(self, ks, slopes):
        """Cheapest candidate, slopes within eps tie and the first position wins."""
        ks = list(ks)
        lowest = min(slopes[k] for k in ks)
        return next(k for k in ks if slopes[k] - lowest < self.eps)

    def _combinations(self, masks, slopes, full):
        """Candidate index tuples covering every critical path."""
        n = len(masks)
        found = set()

        # Exhaustive small combinations
        for size in range(2, min(self.max_combination, n) + 1):
            for combo in itertools.combinations(range(n), size):
                covered = 0
                for k in combo:
                    covered |= masks[k]
                if covered == full:
                    found.add(combo)

        # Cheapest task of every critical path
        cheapest = set()
        for i in range(_popcount(full)):
            on_path = [k for k in range(n) if masks[k] >> i & 1]
            if not on_path:
                cheapest = None
                break
            cheapest.add(self._cheapest(on_path, slopes))
        if cheapest:
            found.add(tuple(sorted(cheapest)))

        # Greedy cover: widest coverage first, then cheapest
        order = sorted(range(n), key=lambda k: (-_popcount(masks[k]), slopes[k], k))
        covered = 0
        chosen = []
        for k in order:
            if masks[k] & ~covered:
                chosen.append(k)
                covered |= masks[k]
                if covered == full:
                    found.add(tuple(sorted(chosen)))
                    break

        return found

    def _best_combination(self, snapshot, combos, slopes, candidates, current_max):
        """
        Rank covering combinations.

        Total slope first, slopes within eps tie. Among the cheapest group
        the largest reduction wins, then fewer tasks, then lower task list
        positions. Groups that fail to shorten the project are skipped.
        """
        ranked = sorted((sum(slopes[k] for k in c), c) for c in combos)

        i = 0
        while i < len(ranked):
            lowest = ranked[i][0]
            evaluated = []
            while i < len(ranked) and ranked[i][0] - lowest < self.eps:
                selected = tuple(candidates[k] for k in ranked[i][1])
                reduction = current_max - self._simulate(snapshot, selected)
                if reduction > self.eps:
                    evaluated.append((-reduction, len(selected), selected))
                i += 1
            if evaluated:
                return min(evaluated)[2]

        return ()

#==============================================================================
def crash_project(tasks, indirect_cost, reduction_per_unit, eps=EPS,
                  max_paths=MAX_PATHS, max_combination=MAX_COMBINATION_SIZE):
    """
    Compute the full crashing trajectory of a project.

    Parameters
    ----------
    tasks : iterable
        ``CrashTask`` objects or dictionaries with normal/crash estimates
    indirect_cost : float
        Total indirect cost at normal duration
    reduction_per_unit : float
        Indirect cost saved per time unit of shortening

    Returns
    -------
    CrashResult

    Raises
    ------
    ValidationError
        If the input is malformed
    """
    engine = CrashEngine(tasks, indirect_cost, reduction_per_unit, eps=eps,
                         max_paths=max_paths, max_combination=max_combination)
    return engine.run()

#==============================================================================
if __name__ == '__main__':
    logging.basicConfig(level=logging.DEBUG, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    # Textbook network with two parallel branches of equal length
    demo = [
        CrashTask('A', normal_time=3, normal_cost=300, crash_time=2, crash_cost=360),
        CrashTask('B', normal_time=6, normal_cost=800, crash_time=4, crash_cost=1000, predecessors=['A']),
        CrashTask('C', normal_time=4, normal_cost=500, crash_time=3, crash_cost=540, predecessors=['A']),
        CrashTask('D', normal_time=2, normal_cost=250, crash_time=1, crash_cost=300, predecessors=['C']),
        CrashTask('E', normal_time=2, normal_cost=200, crash_time=2, crash_cost=200, predecessors=['B', 'D']),
    ]

    result = crash_project(demo, indirect_cost=2000, reduction_per_unit=150)
    cost_df, paths_df = result.to_dataframe()

    print("\n=== Cost analysis ===")
    print(cost_df)
    print("\n=== Path durations per iteration ===")
    print(paths_df)
    print(f"\nStop reason: {result.stop_reason.value}")
    print(f"Optimum: {result.optimum}")
