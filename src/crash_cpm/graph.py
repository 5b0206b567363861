#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Graph primitives for activity-on-node project networks
======================================================

Topological ordering, cycle detection, start/end task identification and
start-to-end path enumeration. Tasks reference their predecessors by id,
successor lists are derived on demand and always keep task list order, so
every function here is deterministic for identical input.
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
from collections import deque
import logging

import numpy as np

from .errors import (CycleError, DuplicateDependencyError, DuplicateTaskError,
                     EmptyNetworkError, InvalidDurationError, NetworkTooComplexError,
                     NoEndTaskError, NoStartTaskError, SelfDependencyError,
                     UnknownPredecessorError)
from .task import EPS, Path

logger = logging.getLogger(__name__)

# Default ceiling for start-to-end path enumeration
MAX_PATHS = 100000

#==============================================================================
def index_tasks(tasks):
    """
    Map task ids to tasks.

    Raises
    ------
    DuplicateTaskError
        If two tasks share an id
    """
    by_id = {}
    for t in tasks:
        if t.id in by_id:
            raise DuplicateTaskError(f"Duplicate task id: {t.id}")
        by_id[t.id] = t
    return by_id

#==============================================================================
def successors_map(tasks):
    """
    Map task ids to lists of ``(successor_id, lag)`` pairs.

    Successors keep task list order. Links to unknown tasks are skipped.
    """
    succ = {t.id: [] for t in tasks}
    for t in tasks:
        for p in t.predecessors:
            if p.task_id in succ:
                succ[p.task_id].append((t.id, p.lag))
    return succ

#==============================================================================
def validate_references(tasks):
    """
    Check task ids and predecessor links.

    Raises
    ------
    DuplicateTaskError
        If two tasks share an id
    SelfDependencyError
        If a task lists itself as a predecessor
    DuplicateDependencyError
        If a task lists the same predecessor twice
    UnknownPredecessorError
        If a predecessor id does not resolve to a task
    """
    by_id = index_tasks(tasks)
    for t in tasks:
        seen = set()
        for p in t.predecessors:
            if p.task_id == t.id:
                raise SelfDependencyError(f"Task {t.id} can not depend on itself")
            if p.task_id in seen:
                raise DuplicateDependencyError(f"Task {t.id} lists predecessor {p.task_id} more than once")
            if p.task_id not in by_id:
                raise UnknownPredecessorError(f"Task {t.id} references unknown predecessor {p.task_id}")
            seen.add(p.task_id)

#==============================================================================
def _kahn(tasks):
    """Kahn's algorithm, returns the ordered tasks and the ids left over."""
    by_id = {t.id: t for t in tasks}
    succ = successors_map(tasks)

    # Count dependencies for topological sorting
    n_dep = {t.id: sum(1 for p in t.predecessors if p.task_id in by_id) for t in tasks}

    queue = deque(t.id for t in tasks if 0 == n_dep[t.id])
    order = []
    while queue:
        tid = queue.popleft()
        order.append(by_id[tid])
        for s, _ in succ[tid]:
            n_dep[s] -= 1
            if 0 == n_dep[s]:
                queue.append(s)

    left = [t.id for t in tasks if n_dep[t.id] > 0]
    return order, left

def _extract_cycle(tasks, left):
    """Walk predecessors inside the unordered remainder until a task repeats."""
    by_id = {t.id: t for t in tasks}
    remaining = set(left)

    walk = [left[0]]
    pos = {left[0]: 0}
    while True:
        t = by_id[walk[-1]]
        # Every unordered task has at least one unordered predecessor
        nxt = next(p.task_id for p in t.predecessors if p.task_id in remaining)
        if nxt in pos:
            cycle = walk[pos[nxt]:]
            cycle.reverse()
            return cycle
        pos[nxt] = len(walk)
        walk.append(nxt)

#==============================================================================
def validate_acyclic(tasks):
    """
    Make sure that no task is reachable from itself.

    Raises
    ------
    CycleError
        With the ids of one dependency cycle in dependency order
    """
    _, left = _kahn(tasks)
    if left:
        raise CycleError(_extract_cycle(tasks, left))

def topological_sort(tasks):
    """
    Order tasks so that every predecessor precedes its successors.

    Tasks without predecessors come first in task list order, ties are
    resolved by task list order as well.

    Raises
    ------
    CycleError
        If the network is cyclic
    """
    order, left = _kahn(tasks)
    if left:
        raise CycleError(_extract_cycle(tasks, left))
    return order

#==============================================================================
def find_start_tasks(tasks):
    return [t for t in tasks if not t.predecessors]

def find_end_tasks(tasks):
    referenced = {p.task_id for t in tasks for p in t.predecessors}
    return [t for t in tasks if t.id not in referenced]

#==============================================================================
def is_non_negative(value):
    """True for finite values >= 0, NaN and infinities fail."""
    return bool(np.isfinite(value)) and value >= 0

#==============================================================================
def validate_network(tasks):
    """
    Run all structural checks on a task list.

    Raises
    ------
    EmptyNetworkError
        If the list is empty
    InvalidDurationError
        If a task has a negative or non-finite duration
    ValidationError
        Reference problems, see ``validate_references``
    CycleError
        If the network is cyclic
    NoStartTaskError, NoEndTaskError
        For degenerate networks
    """
    if not tasks:
        raise EmptyNetworkError("Project has no tasks")

    for t in tasks:
        if not is_non_negative(t.duration):
            raise InvalidDurationError(f"Task {t.id}: duration must be a finite non-negative number. Got: {t.duration}")

    validate_references(tasks)
    validate_acyclic(tasks)

    if not find_start_tasks(tasks):
        raise NoStartTaskError("No start tasks found. At least one task must have no predecessors.")
    if not find_end_tasks(tasks):
        raise NoEndTaskError("No end tasks found. At least one task must not be a predecessor of any task.")

#==============================================================================
def find_routes(tasks, max_paths=MAX_PATHS):
    """
    Enumerate every simple route from a start task to an end task.

    Depth first search over an explicit stack of
    ``(task_id, route, visited)`` frames. A route that would revisit a task
    is abandoned.

    Parameters
    ----------
    tasks : list
        Tasks of the network
    max_paths : int or None
        Ceiling for the number of routes, ``None`` disables the check

    Returns
    -------
    list
        Routes as tuples of task ids, start tasks in task list order,
        successors in task list order

    Raises
    ------
    NetworkTooComplexError
        If there are more than ``max_paths`` routes
    """
    succ = successors_map(tasks)
    routes = []

    for start in find_start_tasks(tasks):
        stack = [(start.id, (start.id,), frozenset((start.id,)))]
        while stack:
            tid, route, visited = stack.pop()
            nxt = succ[tid]
            if not nxt:
                routes.append(route)
                if max_paths is not None and len(routes) > max_paths:
                    raise NetworkTooComplexError(max_paths)
                continue

            # Reverse push keeps successors in task list order
            for s, _ in reversed(nxt):
                if s in visited:
                    logger.warning("Cycle detected at task %s during path finding, route ignored", s)
                    continue
                stack.append((s, route + (s,), visited | {s}))

    return routes

#==============================================================================
def path_incidence(routes, tasks):
    """
    Build the route/task incidence matrix and per-route lag totals.

    Returns
    -------
    tuple
        (incidence, lags) where ``incidence[i, j]`` is True if task ``j``
        lies on route ``i`` and ``lags[i]`` is the sum of link lags
        along route ``i``
    """
    pos = {t.id: j for j, t in enumerate(tasks)}
    lag = {(p.task_id, t.id): p.lag for t in tasks for p in t.predecessors}

    incidence = np.zeros((len(routes), len(tasks)), dtype=bool)
    lags = np.zeros((len(routes),), dtype=float)
    for i, route in enumerate(routes):
        for tid in route:
            incidence[i, pos[tid]] = True
        lags[i] = sum(lag[(a, b)] for a, b in zip(route, route[1:]))

    return incidence, lags

def duration_vector(tasks):
    return np.array([t.duration for t in tasks], dtype=float)

def route_durations(incidence, lags, tasks):
    """Duration of every route for the current task durations."""
    return incidence @ duration_vector(tasks) + lags

#==============================================================================
def enumerate_all_paths(tasks, max_paths=MAX_PATHS, eps=EPS):
    """
    Enumerate start-to-end paths annotated with durations.

    A path is critical if its duration equals the maximum path duration
    within ``eps``.

    Returns
    -------
    list
        ``Path`` objects in enumeration order
    """
    routes = find_routes(tasks, max_paths)
    if not routes:
        return []

    incidence, lags = path_incidence(routes, tasks)
    durations = route_durations(incidence, lags, tasks)
    longest = np.max(durations)

    return [Path(r, d, abs(d - longest) < eps) for r, d in zip(routes, durations)]
