#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Critical Path Method scheduler
==============================

Forward pass, backward pass, slack and critical path computation for an
activity-on-node network with Finish-to-Start links.

Usage Example
-------------
>>> tasks = [
...     {'id': 'A', 'duration': 2},
...     {'id': 'B', 'duration': 3, 'predecessors': ['A']},
...     {'id': 'C', 'duration': 5, 'predecessors': ['A']},
...     {'id': 'D', 'duration': 1, 'predecessors': ['B', 'C']},
... ]
>>> schedule = compute_schedule(tasks)
>>> schedule.project_duration
8.0
>>> [p.tasks for p in schedule.critical_paths]
[('A', 'C', 'D')]
>>> tasks_df, paths_df = schedule.to_dataframe()
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
import logging

import pandas as pd

from .graph import (MAX_PATHS, enumerate_all_paths, find_end_tasks, successors_map,
                    topological_sort, validate_network)
from .task import EPS, as_task

logger = logging.getLogger(__name__)

#==============================================================================
class Schedule:
    """
    Result of a schedule computation.

    Attributes
    ----------
    tasks : list
        Annotated copies of the input tasks, in input order
    all_paths : list
        Every start-to-end ``Path``
    critical_paths : list
        Paths whose duration equals the project duration
    project_duration : float
        Maximum early finish among end tasks
    topological_order : list
        Task ids in the order the forward pass visited them
    """
    def __init__(self, tasks, all_paths, critical_paths, project_duration, topological_order):
        self.tasks = tasks
        self.all_paths = all_paths
        self.critical_paths = critical_paths
        self.project_duration = project_duration
        self.topological_order = topological_order

    @property
    def critical_tasks(self):
        return [t for t in self.tasks if t.is_critical]

    def __repr__(self):
        return str(self.to_dict())

    def to_dict(self):
        return {
            'tasks'            : [t.to_dict() for t in self.tasks],
            'all_paths'        : [p.to_dict() for p in self.all_paths],
            'critical_paths'   : [p.to_dict() for p in self.critical_paths],
            'project_duration' : self.project_duration,
            'topological_order': list(self.topological_order),
        }

    def to_dataframe(self):
        """
        Convert the schedule to pandas DataFrames.

        Returns
        -------
        tuple
            (tasks_df, paths_df)

        Notes
        -----
        Custom task data fields are expanded into separate columns,
        predecessors are listed as comma separated ids.
        """
        expanded = []
        for t in self.tasks:
            row = {k: v for k, v in t.to_dict().items() if k not in ('data', 'predecessors')}
            row['predecessors'] = ','.join(t.predecessor_ids)
            row.update(t.data)
            expanded.append(row)
        tasks_df = pd.DataFrame(expanded).set_index('id')

        paths_df = pd.DataFrame([{'path'       : '-'.join(p.tasks),
                                  'duration'   : p.duration,
                                  'is_critical': p.is_critical} for p in self.all_paths],
                                columns=['path', 'duration', 'is_critical'])
        return tasks_df, paths_df

#==============================================================================
class ProjectScheduler:
    """
    CPM scheduler over one task set.

    The scheduler works on deep copies, the caller's tasks are never
    modified.

    Parameters
    ----------
    tasks : iterable
        ``Task`` objects or plain dictionaries
    eps : float, default=EPS
        Tolerance for slack and path duration comparisons
    max_paths : int or None, default=MAX_PATHS
        Path enumeration ceiling

    Raises
    ------
    ValidationError
        From ``compute`` if the network is malformed
    """

    def __init__(self, tasks, eps=EPS, max_paths=MAX_PATHS):
        self.tasks = [as_task(t) for t in tasks]
        self.eps = eps
        self.max_paths = max_paths

        self.order = None
        self.project_duration = None

    def compute_dates(self):
        """
        Validate the network and compute early/late dates, slack and
        criticality of every task.

        Returns
        -------
        list
            The annotated tasks
        """
        validate_network(self.tasks)

        for t in self.tasks:
            t.reset()

        self.order = topological_sort(self.tasks)

        self._compute_target('early')
        self.project_duration = max(t.early_finish for t in find_end_tasks(self.tasks))

        self._compute_target('late')

        for t in self.tasks:
            r = t.late_start - t.early_start
            # Check for programming errors
            if r < -self.eps:
                raise RuntimeError("Tasks can not have negative slack!!!")
            # Round off insignificant values
            t.slack = r if abs(r) >= self.eps else 0.0
            t.is_critical = 0.0 == t.slack

        return self.tasks

    def compute(self):
        """
        Compute the full schedule including every start-to-end path.

        Returns
        -------
        Schedule
        """
        self.compute_dates()

        all_paths = enumerate_all_paths(self.tasks, self.max_paths, self.eps)
        for p in all_paths:
            p.is_critical = abs(p.duration - self.project_duration) < self.eps
        critical_paths = [p for p in all_paths if p.is_critical]

        logger.info("Computed schedule: %d tasks, %d paths, %d critical, duration %s",
                    len(self.tasks), len(all_paths), len(critical_paths), self.project_duration)

        return Schedule(self.tasks, all_paths, critical_paths,
                        self.project_duration, [t.id for t in self.order])

    def _compute_target(self, target=None):
        """
        Compute CPM dates in one traversal of the network.

        Parameters
        ----------
        target : str
            'early' for the forward pass, 'late' for the backward pass

        Raises
        ------
        ValueError
            If target parameter is invalid
        """
        by_id = {t.id: t for t in self.tasks}

        if 'early' == target:
            act_base = 'early_start'
            act_new  = 'early_finish'
            order    = self.order
            links    = lambda t: [(by_id[p.task_id], p.lag) for p in t.predecessors]
            bound    = lambda o, lag: o.early_finish + lag
            choice   = max
            sign     = 1.0
            initial  = 0.0

        elif 'late' == target:
            succ = successors_map(self.tasks)

            act_base = 'late_finish'
            act_new  = 'late_start'
            order    = reversed(self.order)
            links    = lambda t: [(by_id[s], lag) for s, lag in succ[t.id]]
            bound    = lambda o, lag: o.late_start - lag
            choice   = min
            sign     = -1.0
            initial  = self.project_duration

        else:
            raise ValueError("Unknown 'target' value!!!")

        # Every neighbour is final before it is consumed
        for t in order:
            nbr = links(t)
            base_val = choice(bound(o, lag) for o, lag in nbr) if nbr else initial
            setattr(t, act_base, float(base_val))
            setattr(t, act_new, float(base_val + sign * t.duration))

#==============================================================================
def compute_schedule(tasks, eps=EPS, max_paths=MAX_PATHS):
    """
    Compute early/late dates, slack, critical tasks and paths.

    Parameters
    ----------
    tasks : iterable
        ``Task`` objects or plain dictionaries, never modified

    Returns
    -------
    Schedule

    Raises
    ------
    ValidationError
        On cycles, stale references or degenerate networks
    """
    return ProjectScheduler(tasks, eps, max_paths).compute()
