#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Project network data model
==========================

Tasks, dependency links, paths and cost analysis records shared by the
scheduler and the crashing engine.

Every record converts to a plain dictionary with ``to_dict`` and can be
rebuilt from one with ``from_dict``, so callers may keep their own storage
format. Dictionary input is accepted both in snake_case and in camelCase
(``normalTime``, ``crashCost``, ``taskId`` ...).

Usage Example
-------------
>>> a = Task('A', 3)
>>> b = Task('B', 2, predecessors=['A'])
>>> c = CrashTask('C', normal_time=5, normal_cost=100, crash_time=3,
...               crash_cost=120, predecessors=[('B', 1)])
>>> c.slope
10.0
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
from collections import namedtuple
from enum import Enum
import numbers
import copy

import numpy as np

from .errors import InvalidDurationError, ValidationError


# Tolerance for comparing accumulated durations, slacks and slopes
EPS = 1e-6
# Time units removed from a task by one crash
CRASH_STEP = 1

#==============================================================================
def _number(value, what, task_id, error=InvalidDurationError):
    try:
        return float(value)
    except (TypeError, ValueError):
        raise error(f"Task {task_id}: {what} must be a number, got {value!r}") from None

#==============================================================================
def _pick(d, *keys, default=None):
    """Return the first key of ``keys`` present in ``d``."""
    for k in keys:
        if k in d:
            return d[k]
    return default

#==============================================================================
class DependencyType(Enum):
    """
    Dependency link types.

    Only Finish-to-Start arithmetic is computed, other types are accepted
    and kept in the data so that callers can round trip them.
    """
    FS = 'Finish-to-Start'
    FF = 'Finish-to-Finish'
    SS = 'Start-to-Start'
    SF = 'Start-to-Finish'

    @classmethod
    def parse(cls, value):
        if value is None:
            return cls.FS
        if isinstance(value, cls):
            return value
        for t in cls:
            if value == t.name or value == t.value:
                return t
        raise ValidationError(f"Unknown dependency type: {value!r}")

#==============================================================================
class Predecessor(namedtuple('Predecessor', ['task_id', 'type', 'lag'])):
    """
    Dependency link from a predecessor task.

    Parameters
    ----------
    task_id : str
        Id of the predecessor task
    type : DependencyType or str, default=DependencyType.FS
        Link type
    lag : int or float, default=0
        Delay between predecessor finish and successor start,
        negative values are leads
    """
    __slots__ = ()

    def __new__(cls, task_id, type=None, lag=0):
        if isinstance(lag, bool) or not isinstance(lag, numbers.Real) or not np.isfinite(lag):
            raise ValidationError(f"Predecessor {task_id}: lag must be a finite number, got {lag!r}")
        return super().__new__(cls, str(task_id), DependencyType.parse(type), lag)

    @classmethod
    def parse(cls, item):
        """
        Parse a predecessor from any supported input format.

        Supported formats:

        - ``Predecessor`` instance
        - Bare id: ``'A'``
        - Pair: ``('A', lag)``
        - Dictionary: ``{'task_id': 'A', 'type': 'FS', 'lag': 0}``
          (``taskId`` is accepted as well)

        Raises
        ------
        ValidationError
            If the format is not supported
        """
        if isinstance(item, Predecessor):
            return item

        if isinstance(item, str):
            return cls(item)

        if isinstance(item, dict):
            task_id = _pick(item, 'task_id', 'taskId')
            if task_id is None:
                raise ValidationError("Dictionary predecessors must contain 'task_id' or 'taskId' key")
            return cls(task_id, item.get('type'), item.get('lag') or 0)

        if isinstance(item, (list, tuple)) and len(item) == 2:
            return cls(item[0], lag=item[1])

        raise ValidationError(f"Unsupported predecessor format: {type(item)}")

    def to_dict(self):
        return {'task_id': self.task_id, 'type': self.type.value, 'lag': self.lag}

#==============================================================================
class Task:
    """
    Activity of the project network.

    Parameters
    ----------
    id : str
        Unique task identifier
    duration : float
        Non-negative task duration
    predecessors : iterable, optional
        Predecessor links in any format accepted by ``Predecessor.parse``
    description : str, optional
        Free text description
    data : dict, optional
        Caller fields kept verbatim

    Attributes
    ----------
    early_start, early_finish, late_start, late_finish, slack : float or None
        CPM dates, ``None`` until computed by the scheduler
    is_critical : bool or None
        True if the task has zero slack
    """

    def __init__(self, id, duration, predecessors=(), description='', data=None):
        assert data is None or isinstance(data, dict)

        self.id = str(id)
        self.duration = _number(duration, 'duration', self.id)
        self.predecessors = tuple(Predecessor.parse(p) for p in predecessors)
        self.description = description or ''
        self.data = dict(data) if data else {}
        self.reset()

    def reset(self):
        """Clear computed CPM fields."""
        self.early_start = None
        self.early_finish = None
        self.late_start = None
        self.late_finish = None
        self.slack = None
        self.is_critical = None

    @property
    def predecessor_ids(self):
        return [p.task_id for p in self.predecessors]

    def copy(self):
        """Return an independent deep copy of the task."""
        return copy.deepcopy(self)

    #----------------------------------------------------------------------------------------------
    def __repr__(self):
        return str(self.to_dict())

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None

    #----------------------------------------------------------------------------------------------
    def to_dict(self):
        return {
            'id'          : self.id,
            'description' : self.description,
            'duration'    : self.duration,
            'predecessors': [p.to_dict() for p in self.predecessors],
            # CPM things
            'early_start' : self.early_start,
            'early_finish': self.early_finish,
            'late_start'  : self.late_start,
            'late_finish' : self.late_finish,
            'slack'       : self.slack,
            'is_critical' : self.is_critical,
            # Return a copy to avoid modifying original
            'data'        : copy.deepcopy(self.data),
        }

    @classmethod
    def from_dict(cls, d):
        """
        Build a task from a plain dictionary.

        Computed CPM fields of the dictionary are ignored.
        """
        if isinstance(d, cls):
            return d.copy()
        if not isinstance(d, dict):
            raise ValidationError(f"Unsupported task format: {type(d)}")
        if 'id' not in d:
            raise ValidationError(f"Task dictionary must contain 'id' key. Available keys: {list(d.keys())}")
        return cls(d['id'], d.get('duration'),
                   predecessors=d.get('predecessors') or (),
                   description=d.get('description', ''),
                   data=d.get('data'))

#==============================================================================
class CrashTask(Task):
    """
    Task with normal and crash time/cost estimates for time-cost trade-off.

    Parameters
    ----------
    id : str
        Unique task identifier
    normal_time : float
        Duration at normal pace
    normal_cost : float
        Direct cost at normal pace
    crash_time : float
        Shortest possible duration, ``crash_time <= normal_time``
    crash_cost : float
        Direct cost at crash pace
    predecessors : iterable, optional
        Predecessor links
    description : str, optional
        Free text description
    duration : float, optional
        Current duration, defaults to ``normal_time``
    data : dict, optional
        Caller fields kept verbatim

    Notes
    -----
    ``slope`` is ``None`` for tasks that can not be crashed at all
    (``normal_time == crash_time``), so it never takes part in cost
    arithmetic by accident.
    """

    def __init__(self, id, normal_time, normal_cost, crash_time, crash_cost,
                 predecessors=(), description='', duration=None, data=None):
        super().__init__(id, normal_time if duration is None else duration,
                         predecessors, description, data)
        self.normal_time = _number(normal_time, 'normal time', self.id)
        self.crash_time  = _number(crash_time, 'crash time', self.id)
        self.normal_cost = _number(normal_cost, 'normal cost', self.id, ValidationError)
        self.crash_cost  = _number(crash_cost, 'crash cost', self.id, ValidationError)

    @property
    def max_crash_time(self):
        """Remaining crash capacity of the task."""
        return self.duration - self.crash_time

    @property
    def slope(self):
        """Cost of one time unit of crashing or ``None`` if not crashable."""
        span = self.normal_time - self.crash_time
        if span <= EPS:
            return None
        return (self.crash_cost - self.normal_cost) / span

    @property
    def is_crashable(self):
        return self.slope is not None and self.max_crash_time >= CRASH_STEP - EPS

    def crashed(self, step=CRASH_STEP):
        """
        Return a copy of the task shortened by ``step`` time units.

        The duration never goes below ``crash_time``, computed CPM fields
        of the copy are cleared.
        """
        ret = self.copy()
        ret.duration = max(self.duration - step, self.crash_time)
        ret.reset()
        return ret

    #----------------------------------------------------------------------------------------------
    def to_dict(self):
        ret = super().to_dict()
        ret.update({
            'normal_time'   : self.normal_time,
            'normal_cost'   : self.normal_cost,
            'crash_time'    : self.crash_time,
            'crash_cost'    : self.crash_cost,
            'max_crash_time': self.max_crash_time,
            'slope'         : self.slope,
        })
        return ret

    @classmethod
    def from_dict(cls, d):
        if isinstance(d, cls):
            return d.copy()
        if not isinstance(d, dict):
            raise ValidationError(f"Unsupported task format: {type(d)}")

        normal_time = _pick(d, 'normal_time', 'normalTime')
        crash_time  = _pick(d, 'crash_time', 'crashTime')
        normal_cost = _pick(d, 'normal_cost', 'normalCost')
        crash_cost  = _pick(d, 'crash_cost', 'crashCost')
        if None in (d.get('id'), normal_time, crash_time, normal_cost, crash_cost):
            raise ValidationError(f"Insufficient data for a crash task. Available keys: {list(d.keys())}")

        return cls(d['id'], normal_time, normal_cost, crash_time, crash_cost,
                   predecessors=d.get('predecessors') or (),
                   description=d.get('description', ''),
                   duration=d.get('duration'),
                   data=d.get('data'))

#==============================================================================
class Path:
    """
    Start-to-end route through the network.

    Parameters
    ----------
    tasks : sequence of str
        Task ids from a start task to an end task
    duration : float
        Sum of task durations and link lags along the route
    is_critical : bool
        True if the route is one of the longest
    """
    def __init__(self, tasks, duration, is_critical=False):
        self.tasks = tuple(tasks)
        self.duration = float(duration)
        self.is_critical = bool(is_critical)

    def __repr__(self):
        return str(self.to_dict())

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None

    def to_dict(self):
        return {'tasks': list(self.tasks), 'duration': self.duration, 'is_critical': self.is_critical}

#==============================================================================
class CrashPath:
    """
    Route with its duration at every committed crashing iteration.

    ``is_critical`` refers to the last committed iteration.
    """
    def __init__(self, tasks, durations, is_critical=False):
        self.tasks = tuple(tasks)
        self.durations = tuple(float(d) for d in durations)
        self.is_critical = bool(is_critical)

    def duration_at(self, iteration):
        return self.durations[iteration]

    def __repr__(self):
        return str(self.to_dict())

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None

    def to_dict(self):
        return {'tasks': list(self.tasks), 'durations': list(self.durations), 'is_critical': self.is_critical}

#==============================================================================
class CostAnalysisResult:
    """
    Costs of the project after one crashing iteration.

    Parameters
    ----------
    project_duration : float
        Project duration after the iteration
    crashed_activities : sequence of str
        Ids of the tasks crashed in this iteration
    crash_cost : float
        Direct cost added by this iteration
    direct_cost : float
        Cumulative direct cost
    indirect_cost : float
        Indirect cost left after the total reduction so far
    is_optimum : bool
        True for the iteration with minimum total cost
    is_crash_point : bool
        True for the iteration where crashing stopped
    """
    def __init__(self, project_duration, crashed_activities, crash_cost, direct_cost,
                 indirect_cost, is_optimum=False, is_crash_point=False):
        self.project_duration = float(project_duration)
        self.crashed_activities = tuple(crashed_activities)
        self.crash_cost = float(crash_cost)
        self.direct_cost = float(direct_cost)
        self.indirect_cost = float(indirect_cost)
        self.is_optimum = is_optimum
        self.is_crash_point = is_crash_point

    @property
    def total_cost(self):
        return self.direct_cost + self.indirect_cost

    def __repr__(self):
        return str(self.to_dict())

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None

    def to_dict(self):
        return {
            'project_duration'  : self.project_duration,
            'crashed_activities': list(self.crashed_activities),
            'crash_cost'        : self.crash_cost,
            'direct_cost'       : self.direct_cost,
            'indirect_cost'     : self.indirect_cost,
            'total_cost'        : self.total_cost,
            'is_optimum'        : self.is_optimum,
            'is_crash_point'    : self.is_crash_point,
        }

#==============================================================================
def as_task(item):
    """
    Return an independent ``Task`` or ``CrashTask`` for any task input.

    Dictionaries with normal/crash estimates become crash tasks.
    """
    if isinstance(item, Task):
        return item.copy()
    if isinstance(item, dict) and _pick(item, 'normal_time', 'normalTime') is not None:
        return CrashTask.from_dict(item)
    return Task.from_dict(item)
