#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
CrashCPM - Critical Path Method and time-cost trade-off library
===============================================================

Features
--------
- CPM schedule: early/late dates, slack, critical tasks, every
  start-to-end path
- Project crashing with multi-critical-path task selection and cost
  analysis (direct, indirect and total cost per iteration)
- Export to dictionaries and pandas DataFrames
- Save/load of named project snapshots over a pluggable backend

Functions
---------
- :func:`compute_schedule`: CPM schedule of a task set
- :func:`crash_project`: Full crashing trajectory
- :func:`calculate_slack_times`: CPM dates of one crashing snapshot
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

from .crashing import (MAX_COMBINATION_SIZE, CrashEngine, CrashResult, StopReason,
                       calculate_slack_times, crash_project)
from .errors import (CrashTimeError, CycleError, DuplicateDependencyError, DuplicateTaskError,
                     EmptyNetworkError, InvalidDurationError, NegativeCostError,
                     NetworkTooComplexError, NoEndTaskError, NoStartTaskError,
                     ProjectNotFoundError, SelfDependencyError, UnknownPredecessorError,
                     ValidationError)
from .graph import (MAX_PATHS, enumerate_all_paths, find_end_tasks, find_start_tasks,
                    topological_sort, validate_acyclic, validate_network)
from .scheduler import ProjectScheduler, Schedule, compute_schedule
from .storage import ProjectSnapshot, ProjectStore
from .task import (CRASH_STEP, EPS, CostAnalysisResult, CrashPath, CrashTask, DependencyType,
                   Path, Predecessor, Task)

logging.getLogger(__name__).addHandler(logging.NullHandler())
