#!/usr/bin/env python3
# -*- coding: utf-8 -*-
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
class ValidationError(ValueError):
    """Base class for malformed project networks and crashing inputs."""


class EmptyNetworkError(ValidationError):
    pass


class DuplicateTaskError(ValidationError):
    pass


class SelfDependencyError(ValidationError):
    pass


class DuplicateDependencyError(ValidationError):
    pass


class UnknownPredecessorError(ValidationError):
    """A predecessor id does not resolve to any task of the network."""


class NoStartTaskError(ValidationError):
    pass


class NoEndTaskError(ValidationError):
    pass


class InvalidDurationError(ValidationError):
    pass


class CrashTimeError(ValidationError):
    pass


class NegativeCostError(ValidationError):
    pass


#==============================================================================
class CycleError(ValidationError):
    """
    The dependency graph contains at least one cycle.

    Parameters
    ----------
    task_ids : list
        Ids of the tasks forming one dependency cycle, each task
        followed by its successor on the cycle.
    """
    def __init__(self, task_ids):
        self.task_ids = list(task_ids)
        super().__init__(f"Cyclic dependency detected among tasks: {', '.join(self.task_ids)}")


class NetworkTooComplexError(ValidationError):
    """Path enumeration exceeded the configured ceiling."""
    def __init__(self, max_paths):
        self.max_paths = max_paths
        super().__init__(f"Network too complex: more than {max_paths} start-to-end paths")


#==============================================================================
class ProjectNotFoundError(LookupError):
    def __init__(self, project_id):
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")
