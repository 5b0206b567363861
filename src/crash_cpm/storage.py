#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Named project snapshots
=======================

Save/load interface for task sets and crashing parameters. Snapshots are
kept as JSON text under a single key of any ``MutableMapping[str, str]``
backend, the host application decides where that mapping lives (a dict,
a ``shelve`` file, browser-like local storage ...).

>>> store = ProjectStore()
>>> pid = store.save('Bridge', tasks, indirect_cost=2000, reduction_per_unit=150)
>>> store.load(pid).name
'Bridge'
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
from datetime import datetime, timezone
import json
import logging
import time

from .errors import ProjectNotFoundError, ValidationError
from .task import as_task

logger = logging.getLogger(__name__)

CRASHING_KEY = 'projectCrashingList'
SCHEDULE_KEY = 'networkDiagramProjectsList'

#==============================================================================
class ProjectSnapshot:
    """
    Stored project.

    Parameters
    ----------
    id : str
        Unique project identifier
    name : str
        Project name
    tasks : list
        ``Task`` or ``CrashTask`` objects
    indirect_cost : float
        Total indirect cost (crashing projects)
    reduction_per_unit : float
        Indirect cost saved per time unit (crashing projects)
    last_updated : str
        ISO 8601 timestamp of the last save or rename
    """
    def __init__(self, id, name, tasks, indirect_cost=0.0, reduction_per_unit=0.0, last_updated=None):
        self.id = str(id)
        self.name = name
        self.tasks = [as_task(t) for t in tasks]
        self.indirect_cost = float(indirect_cost)
        self.reduction_per_unit = float(reduction_per_unit)
        self.last_updated = last_updated or _now()

    def __repr__(self):
        return str(self.to_dict())

    def to_dict(self):
        return {
            'id'                : self.id,
            'name'              : self.name,
            'tasks'             : [t.to_dict() for t in self.tasks],
            'indirect_cost'     : self.indirect_cost,
            'reduction_per_unit': self.reduction_per_unit,
            'last_updated'      : self.last_updated,
        }

    @classmethod
    def from_dict(cls, d):
        return cls(d['id'], d['name'], d.get('tasks', []),
                   indirect_cost=d.get('indirect_cost', d.get('indirectCost', 0.0)),
                   reduction_per_unit=d.get('reduction_per_unit', d.get('reductionPerUnit', 0.0)),
                   last_updated=d.get('last_updated', d.get('lastUpdated')))

def _now():
    return datetime.now(timezone.utc).isoformat()

#==============================================================================
class ProjectStore:
    """
    Collection of named project snapshots.

    Parameters
    ----------
    backend : MutableMapping, optional
        Storage mapping of str keys to str values, a new dict by default
    key : str, default=CRASHING_KEY
        Key holding the project list inside the backend
    """
    def __init__(self, backend=None, key=CRASHING_KEY):
        self.backend = {} if backend is None else backend
        self.key = key

    def _read(self):
        text = self.backend.get(self.key)
        if not text:
            return []
        return json.loads(text).get('projects', [])

    def _write(self, projects):
        self.backend[self.key] = json.dumps({'projects': projects})

    def _find(self, projects, project_id):
        for i, p in enumerate(projects):
            if p['id'] == project_id:
                return i
        raise ProjectNotFoundError(project_id)

    #----------------------------------------------------------------------------------------------
    def save(self, name, tasks, indirect_cost=0.0, reduction_per_unit=0.0):
        """
        Store a new snapshot.

        Returns
        -------
        str
            Id of the stored project

        Raises
        ------
        ValidationError
            If the name is blank
        """
        name = (name or '').strip()
        if not name:
            raise ValidationError("Project name must not be empty")

        projects = self._read()
        ids = {p['id'] for p in projects}

        # Time based id, bumped on collision
        n = time.time_ns()
        while str(n) in ids:
            n += 1

        snapshot = ProjectSnapshot(str(n), name, tasks, indirect_cost, reduction_per_unit)
        projects.append(snapshot.to_dict())
        self._write(projects)

        logger.info("Saved project %s (%s) with %d tasks", snapshot.id, name, len(snapshot.tasks))
        return snapshot.id

    def load(self, project_id):
        projects = self._read()
        return ProjectSnapshot.from_dict(projects[self._find(projects, project_id)])

    def list(self):
        return [ProjectSnapshot.from_dict(p) for p in self._read()]

    def delete(self, project_id):
        projects = self._read()
        del projects[self._find(projects, project_id)]
        self._write(projects)
        logger.info("Deleted project %s", project_id)

    def rename(self, project_id, new_name):
        new_name = (new_name or '').strip()
        if not new_name:
            raise ValidationError("Project name must not be empty")

        projects = self._read()
        p = projects[self._find(projects, project_id)]
        p['name'] = new_name
        p['last_updated'] = _now()
        self._write(projects)
