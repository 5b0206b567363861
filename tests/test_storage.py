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
import json

import pytest

from crash_cpm import (CrashTask, ProjectNotFoundError, ProjectSnapshot, ProjectStore, Task,
                       ValidationError, crash_project)
from crash_cpm.storage import CRASHING_KEY, SCHEDULE_KEY

#==============================================================================
@pytest.fixture
def store():
    return ProjectStore()

#==============================================================================
class TestProjectStore:

    def test_save_load(self, store, disjoint_crash):
        pid = store.save('Bridge', disjoint_crash, indirect_cost=500, reduction_per_unit=25)

        snap = store.load(pid)
        assert isinstance(snap, ProjectSnapshot)
        assert snap.id == pid
        assert snap.name == 'Bridge'
        assert snap.indirect_cost == 500
        assert snap.reduction_per_unit == 25
        assert snap.tasks == disjoint_crash
        assert all(isinstance(t, CrashTask) for t in snap.tasks)
        assert snap.last_updated

    def test_loaded_project_crashes(self, store, two_task_crash):
        pid = store.save('Two', two_task_crash, 200, 15)
        snap = store.load(pid)

        result = crash_project(snap.tasks, snap.indirect_cost, snap.reduction_per_unit)
        assert result.optimum.total_cost == 340

    def test_crashed_duration_kept(self, store, disjoint_crash):
        tasks = [t.crashed() if t.id == 'A' else t for t in disjoint_crash]
        snap = store.load(store.save('Crashed', tasks))
        assert snap.tasks[0].duration == 2
        assert snap.tasks[0].normal_time == 3

    def test_plain_tasks(self, store, diamond_tasks):
        snap = store.load(store.save('Schedule', diamond_tasks))
        assert snap.tasks == diamond_tasks
        assert all(type(t) is Task for t in snap.tasks)

    def test_list(self, store, chain_tasks):
        first = store.save('one', chain_tasks)
        second = store.save('two', chain_tasks)

        assert first != second
        assert [(s.id, s.name) for s in store.list()] == [(first, 'one'), (second, 'two')]

    def test_empty_list(self, store):
        assert store.list() == []

    def test_delete(self, store, chain_tasks):
        first = store.save('one', chain_tasks)
        second = store.save('two', chain_tasks)

        store.delete(first)
        assert [s.id for s in store.list()] == [second]
        with pytest.raises(ProjectNotFoundError):
            store.load(first)

    def test_rename(self, store, chain_tasks):
        pid = store.save('old', chain_tasks)
        store.rename(pid, '  new  ')
        assert store.load(pid).name == 'new'

    @pytest.mark.parametrize('name', ['', '   ', None])
    def test_blank_name(self, store, chain_tasks, name):
        with pytest.raises(ValidationError):
            store.save(name, chain_tasks)

    def test_blank_rename(self, store, chain_tasks):
        pid = store.save('old', chain_tasks)
        with pytest.raises(ValidationError):
            store.rename(pid, ' ')
        assert store.load(pid).name == 'old'

    @pytest.mark.parametrize('method, args', [
        ('load',   ()),
        ('delete', ()),
        ('rename', ('x',)),
    ])
    def test_unknown_id(self, store, method, args):
        with pytest.raises(ProjectNotFoundError) as err:
            getattr(store, method)('missing', *args)
        assert isinstance(err.value, LookupError)

#==============================================================================
class TestBackend:

    def test_shared_backend(self, chain_tasks):
        backend = {}
        pid = ProjectStore(backend).save('shared', chain_tasks)

        assert CRASHING_KEY in backend
        assert ProjectStore(backend).load(pid).name == 'shared'

    def test_separate_keys(self, chain_tasks):
        backend = {}
        ProjectStore(backend).save('crashing', chain_tasks)
        ProjectStore(backend, key=SCHEDULE_KEY).save('schedule', chain_tasks)

        assert [s.name for s in ProjectStore(backend).list()] == ['crashing']
        assert [s.name for s in ProjectStore(backend, key=SCHEDULE_KEY).list()] == ['schedule']

    def test_json_layout(self, chain_tasks):
        backend = {}
        pid = ProjectStore(backend).save('layout', chain_tasks)

        stored = json.loads(backend[CRASHING_KEY])
        assert [p['id'] for p in stored['projects']] == [pid]
        assert stored['projects'][0]['tasks'][1]['predecessors'][0]['task_id'] == 'A'

    def test_camel_case_records(self):
        record = {'projects': [{
            'id': '1', 'name': 'legacy', 'indirectCost': 300, 'reductionPerUnit': 20,
            'lastUpdated': '2024-01-01T00:00:00+00:00',
            'tasks': [{'id': 'X', 'normalTime': 4, 'normalCost': 10, 'crashTime': 3, 'crashCost': 12}],
        }]}
        snap = ProjectStore({CRASHING_KEY: json.dumps(record)}).load('1')

        assert snap.indirect_cost == 300
        assert snap.reduction_per_unit == 20
        assert snap.last_updated == '2024-01-01T00:00:00+00:00'
        assert snap.tasks[0].slope == 2
