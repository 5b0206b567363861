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
import networkx as nx
import numpy as np
import pytest

from crash_cpm import CrashTask, Task

#==============================================================================
def random_dag(seed, n, density):
    """Random DAG on nodes 0..n-1, edges only go from lower to higher nodes."""
    g = nx.gnp_random_graph(n, density, seed=seed, directed=True)
    dag = nx.DiGraph([(u, v) for (u, v) in g.edges() if u < v])
    dag.add_nodes_from(range(n))
    return dag

def _preds(dag, v):
    return [f'T{u}' for u in sorted(dag.predecessors(v))]

def random_network(seed, n=12, density=0.3):
    dag = random_dag(seed, n, density)
    rng = np.random.default_rng(seed)
    return [Task(f'T{v}', int(rng.integers(1, 10)), predecessors=_preds(dag, v)) for v in range(n)]

def random_crash_network(seed, n=8, density=0.35):
    dag = random_dag(seed, n, density)
    rng = np.random.default_rng(seed)
    tasks = []
    for i in range(n):
        preds = _preds(dag, i)
        normal_time = int(rng.integers(2, 9))
        crash_time = max(0, normal_time - int(rng.integers(0, 4)))
        normal_cost = float(rng.integers(50, 500))
        crash_cost = normal_cost + float(rng.integers(0, 200))
        tasks.append(CrashTask(f'T{i}', normal_time, normal_cost, crash_time, crash_cost,
                               predecessors=preds))
    return tasks

#==============================================================================
@pytest.fixture
def chain_tasks():
    return [
        Task('A', 3),
        Task('B', 2, predecessors=['A']),
        Task('C', 4, predecessors=['B']),
    ]

@pytest.fixture
def diamond_tasks():
    return [
        Task('A', 2),
        Task('B', 3, predecessors=['A']),
        Task('C', 5, predecessors=['A']),
        Task('D', 1, predecessors=['B', 'C']),
    ]

@pytest.fixture
def two_task_crash():
    """X slope 10 and Y slope 20 on one path, two units of capacity each."""
    return [
        {'id': 'X', 'normal_time': 5, 'normal_cost': 100, 'crash_time': 3, 'crash_cost': 120},
        {'id': 'Y', 'normal_time': 4, 'normal_cost': 50, 'crash_time': 2, 'crash_cost': 90,
         'predecessors': ['X']},
    ]

@pytest.fixture
def disjoint_crash():
    """Two disjoint critical paths of equal duration."""
    return [
        CrashTask('A', 3, 100, 2, 110),
        CrashTask('B', 2, 100, 2, 100, predecessors=['A']),
        CrashTask('C', 3, 100, 2, 115),
        CrashTask('D', 2, 100, 2, 100, predecessors=['C']),
    ]

@pytest.fixture
def diamond_crash():
    """A lies on both paths, B and C are cheap but only cover one path each."""
    return [
        CrashTask('A', 4, 100, 2, 110),
        CrashTask('B', 3, 50, 2, 51, predecessors=['A']),
        CrashTask('C', 3, 50, 2, 51, predecessors=['A']),
        CrashTask('D', 1, 20, 1, 20, predecessors=['B', 'C']),
    ]
