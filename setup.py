#!/usr/bin/env python3
# -*- coding: utf-8 -*-
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
from os.path import abspath, dirname, join, relpath
from setuptools import find_packages, setup

PKG_NAME  = "crash_cpm"
SETUP_DIR = abspath(dirname(__file__))

src_dir   = join(SETUP_DIR, "src")

#Nowadays setup needs relative paths
src_dir   = relpath(src_dir, SETUP_DIR)

setup(
    name="crash-cpm",
    version="0.1.0",
    description="Critical Path Method scheduling and time-cost trade-off (crashing) library",
    author="CrashCPM developers",
    license="GPL-3.0-or-later",
    package_dir={"": src_dir},
    packages=find_packages(where=src_dir, include=[PKG_NAME, PKG_NAME + ".*"]),
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "pandas",
    ],
    extras_require={
        "test": ["pytest", "networkx"],
    },
)
