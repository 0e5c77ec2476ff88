"""Setuptools build hooks for pocketarray."""

from __future__ import annotations

from setuptools import setup

# Pure Python package; metadata lives in pyproject.toml and the default
# command classes produce a ``py3-none-any`` wheel.
setup()
