"""
Background Jobs for Taskboard.

This module contains scheduled jobs:
- recurring_tasks: Daily creation of the next instance of recurring tasks
"""

from .recurring_tasks import run_recurring_job

__all__ = ["run_recurring_job"]
