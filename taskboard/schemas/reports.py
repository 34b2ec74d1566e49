"""Schemas for dashboards and reports."""

from ..models import TaskPriority, TaskStatus
from .base import TaskboardModel


class StatusCount(TaskboardModel):
    status: TaskStatus
    count: int


class PriorityCount(TaskboardModel):
    priority: TaskPriority
    count: int


class CompletedPoint(TaskboardModel):
    date: str  # YYYY-MM-DD
    count: int


class DashboardSummary(TaskboardModel):
    total_tasks: int
    overdue_tasks: int
    by_status: dict[str, int]
    by_priority: dict[str, int]
    completion_rate: int
