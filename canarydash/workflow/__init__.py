"""Polling and state reconciliation."""

from .scheduler import PollScheduler, OverlapPolicy
from .dashboard import DashboardController

__all__ = [
    "PollScheduler",
    "OverlapPolicy",
    "DashboardController",
]
