"""
Refresh scheduler
"""
from .scheduler import ProgressionScheduler

__all__ = ["ProgressionScheduler"]
