"""
Install planning.

This package handles:
1. Resolving where each install step of a descriptor will be written
2. Tracking the status of one install run
3. Recording installed files and failure messages
"""

from .plan import InstallPlan, InstallStatus, PlannedCopy

__all__ = ["InstallPlan", "InstallStatus", "PlannedCopy"]
