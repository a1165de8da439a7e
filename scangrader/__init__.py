# Scan grader package
"""
Scan Grader - image geometry and mark detection engine
"""

from .config import settings, Settings

__all__ = [
    "settings",
    "Settings",
]
