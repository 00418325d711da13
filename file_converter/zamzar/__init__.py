"""
Remote conversion through the Zamzar jobs API
"""

from .facade import ZamzarFacade, next_state
from .schemas import JobState, ZamzarFile, ZamzarJob

__all__ = [
    "ZamzarFacade",
    "next_state",
    "JobState",
    "ZamzarFile",
    "ZamzarJob",
]
