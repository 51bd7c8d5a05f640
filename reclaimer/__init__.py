"""
Runner disk reclaimer.

Frees disk space on hosted CI runners by:
- Removing preinstalled toolchains, browsers and package caches
- Purging unneeded OS packages
- Disabling swap and deleting swap files
- Pruning unused container engine state
"""

from reclaimer.exceptions import CommandError, InputError, ParseError, ReclaimerError
from reclaimer.orchestrator import ReclaimReport, reclaim_disk_space

__version__ = "0.1.0"

__all__ = [
    "CommandError",
    "InputError",
    "ParseError",
    "ReclaimerError",
    "ReclaimReport",
    "reclaim_disk_space",
]
