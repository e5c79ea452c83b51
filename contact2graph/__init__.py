"""
Contact2Graph: Proximity-based contact networks from relocation data.

This package builds edge lists of contact networks from telemetry data. Rows
sharing a temporal group (and any additional grouping columns) are compared
pairwise, and every pair of entities closer than a distance threshold becomes
an edge.

Notes
-----
Main modules include:
- base : Error and warning taxonomy, grouping key and parameter types
- proximity : Distance-based edge-list generation
- utils : Input validation and edge-list conversion helpers
"""

# Standard library imports
import contextlib
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version

# Import all public APIs from submodules
from .base import *  # noqa: F403
from .proximity import *  # noqa: F403
from .utils import *  # noqa: F403

# Version handling with graceful fallback
with contextlib.suppress(PackageNotFoundError):
    __version__ = version("contact2graph")
