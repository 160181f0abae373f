"""opsboard: operations status board.

Polls a live dashboard state document, projects multi-stage pipeline
progress, archives finished runs to an append-only history exactly once
per pipeline, and tracks an email drip sequence.
"""

__version__ = "0.2.0"
__description__ = (
    "Operations status board with idempotent pipeline archival"
)

from opsboard.core.archival import ArchivalGatekeeper
from opsboard.monitor.projection import BoardProjection, project

__all__ = ["ArchivalGatekeeper", "BoardProjection", "project", "__version__"]
