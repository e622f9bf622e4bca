"""
srs_core - Spaced-repetition scheduling engine

Decides when each card should next be shown and how its memory state
evolves after every review. Hosts talk to StudyService; the fsrs and
analytics subpackages hold the scheduling core and the statistics.
"""

from srs_core.errors import Result, SrsError
from srs_core.service import StudyService

__version__ = "0.1.0"

__all__ = [
    "Result",
    "SrsError",
    "StudyService",
    "__version__",
]
