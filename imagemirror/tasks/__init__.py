"""
See the imagemirror module-level docstring for implementation details
"""

from .batch import MirrorSummary, run_batch
from .images import fetch_and_publish
from .records import RecordProcessor

__all__ = ["MirrorSummary", "RecordProcessor", "fetch_and_publish", "run_batch"]
