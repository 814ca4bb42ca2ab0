"""
chambermerge - Multi-agent result consolidation.

Parses the diffs produced by parallel coding agents, detects where they
conflict, scores each proposal and merges the chosen files back into the
project.
"""

__version__ = "0.1.0"
__author__ = "OpenChamber Team"

from chambermerge.conflict.resolver import ConflictResolver
from chambermerge.consolidation.consolidator import ResultConsolidator

__all__ = ["ConflictResolver", "ResultConsolidator", "__version__"]
