"""
alcollector.merge - Multi-Source Merge Engine

First-wins merge of per-root results with provenance and conflict records.
"""

from alcollector.merge.engine import (
    MergeEngine,
    MergedDataset,
    MergedEntry,
    MergeError,
    ConflictRecord,
    Provenance,
    RootMergeStats,
    merge_roots,
)

__all__ = [
    "MergeEngine",
    "MergedDataset",
    "MergedEntry",
    "MergeError",
    "ConflictRecord",
    "Provenance",
    "RootMergeStats",
    "merge_roots",
]
