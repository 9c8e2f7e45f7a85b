"""
alcollector - Azur Lane Data Collector

Turns decompiled game configuration scripts and Unity asset bundles into a
structured dataset of ships, equipment and skins with images.
"""

__version__ = "0.1.0"
__author__ = "alcollector contributors"

from alcollector.errors import CollectorError
from alcollector.runtime import ScriptSession, SourceRootError, ScriptLoadError
from alcollector.merge import MergedDataset
from alcollector.pipeline import collect, collect_from_config, load_source_root

__all__ = [
    "__version__",
    "CollectorError",
    "ScriptSession",
    "SourceRootError",
    "ScriptLoadError",
    "MergedDataset",
    "collect",
    "collect_from_config",
    "load_source_root",
]
