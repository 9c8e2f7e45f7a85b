"""
Collection Pipeline

Runs the whole collection for a list of source roots:

    for each root (priority order):
        ScriptSession -> RecordResolver -> RootResult
    MergeEngine (first root wins per key) -> MergedDataset
    AssetExtractor (optional) -> images attached to entries

Roots may be loaded in parallel; every root owns its own script runtime and
the results are merged in root order regardless of completion order, so the
merged dataset is identical to a sequential run.

A fatal root error (missing root, failing script module) aborts the run and
propagates; no partial dataset is returned.
"""

import concurrent.futures
import dataclasses
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

from alcollector.assets.extractor import AssetExtractor, DEFAULT_IMAGE_FORMAT, DEFAULT_SUBFOLDER
from alcollector.config import CollectorConfig, get_config
from alcollector.merge.engine import MergedDataset, MergeEngine
from alcollector.resolver.loader import RecordResolver, ResolverSettings
from alcollector.resolver.models import RootResult, SourceRoot
from alcollector.runtime.session import ScriptSession

logger = logging.getLogger(__name__)


RootLike = Union[SourceRoot, Path, str]


def _as_source_roots(roots: Sequence[RootLike]) -> List[SourceRoot]:
    """Priority is list position; a SourceRoot's own load_order is replaced."""
    result = []
    for order, root in enumerate(roots):
        if isinstance(root, SourceRoot):
            result.append(dataclasses.replace(root, load_order=order))
        else:
            path = Path(root)
            result.append(SourceRoot(path=path, name=path.name or str(path), load_order=order))
    return result


def load_source_root(source: SourceRoot, settings: Optional[ResolverSettings] = None) -> RootResult:
    """Resolve every record of one source root. The session is closed afterwards."""
    settings = settings or ResolverSettings()
    logger.info(f"Loading source root {source.name} ({source.path})")
    with ScriptSession(source.path, script_path=settings.script_path) as session:
        return RecordResolver(session, source, settings).resolve_all()


def _load_parallel(roots: List[SourceRoot], settings: Optional[ResolverSettings],
                   max_workers: Optional[int]) -> List[RootResult]:
    workers = max_workers or len(roots)
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(load_source_root, root, settings) for root in roots]
        results = []
        try:
            # Consumed in root order, not completion order
            for future in futures:
                results.append(future.result())
        except Exception:
            for future in futures:
                future.cancel()
            raise
    return results


def collect(
    source_roots: Sequence[RootLike],
    bundle_root: Optional[Path] = None,
    settings: Optional[ResolverSettings] = None,
    parallel: bool = False,
    max_workers: Optional[int] = None,
    bundle_subfolder: str = DEFAULT_SUBFOLDER,
    image_format: str = DEFAULT_IMAGE_FORMAT,
) -> MergedDataset:
    """
    Collect, merge and (optionally) attach images.

    Args:
        source_roots: roots in priority order, highest first
        bundle_root: asset bundle directory; None skips image extraction
        settings: resolver settings shared by every root
        parallel: load roots concurrently
        max_workers: thread count for parallel roots and bundle scanning

    Raises:
        SourceRootError / ScriptLoadError: a root could not be loaded
    """
    roots = _as_source_roots(source_roots)
    logger.info(f"Collecting from {len(roots)} source roots "
                f"({'parallel' if parallel else 'sequential'})")

    if parallel and len(roots) > 1:
        results = _load_parallel(roots, settings, max_workers)
    else:
        results = [load_source_root(root, settings) for root in roots]

    engine = MergeEngine()
    for result in results:
        engine.add_root(result)
    dataset = engine.build()

    if bundle_root is not None:
        extractor = AssetExtractor(
            bundle_root,
            subfolder=bundle_subfolder,
            image_format=image_format,
            max_workers=max_workers or 4,
        )
        extractor.attach(dataset)

    return dataset


def collect_from_config(config: Optional[CollectorConfig] = None) -> MergedDataset:
    """Run collect() with a CollectorConfig (the global one by default)."""
    config = config or get_config()
    return collect(
        config.source_roots,
        bundle_root=config.bundle_root,
        settings=config.to_settings(),
        parallel=config.parallel_roots,
        max_workers=config.max_workers,
        bundle_subfolder=config.bundle_subfolder,
        image_format=config.image_format,
    )
