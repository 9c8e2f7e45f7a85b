"""
Multi-Source Merge Engine

Combines per-root results into one dataset. Roots are consumed strictly in the
order the caller supplies them and the policy is first-wins per entity key:

    root 0 (highest priority) -> every key admitted
    root 1                    -> keys already present are discarded whole,
                                 new keys are admitted
    ...

A winning record is never patched with fields from a later root. Every
discarded record is kept as a ConflictRecord so the loser is traceable.

After build() the dataset is fixed; the only later mutation is attaching an
image to an entry, once.
"""

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from alcollector.errors import CollectorError
from alcollector.resolver.models import EntityKey, EntityType, RootResult, SourceRoot

logger = logging.getLogger(__name__)


class MergeError(CollectorError):
    """Misuse of the merge engine or the merged dataset."""


@dataclass(frozen=True)
class Provenance:
    """Which root a record came from."""
    source_name: str
    load_order: int
    path: Path

    @classmethod
    def of(cls, source: SourceRoot) -> "Provenance":
        return cls(source_name=source.name, load_order=source.load_order, path=source.path)

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source_name, "load_order": self.load_order}


@dataclass
class MergedEntry:
    """One record of the merged dataset with its provenance."""
    key: EntityKey
    record: Any
    source: Provenance
    image: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": str(self.key),
            "source": self.source.to_dict(),
            "record": self.record.to_dict(),
            "image": self.image.to_dict() if self.image is not None else None,
        }

    def __repr__(self):
        return f"MergedEntry({self.key} from {self.source.source_name})"


@dataclass
class ConflictRecord:
    """A key defined by more than one root; the first root won."""
    key: EntityKey
    winner: Provenance
    losers: List[Provenance] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": str(self.key),
            "winner": self.winner.source_name,
            "losers": [p.source_name for p in self.losers],
        }

    def __repr__(self):
        return f"Conflict({self.key}: {self.winner.source_name} wins over {len(self.losers)})"


@dataclass
class RootMergeStats:
    """Outcome of merging one root."""
    source_name: str
    load_order: int
    admitted: int = 0
    discarded: int = 0
    diagnostics: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source_name,
            "load_order": self.load_order,
            "admitted": self.admitted,
            "discarded": self.discarded,
            "diagnostics": self.diagnostics,
        }


class MergedDataset:
    """
    The merged result: entity key -> MergedEntry, in merge order.

    Entries are exposed read-only. attach_image() is the single permitted
    write per entry and is safe to call from worker threads.
    """

    def __init__(self, entries: "OrderedDict[EntityKey, MergedEntry]",
                 conflicts: List[ConflictRecord], stats: List[RootMergeStats]):
        self._entries = entries
        self._conflicts = conflicts
        self._stats = stats
        self._image_lock = threading.Lock()

    @property
    def entries(self) -> Mapping[EntityKey, MergedEntry]:
        return MappingProxyType(self._entries)

    @property
    def conflicts(self) -> List[ConflictRecord]:
        return list(self._conflicts)

    @property
    def stats(self) -> List[RootMergeStats]:
        return list(self._stats)

    def __getitem__(self, key: EntityKey) -> MergedEntry:
        return self._entries[key]

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[EntityKey]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: EntityKey) -> Optional[MergedEntry]:
        return self._entries.get(key)

    def records(self, entity_type: EntityType) -> List[Any]:
        """Records of one entity type, in merge order."""
        return [e.record for k, e in self._entries.items() if k.entity_type is entity_type]

    def attach_image(self, key: EntityKey, image: Any) -> None:
        """
        Attach an extracted image to an entry.

        Raises:
            KeyError: unknown key
            MergeError: the entry already has an image
        """
        with self._image_lock:
            entry = self._entries[key]
            if entry.image is not None:
                raise MergeError(f"{key} already has an image attached")
            entry.image = image

    def to_dict(self) -> Dict[str, Any]:
        """Canonical plain structure: entries and conflicts sorted by key."""
        entries = sorted(self._entries.values(), key=lambda e: e.key.sort_key())
        conflicts = sorted(self._conflicts, key=lambda c: c.key.sort_key())
        return {
            "entries": [e.to_dict() for e in entries],
            "conflicts": [c.to_dict() for c in conflicts],
            "stats": [s.to_dict() for s in self._stats],
        }

    def __repr__(self):
        return f"MergedDataset({len(self._entries)} entries, {len(self._conflicts)} conflicts)"


class MergeEngine:
    """
    Accumulates root results in priority order.

    Usage:
        engine = MergeEngine()
        for result in results:        # highest priority first
            engine.add_root(result)
        dataset = engine.build()
    """

    def __init__(self):
        self._entries: "OrderedDict[EntityKey, MergedEntry]" = OrderedDict()
        self._conflicts: "OrderedDict[EntityKey, ConflictRecord]" = OrderedDict()
        self._stats: List[RootMergeStats] = []
        self._last_order = -1
        self._built = False

    def add_root(self, result: RootResult) -> RootMergeStats:
        """
        Merge one root's records. Must be called in root priority order.

        Raises:
            MergeError: engine already built, or roots supplied out of order
        """
        if self._built:
            raise MergeError("cannot add roots after build()")

        source = result.source
        if source.load_order <= self._last_order:
            raise MergeError(f"root {source.name} (order {source.load_order}) supplied "
                             f"after order {self._last_order}")
        self._last_order = source.load_order

        provenance = Provenance.of(source)
        stats = RootMergeStats(source_name=source.name, load_order=source.load_order,
                               diagnostics=len(result.diagnostics))

        for key, record in result.records.items():
            existing = self._entries.get(key)
            if existing is None:
                self._entries[key] = MergedEntry(key=key, record=record, source=provenance)
                stats.admitted += 1
                continue

            conflict = self._conflicts.get(key)
            if conflict is None:
                conflict = ConflictRecord(key=key, winner=existing.source)
                self._conflicts[key] = conflict
            conflict.losers.append(provenance)
            stats.discarded += 1

        self._stats.append(stats)
        logger.info(f"Merged {source.name}: {stats.admitted} admitted, "
                    f"{stats.discarded} discarded (already defined by a higher-priority root)")
        return stats

    def build(self) -> MergedDataset:
        """Finish the merge. The engine accepts no further roots."""
        if self._built:
            raise MergeError("build() already called")
        self._built = True

        dataset = MergedDataset(self._entries, list(self._conflicts.values()), list(self._stats))
        logger.info(f"Merge complete: {len(dataset)} entries from {len(self._stats)} roots, "
                    f"{len(self._conflicts)} conflicts")
        return dataset


def merge_roots(results: Iterable[RootResult]) -> MergedDataset:
    """Merge root results given in priority order."""
    engine = MergeEngine()
    for result in results:
        engine.add_root(result)
    return engine.build()
