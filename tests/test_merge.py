"""
Tests for the first-wins multi-source merge.
"""

from dataclasses import dataclass
from pathlib import Path

import pytest

from alcollector.merge import MergeEngine, MergeError, merge_roots
from alcollector.resolver import EntityKey, EntityType, RootResult, SourceRoot
from alcollector.resolver.models import DiagnosticKind


@dataclass
class Item:
    """Stand-in domain record."""
    id: int
    value: str
    entity_type: EntityType = EntityType.EQUIP

    @property
    def key(self):
        return EntityKey(self.entity_type, self.id)

    def to_dict(self):
        return {"id": self.id, "value": self.value}


def make_result(name, order, *items):
    result = RootResult(source=SourceRoot(path=Path(name), name=name, load_order=order))
    for item in items:
        result.add(item)
    return result


def key(n, entity_type=EntityType.EQUIP):
    return EntityKey(entity_type, n)


class TestFirstWins:

    def test_first_root_wins_whole_record(self):
        dataset = merge_roots([
            make_result("EN", 0, Item(1, "en")),
            make_result("CN", 1, Item(1, "cn"), Item(2, "cn")),
        ])
        assert dataset[key(1)].record.value == "en"
        assert dataset[key(1)].source.source_name == "EN"

    def test_new_keys_from_later_roots_admitted(self):
        dataset = merge_roots([
            make_result("EN", 0, Item(1, "en")),
            make_result("CN", 1, Item(1, "cn"), Item(2, "cn")),
        ])
        assert dataset[key(2)].record.value == "cn"
        assert dataset[key(2)].source.load_order == 1
        assert len(dataset) == 2

    def test_conflicts_recorded(self):
        dataset = merge_roots([
            make_result("EN", 0, Item(1, "en")),
            make_result("CN", 1, Item(1, "cn")),
            make_result("JP", 2, Item(1, "jp")),
        ])
        [conflict] = dataset.conflicts
        assert conflict.key == key(1)
        assert conflict.winner.source_name == "EN"
        assert [p.source_name for p in conflict.losers] == ["CN", "JP"]

    def test_stats(self):
        engine = MergeEngine()
        first = engine.add_root(make_result("EN", 0, Item(1, "en"), Item(2, "en")))
        en_cn = make_result("CN", 1, Item(2, "cn"), Item(3, "cn"))
        en_cn.diagnose(key(4), DiagnosticKind.NOT_FOUND, "missing")
        second = engine.add_root(en_cn)

        assert (first.admitted, first.discarded) == (2, 0)
        assert (second.admitted, second.discarded, second.diagnostics) == (1, 1, 1)
        assert [s.source_name for s in engine.build().stats] == ["EN", "CN"]

    def test_entry_order(self):
        dataset = merge_roots([
            make_result("EN", 0, Item(5, "en"), Item(1, "en")),
            make_result("CN", 1, Item(3, "cn"), Item(5, "cn")),
        ])
        assert list(dataset) == [key(5), key(1), key(3)]

    def test_to_dict_sorted(self):
        dataset = merge_roots([
            make_result("EN", 0, Item(5, "en"), Item(1, "en, ship", EntityType.SHIP)),
        ])
        entries = dataset.to_dict()["entries"]
        assert [e["key"] for e in entries] == ["equip:5", "ship:1"]
        assert entries[0]["record"] == {"id": 5, "value": "en"}
        assert entries[0]["image"] is None

    def test_records_by_type(self):
        dataset = merge_roots([
            make_result("EN", 0, Item(1, "a"), Item(2, "b", EntityType.SKIN)),
        ])
        assert [r.id for r in dataset.records(EntityType.SKIN)] == [2]


class TestEngineGuards:

    def test_no_roots_after_build(self):
        engine = MergeEngine()
        engine.add_root(make_result("EN", 0))
        engine.build()
        with pytest.raises(MergeError):
            engine.add_root(make_result("CN", 1))

    def test_roots_in_order(self):
        engine = MergeEngine()
        engine.add_root(make_result("CN", 1))
        with pytest.raises(MergeError):
            engine.add_root(make_result("EN", 0))

    def test_entries_read_only(self):
        dataset = merge_roots([make_result("EN", 0, Item(1, "en"))])
        with pytest.raises(TypeError):
            dataset.entries[key(2)] = None

    def test_single_image_write(self):
        dataset = merge_roots([make_result("EN", 0, Item(1, "en"))])
        dataset.attach_image(key(1), "image")
        assert dataset[key(1)].image == "image"
        with pytest.raises(MergeError):
            dataset.attach_image(key(1), "other")
        with pytest.raises(KeyError):
            dataset.attach_image(key(9), "image")
