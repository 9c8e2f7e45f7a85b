"""
Raw and Resolved Records

A RawRecord is one entry of a script data table, copied out of the Lua state.
A ResolvedRecord layers the detranslated string fields of that entry over it
and falls back along the `base` chain for everything else:

    lookup(key):
        own overrides  ->  own raw fields  ->  base record (same session)  -> ...

Nothing is flattened. Each record stores only its own overrides; ancestor
fields are reached by walking the chain on every lookup.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, TYPE_CHECKING

from alcollector.errors import CollectorError

if TYPE_CHECKING:
    from alcollector.runtime.session import ScriptSession


_MISSING = object()


class RecordError(CollectorError):
    """A single record could not be resolved. The root continues."""

    def __init__(self, entity_type: str, index: Any, message: str):
        self.entity_type = entity_type
        self.index = index
        super().__init__(f"{entity_type}[{index}]: {message}")


class CyclicBaseError(RecordError):
    """The base chain of a record revisits an identifier."""

    def __init__(self, entity_type: str, index: Any, chain: List[Any]):
        self.chain = chain
        path = " -> ".join(str(i) for i in chain)
        super().__init__(entity_type, index, f"cyclic base chain: {path}")


class MissingBaseError(RecordError):
    """A record names a base record that does not exist."""

    def __init__(self, entity_type: str, index: Any, base: Any):
        self.base = base
        super().__init__(entity_type, index, f"base record {base} not found")


@dataclass(frozen=True)
class RawRecord:
    """One entry as loaded from a script table."""
    entity_type: str
    index: Any
    table: str  # pg.base table the entry was read from
    fields: Mapping[str, Any] = field(default_factory=dict)

    @property
    def base(self) -> Any:
        """Identifier of the base record, or None."""
        return self.fields.get("base")


class ResolvedRecord:
    """
    A raw record with its detranslated overrides and base-chain fallback.

    Instances are created and cached by a ScriptSession and must not outlive
    it; base records are looked up through the owning session.
    """

    __slots__ = ("raw", "overrides", "_session")

    def __init__(self, raw: RawRecord, overrides: Dict[str, Any], session: "ScriptSession"):
        self.raw = raw
        self.overrides = overrides
        self._session = session

    @property
    def entity_type(self) -> str:
        return self.raw.entity_type

    @property
    def index(self) -> Any:
        return self.raw.index

    @property
    def base(self) -> Any:
        return self.raw.base

    def _parent(self) -> Optional["ResolvedRecord"]:
        if self.raw.base is None:
            return None
        parent = self._session.resolve(self.entity_type, self.raw.base)
        if parent is None:
            raise MissingBaseError(self.entity_type, self.index, self.raw.base)
        return parent

    def _lookup(self, key: str) -> Any:
        record: Optional[ResolvedRecord] = self
        visited: List[Any] = []
        while record is not None:
            if record.index in visited:
                raise CyclicBaseError(self.entity_type, self.index, visited + [record.index])
            visited.append(record.index)

            if key in record.overrides:
                return record.overrides[key]
            if key in record.raw.fields:
                return record.raw.fields[key]
            record = record._parent()
        return _MISSING

    def get(self, key: str, default: Any = None) -> Any:
        value = self._lookup(key)
        return default if value is _MISSING else value

    def __getitem__(self, key: str) -> Any:
        value = self._lookup(key)
        if value is _MISSING:
            raise KeyError(key)
        return value

    def __contains__(self, key: str) -> bool:
        return self._lookup(key) is not _MISSING

    def chain(self) -> List["ResolvedRecord"]:
        """This record followed by its ancestors, nearest first."""
        result = []
        record: Optional[ResolvedRecord] = self
        while record is not None:
            result.append(record)
            record = record._parent()
        return result

    def keys(self) -> List[str]:
        """Effective field names, own fields first."""
        seen: Dict[str, None] = {}
        for record in self.chain():
            for key in record.overrides:
                seen.setdefault(key, None)
            for key in record.raw.fields:
                seen.setdefault(key, None)
        return list(seen)

    def items(self) -> Iterator[Tuple[str, Any]]:
        for key in self.keys():
            yield key, self[key]

    def to_dict(self) -> Dict[str, Any]:
        """Materialized copy of the effective fields."""
        return dict(self.items())

    def __repr__(self):
        base = f", base={self.raw.base}" if self.raw.base is not None else ""
        return f"ResolvedRecord({self.entity_type}[{self.index}]{base})"


def walk_base_chain(entity_type: str, start: RawRecord, load_raw) -> List[Any]:
    """
    Walk the base identifiers of a raw record without resolving any fields.

    `load_raw(index)` returns the RawRecord for an identifier or None.
    Returns the chain of identifiers, starting record first.

    Raises:
        CyclicBaseError: the chain revisits an identifier
        MissingBaseError: a base identifier has no record
    """
    chain = [start.index]
    seen = {start.index}
    current = start
    while current.base is not None:
        base_id = current.base
        if base_id in seen:
            raise CyclicBaseError(entity_type, start.index, chain + [base_id])
        parent = load_raw(base_id)
        if parent is None:
            raise MissingBaseError(entity_type, current.index, base_id)
        chain.append(base_id)
        seen.add(base_id)
        current = parent
    return chain
