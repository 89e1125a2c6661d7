"""Data models for catalog references and cached detail records."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional


@dataclass(frozen=True)
class CatalogReference:
    """
    Pointer to one upstream catalog item, as listed by the bulk index.
    """

    # Item name (e.g. "bulbasaur")
    name: str

    # Absolute URL of the item's detail record
    locator: str

    @classmethod
    def from_index_entry(cls, entry: Mapping[str, Any]) -> CatalogReference:
        """Build a reference from a ``{"name", "url"}`` index entry."""
        if not isinstance(entry, Mapping):
            raise ValueError(
                f"Index entry must be an object, got {type(entry).__name__}"
            )
        name = entry.get("name")
        url = entry.get("url")
        if not isinstance(name, str) or not isinstance(url, str) or not url:
            raise ValueError(f"Index entry is missing a name or url: {dict(entry)!r}")
        return cls(name=name, locator=url)


@dataclass(frozen=True)
class DetailRecord:
    """
    Fully decoded upstream item.

    The integer ``id`` comes from the payload itself; every other field is
    kept untouched in a read-only attribute bag.
    """

    # Stable cache key
    id: int

    # Remaining payload attributes (read-only)
    attributes: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.attributes, MappingProxyType):
            frozen = MappingProxyType(dict(self.attributes))
            object.__setattr__(self, "attributes", frozen)

    @classmethod
    def from_payload(cls, payload: Any) -> DetailRecord:
        """
        Build a record from a decoded JSON payload.

        Parameters
        ----------
        payload : Any
            Decoded response body; must be an object with an integer ``id``.

        Returns
        -------
        DetailRecord
            Record keyed by the payload's ``id``.

        Raises
        ------
        ValueError
            If the payload is not an object or its ``id`` is not an integer.
        """
        if not isinstance(payload, Mapping):
            raise ValueError(
                f"Detail payload must be an object, got {type(payload).__name__}"
            )
        record_id = payload.get("id")
        if isinstance(record_id, bool) or not isinstance(record_id, int):
            raise ValueError(f"Detail payload has no integer id: {record_id!r}")
        attributes = {key: value for key, value in payload.items() if key != "id"}
        return cls(id=record_id, attributes=attributes)

    @property
    def name(self) -> Optional[str]:
        return self.attributes.get("name")

    def get(self, key: str, default: Any = None) -> Any:
        if key == "id":
            return self.id
        return self.attributes.get(key, default)

    def __getitem__(self, key: str) -> Any:
        if key == "id":
            return self.id
        return self.attributes[key]

    def to_dict(self) -> Dict[str, Any]:
        """Return the original payload, ``id`` included."""
        payload = {"id": self.id}
        payload.update(self.attributes)
        return payload

    # Unit conversions: the upstream reports decimetres and hectograms.

    @property
    def height_meters(self) -> Optional[float]:
        height = self.attributes.get("height")
        if not isinstance(height, (int, float)) or isinstance(height, bool):
            return None
        return height / 10.0

    @property
    def weight_kg(self) -> Optional[float]:
        weight = self.attributes.get("weight")
        if not isinstance(weight, (int, float)) or isinstance(weight, bool):
            return None
        return weight / 10.0

    @property
    def type_names(self) -> List[str]:
        return _nested_names(self.attributes.get("types"), "type")

    @property
    def ability_names(self) -> List[str]:
        return _nested_names(self.attributes.get("abilities"), "ability")

    @property
    def total_base_stats(self) -> Optional[int]:
        stats = self.attributes.get("stats")
        if not isinstance(stats, list) or not stats:
            return None
        total = 0
        for stat in stats:
            if not isinstance(stat, Mapping):
                continue
            value = stat.get("base_stat")
            if isinstance(value, int) and not isinstance(value, bool):
                total += value
        return total


@dataclass(frozen=True)
class PopulationRequest:
    """
    Unit of work on the population worker's queue.
    """

    # Item to fetch and cache
    reference: CatalogReference

    # Failed attempts so far
    attempts: int = 0

    # Whether the request came from a seed fan-out
    from_seed: bool = False


def _nested_names(entries: Any, key: str) -> List[str]:
    # Upstream lists look like [{"slot": 1, "type": {"name": "grass", "url": ...}}]
    if not isinstance(entries, list):
        return []
    ordered = sorted(
        (entry for entry in entries if isinstance(entry, Mapping)),
        key=lambda entry: (
            entry.get("slot") if isinstance(entry.get("slot"), int) else 0
        ),
    )
    names: List[str] = []
    for entry in ordered:
        nested = entry.get(key)
        if isinstance(nested, Mapping) and isinstance(nested.get("name"), str):
            names.append(nested["name"])
    return names
