"""Resource definitions for the sky island economy."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Mapping


class Resource(str, Enum):
    """Enumeration of all resource keys used in the game."""

    STEAM = "steam"
    ORE = "ore"
    AETHER = "aether"


ALL_RESOURCES: List[Resource] = [
    Resource.STEAM,
    Resource.ORE,
    Resource.AETHER,
]


_RESOURCE_LOOKUP: Dict[str, Resource] = {}
for _resource in ALL_RESOURCES:
    _RESOURCE_LOOKUP[_resource.value] = _resource
    _RESOURCE_LOOKUP[_resource.name.lower()] = _resource


def resource_from_id(identifier: str) -> Resource:
    """Return the resource associated with ``identifier``.

    The lookup accepts the canonical identifier (``Resource.value``) or the enum
    name regardless of capitalisation. A :class:`KeyError` is raised if the
    identifier is unknown.
    """

    resource = _RESOURCE_LOOKUP.get(str(identifier).strip().lower())
    if resource is None:
        raise KeyError(f"Unknown resource: {identifier}")
    return resource


def normalise_resource(value: Resource | str) -> Resource:
    """Coerce ``value`` into a :class:`Resource` instance."""

    if isinstance(value, Resource):
        return value
    return resource_from_id(value)


def normalise_mapping(mapping: Mapping[Resource | str, float]) -> Dict[Resource, float]:
    """Return a new mapping with normalised resource keys."""

    return {normalise_resource(key): float(amount) for key, amount in mapping.items()}


@dataclass(frozen=True, slots=True)
class ResourceAmount:
    """Immutable bundle of the three island resources.

    Arithmetic is component-wise. Instances never validate their sign; the
    ledger is responsible for refusing negative balances.
    """

    steam: float = 0.0
    ore: float = 0.0
    aether: float = 0.0

    @classmethod
    def zero(cls) -> "ResourceAmount":
        return cls()

    @classmethod
    def from_mapping(cls, mapping: Mapping[Resource | str, float] | None) -> "ResourceAmount":
        """Build an amount from a partial mapping; missing fields are zero."""

        values = normalise_mapping(mapping or {})
        return cls(
            steam=values.get(Resource.STEAM, 0.0),
            ore=values.get(Resource.ORE, 0.0),
            aether=values.get(Resource.AETHER, 0.0),
        )

    def get(self, resource: Resource | str) -> float:
        return float(getattr(self, normalise_resource(resource).value))

    def __add__(self, other: "ResourceAmount") -> "ResourceAmount":
        if not isinstance(other, ResourceAmount):
            return NotImplemented
        return ResourceAmount(
            steam=self.steam + other.steam,
            ore=self.ore + other.ore,
            aether=self.aether + other.aether,
        )

    def __sub__(self, other: "ResourceAmount") -> "ResourceAmount":
        if not isinstance(other, ResourceAmount):
            return NotImplemented
        return ResourceAmount(
            steam=self.steam - other.steam,
            ore=self.ore - other.ore,
            aether=self.aether - other.aether,
        )

    def __neg__(self) -> "ResourceAmount":
        return ResourceAmount(steam=-self.steam, ore=-self.ore, aether=-self.aether)

    def scaled(self, factor: float) -> "ResourceAmount":
        return ResourceAmount(
            steam=self.steam * factor,
            ore=self.ore * factor,
            aether=self.aether * factor,
        )

    def covers(self, other: "ResourceAmount") -> bool:
        """Return ``True`` when every field is at least the matching field of ``other``."""

        return all(self.get(res) >= other.get(res) for res in ALL_RESOURCES)

    def is_negative(self) -> bool:
        return any(self.get(res) < 0 for res in ALL_RESOURCES)

    def is_zero(self) -> bool:
        return all(self.get(res) == 0 for res in ALL_RESOURCES)

    def shortfall(self, cost: "ResourceAmount") -> Dict[Resource, float]:
        """Return the missing quantity per resource needed to pay ``cost``."""

        return {
            res: cost.get(res) - self.get(res)
            for res in ALL_RESOURCES
            if cost.get(res) > self.get(res)
        }

    def to_dict(self) -> Dict[str, float]:
        return {res.value: self.get(res) for res in ALL_RESOURCES}


def sum_amounts(amounts: Iterable[ResourceAmount]) -> ResourceAmount:
    total = ResourceAmount.zero()
    for amount in amounts:
        total = total + amount
    return total


__all__ = [
    "ALL_RESOURCES",
    "Resource",
    "ResourceAmount",
    "normalise_mapping",
    "normalise_resource",
    "resource_from_id",
    "sum_amounts",
]
