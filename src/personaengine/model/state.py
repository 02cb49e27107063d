"""State records: activation modes, point allocations and persona profiles."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from personaengine.model.traits import ActivationMode, TraitId, WeightVector, parse_trait


@dataclass(frozen=True)
class AgentActivationState:
    """Mode of each trait voice. At least one trait is never OFF."""

    instinct: ActivationMode = ActivationMode.ON
    logic: ActivationMode = ActivationMode.ON
    psyche: ActivationMode = ActivationMode.ON

    def __post_init__(self) -> None:
        if all(mode is ActivationMode.OFF for mode in self.modes().values()):
            raise ValueError("At least one trait must be active")

    def __getitem__(self, trait: TraitId) -> ActivationMode:
        return getattr(self, trait.value)

    def modes(self) -> dict[TraitId, ActivationMode]:
        return {trait: getattr(self, trait.value) for trait in TraitId}

    @classmethod
    def from_modes(cls, modes: Mapping[TraitId, ActivationMode]) -> AgentActivationState:
        """Build a state; traits missing from ``modes`` default to OFF."""
        return cls(**{trait.value: modes.get(trait, ActivationMode.OFF) for trait in TraitId})

    def with_modes(self, changes: Mapping[TraitId, ActivationMode]) -> AgentActivationState:
        merged = self.modes()
        merged.update(changes)
        return AgentActivationState.from_modes(merged)


@dataclass(frozen=True)
class PointAllocation:
    """User-assigned integer points per trait.

    Bounds and budget are enforced by the allocator, not by this record, so a
    backend may hand back any stored values.
    """

    instinct: int
    logic: int
    psyche: int

    def __getitem__(self, trait: TraitId) -> int:
        return getattr(self, trait.value)

    @property
    def total(self) -> int:
        return self.instinct + self.logic + self.psyche

    def with_points(self, trait: TraitId, value: int) -> PointAllocation:
        values = self.as_dict()
        values[trait.value] = value
        return PointAllocation(**values)

    def as_dict(self) -> dict[str, int]:
        return {"instinct": self.instinct, "logic": self.logic, "psyche": self.psyche}

    @classmethod
    def from_mapping(cls, values: Mapping[TraitId, int] | Mapping[str, int]) -> PointAllocation:
        by_trait = {parse_trait(k): int(v) for k, v in values.items()}
        return cls(
            instinct=by_trait[TraitId.INSTINCT],
            logic=by_trait[TraitId.LOGIC],
            psyche=by_trait[TraitId.PSYCHE],
        )


@dataclass
class PersonaProfile:
    """A persona profile as exchanged with the backend collaborator.

    ``weights`` are the externally learned weights; ``dominant_trait`` is the
    user's manual override and is independent of points.
    """

    id: str
    name: str
    dominant_trait: TraitId
    secondary_trait: TraitId
    points: PointAllocation
    weights: WeightVector
    message_count: int = 0
    is_active: bool = False
    metadata: dict[str, str] = field(default_factory=dict)
