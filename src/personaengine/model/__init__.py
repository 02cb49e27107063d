"""Domain model: traits, modes, weight vectors, allocations, persona profiles."""

from personaengine.model.state import AgentActivationState, PersonaProfile, PointAllocation
from personaengine.model.traits import (
    DISPLAY_ORDER,
    TIE_PRIORITY,
    TRAIT_NAMES,
    ActivationMode,
    TraitId,
    WeightVector,
    parse_trait,
)

__all__ = [
    "DISPLAY_ORDER",
    "TIE_PRIORITY",
    "TRAIT_NAMES",
    "ActivationMode",
    "AgentActivationState",
    "PersonaProfile",
    "PointAllocation",
    "TraitId",
    "WeightVector",
    "parse_trait",
]
