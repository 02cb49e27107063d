"""Engine: activation cycling, point allocation, classification, animation."""

from personaengine.engine.activation import (
    AgentActivationModel,
    active_list,
    any_disco,
    cycle,
    disco_list,
    is_active,
    set_bulk_disco,
)
from personaengine.engine.allocation import (
    DEFAULT_BUDGET,
    MAX_POINTS,
    MIN_POINTS,
    PRESETS,
    AllocationResult,
    AllocationRules,
    PointAllocator,
    Preset,
    can_decrement,
    can_increment,
    check_preset,
    decrement,
    fit_allocation,
    increment,
    points_to_weights,
    presets_for,
    seed_weights,
    weights_to_points,
)
from personaengine.engine.animator import (
    AnimationPhase,
    AnimationState,
    AsyncioScheduler,
    ManualScheduler,
    Scheduler,
    WeightAnimator,
    ease_out_cubic,
)
from personaengine.engine.classifier import (
    ARCHETYPES,
    Archetype,
    ClassificationUnresolved,
    PersonaClassification,
    archetype_key,
    classify,
    confidence,
)
from personaengine.engine.notifications import (
    ChangeKind,
    WeightChangeNotice,
    describe_weight_change,
)

__all__ = [
    "ARCHETYPES",
    "DEFAULT_BUDGET",
    "MAX_POINTS",
    "MIN_POINTS",
    "PRESETS",
    "AgentActivationModel",
    "AllocationResult",
    "AllocationRules",
    "AnimationPhase",
    "AnimationState",
    "Archetype",
    "AsyncioScheduler",
    "ChangeKind",
    "ClassificationUnresolved",
    "ManualScheduler",
    "PersonaClassification",
    "PointAllocator",
    "Preset",
    "Scheduler",
    "WeightAnimator",
    "WeightChangeNotice",
    "active_list",
    "any_disco",
    "archetype_key",
    "can_decrement",
    "can_increment",
    "check_preset",
    "classify",
    "confidence",
    "cycle",
    "decrement",
    "describe_weight_change",
    "disco_list",
    "ease_out_cubic",
    "fit_allocation",
    "increment",
    "is_active",
    "points_to_weights",
    "presets_for",
    "seed_weights",
    "set_bulk_disco",
    "weights_to_points",
]
