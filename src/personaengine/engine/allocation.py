"""Point allocation across the three traits under a fixed budget.

Each trait holds between MIN_POINTS and MAX_POINTS points and the total may
not exceed the budget. Decrements free points without redistributing them,
so the total is allowed to sit below the budget.

The budget defaults to 11, matching the stored persona presets; it is a
parameter of AllocationRules so a 12-point deployment uses the same code.
presets_for rebalances the stored presets to any other budget.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from personaengine.model.state import PointAllocation
from personaengine.model.traits import TIE_PRIORITY, TraitId, WeightVector

logger = logging.getLogger(__name__)

MIN_POINTS = 2
MAX_POINTS = 6
DEFAULT_BUDGET = 11


@dataclass(frozen=True)
class AllocationRules:
    """Bounds and budget applied by increment/decrement."""

    min_points: int = MIN_POINTS
    max_points: int = MAX_POINTS
    budget: int = DEFAULT_BUDGET

    def __post_init__(self) -> None:
        if not 0 <= self.min_points <= self.max_points:
            raise ValueError(f"Invalid point bounds {self.min_points}..{self.max_points}")
        if not 3 * self.min_points <= self.budget <= 3 * self.max_points:
            raise ValueError(f"Budget {self.budget} cannot be met within the point bounds")

    def within_bounds(self, allocation: PointAllocation) -> bool:
        return all(
            self.min_points <= allocation[trait] <= self.max_points for trait in TraitId
        ) and allocation.total <= self.budget


DEFAULT_RULES = AllocationRules()


@dataclass(frozen=True)
class AllocationResult:
    """Outcome of an increment or decrement.

    A rejected change carries the unchanged allocation and a reason.
    """

    accepted: bool
    allocation: PointAllocation
    reason: str = ""


@dataclass(frozen=True)
class Preset:
    """A canned allocation with its dominant trait.

    Validated once when defined; applying it skips per-step checks.
    """

    name: str
    allocation: PointAllocation
    dominant_trait: TraitId
    rules: AllocationRules = DEFAULT_RULES

    def __post_init__(self) -> None:
        if not self.rules.within_bounds(self.allocation):
            raise ValueError(f"Preset {self.name!r} violates the point bounds")
        if self.allocation.total != self.rules.budget:
            raise ValueError(
                f"Preset {self.name!r} totals {self.allocation.total}, "
                f"expected {self.rules.budget}"
            )


PRESETS: dict[str, Preset] = {
    "logic": Preset("logic", PointAllocation(instinct=3, logic=4, psyche=4), TraitId.LOGIC),
    "instinct": Preset(
        "instinct", PointAllocation(instinct=4, logic=3, psyche=4), TraitId.INSTINCT
    ),
    "psyche": Preset("psyche", PointAllocation(instinct=3, logic=3, psyche=5), TraitId.PSYCHE),
}


def _rebalance(
    allocation: PointAllocation, dominant: TraitId, rules: AllocationRules
) -> PointAllocation:
    allocation = fit_allocation(allocation, rules, keep=dominant)
    others = [t for t in TIE_PRIORITY if t is not dominant]
    while allocation.total < rules.budget:
        trait = next(t for t in (dominant, *others) if allocation[t] < rules.max_points)
        allocation = allocation.with_points(trait, allocation[trait] + 1)
    return allocation


def presets_for(rules: AllocationRules = DEFAULT_RULES) -> dict[str, Preset]:
    """The named presets rebalanced to fill ``rules.budget``.

    Extra points go to the dominant trait first, then to the others in tie
    priority order. Missing points come off the largest non-dominant trait.
    Under the default rules the stored presets are returned as they are.
    """
    if rules == DEFAULT_RULES:
        return dict(PRESETS)
    return {
        name: Preset(
            name,
            _rebalance(preset.allocation, preset.dominant_trait, rules),
            preset.dominant_trait,
            rules,
        )
        for name, preset in PRESETS.items()
    }


def check_preset(preset: Preset, rules: AllocationRules) -> None:
    """Raise ValueError unless ``preset`` was built for ``rules``."""
    if preset.rules != rules:
        raise ValueError(
            f"Preset {preset.name!r} targets budget {preset.rules.budget}, "
            f"not {rules.budget}"
        )


def fit_allocation(
    allocation: PointAllocation,
    rules: AllocationRules = DEFAULT_RULES,
    keep: TraitId | None = None,
) -> PointAllocation:
    """Clamp each trait to the bounds, then trim the largest traits to the budget.

    ``keep`` is trimmed only once every other trait sits at the minimum.
    """
    allocation = PointAllocation(
        **{
            t.value: max(rules.min_points, min(rules.max_points, allocation[t]))
            for t in TraitId
        }
    )
    while allocation.total > rules.budget:
        candidates = [t for t in TraitId if allocation[t] > rules.min_points]
        trait = max(candidates, key=lambda t: (t is not keep, allocation[t]))
        allocation = allocation.with_points(trait, allocation[trait] - 1)
    return allocation


def can_increment(
    allocation: PointAllocation, trait: TraitId, rules: AllocationRules = DEFAULT_RULES
) -> bool:
    return allocation[trait] < rules.max_points and allocation.total + 1 <= rules.budget


def can_decrement(
    allocation: PointAllocation, trait: TraitId, rules: AllocationRules = DEFAULT_RULES
) -> bool:
    return allocation[trait] > rules.min_points


def increment(
    allocation: PointAllocation, trait: TraitId, rules: AllocationRules = DEFAULT_RULES
) -> AllocationResult:
    """Add one point to a trait if bounds and budget allow it."""
    if allocation[trait] >= rules.max_points:
        return AllocationResult(False, allocation, f"{trait.value} already at maximum")
    if allocation.total + 1 > rules.budget:
        return AllocationResult(False, allocation, "budget exhausted")
    return AllocationResult(True, allocation.with_points(trait, allocation[trait] + 1))


def decrement(
    allocation: PointAllocation, trait: TraitId, rules: AllocationRules = DEFAULT_RULES
) -> AllocationResult:
    """Remove one point from a trait if it stays above the minimum."""
    if allocation[trait] <= rules.min_points:
        return AllocationResult(False, allocation, f"{trait.value} already at minimum")
    return AllocationResult(True, allocation.with_points(trait, allocation[trait] - 1))


def points_to_weights(allocation: PointAllocation, budget: int = DEFAULT_BUDGET) -> WeightVector:
    """Points-derived weights: each trait's share of the full budget."""
    return WeightVector(
        instinct=allocation.instinct / budget,
        logic=allocation.logic / budget,
        psyche=allocation.psyche / budget,
    )


def weights_to_points(
    weights: WeightVector, rules: AllocationRules = DEFAULT_RULES
) -> PointAllocation:
    """Seed an allocation from weights.

    Each weight is scaled by the budget and rounded, then fitted to the
    bounds with fit_allocation.
    """
    scaled = PointAllocation(
        instinct=round(weights.instinct * rules.budget),
        logic=round(weights.logic * rules.budget),
        psyche=round(weights.psyche * rules.budget),
    )
    return fit_allocation(scaled, rules)


def seed_weights(dominant: TraitId, secondary: TraitId) -> WeightVector:
    """Starting weights for a new profile: 0.5 dominant, 0.3 secondary, 0.2 rest.

    When dominant and secondary are the same trait it gets 0.3, since the
    secondary assignment is applied last.
    """
    weights = WeightVector(0.2, 0.2, 0.2)
    weights = weights.replace(dominant, 0.5)
    return weights.replace(secondary, 0.3)


class PointAllocator:
    """Stateful wrapper around the pure allocation operations.

    Example:
        >>> allocator = PointAllocator(PointAllocation(4, 4, 3))
        >>> allocator.increment(TraitId.LOGIC).accepted
        False
    """

    def __init__(
        self,
        allocation: PointAllocation | None = None,
        rules: AllocationRules = DEFAULT_RULES,
        dominant_trait: TraitId | None = None,
    ) -> None:
        self.rules = rules
        self._allocation = allocation or presets_for(rules)["logic"].allocation
        self.dominant_trait = dominant_trait

    @property
    def allocation(self) -> PointAllocation:
        return self._allocation

    @property
    def remaining(self) -> int:
        return self.rules.budget - self._allocation.total

    def increment(self, trait: TraitId) -> AllocationResult:
        return self._apply(increment(self._allocation, trait, self.rules), trait, "+1")

    def decrement(self, trait: TraitId) -> AllocationResult:
        return self._apply(decrement(self._allocation, trait, self.rules), trait, "-1")

    def apply_preset(self, preset: Preset) -> PointAllocation:
        """Set all three values and the dominant trait in one step."""
        check_preset(preset, self.rules)
        self._allocation = preset.allocation
        self.dominant_trait = preset.dominant_trait
        logger.info("Applied preset %s: %s", preset.name, preset.allocation.as_dict())
        return self._allocation

    def weights(self) -> WeightVector:
        return points_to_weights(self._allocation, self.rules.budget)

    def _apply(self, result: AllocationResult, trait: TraitId, delta: str) -> AllocationResult:
        if result.accepted:
            self._allocation = result.allocation
            logger.debug("%s %s -> %s", trait.value, delta, result.allocation.as_dict())
        else:
            logger.debug("Rejected %s %s: %s", trait.value, delta, result.reason)
        return result
