"""Persona controller: single owner of a profile's engine state.

Mutations are pure functions applied to an immutable PersonaState; the
controller swaps in the result, retargets the weight animation, pushes
accepted point changes to the backend and notifies observers.

Backend pushes are fire-and-forget. A failed push is logged and the local
state stays as it is.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import Executor, Future
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from personaengine.backend.client import BackendSyncError
from personaengine.engine import activation, allocation
from personaengine.engine.allocation import DEFAULT_RULES, AllocationResult, AllocationRules
from personaengine.engine.animator import ManualScheduler, Scheduler, WeightAnimator
from personaengine.engine.classifier import PersonaClassification, classify
from personaengine.engine.notifications import WeightChangeNotice, describe_weight_change
from personaengine.model.state import AgentActivationState, PersonaProfile, PointAllocation
from personaengine.projection.projector import (
    DEFAULT_GEOMETRY,
    ChartGeometry,
    RadarFrame,
    project,
)

if TYPE_CHECKING:
    from personaengine.backend.client import PersonaBackend
    from personaengine.engine.allocation import Preset
    from personaengine.model.traits import TraitId, WeightVector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PersonaState:
    """Everything the engine knows about the active persona."""

    activation: AgentActivationState
    points: PointAllocation
    dominant_trait: TraitId | None = None
    learned_weights: WeightVector | None = None
    message_count: int = 0
    profile_id: str | None = None


StateObserver = Callable[[PersonaState], None]


class PersonaController:
    """Applies user edits and backend updates to the persona state.

    Args:
        state: Initial state.
        rules: Point bounds and budget.
        backend: Optional collaborator for point sync.
        scheduler: Tick source for the weight animation.
        executor: When given, backend pushes run on it; otherwise inline.
        animation_duration: Seconds per weight transition.
        geometry: Chart dimensions for frames.
    """

    def __init__(
        self,
        state: PersonaState | None = None,
        rules: AllocationRules = DEFAULT_RULES,
        backend: PersonaBackend | None = None,
        scheduler: Scheduler | None = None,
        executor: Executor | None = None,
        animation_duration: float = 0.15,
        geometry: ChartGeometry = DEFAULT_GEOMETRY,
    ) -> None:
        self.rules = rules
        self.geometry = geometry
        self.presets = allocation.presets_for(rules)
        self._state = state or PersonaState(
            activation=AgentActivationState(),
            points=self.presets["logic"].allocation,
        )
        if not rules.within_bounds(self._state.points):
            raise ValueError(
                f"Initial points {self._state.points.as_dict()} break the "
                f"{rules.budget}-point rules"
            )
        self._backend = backend
        self._executor = executor
        self._observers: list[StateObserver] = []
        self.animator = WeightAnimator(
            self.points_weights(),
            scheduler or ManualScheduler(),
            duration=animation_duration,
        )

    @classmethod
    def from_profile(cls, profile: PersonaProfile, **kwargs: Any) -> PersonaController:
        controller = cls(**kwargs)
        controller.load_profile(profile)
        return controller

    @property
    def state(self) -> PersonaState:
        return self._state

    def subscribe(self, observer: StateObserver) -> Callable[[], None]:
        """Register an observer called after every state change."""
        self._observers.append(observer)
        return lambda: self._observers.remove(observer)

    # Derived views

    def points_weights(self) -> WeightVector:
        return allocation.points_to_weights(self._state.points, self.rules.budget)

    def settled_weights(self) -> WeightVector:
        """Learned weights when the backend supplied them, else points-derived."""
        return self._state.learned_weights or self.points_weights()

    def classification(self) -> PersonaClassification:
        return classify(self.settled_weights(), self._state.message_count)

    def active_list(self) -> list[TraitId]:
        return activation.active_list(self._state.activation)

    def disco_list(self) -> list[TraitId]:
        return activation.disco_list(self._state.activation)

    def frame(self) -> RadarFrame:
        """Geometry for the vector currently on screen."""
        return project(self.animator.displayed, self._state.activation, self.geometry)

    # Activation

    def cycle(self, trait: TraitId) -> AgentActivationState:
        modes = activation.cycle(self._state.activation, trait)
        self._commit(replace(self._state, activation=modes))
        return modes

    def set_bulk_disco(self) -> AgentActivationState:
        modes = activation.set_bulk_disco(self._state.activation)
        self._commit(replace(self._state, activation=modes))
        return modes

    # Points

    def increment(self, trait: TraitId) -> AllocationResult:
        return self._apply_points(allocation.increment(self._state.points, trait, self.rules))

    def decrement(self, trait: TraitId) -> AllocationResult:
        return self._apply_points(allocation.decrement(self._state.points, trait, self.rules))

    def apply_preset(self, preset: Preset) -> PointAllocation:
        """Apply a preset built for this controller's rules (see ``self.presets``).

        Raises:
            ValueError: If the preset targets a different budget.
        """
        allocation.check_preset(preset, self.rules)
        self._commit(
            replace(self._state, points=preset.allocation, dominant_trait=preset.dominant_trait)
        )
        self._retarget()
        self._sync(preset.allocation, dominant=preset.dominant_trait)
        return self._state.points

    def select_dominant(self, trait: TraitId) -> None:
        """Set the manual dominant-trait override; points are untouched."""
        self._commit(replace(self._state, dominant_trait=trait))
        if self._backend is not None:
            self._submit(lambda: self._backend.set_dominant_trait(trait), "dominant trait")

    # Backend input

    def load_profile(self, profile: PersonaProfile) -> None:
        """Replace points and learned data with a profile from the backend.

        Modes are a UI concern and survive profile switches. Stored points that
        break the current rules are fitted to them.
        """
        points = profile.points
        if not self.rules.within_bounds(points):
            points = allocation.fit_allocation(points, self.rules, keep=profile.dominant_trait)
            logger.warning(
                "Profile %s points %s break the %d-point rules; using %s",
                profile.id,
                profile.points.as_dict(),
                self.rules.budget,
                points.as_dict(),
            )
        self._commit(
            replace(
                self._state,
                points=points,
                dominant_trait=profile.dominant_trait,
                learned_weights=profile.weights,
                message_count=profile.message_count,
                profile_id=profile.id,
            )
        )
        self._retarget()
        logger.info("Loaded persona profile %s (%s)", profile.name, profile.id)

    def refresh(self) -> bool:
        """Pull the active profile from the backend.

        Returns:
            True if a profile was loaded.
        """
        if self._backend is None:
            return False
        try:
            profile = self._backend.fetch_profile()
        except BackendSyncError:
            logger.warning("Could not refresh persona profile; keeping local state")
            return False
        self.load_profile(profile)
        return True

    def update_learned(
        self,
        weights: WeightVector,
        message_count: int | None = None,
        lead_trait: TraitId | None = None,
        had_support: bool = False,
    ) -> WeightChangeNotice | None:
        """Accept new externally learned weights.

        Returns:
            A change notice when ``lead_trait`` is given and the change is
            large enough to mention.
        """
        old = self.settled_weights()
        if message_count is None:
            message_count = self._state.message_count
        self._commit(
            replace(self._state, learned_weights=weights, message_count=message_count)
        )
        if lead_trait is None:
            return None
        return describe_weight_change(old, weights, lead_trait, had_support)

    # Internals

    def _apply_points(self, result: AllocationResult) -> AllocationResult:
        if not result.accepted:
            logger.debug("Point change rejected: %s", result.reason)
            return result
        self._commit(replace(self._state, points=result.allocation))
        self._retarget()
        self._sync(result.allocation)
        return result

    def _retarget(self) -> None:
        target = self.points_weights()
        if target != self.animator.target:
            self.animator.retarget(target)

    def _commit(self, new_state: PersonaState) -> None:
        if new_state == self._state:
            return
        self._state = new_state
        for observer in list(self._observers):
            observer(new_state)

    def _sync(self, points: PointAllocation, dominant: TraitId | None = None) -> None:
        if self._backend is None:
            return
        backend = self._backend

        def push() -> None:
            backend.push_points(points)
            if dominant is not None:
                backend.set_dominant_trait(dominant)

        self._submit(push, "points")

    def _submit(self, job: Callable[[], None], what: str) -> None:
        if self._executor is None:
            self._run_sync_job(job, what)
            return
        future = self._executor.submit(job)
        future.add_done_callback(lambda f: self._log_sync_result(f, what))

    def _run_sync_job(self, job: Callable[[], None], what: str) -> None:
        try:
            job()
        except Exception:
            logger.exception("Failed to sync %s to backend; local state kept", what)

    def _log_sync_result(self, future: Future, what: str) -> None:
        error = future.exception()
        if error is not None:
            logger.error(
                "Failed to sync %s to backend; local state kept",
                what,
                exc_info=(type(error), error, error.__traceback__),
            )
