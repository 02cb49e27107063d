"""Tests for the persona controller."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from personaengine.backend.client import (
    BackendSyncError,
    InMemoryPersonaBackend,
    PersonaBackend,
    default_profile,
)
from personaengine.controller import PersonaController, PersonaState
from personaengine.engine.allocation import PRESETS, AllocationRules
from personaengine.engine.animator import ManualScheduler
from personaengine.engine.notifications import ChangeKind
from personaengine.model import (
    ActivationMode,
    AgentActivationState,
    PersonaProfile,
    PointAllocation,
    TraitId,
    WeightVector,
)


class FailingBackend(PersonaBackend):
    """Backend whose every call fails."""

    def __init__(self) -> None:
        self.calls = 0

    def fetch_profile(self) -> PersonaProfile:
        self.calls += 1
        raise BackendSyncError("backend down")

    def push_points(self, allocation: PointAllocation) -> None:
        self.calls += 1
        raise BackendSyncError("backend down")

    def set_dominant_trait(self, trait: TraitId) -> None:
        self.calls += 1
        raise BackendSyncError("backend down")


class BlockingBackend(InMemoryPersonaBackend):
    """In-memory backend whose pushes wait until released."""

    def __init__(self, release: threading.Event) -> None:
        super().__init__()
        self.release = release

    def push_points(self, allocation: PointAllocation) -> None:
        self.release.wait(timeout=5)
        super().push_points(allocation)


@pytest.fixture
def backend() -> InMemoryPersonaBackend:
    """In-memory backend holding the default logic profile."""
    return InMemoryPersonaBackend()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def controller(backend: InMemoryPersonaBackend, scheduler: ManualScheduler) -> PersonaController:
    """Controller starting from the logic preset."""
    return PersonaController(backend=backend, scheduler=scheduler)


class TestPoints:
    """Point edits through the controller."""

    def test_initial_state(self, controller: PersonaController) -> None:
        assert controller.state.points == PointAllocation(3, 4, 4)
        assert controller.active_list() == [TraitId.PSYCHE, TraitId.LOGIC, TraitId.INSTINCT]

    def test_rejected_increment_changes_nothing(
        self, controller: PersonaController, backend: InMemoryPersonaBackend
    ) -> None:
        seen: list[PersonaState] = []
        controller.subscribe(seen.append)
        before = controller.state

        result = controller.increment(TraitId.LOGIC)

        assert not result.accepted
        assert controller.state is before
        assert seen == []
        assert backend.pushes == []

    def test_accepted_decrement_syncs_and_notifies(
        self, controller: PersonaController, backend: InMemoryPersonaBackend
    ) -> None:
        seen: list[PersonaState] = []
        controller.subscribe(seen.append)

        result = controller.decrement(TraitId.PSYCHE)

        assert result.accepted
        assert controller.state.points == PointAllocation(3, 4, 3)
        assert len(seen) == 1
        assert backend.pushes == [PointAllocation(3, 4, 3)]
        assert controller.animator.target == controller.points_weights()
        assert controller.animator.is_animating

    def test_frame_follows_animation(
        self, controller: PersonaController, scheduler: ManualScheduler
    ) -> None:
        controller.decrement(TraitId.LOGIC)

        scheduler.run_pending(time.monotonic() + 1.0)

        assert controller.animator.displayed == controller.points_weights()
        frame = controller.frame()
        assert [p.trait for p in frame.points] == [TraitId.LOGIC, TraitId.PSYCHE, TraitId.INSTINCT]

    def test_custom_budget(self, backend: InMemoryPersonaBackend) -> None:
        controller = PersonaController(
            state=PersonaState(AgentActivationState(), PointAllocation(4, 4, 4)),
            rules=AllocationRules(budget=12),
            backend=backend,
        )

        assert not controller.increment(TraitId.LOGIC).accepted
        assert controller.decrement(TraitId.PSYCHE).accepted
        assert controller.increment(TraitId.LOGIC).accepted
        assert controller.state.points == PointAllocation(4, 5, 3)

    def test_apply_preset(
        self, controller: PersonaController, backend: InMemoryPersonaBackend
    ) -> None:
        controller.apply_preset(PRESETS["instinct"])

        assert controller.state.points == PointAllocation(4, 3, 4)
        assert controller.state.dominant_trait is TraitId.INSTINCT
        assert backend.profile.dominant_trait is TraitId.INSTINCT
        assert backend.pushes[-1] == PointAllocation(4, 3, 4)

    def test_select_dominant_leaves_points(
        self, controller: PersonaController, backend: InMemoryPersonaBackend
    ) -> None:
        controller.select_dominant(TraitId.PSYCHE)

        assert controller.state.dominant_trait is TraitId.PSYCHE
        assert controller.state.points == PointAllocation(3, 4, 4)
        assert backend.profile.dominant_trait is TraitId.PSYCHE


class TestBudgetRules:
    """The controller never holds points outside its own rules."""

    def test_small_budget_starts_within_budget(self) -> None:
        rules = AllocationRules(budget=8)

        controller = PersonaController(rules=rules)

        assert controller.state.points.total == 8
        assert rules.within_bounds(controller.state.points)

    def test_initial_state_over_budget_rejected(self) -> None:
        state = PersonaState(AgentActivationState(), PointAllocation(3, 4, 4))

        with pytest.raises(ValueError, match="8-point"):
            PersonaController(state=state, rules=AllocationRules(budget=8))

    def test_presets_follow_budget(self) -> None:
        controller = PersonaController(rules=AllocationRules(budget=12))

        controller.apply_preset(controller.presets["psyche"])

        assert controller.state.points == PointAllocation(3, 3, 6)
        assert controller.state.points.total == 12

    def test_preset_for_other_budget_rejected(self) -> None:
        controller = PersonaController(rules=AllocationRules(budget=12))
        before = controller.state

        with pytest.raises(ValueError):
            controller.apply_preset(PRESETS["psyche"])

        assert controller.state is before

    def test_loaded_profile_fitted_to_budget(self, caplog: pytest.LogCaptureFixture) -> None:
        rules = AllocationRules(budget=8)
        controller = PersonaController(rules=rules)

        with caplog.at_level(logging.WARNING, logger="personaengine.controller"):
            controller.load_profile(default_profile(TraitId.PSYCHE))

        assert controller.state.points == PointAllocation(2, 2, 4)
        assert "break the 8-point rules" in caplog.text

    def test_refresh_from_default_backend_respects_small_budget(self) -> None:
        rules = AllocationRules(budget=8)
        backend = InMemoryPersonaBackend(default_profile(rules=rules))
        controller = PersonaController(rules=rules, backend=backend)

        assert controller.refresh() is True

        assert controller.state.points == PointAllocation(2, 4, 2)
        assert controller.state.points.total <= rules.budget


class TestBackendFailures:
    """A failing backend never blocks or rolls back local edits."""

    def test_push_failure_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        backend = FailingBackend()
        controller = PersonaController(backend=backend)

        with caplog.at_level(logging.ERROR, logger="personaengine.controller"):
            result = controller.decrement(TraitId.INSTINCT)

        assert result.accepted
        assert controller.state.points == PointAllocation(2, 4, 4)
        assert backend.calls == 1
        assert "Failed to sync points" in caplog.text

    def test_push_failure_on_executor(self, caplog: pytest.LogCaptureFixture) -> None:
        backend = FailingBackend()
        executor = ThreadPoolExecutor(max_workers=1)
        controller = PersonaController(backend=backend, executor=executor)

        with caplog.at_level(logging.ERROR, logger="personaengine.controller"):
            controller.decrement(TraitId.INSTINCT)
            executor.shutdown(wait=True)

        assert controller.state.points == PointAllocation(2, 4, 4)
        assert "Failed to sync points" in caplog.text

    def test_executor_push_succeeds(self, backend: InMemoryPersonaBackend) -> None:
        executor = ThreadPoolExecutor(max_workers=1)
        controller = PersonaController(backend=backend, executor=executor)

        controller.decrement(TraitId.LOGIC)
        executor.shutdown(wait=True)

        assert backend.pushes == [PointAllocation(3, 3, 4)]

    def test_executor_push_does_not_block_edit(self) -> None:
        release = threading.Event()
        backend = BlockingBackend(release)
        executor = ThreadPoolExecutor(max_workers=1)
        controller = PersonaController(backend=backend, executor=executor)

        try:
            result = controller.decrement(TraitId.LOGIC)
            assert result.accepted
            assert backend.pushes == []
        finally:
            release.set()
            executor.shutdown(wait=True)

        assert backend.pushes == [PointAllocation(3, 3, 4)]

    def test_refresh_failure_keeps_state(self, caplog: pytest.LogCaptureFixture) -> None:
        controller = PersonaController(backend=FailingBackend())
        before = controller.state

        with caplog.at_level(logging.WARNING, logger="personaengine.controller"):
            assert controller.refresh() is False

        assert controller.state is before
        assert "keeping local state" in caplog.text

    def test_refresh_without_backend(self) -> None:
        assert PersonaController().refresh() is False


class TestProfiles:
    """Loading profiles and learned weights."""

    def test_refresh_loads_profile(
        self, controller: PersonaController, backend: InMemoryPersonaBackend
    ) -> None:
        assert controller.refresh() is True

        assert controller.state.profile_id == backend.profile.id
        assert controller.state.learned_weights == WeightVector(0.2, 0.5, 0.3)
        assert controller.classification().key == "logic-pure"

    def test_load_profile_keeps_modes(self, controller: PersonaController) -> None:
        controller.cycle(TraitId.LOGIC)

        controller.load_profile(default_profile(TraitId.PSYCHE))

        assert controller.state.activation[TraitId.LOGIC] is ActivationMode.DISCO
        assert controller.state.points == PointAllocation(3, 3, 5)

    def test_from_profile(self) -> None:
        profile = default_profile(TraitId.INSTINCT)

        controller = PersonaController.from_profile(profile)

        assert controller.state.dominant_trait is TraitId.INSTINCT
        assert controller.state.points == PRESETS["instinct"].allocation

    def test_settled_weights_fall_back_to_points(self, controller: PersonaController) -> None:
        assert controller.state.learned_weights is None
        assert controller.settled_weights() == controller.points_weights()

    def test_update_learned_reports_major_shift(self, controller: PersonaController) -> None:
        notice = controller.update_learned(
            WeightVector(instinct=0.2, logic=0.3, psyche=0.5),
            message_count=150,
            lead_trait=TraitId.PSYCHE,
        )

        assert notice is not None
        assert notice.kind is ChangeKind.MAJOR_SHIFT
        assert controller.classification().confidence_percent == 100

    def test_update_learned_without_lead(self, controller: PersonaController) -> None:
        notice = controller.update_learned(WeightVector(0.25, 0.45, 0.30))

        assert notice is None
        assert controller.classification().key == "logic-balanced"
        assert controller.state.message_count == 0


class TestActivation:
    """Mode changes through the controller."""

    def test_cycle_notifies(self, controller: PersonaController) -> None:
        seen: list[PersonaState] = []
        controller.subscribe(seen.append)

        controller.cycle(TraitId.INSTINCT)

        assert seen[-1].activation[TraitId.INSTINCT] is ActivationMode.DISCO

    def test_last_voice_guard(self) -> None:
        state = PersonaState(
            activation=AgentActivationState.from_modes({TraitId.LOGIC: ActivationMode.DISCO}),
            points=PointAllocation(3, 4, 4),
        )
        controller = PersonaController(state=state)

        controller.cycle(TraitId.LOGIC)

        assert controller.active_list() == [TraitId.LOGIC]

    def test_bulk_disco(self, controller: PersonaController) -> None:
        controller.set_bulk_disco()

        assert controller.disco_list() == controller.active_list()

    def test_unsubscribe(self, controller: PersonaController) -> None:
        seen: list[PersonaState] = []
        unsubscribe = controller.subscribe(seen.append)
        unsubscribe()

        controller.set_bulk_disco()

        assert seen == []
