"""Tests for the domain model: traits, weight vectors, activation state, allocations."""

import pytest

from personaengine.model import (
    DISPLAY_ORDER,
    ActivationMode,
    AgentActivationState,
    PointAllocation,
    TraitId,
    WeightVector,
    parse_trait,
)


class TestTraitId:
    """Tests for TraitId and parse_trait."""

    def test_closed_set_of_three(self):
        """There are exactly three traits."""
        assert {t.value for t in TraitId} == {"instinct", "logic", "psyche"}

    def test_display_order(self):
        """Display order is psyche, logic, instinct."""
        assert DISPLAY_ORDER == (TraitId.PSYCHE, TraitId.LOGIC, TraitId.INSTINCT)

    def test_parse_trait_is_case_insensitive(self):
        assert parse_trait("Logic") is TraitId.LOGIC
        assert parse_trait(TraitId.PSYCHE) is TraitId.PSYCHE

    def test_parse_unknown_trait_raises(self):
        with pytest.raises(ValueError):
            parse_trait("charisma")


class TestWeightVector:
    """Tests for WeightVector."""

    def test_index_by_trait(self):
        w = WeightVector(instinct=0.2, logic=0.5, psyche=0.3)

        assert w[TraitId.INSTINCT] == 0.2
        assert w[TraitId.LOGIC] == 0.5
        assert w[TraitId.PSYCHE] == 0.3

    def test_from_mapping_accepts_names_and_enums(self):
        by_name = WeightVector.from_mapping({"instinct": 0.1, "logic": 0.6, "psyche": 0.3})
        by_enum = WeightVector.from_mapping(
            {TraitId.INSTINCT: 0.1, TraitId.LOGIC: 0.6, TraitId.PSYCHE: 0.3}
        )

        assert by_name == by_enum

    def test_ranked_breaks_ties_by_priority(self):
        """Equal weights order as logic, psyche, instinct."""
        w = WeightVector(1 / 3, 1 / 3, 1 / 3)

        assert [t for t, _ in w.ranked()] == [TraitId.LOGIC, TraitId.PSYCHE, TraitId.INSTINCT]

    def test_dominant_with_partial_tie(self):
        """Instinct and psyche tied at the top: psyche wins."""
        w = WeightVector(instinct=0.4, logic=0.2, psyche=0.4)

        assert w.dominant() is TraitId.PSYCHE

    def test_replace_returns_new_vector(self):
        w = WeightVector(0.2, 0.2, 0.2)

        updated = w.replace(TraitId.LOGIC, 0.6)

        assert updated.logic == 0.6
        assert w.logic == 0.2


class TestAgentActivationState:
    """Tests for AgentActivationState."""

    def test_default_all_on(self):
        state = AgentActivationState()

        assert all(mode is ActivationMode.ON for mode in state.modes().values())

    def test_all_off_is_rejected(self):
        """A state with no active trait cannot be built."""
        with pytest.raises(ValueError):
            AgentActivationState(ActivationMode.OFF, ActivationMode.OFF, ActivationMode.OFF)

    def test_from_modes_defaults_missing_to_off(self):
        state = AgentActivationState.from_modes({TraitId.LOGIC: ActivationMode.ON})

        assert state[TraitId.LOGIC] is ActivationMode.ON
        assert state[TraitId.INSTINCT] is ActivationMode.OFF
        assert state[TraitId.PSYCHE] is ActivationMode.OFF


class TestPointAllocation:
    """Tests for PointAllocation."""

    def test_total(self):
        assert PointAllocation(instinct=3, logic=4, psyche=4).total == 11

    def test_with_points_is_immutable(self):
        points = PointAllocation(4, 4, 4)

        updated = points.with_points(TraitId.PSYCHE, 3)

        assert updated == PointAllocation(4, 4, 3)
        assert points == PointAllocation(4, 4, 4)

    def test_from_mapping(self):
        points = PointAllocation.from_mapping({"instinct": 2, "logic": 6, "psyche": 3})

        assert points.as_dict() == {"instinct": 2, "logic": 6, "psyche": 3}
