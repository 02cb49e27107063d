"""Tests for learned-weight change notices."""

from personaengine.engine.notifications import ChangeKind, describe_weight_change, total_shift
from personaengine.model import TraitId, WeightVector

BEFORE = WeightVector(instinct=0.2, logic=0.5, psyche=0.3)


class TestDescribeWeightChange:
    """Tests for describe_weight_change()."""

    def test_tiny_change_not_reported(self):
        after = WeightVector(instinct=0.202, logic=0.5, psyche=0.298)

        assert describe_weight_change(BEFORE, after, TraitId.LOGIC) is None

    def test_dominant_change_is_major(self):
        after = WeightVector(instinct=0.2, logic=0.3, psyche=0.5)

        notice = describe_weight_change(BEFORE, after, TraitId.PSYCHE)

        assert notice.kind is ChangeKind.MAJOR_SHIFT
        assert notice.old_dominant is TraitId.LOGIC
        assert notice.new_dominant is TraitId.PSYCHE
        assert "from Logic to Psyche" in notice.message
        assert "Puff" in notice.message

    def test_notable_shift_names_risen_trait(self):
        after = WeightVector(instinct=0.22, logic=0.5, psyche=0.28)

        notice = describe_weight_change(BEFORE, after, TraitId.LOGIC)

        assert notice.kind is ChangeKind.SHIFT
        assert notice.message == (
            "Your Instinct weight increased slightly. Dot guided this exchange."
        )

    def test_minor_change_mentions_support(self):
        after = WeightVector(instinct=0.21, logic=0.5, psyche=0.29)

        notice = describe_weight_change(BEFORE, after, TraitId.INSTINCT, had_support=True)

        assert notice.kind is ChangeKind.MINOR
        assert notice.message == "Weights adjusted based on Snap taking the lead with support."

    def test_total_shift(self):
        after = WeightVector(instinct=0.3, logic=0.4, psyche=0.3)

        assert abs(total_shift(BEFORE, after) - 0.2) < 1e-9
