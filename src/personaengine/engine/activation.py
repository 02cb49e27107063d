"""Trait voice activation: off -> on -> disco cycling with a last-voice guard.

Every operation takes a state and returns a new one; the model class below
only holds the current value and logs transitions.
"""

from __future__ import annotations

import logging

from personaengine.model.state import AgentActivationState
from personaengine.model.traits import DISPLAY_ORDER, ActivationMode, TraitId

logger = logging.getLogger(__name__)

_NEXT_MODE: dict[ActivationMode, ActivationMode] = {
    ActivationMode.OFF: ActivationMode.ON,
    ActivationMode.ON: ActivationMode.DISCO,
    ActivationMode.DISCO: ActivationMode.OFF,
}


def active_list(state: AgentActivationState) -> list[TraitId]:
    """Active traits in display order (psyche, logic, instinct)."""
    return [trait for trait in DISPLAY_ORDER if state[trait] is not ActivationMode.OFF]


def disco_list(state: AgentActivationState) -> list[TraitId]:
    """Active traits currently in disco mode, in display order."""
    return [trait for trait in DISPLAY_ORDER if state[trait] is ActivationMode.DISCO]


def is_active(state: AgentActivationState, trait: TraitId) -> bool:
    return state[trait] is not ActivationMode.OFF


def any_disco(state: AgentActivationState) -> bool:
    return bool(disco_list(state))


def cycle(state: AgentActivationState, trait: TraitId) -> AgentActivationState:
    """Advance one trait to its next mode.

    Turning off the only active trait is redirected to ON, so the result
    always has at least one active voice.

    Args:
        state: Current activation state.
        trait: Trait to advance.

    Returns:
        The new activation state.
    """
    current = state[trait]
    new_mode = _NEXT_MODE[current]

    if new_mode is ActivationMode.OFF and active_list(state) == [trait]:
        logger.debug("Refusing to silence last active trait %s; forcing on", trait.value)
        new_mode = ActivationMode.ON

    return state.with_modes({trait: new_mode})


def set_bulk_disco(state: AgentActivationState) -> AgentActivationState:
    """Toggle disco for every active trait at once.

    If all active traits are already in disco they drop back to ON, otherwise
    they all switch to DISCO. OFF traits are left alone.
    """
    active = active_list(state)
    all_disco = all(state[trait] is ActivationMode.DISCO for trait in active)
    target = ActivationMode.ON if all_disco else ActivationMode.DISCO
    return state.with_modes(dict.fromkeys(active, target))


class AgentActivationModel:
    """Holds the current activation state and applies the pure operations."""

    def __init__(self, state: AgentActivationState | None = None) -> None:
        self._state = state or AgentActivationState()

    @property
    def state(self) -> AgentActivationState:
        return self._state

    def cycle(self, trait: TraitId) -> AgentActivationState:
        before = self._state[trait]
        self._state = cycle(self._state, trait)
        logger.debug(
            "Cycled %s: %s -> %s", trait.value, before.value, self._state[trait].value
        )
        return self._state

    def set_bulk_disco(self) -> AgentActivationState:
        self._state = set_bulk_disco(self._state)
        logger.debug("Bulk disco applied, disco traits: %s", [t.value for t in self.disco_list()])
        return self._state

    def active_list(self) -> list[TraitId]:
        return active_list(self._state)

    def disco_list(self) -> list[TraitId]:
        return disco_list(self._state)
