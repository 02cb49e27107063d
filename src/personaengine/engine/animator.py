"""Eased interpolation of the displayed weight vector toward a target.

The animator never blocks. It asks a Scheduler for the next tick and
interpolates when called back. A new target supersedes the running
animation: the pending tick is cancelled and the new animation starts from
whatever vector is on screen at that moment.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from personaengine.model.traits import TraitId, WeightVector

logger = logging.getLogger(__name__)

DEFAULT_DURATION = 0.15

TickCallback = Callable[[float], None]


class Scheduler(Protocol):
    """Supplies animation ticks (a frame timer, an event loop, a test driver)."""

    def request_tick(self, callback: TickCallback) -> Any:
        """Arrange for ``callback(now)`` to run once; return a cancel handle."""
        ...

    def cancel(self, handle: Any) -> None:
        """Cancel a pending tick. Unknown or already-fired handles are ignored."""
        ...


class ManualScheduler:
    """Scheduler driven explicitly by the caller.

    Useful for tests and headless renderers that own their own frame loop.
    """

    def __init__(self) -> None:
        self._pending: dict[int, TickCallback] = {}
        self._next_handle = 0

    @property
    def pending(self) -> int:
        return len(self._pending)

    def request_tick(self, callback: TickCallback) -> int:
        self._next_handle += 1
        self._pending[self._next_handle] = callback
        return self._next_handle

    def cancel(self, handle: Any) -> None:
        self._pending.pop(handle, None)

    def run_pending(self, now: float) -> int:
        """Fire every tick requested before this call.

        Returns:
            Number of callbacks run.
        """
        due, self._pending = self._pending, {}
        for callback in due.values():
            callback(now)
        return len(due)


class AsyncioScheduler:
    """Ticks on an asyncio event loop at a fixed frame interval."""

    def __init__(
        self,
        frame_interval: float = 1 / 60,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.frame_interval = frame_interval
        self._loop = loop

    def request_tick(self, callback: TickCallback) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(self.frame_interval, lambda: callback(loop.time()))

    def cancel(self, handle: Any) -> None:
        if handle is not None:
            handle.cancel()


class AnimationPhase(Enum):
    IDLE = "idle"
    ANIMATING = "animating"


@dataclass(frozen=True)
class AnimationState:
    displayed: WeightVector
    start: WeightVector
    target: WeightVector
    started_at: float
    phase: AnimationPhase


def ease_out_cubic(progress: float) -> float:
    """1 - (1 - p)^3: fast start, gentle landing, monotonic on [0, 1]."""
    return 1 - (1 - progress) ** 3


def interpolate(start: WeightVector, target: WeightVector, eased: float) -> WeightVector:
    """Per-trait linear blend between two vectors."""
    if eased >= 1:
        return target
    values = {
        trait.value: start[trait] + (target[trait] - start[trait]) * eased for trait in TraitId
    }
    return WeightVector(**values)


class WeightAnimator:
    """Tweens a displayed WeightVector toward the latest target.

    Example:
        >>> scheduler = ManualScheduler()
        >>> animator = WeightAnimator(WeightVector.uniform(), scheduler, clock=lambda: 0.0)
        >>> animator.retarget(WeightVector(0.2, 0.5, 0.3))
        >>> scheduler.run_pending(0.15)
        1
        >>> animator.displayed == WeightVector(0.2, 0.5, 0.3)
        True
    """

    def __init__(
        self,
        initial: WeightVector,
        scheduler: Scheduler,
        duration: float = DEFAULT_DURATION,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if duration <= 0:
            raise ValueError("duration must be positive")
        self.duration = duration
        self._scheduler = scheduler
        self._clock = clock
        self._displayed = initial
        self._start = initial
        self._target = initial
        self._started_at = clock()
        self._phase = AnimationPhase.IDLE
        self._handle: Any = None
        self._observers: list[Callable[[WeightVector], None]] = []

    @property
    def displayed(self) -> WeightVector:
        return self._displayed

    @property
    def target(self) -> WeightVector:
        return self._target

    @property
    def phase(self) -> AnimationPhase:
        return self._phase

    @property
    def is_animating(self) -> bool:
        return self._phase is AnimationPhase.ANIMATING

    def snapshot(self) -> AnimationState:
        return AnimationState(
            displayed=self._displayed,
            start=self._start,
            target=self._target,
            started_at=self._started_at,
            phase=self._phase,
        )

    def subscribe(self, callback: Callable[[WeightVector], None]) -> Callable[[], None]:
        """Register a callback for every displayed vector; returns an unsubscribe."""
        self._observers.append(callback)
        return lambda: self._observers.remove(callback)

    def retarget(self, target: WeightVector, now: float | None = None) -> None:
        """Start animating toward ``target`` from the vector currently shown."""
        if self._handle is not None:
            self._scheduler.cancel(self._handle)
            self._handle = None

        self._start = self._displayed
        self._target = target
        self._started_at = self._clock() if now is None else now
        self._phase = AnimationPhase.ANIMATING
        logger.debug("Retarget %s -> %s", self._start.as_dict(), target.as_dict())
        self._handle = self._scheduler.request_tick(self.tick)

    def tick(self, now: float) -> WeightVector:
        """Advance the animation to time ``now`` and publish the result.

        Safe to call directly: a tick still queued on the scheduler is
        cancelled first.
        """
        if self._handle is not None:
            self._scheduler.cancel(self._handle)
            self._handle = None
        if self._phase is AnimationPhase.IDLE:
            return self._displayed

        progress = min(max((now - self._started_at) / self.duration, 0.0), 1.0)
        self._displayed = interpolate(self._start, self._target, ease_out_cubic(progress))

        if progress >= 1:
            self._phase = AnimationPhase.IDLE
        else:
            self._handle = self._scheduler.request_tick(self.tick)

        for callback in list(self._observers):
            callback(self._displayed)
        return self._displayed

    def cancel(self) -> None:
        """Stop where we are; the displayed vector stays as last drawn."""
        if self._handle is not None:
            self._scheduler.cancel(self._handle)
            self._handle = None
        self._phase = AnimationPhase.IDLE

    def jump_to(self, target: WeightVector) -> None:
        """Show ``target`` immediately without animating."""
        self.cancel()
        self._start = self._target = self._displayed = target
        for callback in list(self._observers):
            callback(self._displayed)
