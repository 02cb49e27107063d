"""REST endpoints for the active persona.

Exposes the controller's state, the radar frame for the vector currently
on screen, and the point / mode / learned-weight mutations.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from personaengine.backend.client import create_backend
from personaengine.config import get_engine_settings
from personaengine.controller import PersonaController
from personaengine.engine.allocation import AllocationRules, can_decrement, can_increment
from personaengine.engine.animator import ManualScheduler
from personaengine.model.traits import TraitId, WeightVector
from personaengine.projection.projector import ChartGeometry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/persona", tags=["persona"])


class ClassificationResponse(BaseModel):
    """Archetype assigned to the settled weights."""

    key: str = Field(description="Archetype table key, e.g. 'logic-balanced'")
    code: str = Field(description="Four-letter archetype code")
    name: str = Field(description="Archetype name")
    description: str = Field(description="One-line archetype description")
    confidence_percent: int = Field(ge=0, le=100, description="Confidence from history")
    dominant: TraitId
    secondary: TraitId
    tertiary: TraitId


class TraitControls(BaseModel):
    """Whether the +/- controls for a trait are usable."""

    can_increment: bool
    can_decrement: bool


class PersonaSnapshot(BaseModel):
    """Full engine state for the active persona."""

    profile_id: str | None = None
    points: dict[str, int]
    budget: int
    remaining: int
    controls: dict[str, TraitControls]
    points_weights: dict[str, float]
    settled_weights: dict[str, float]
    learned_weights: dict[str, float] | None = None
    message_count: int
    dominant_trait: TraitId | None = None
    modes: dict[str, str]
    active: list[TraitId]
    disco: list[TraitId]
    classification: ClassificationResponse


class PointChangeResponse(BaseModel):
    accepted: bool
    reason: str = ""
    points: dict[str, int]
    remaining: int


class ProjectedPointResponse(BaseModel):
    trait: TraitId
    x: float
    y: float
    magnitude: float
    image_size: float
    color: str


class FrameResponse(BaseModel):
    """Radar geometry for the vector currently displayed."""

    animating: bool
    weights: dict[str, float]
    points: list[ProjectedPointResponse]
    triangle: list[tuple[float, float]]
    rings: list[list[tuple[float, float]]]
    labels: dict[str, tuple[float, float]]


class LearnedWeightsRequest(BaseModel):
    """Weights learned by the backend after an exchange."""

    instinct: float = Field(ge=0.0, le=1.0)
    logic: float = Field(ge=0.0, le=1.0)
    psyche: float = Field(ge=0.0, le=1.0)
    message_count: int | None = Field(default=None, ge=0)
    lead_trait: TraitId | None = Field(
        default=None, description="Voice that led the exchange; enables the change notice"
    )
    had_support: bool = False


class WeightChangeResponse(BaseModel):
    kind: str
    message: str
    old_dominant: TraitId
    new_dominant: TraitId


class LearnedWeightsResponse(BaseModel):
    classification: ClassificationResponse
    notice: WeightChangeResponse | None = None


class DominantTraitRequest(BaseModel):
    trait: TraitId


_controller: PersonaController | None = None
_scheduler: ManualScheduler | None = None
_executor: ThreadPoolExecutor | None = None


def _get_controller() -> PersonaController:
    """Get or create the controller for the active persona.

    The server has no frame loop of its own, so animation ticks are driven by
    frame requests through a ManualScheduler. Backend pushes run on a worker
    thread so requests never wait on the backend.
    """
    global _controller, _scheduler, _executor
    if _controller is None:
        settings = get_engine_settings()
        backend = create_backend(settings)
        _scheduler = ManualScheduler()
        _executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="persona-sync")
        _controller = PersonaController(
            rules=AllocationRules(budget=settings.point_budget),
            backend=backend,
            scheduler=_scheduler,
            executor=_executor,
            animation_duration=settings.animation_duration,
            geometry=ChartGeometry(size=settings.chart_size, radius=settings.chart_radius),
        )
        _controller.refresh()
    return _controller


def set_controller(
    controller: PersonaController | None, scheduler: ManualScheduler | None = None
) -> None:
    """Replace the module controller (used by tests and embedding apps)."""
    global _controller, _scheduler
    shutdown()
    _controller = controller
    _scheduler = scheduler


def shutdown() -> None:
    """Wait for queued backend pushes, stop the sync worker and drop the controller."""
    global _controller, _scheduler, _executor
    if _executor is not None:
        _executor.shutdown(wait=True)
        _executor = None
    _controller = None
    _scheduler = None


def _classification(controller: PersonaController) -> ClassificationResponse:
    result = controller.classification()
    return ClassificationResponse(
        key=result.key,
        code=result.code,
        name=result.name,
        description=result.description,
        confidence_percent=result.confidence_percent,
        dominant=result.dominant,
        secondary=result.secondary,
        tertiary=result.tertiary,
    )


def _snapshot(controller: PersonaController) -> PersonaSnapshot:
    state = controller.state
    rules = controller.rules
    learned = state.learned_weights
    return PersonaSnapshot(
        profile_id=state.profile_id,
        points=state.points.as_dict(),
        budget=rules.budget,
        remaining=rules.budget - state.points.total,
        controls={
            trait.value: TraitControls(
                can_increment=can_increment(state.points, trait, rules),
                can_decrement=can_decrement(state.points, trait, rules),
            )
            for trait in TraitId
        },
        points_weights=controller.points_weights().as_dict(),
        settled_weights=controller.settled_weights().as_dict(),
        learned_weights=learned.as_dict() if learned else None,
        message_count=state.message_count,
        dominant_trait=state.dominant_trait,
        modes={trait.value: mode.value for trait, mode in state.activation.modes().items()},
        active=controller.active_list(),
        disco=controller.disco_list(),
        classification=_classification(controller),
    )


def _point_change(
    controller: PersonaController, accepted: bool, reason: str
) -> PointChangeResponse:
    points = controller.state.points
    return PointChangeResponse(
        accepted=accepted,
        reason=reason,
        points=points.as_dict(),
        remaining=controller.rules.budget - points.total,
    )


@router.get("", response_model=PersonaSnapshot)
async def get_persona() -> PersonaSnapshot:
    """Current points, modes, weights and classification."""
    return _snapshot(_get_controller())


@router.get("/frame", response_model=FrameResponse)
async def get_frame() -> FrameResponse:
    """Advance the weight animation to now and return its radar geometry."""
    controller = _get_controller()
    if _scheduler is not None:
        _scheduler.run_pending(time.monotonic())
    frame = controller.frame()
    return FrameResponse(
        animating=controller.animator.is_animating,
        weights=controller.animator.displayed.as_dict(),
        points=[
            ProjectedPointResponse(
                trait=p.trait,
                x=p.x,
                y=p.y,
                magnitude=p.magnitude,
                image_size=p.image_size,
                color=frame.colors[p.trait],
            )
            for p in frame.points
        ],
        triangle=frame.triangle,
        rings=frame.rings,
        labels={trait.value: xy for trait, xy in frame.labels.items()},
    )


@router.post("/points/{trait}/increment", response_model=PointChangeResponse)
async def increment_points(trait: TraitId) -> PointChangeResponse:
    """Add a point to a trait. Rejections are reported, not raised."""
    controller = _get_controller()
    result = controller.increment(trait)
    return _point_change(controller, result.accepted, result.reason)


@router.post("/points/{trait}/decrement", response_model=PointChangeResponse)
async def decrement_points(trait: TraitId) -> PointChangeResponse:
    """Remove a point from a trait. Rejections are reported, not raised."""
    controller = _get_controller()
    result = controller.decrement(trait)
    return _point_change(controller, result.accepted, result.reason)


@router.post(
    "/presets/{name}",
    response_model=PointChangeResponse,
    responses={404: {"description": "Preset not found"}},
)
async def apply_preset(name: str) -> PointChangeResponse:
    """Apply a named preset, rebalanced to the configured budget.

    Raises:
        HTTPException: 404 if the preset does not exist.
    """
    controller = _get_controller()
    preset = controller.presets.get(name)
    if preset is None:
        logger.warning("Unknown preset requested: %s", name)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Preset '{name}' not found",
        )
    controller.apply_preset(preset)
    return _point_change(controller, True, "")


@router.put("/dominant", response_model=PersonaSnapshot)
async def set_dominant(request: DominantTraitRequest) -> PersonaSnapshot:
    """Set the manual dominant-trait override."""
    controller = _get_controller()
    controller.select_dominant(request.trait)
    return _snapshot(controller)


@router.post("/agents/{trait}/cycle", response_model=PersonaSnapshot)
async def cycle_agent(trait: TraitId) -> PersonaSnapshot:
    """Advance a voice through off, on and disco."""
    controller = _get_controller()
    controller.cycle(trait)
    return _snapshot(controller)


@router.post("/agents/disco", response_model=PersonaSnapshot)
async def toggle_disco() -> PersonaSnapshot:
    """Switch every active voice into or out of disco together."""
    controller = _get_controller()
    controller.set_bulk_disco()
    return _snapshot(controller)


@router.put("/learned-weights", response_model=LearnedWeightsResponse)
async def update_learned_weights(request: LearnedWeightsRequest) -> LearnedWeightsResponse:
    """Record weights learned by the backend and report how they moved."""
    controller = _get_controller()
    notice = controller.update_learned(
        WeightVector(instinct=request.instinct, logic=request.logic, psyche=request.psyche),
        message_count=request.message_count,
        lead_trait=request.lead_trait,
        had_support=request.had_support,
    )
    return LearnedWeightsResponse(
        classification=_classification(controller),
        notice=(
            WeightChangeResponse(
                kind=notice.kind.value,
                message=notice.message,
                old_dominant=notice.old_dominant,
                new_dominant=notice.new_dominant,
            )
            if notice
            else None
        ),
    )
