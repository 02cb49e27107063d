"""Radar projector: trait weights to chart geometry for rendering.

The meaningful weight band [MIN_WEIGHT, MAX_WEIGHT] is stretched onto a
display magnitude of [0.25, 1.0] so small differences stay visible and no
trait collapses to a zero-size marker. Each trait sits on a fixed axis:
logic at the top, psyche bottom-left, instinct bottom-right.

Everything here is a pure function of its inputs and can be recomputed on
every animation tick.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from personaengine.model.traits import ActivationMode, TraitId

if TYPE_CHECKING:
    from personaengine.model.state import AgentActivationState
    from personaengine.model.traits import WeightVector

MIN_WEIGHT = 0.20
MAX_WEIGHT = 0.60

# Display magnitude for a weight at or below MIN_WEIGHT.
MIN_MAGNITUDE = 0.25

MIN_IMAGE_SIZE = 52.0
MAX_IMAGE_SIZE = 72.0

# Axis angles in degrees, y pointing down (screen coordinates).
TRAIT_ANGLES: dict[TraitId, float] = {
    TraitId.LOGIC: -90.0,
    TraitId.PSYCHE: 150.0,
    TraitId.INSTINCT: 30.0,
}

# Vertex order of the data polygon.
TRIANGLE_ORDER: tuple[TraitId, ...] = (TraitId.LOGIC, TraitId.PSYCHE, TraitId.INSTINCT)

RING_LEVELS: tuple[float, ...] = (0.33, 0.66, 1.0)

TRAIT_COLORS: dict[TraitId, str] = {
    TraitId.INSTINCT: "#E07A5F",
    TraitId.LOGIC: "#6BB8C9",
    TraitId.PSYCHE: "#A78BCA",
}

DISCO_COLORS: dict[TraitId, str] = {
    TraitId.INSTINCT: "#F59E0B",
    TraitId.LOGIC: "#22D3EE",
    TraitId.PSYCHE: "#C084FC",
}

INACTIVE_COLOR = "#94A3B8"


@dataclass(frozen=True)
class ChartGeometry:
    """Canvas size, base radius and label offset of the radar chart."""

    size: float = 280.0
    radius: float = 85.0
    label_offset: float = 80.0
    min_image_size: float = MIN_IMAGE_SIZE
    max_image_size: float = MAX_IMAGE_SIZE

    @property
    def center(self) -> float:
        return self.size / 2


DEFAULT_GEOMETRY = ChartGeometry()


@dataclass(frozen=True)
class ProjectedPoint:
    """Screen position and marker size for one trait."""

    trait: TraitId
    x: float
    y: float
    magnitude: float
    image_size: float


@dataclass
class RadarFrame:
    """Everything a renderer needs to draw one frame of the trait chart."""

    points: list[ProjectedPoint] = field(default_factory=list)
    triangle: list[tuple[float, float]] = field(default_factory=list)
    rings: list[list[tuple[float, float]]] = field(default_factory=list)
    labels: dict[TraitId, tuple[float, float]] = field(default_factory=dict)
    colors: dict[TraitId, str] = field(default_factory=dict)


def weight_fraction(weight: float) -> float:
    """Position of a weight inside [MIN_WEIGHT, MAX_WEIGHT], clamped to [0, 1]."""
    clamped = max(MIN_WEIGHT, min(MAX_WEIGHT, weight))
    return (clamped - MIN_WEIGHT) / (MAX_WEIGHT - MIN_WEIGHT)


def normalize(weight: float) -> float:
    """Map a weight onto the display magnitude band [0.25, 1.0]."""
    return MIN_MAGNITUDE + weight_fraction(weight) * (1.0 - MIN_MAGNITUDE)


def image_size(weight: float, geometry: ChartGeometry = DEFAULT_GEOMETRY) -> float:
    """Portrait size for a trait, scaling with the same clamped fraction."""
    span = geometry.max_image_size - geometry.min_image_size
    return geometry.min_image_size + weight_fraction(weight) * span


def axis_point(
    trait: TraitId, scale: float, geometry: ChartGeometry = DEFAULT_GEOMETRY
) -> tuple[float, float]:
    """Point at ``scale`` times the base radius along a trait's axis."""
    angle = math.radians(TRAIT_ANGLES[trait])
    r = geometry.radius * scale
    return (geometry.center + r * math.cos(angle), geometry.center + r * math.sin(angle))


def label_point(trait: TraitId, geometry: ChartGeometry = DEFAULT_GEOMETRY) -> tuple[float, float]:
    """Anchor for a trait's portrait and label, outside the chart."""
    return axis_point(trait, (geometry.radius + geometry.label_offset) / geometry.radius, geometry)


def layout(
    weights: WeightVector, geometry: ChartGeometry = DEFAULT_GEOMETRY
) -> dict[TraitId, ProjectedPoint]:
    """Project each trait's weight onto its axis."""
    points: dict[TraitId, ProjectedPoint] = {}
    for trait in TRIANGLE_ORDER:
        weight = weights[trait]
        magnitude = normalize(weight)
        x, y = axis_point(trait, magnitude, geometry)
        points[trait] = ProjectedPoint(
            trait=trait,
            x=x,
            y=y,
            magnitude=magnitude,
            image_size=image_size(weight, geometry),
        )
    return points


def triangle_path(
    weights: WeightVector, geometry: ChartGeometry = DEFAULT_GEOMETRY
) -> list[tuple[float, float]]:
    """Vertices of the closed data polygon: logic, psyche, instinct."""
    points = layout(weights, geometry)
    return [(points[trait].x, points[trait].y) for trait in TRIANGLE_ORDER]


def ring_polygons(
    levels: tuple[float, ...] = RING_LEVELS, geometry: ChartGeometry = DEFAULT_GEOMETRY
) -> list[list[tuple[float, float]]]:
    """Background reference triangles at fractions of the base radius."""
    return [[axis_point(trait, level, geometry) for trait in TRIANGLE_ORDER] for level in levels]


def trait_color(trait: TraitId, mode: ActivationMode) -> str:
    if mode is ActivationMode.DISCO:
        return DISCO_COLORS[trait]
    if mode is ActivationMode.OFF:
        return INACTIVE_COLOR
    return TRAIT_COLORS[trait]


def project(
    weights: WeightVector,
    activation: AgentActivationState | None = None,
    geometry: ChartGeometry = DEFAULT_GEOMETRY,
) -> RadarFrame:
    """Project a weight vector into a RadarFrame.

    Args:
        weights: Vector to draw (typically the animator's displayed vector).
        activation: Current voice modes; selects the palette per trait.
        geometry: Chart dimensions.

    Returns:
        RadarFrame for rendering.
    """
    points = layout(weights, geometry)
    colors = {
        trait: trait_color(trait, activation[trait] if activation else ActivationMode.ON)
        for trait in TRIANGLE_ORDER
    }
    return RadarFrame(
        points=[points[trait] for trait in TRIANGLE_ORDER],
        triangle=[(points[trait].x, points[trait].y) for trait in TRIANGLE_ORDER],
        rings=ring_polygons(geometry=geometry),
        labels={trait: label_point(trait, geometry) for trait in TRIANGLE_ORDER},
        colors=colors,
    )
